"""ProTIvity: workspace-scoped tasks, goals, pages and journal with local persistence."""

__version__ = "0.1.0"
