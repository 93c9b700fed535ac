"""Task list filtering for ProTIvity."""

from datetime import datetime
from enum import Enum
from typing import Iterable, List, Optional

from protivity.engine.queries import completed_tasks, tasks_for_category, tasks_for_today, upcoming_tasks
from protivity.models.task import Task


class TaskFilter(str, Enum):
    """List filters offered to task views."""
    ALL = "all"
    TODAY = "today"
    UPCOMING = "upcoming"
    COMPLETED = "completed"


def search_tasks(tasks: Iterable[Task], text: str) -> List[Task]:
    """Case-insensitive substring match on title or notes.

    Empty search text matches everything.
    """
    tasks = list(tasks)
    needle = (text or "").casefold()
    if not needle:
        return tasks
    return [t for t in tasks if needle in t.title.casefold() or needle in t.notes.casefold()]


def filter_tasks(
    tasks: Iterable[Task],
    task_filter: TaskFilter = TaskFilter.ALL,
    category: Optional[str] = None,
    text: str = "",
    now: Optional[datetime] = None,
) -> List[Task]:
    """Apply search text, then category, then the list filter.

    Args:
        tasks: Tasks to filter
        task_filter: Which list view to produce
        category: Restrict to one category label when given
        text: Search text (title or notes)
        now: Reference time for the date-based filters

    Returns:
        Matching tasks in their original order
    """
    result = search_tasks(tasks, text)
    if category is not None:
        result = tasks_for_category(result, category)

    task_filter = TaskFilter(task_filter)
    if task_filter == TaskFilter.TODAY:
        return tasks_for_today(result, now)
    if task_filter == TaskFilter.UPCOMING:
        return upcoming_tasks(result, now)
    if task_filter == TaskFilter.COMPLETED:
        return completed_tasks(result)
    return result
