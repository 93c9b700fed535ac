"""Constants for ProTIvity.

This module centralizes default values used throughout the application.
"""

# Categories offered to standalone tasks
DEFAULT_TASK_CATEGORIES = ["Work", "Personal", "Shopping", "Health", "Other"]

# Workspace categories chosen from the workspace name (first match wins)
WORK_WORKSPACE_CATEGORIES = ["Work", "Meetings", "Projects", "Tasks"]
STUDY_WORKSPACE_CATEGORIES = ["Study", "Assignments", "Research", "Exams"]
PERSONAL_WORKSPACE_CATEGORIES = ["Personal", "Health", "Shopping", "Goals"]
GENERAL_WORKSPACE_CATEGORIES = ["General", "Tasks", "Notes"]

# Autosave
AUTOSAVE_DEBOUNCE_SECONDS = 0.5

# Persisted collection keys
WORKSPACES_KEY = "workspaces"
TASKS_KEY = "tasks"
ARCHIVED_TASKS_KEY = "archivedTasks"
GOALS_KEY = "goals"
JOURNAL_KEY = "journalEntries"

# Wire format version written into every persisted collection
SCHEMA_VERSION = 1
