"""Data models for ProTIvity."""

from protivity.models.color import RGBColor
from protivity.models.goal import Goal
from protivity.models.journal import JournalEntry
from protivity.models.page import Page
from protivity.models.task import Priority, RecurrenceInterval, Task
from protivity.models.workspace import Folder, FolderItem, PageItem, Workspace, WorkspaceItem

__all__ = [
    "RGBColor",
    "Goal",
    "JournalEntry",
    "Page",
    "Priority",
    "RecurrenceInterval",
    "Task",
    "Folder",
    "FolderItem",
    "PageItem",
    "Workspace",
    "WorkspaceItem",
]
