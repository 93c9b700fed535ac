"""Entity creation factory for ProTIvity.

This module centralizes entity creation so that defaults and fresh
identities are applied consistently across the application.
"""

from datetime import datetime
from typing import List, Optional

from protivity.models.color import BLUE, GREEN, ORANGE, RGBColor
from protivity.models.constants import (
    GENERAL_WORKSPACE_CATEGORIES,
    PERSONAL_WORKSPACE_CATEGORIES,
    STUDY_WORKSPACE_CATEGORIES,
    WORK_WORKSPACE_CATEGORIES,
)
from protivity.models.goal import Goal
from protivity.models.journal import JournalEntry
from protivity.models.page import Page
from protivity.models.task import Priority, RecurrenceInterval, Task
from protivity.models.workspace import Workspace


def create_task(
    title: str,
    category: str,
    priority: Priority = Priority.MEDIUM,
    due_date: Optional[datetime] = None,
    notes: str = "",
    recurrence_interval: Optional[RecurrenceInterval] = None,
    goal_id: Optional[str] = None,
) -> Task:
    """Create a task with defaults.

    A task is recurring exactly when a recurrence interval is given.

    Args:
        title: Task title (required)
        category: Category label (required)
        priority: Task priority (defaults to medium)
        due_date: Optional due date
        notes: Task notes
        recurrence_interval: Recurrence cadence; makes the task recurring
        goal_id: Optional owning goal

    Returns:
        New, not completed Task with a fresh id
    """
    return Task(
        title=title,
        category=category,
        priority=priority,
        due_date=due_date,
        notes=notes,
        is_recurring=recurrence_interval is not None,
        recurrence_interval=recurrence_interval,
        goal_id=goal_id,
    )


def create_goal(title: str, description: str = "", deadline: Optional[datetime] = None) -> Goal:
    """Create a goal with no tasks."""
    return Goal(title=title, description=description, deadline=deadline)


def create_page(title: str, content: str = "", now: Optional[datetime] = None) -> Page:
    """Create a page; creation and modification stamps start equal."""
    stamp = now or datetime.now()
    return Page(title=title, content=content, date_created=stamp, date_modified=stamp)


def create_journal_entry(thoughts: str, date: Optional[datetime] = None) -> JournalEntry:
    return JournalEntry(thoughts=thoughts, date=date or datetime.now())


def default_categories_for(name: str) -> List[str]:
    """Pick starter categories from a workspace name."""
    lowered = name.lower()
    if "work" in lowered:
        return list(WORK_WORKSPACE_CATEGORIES)
    if "study" in lowered or "school" in lowered:
        return list(STUDY_WORKSPACE_CATEGORIES)
    if "personal" in lowered:
        return list(PERSONAL_WORKSPACE_CATEGORIES)
    return list(GENERAL_WORKSPACE_CATEGORIES)


def create_workspace(
    name: str,
    icon: str,
    color: RGBColor,
    categories: Optional[List[str]] = None,
) -> Workspace:
    """Create an empty workspace.

    When no categories are given they are derived from the name.
    """
    if categories is None:
        categories = default_categories_for(name)
    return Workspace(name=name, icon=icon, color=color.model_copy(), categories=categories)


def default_workspaces() -> List[Workspace]:
    """Workspaces bootstrapped when no workspace data exists."""
    return [
        create_workspace("Personal", "person.fill", BLUE, ["Personal", "Health", "Shopping"]),
        create_workspace("Work", "briefcase.fill", ORANGE, ["Meetings", "Projects", "Admin"]),
        create_workspace("Study", "book.fill", GREEN, ["Assignments", "Exams", "Research"]),
    ]
