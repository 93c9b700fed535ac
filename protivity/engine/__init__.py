"""Derived-query engine for ProTIvity."""

from protivity.engine.journal import group_by_week
from protivity.engine.queries import (
    active_goals,
    completed_goals,
    completed_tasks,
    completion_percentage_for_goal,
    tasks_for_category,
    tasks_for_goal,
    tasks_for_today,
    upcoming_goals,
    upcoming_tasks,
)
from protivity.engine.recurrence import build_successor, next_due_date
from protivity.engine.search import TaskFilter, filter_tasks, search_tasks

__all__ = [
    "group_by_week",
    "active_goals",
    "completed_goals",
    "completed_tasks",
    "completion_percentage_for_goal",
    "tasks_for_category",
    "tasks_for_goal",
    "tasks_for_today",
    "upcoming_goals",
    "upcoming_tasks",
    "build_successor",
    "next_due_date",
    "TaskFilter",
    "filter_tasks",
    "search_tasks",
]
