"""Derived task and goal views for ProTIvity.

Every function here is pure and recomputed on each call against the
collections it is given; nothing is cached.
"""

from datetime import datetime
from typing import Dict, Iterable, List, Optional

from protivity.engine.recurrence import start_of_day, start_of_next_day
from protivity.models.base import to_local_naive
from protivity.models.goal import Goal
from protivity.models.task import Task


def _now(now: Optional[datetime]) -> datetime:
    return to_local_naive(now) if now is not None else datetime.now()


def tasks_for_category(tasks: Iterable[Task], category: str) -> List[Task]:
    return [t for t in tasks if t.category == category]


def tasks_for_today(tasks: Iterable[Task], now: Optional[datetime] = None) -> List[Task]:
    """Tasks due within the current local calendar day."""
    day_start = start_of_day(_now(now))
    day_end = start_of_next_day(day_start)
    return [t for t in tasks if t.due_date is not None and day_start <= t.due_date < day_end]


def upcoming_tasks(tasks: Iterable[Task], now: Optional[datetime] = None) -> List[Task]:
    """Tasks due on any later day than today."""
    day_end = start_of_next_day(_now(now))
    return [t for t in tasks if t.due_date is not None and t.due_date >= day_end]


def completed_tasks(tasks: Iterable[Task]) -> List[Task]:
    return [t for t in tasks if t.is_completed]


def active_goals(goals: Iterable[Goal]) -> List[Goal]:
    return [g for g in goals if not g.is_completed]


def completed_goals(goals: Iterable[Goal]) -> List[Goal]:
    return [g for g in goals if g.is_completed]


def upcoming_goals(goals: Iterable[Goal], now: Optional[datetime] = None) -> List[Goal]:
    """Open goals whose deadline lies after the start of today."""
    day_start = start_of_day(_now(now))
    return [g for g in goals if g.deadline is not None and g.deadline > day_start and not g.is_completed]


def tasks_for_goal(goal: Goal, tasks: Iterable[Task]) -> List[Task]:
    """Resolve a goal's task references in goal order.

    References to tasks that no longer exist are skipped; duplicate
    references resolve once.
    """
    by_id: Dict[str, Task] = {t.id: t for t in tasks}
    resolved: List[Task] = []
    seen = set()
    for task_id in goal.task_ids:
        task = by_id.get(task_id)
        if task is not None and task_id not in seen:
            seen.add(task_id)
            resolved.append(task)
    return resolved


def completion_percentage_for_goal(goal: Goal, tasks: Iterable[Task]) -> float:
    """Percentage (0-100) of a goal's resolvable tasks that are completed.

    A goal with no resolvable tasks is 0.
    """
    goal_tasks = tasks_for_goal(goal, tasks)
    if not goal_tasks:
        return 0.0
    done = sum(1 for t in goal_tasks if t.is_completed)
    return 100.0 * done / len(goal_tasks)
