"""Recurrence date arithmetic for ProTIvity."""

from datetime import datetime, timedelta
from typing import Optional

from dateutil.relativedelta import relativedelta

from protivity.models.task import RecurrenceInterval, Task


_STEPS = {
    RecurrenceInterval.DAILY: relativedelta(days=1),
    RecurrenceInterval.WEEKLY: relativedelta(weeks=1),
    # relativedelta clamps to the last valid day: Jan 31 + 1 month -> Feb 28/29
    RecurrenceInterval.MONTHLY: relativedelta(months=1),
    RecurrenceInterval.YEARLY: relativedelta(years=1),
}


def next_due_date(due_date: datetime, interval: RecurrenceInterval) -> datetime:
    """Advance a due date by exactly one recurrence unit.

    Args:
        due_date: Current due date
        interval: Recurrence cadence

    Returns:
        The next due date, preserving time of day
    """
    return due_date + _STEPS[RecurrenceInterval(interval)]


def build_successor(task: Task) -> Optional[Task]:
    """Build the next occurrence of a recurring task.

    The successor has a fresh id, the same definition (title, category,
    priority, notes, recurrence, goal) and a due date one unit later; it
    starts not completed. Returns None for non-recurring tasks and for
    recurring tasks without a due date, which have nothing to advance.
    """
    if not task.is_recurring or task.recurrence_interval is None or task.due_date is None:
        return None
    data = task.model_dump(exclude={"id"})
    data.update(
        is_completed=False,
        is_archived=False,
        last_completed_date=None,
        due_date=next_due_date(task.due_date, task.recurrence_interval),
    )
    return Task(**data)


def start_of_day(moment: datetime) -> datetime:
    return moment.replace(hour=0, minute=0, second=0, microsecond=0)


def start_of_next_day(moment: datetime) -> datetime:
    return start_of_day(moment) + timedelta(days=1)
