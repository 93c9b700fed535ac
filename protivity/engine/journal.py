"""Journal grouping for ProTIvity."""

from collections import OrderedDict
from typing import Dict, Iterable, List

from protivity.models.journal import JournalEntry


def group_by_week(entries: Iterable[JournalEntry]) -> Dict[str, List[JournalEntry]]:
    """Group entries under their ISO week key.

    Weeks are ordered newest first and entries inside a week newest first.
    Keys are recomputed from entry dates on every call.
    """
    ordered = sorted(entries, key=lambda e: e.date, reverse=True)
    groups: Dict[str, List[JournalEntry]] = OrderedDict()
    for entry in ordered:
        groups.setdefault(entry.week_year_key, []).append(entry)
    return groups
