"""Outcome of store mutations."""

from enum import Enum


class MutationResult(str, Enum):
    """What a store mutation did.

    Only APPLIED is truthy, so ``if store.delete_task(...)`` reads naturally
    while callers that care can still tell a missing target from a no-op.
    """
    APPLIED = "applied"
    NOT_FOUND = "not_found"  # referenced workspace/task/goal/page does not exist
    UNCHANGED = "unchanged"  # target exists but the mutation had nothing to do

    def __bool__(self) -> bool:
        return self is MutationResult.APPLIED
