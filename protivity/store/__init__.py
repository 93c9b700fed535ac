"""In-memory store for ProTIvity."""

from protivity.store.debounce import Debouncer, thread_timer
from protivity.store.notifications import ChangeNotifier
from protivity.store.results import MutationResult
from protivity.store.store import StandaloneCollections, Store

__all__ = [
    "Debouncer",
    "thread_timer",
    "ChangeNotifier",
    "MutationResult",
    "StandaloneCollections",
    "Store",
]
