"""Synchronous change notification for store subscribers."""

import logging
from typing import Callable, List

logger = logging.getLogger(__name__)

Subscriber = Callable[[], None]


class ChangeNotifier:
    """Ordered subscriber list for payload-free "data changed" events.

    Subscribers are called synchronously, in registration order, on the
    thread that committed the mutation. They must re-read store state and
    must not mutate the store from inside the callback.
    """

    def __init__(self):
        self._subscribers: List[Subscriber] = []

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a callback; returns a function that unregisters it."""
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            self.unsubscribe(callback)

        return unsubscribe

    def unsubscribe(self, callback: Subscriber) -> bool:
        try:
            self._subscribers.remove(callback)
            return True
        except ValueError:
            return False

    def publish(self) -> None:
        # Iterate over a copy so a callback may unsubscribe itself
        for callback in list(self._subscribers):
            try:
                callback()
            except Exception as e:
                logger.error(f"Change subscriber {callback!r} failed: {type(e).__name__}: {str(e)}")

    def __len__(self) -> int:
        return len(self._subscribers)
