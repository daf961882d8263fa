"""
Post-commit notifications.

Subscribers are invoked after a record has been appended; they receive the
committed (frozen) record and cannot veto or delay the write. A failing
subscriber is logged and skipped.
"""

import logging
import threading
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

INTERACTION_RECORDED = "interaction_recorded"
OUTCOME_RECORDED = "outcome_recorded"
AB_TEST_SETUP = "ab_test_setup"
AB_TEST_ANALYZED = "ab_test_analyzed"

Subscriber = Callable[[Any], None]


class NotificationBus:
    """Explicit subscriber list per event name."""

    def __init__(self) -> None:
        self._subscribers: Dict[str, List[Subscriber]] = {}
        self._lock = threading.Lock()

    def subscribe(self, event: str, callback: Subscriber) -> Callable[[], None]:
        """
        Register a callback for an event.

        Returns:
            A function that removes the subscription
        """
        with self._lock:
            # copy-on-write so publishers iterate a stable list
            self._subscribers[event] = self._subscribers.get(event, []) + [callback]

        def unsubscribe() -> None:
            with self._lock:
                current = self._subscribers.get(event, [])
                self._subscribers[event] = [cb for cb in current if cb is not callback]

        return unsubscribe

    def subscriber_count(self, event: str) -> int:
        return len(self._subscribers.get(event, []))

    def publish(self, event: str, payload: Any) -> int:
        """
        Deliver payload to every subscriber of event, in registration order.

        Returns:
            Number of subscribers that handled the payload without error
        """
        delivered = 0
        for callback in self._subscribers.get(event, []):
            try:
                callback(payload)
                delivered += 1
            except Exception:
                logger.exception(f"Subscriber {callback!r} failed on {event}")
        return delivered
