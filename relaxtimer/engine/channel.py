"""Give-event channel between dosing actions and the timer board."""

import logging
from typing import Callable, List

from relaxtimer.db.models import GiveEvent
from relaxtimer.utils.time_utils import now_ms

logger = logging.getLogger(__name__)

GiveHandler = Callable[[GiveEvent], None]


class TriggerChannel:
    """Synchronous publish/subscribe for give events.

    Delivery is at-most-once with no queue: a publish with no subscriber
    is dropped.
    """

    def __init__(self, clock: Callable[[], int] = now_ms):
        self.clock = clock
        self._handlers: List[GiveHandler] = []

    def subscribe(self, handler: GiveHandler) -> Callable[[], None]:
        """Register a handler and return its unsubscribe callable."""
        self._handlers.append(handler)

        def unsubscribe() -> None:
            if handler in self._handlers:
                self._handlers.remove(handler)

        return unsubscribe

    def publish(self, agent_key: str, timestamp: int | None = None) -> int:
        """Notify all subscribers. Returns how many were notified."""
        event = GiveEvent(
            agent_key=agent_key,
            timestamp=timestamp if timestamp is not None else self.clock(),
        )

        handlers = list(self._handlers)
        if not handlers:
            logger.debug(f"Give event for {agent_key} dropped (no subscriber)")
            return 0

        for handler in handlers:
            handler(event)

        return len(handlers)
