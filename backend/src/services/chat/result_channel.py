"""Channel streaming the tagged events of a chat turn to its subscribers."""

import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)

ChatEvent = Dict[str, Any]
EventCallback = Callable[[ChatEvent], None]
CompleteCallback = Callable[[], None]


class ResultChannel:
    """Publish/subscribe channel for chat events such as ``sources`` or ``saved``.

    Subscribers are called synchronously in the publishing thread. A failing
    subscriber is logged and never affects the publisher or other subscribers.
    Events published after completion are dropped.
    """

    def __init__(self) -> None:
        self._subscribers: List[Tuple[EventCallback, Optional[CompleteCallback]]] = []
        self._lock = threading.Lock()
        self.completed = False

    def subscribe(
        self,
        on_event: EventCallback,
        on_complete: Optional[CompleteCallback] = None,
    ) -> Callable[[], None]:
        """Register callbacks and return a function removing them again."""
        entry = (on_event, on_complete)
        with self._lock:
            self._subscribers.append(entry)

        def unsubscribe() -> None:
            with self._lock:
                if entry in self._subscribers:
                    self._subscribers.remove(entry)

        return unsubscribe

    def next(self, event: ChatEvent) -> None:
        """Publish an event to all subscribers."""
        if self.completed:
            logger.warning(f"Dropping '{event.get('type')}' event of a completed chat")
            return

        for on_event, _ in self._snapshot():
            try:
                on_event(event)
            except Exception as e:
                logger.error(f"Chat event subscriber failed on '{event.get('type')}': {str(e)}")

    def complete(self) -> None:
        """Mark the turn as finished and notify subscribers once."""
        if self.completed:
            return
        self.completed = True

        for _, on_complete in self._snapshot():
            if on_complete is None:
                continue
            try:
                on_complete()
            except Exception as e:
                logger.error(f"Chat completion subscriber failed: {str(e)}")

    def _snapshot(self) -> List[Tuple[EventCallback, Optional[CompleteCallback]]]:
        with self._lock:
            return list(self._subscribers)
