"""Server-Sent Events (SSE) utilities.

This module turns the events of a chat turn into an SSE response.
"""

import json
import logging
import queue
import threading
from typing import Callable, Generator

from flask import Response, stream_with_context

from backend.conf.config import Config
from backend.src.services.chat.result_channel import ChatEvent

logger = logging.getLogger(__name__)


def create_sse_event(event: ChatEvent) -> str:
    """Format a chat event as an SSE event named after its type.

    Args:
        event: Chat event, e.g. {"type": "chunk", "content": "..."}

    Returns:
        Formatted SSE event string
    """
    return f"event: {event.get('type', 'message')}\ndata: {json.dumps(event)}\n\n"


def stream_events(
    run: Callable[[], None], events: "queue.Queue[ChatEvent]"
) -> Generator[str, None, None]:
    """Run a chat turn on a background thread and yield its queued events.

    Args:
        run: Runs the turn, publishing into the queue until it returns
        events: Queue the events of the turn are put on
    """
    processing_thread = threading.Thread(target=run, daemon=True)
    processing_thread.start()

    while processing_thread.is_alive() or not events.empty():
        try:
            event = events.get(timeout=Config.SSE_POLL_INTERVAL)
        except queue.Empty:
            continue
        yield create_sse_event(event)

    processing_thread.join()
    logger.debug("Event stream finished")


def create_sse_response(events: Generator[str, None, None]) -> Response:
    """Create a Server-Sent Events (SSE) response.

    Args:
        events: Formatted SSE events

    Returns:
        Flask Response configured for SSE
    """
    return Response(
        stream_with_context(events),
        mimetype="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )
