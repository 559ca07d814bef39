from __future__ import annotations

import json
import logging
from typing import Iterator, Optional

from flask import Flask, Response, request

from ..common.validators import optional_int
from ..container import Container
from ..core.constants import SSE_KEEPALIVE_SECONDS
from .events import event_name, event_payload
from .subscriber import ChangeFeedSubscriber

logger = logging.getLogger(__name__)


def format_sse(event: str, data: dict) -> str:
    return f"event: {event}\ndata: {json.dumps(data, ensure_ascii=False)}\n\n"


def stream_events(
    subscriber: ChangeFeedSubscriber,
    *,
    keepalive: float = SSE_KEEPALIVE_SECONDS,
    max_events: Optional[int] = None,
) -> Iterator[str]:
    """Server-Sent-Events body; closes the subscriber when the client goes away."""
    sent = 0
    try:
        yield ": connected\n\n"
        while max_events is None or sent < max_events:
            event = subscriber.next_event(timeout=keepalive)
            if event is None:
                yield ": keep-alive\n\n"
                continue
            yield format_sse(event_name(event), event_payload(event))
            sent += 1
    finally:
        subscriber.close()


def register(app: Flask, container: Container) -> None:
    @app.route("/api/events", methods=["GET"], endpoint="events_stream")
    def events_stream():
        session_id = optional_int(request.args.get("session_id"), "session_id")
        if session_id is not None:
            container.session_service.get_session(session_id)

        subscriber = ChangeFeedSubscriber(
            container.feed,
            lambda sid: container.attendance_ledger.load(sid).values(),
            name="sse",
        )
        subscriber.watch_new_sessions()
        if session_id is not None:
            subscriber.bind(session_id)
        logger.info("SSE stream opened (drill=%s)", session_id)

        keepalive = float(app.config.get("SSE_KEEPALIVE_SECONDS", SSE_KEEPALIVE_SECONDS))
        return Response(
            stream_events(subscriber, keepalive=keepalive),
            mimetype="text/event-stream",
            headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
        )
