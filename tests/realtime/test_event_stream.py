from __future__ import annotations

import json

from fire_muster.realtime.controller import format_sse, stream_events
from fire_muster.realtime.subscriber import ChangeFeedSubscriber


def test_format_sse_frames_event_and_json():
    assert format_sse("session_created", {"id": 1}) == 'event: session_created\ndata: {"id": 1}\n\n'


def test_stream_emits_keepalive_then_events_and_closes(container, roster, fixed_now):
    session = container.session_service.start_drill("Alex Morgan", now=fixed_now)
    sub = ChangeFeedSubscriber(container.feed, lambda sid: [], name="sse-test")
    sub.bind(session.session_id)
    stream = stream_events(sub, keepalive=0.01, max_events=1)

    assert next(stream) == ": connected\n\n"
    assert next(stream) == ": keep-alive\n\n"

    container.attendance_ledger.set_status(
        session.session_id, roster.ben.employee_id, "Alex Morgan", "present", now=fixed_now
    )
    frame = next(stream)
    remaining = list(stream)

    head, data = frame.strip().split("\n")
    assert head == "event: attendance_changed"
    assert json.loads(data[len("data: "):])["record"]["status"] == "present"
    assert remaining == []
    assert sub.session_id is None
    assert container.feed.subscriber_count == 0
