from __future__ import annotations

from fire_muster.core.enums import AttendanceStatus, ChangeKind
from fire_muster.realtime.events import (
    AttendanceChanged,
    AttendanceReloaded,
    SessionCreated,
    SessionUpdated,
    event_name,
    event_payload,
)
from fire_muster.realtime.subscriber import ChangeFeedSubscriber


def make_subscriber(container):
    return ChangeFeedSubscriber(
        container.feed,
        lambda sid: container.attendance_ledger.load(sid).values(),
        name="test",
    )


def test_new_sessions_are_announced(container, fixed_now):
    sub = make_subscriber(container)
    sub.watch_new_sessions()

    session = container.session_service.start_drill("Alex Morgan", now=fixed_now)

    events = sub.drain()
    assert events == [SessionCreated(session=session)]
    assert event_name(events[0]) == "session_created"


def test_bound_subscriber_only_sees_its_session(container, roster, fixed_now):
    svc = container.session_service
    mine = svc.start_drill("Alex Morgan", now=fixed_now)
    other = svc.start_drill("Priya Shah", now=fixed_now)
    sub = make_subscriber(container)
    sub.bind(mine.session_id)

    container.attendance_ledger.set_status(other.session_id, roster.ben.employee_id, "Priya Shah", "present")
    svc.stop_drill(other.session_id, "Priya Shah")
    record = container.attendance_ledger.set_status(mine.session_id, roster.ben.employee_id, "Alex Morgan", "missing")
    ended = svc.stop_drill(mine.session_id, "Alex Morgan")

    events = sub.drain()
    assert events == [
        AttendanceChanged(record=record, kind=ChangeKind.INSERT),
        SessionUpdated(session=ended),
    ]


def test_unbind_stops_session_channels(container, roster, fixed_now):
    session = container.session_service.start_drill("Alex Morgan", now=fixed_now)
    sub = make_subscriber(container)
    sub.bind(session.session_id)

    sub.unbind()
    container.attendance_ledger.set_status(session.session_id, roster.ben.employee_id, "Alex Morgan", "present")

    assert sub.drain() == []
    assert sub.session_id is None


def test_disconnect_drops_events_and_reconnect_reloads(container, roster, fixed_now):
    session = container.session_service.start_drill("Alex Morgan", now=fixed_now)
    sub = make_subscriber(container)
    sub.watch_new_sessions()
    sub.bind(session.session_id)
    assert sub.connected

    sub.disconnect()
    assert not sub.connected
    container.attendance_ledger.set_status(session.session_id, roster.ben.employee_id, "Priya Shah", "missing")
    assert sub.drain() == []

    sub.reconnect()

    events = sub.drain()
    assert sub.connected
    assert len(events) == 1
    reload = events[0]
    assert isinstance(reload, AttendanceReloaded)
    assert reload.session_id == session.session_id
    assert [r.status for r in reload.records] == [AttendanceStatus.MISSING]


def test_next_event_times_out_with_none(container):
    sub = make_subscriber(container)

    assert sub.next_event(timeout=0.01) is None


def test_close_releases_all_subscriptions(container, fixed_now):
    session = container.session_service.start_drill("Alex Morgan", now=fixed_now)
    sub = make_subscriber(container)
    sub.watch_new_sessions()
    sub.bind(session.session_id)

    sub.close()

    assert container.feed.subscriber_count == 0


def test_event_payloads_are_json_ready(container, roster, fixed_now):
    session = container.session_service.start_drill("Alex Morgan", now=fixed_now)
    record = container.attendance_ledger.set_status(
        session.session_id, roster.ben.employee_id, "Alex Morgan", "present", now=fixed_now
    )

    payload = event_payload(AttendanceChanged(record=record))

    assert payload == {
        "kind": "update",
        "record": {
            "session_id": session.session_id,
            "employee_id": roster.ben.employee_id,
            "status": "present",
            "note": None,
            "marshal_name": "Alex Morgan",
            "updated_at": "2026-03-04T10:00:00",
        },
    }
