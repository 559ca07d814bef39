from __future__ import annotations

from datetime import timedelta

import pytest

from fire_muster.core.exceptions import NotFoundError, StoreUnavailableError
from fire_muster.drills.service import SessionLifecycleService


def test_start_drill_creates_active_session(container, fixed_now):
    session = container.session_service.start_drill("Alex Morgan", now=fixed_now)

    assert session.active is True
    assert session.started_by == "Alex Morgan"
    assert session.started_at == fixed_now
    assert session.ended_at is None
    assert container.session_service.get_session(session.session_id) == session


def test_several_drills_can_be_active_at_once(container, fixed_now):
    svc = container.session_service
    first = svc.start_drill("Alex Morgan", now=fixed_now)
    second = svc.start_drill("Priya Shah", now=fixed_now + timedelta(minutes=2))

    active_ids = [s.session_id for s in svc.list_active()]

    assert active_ids == [second.session_id, first.session_id]


def test_stop_only_ends_the_given_drill(container, fixed_now):
    svc = container.session_service
    first = svc.start_drill("Alex Morgan", now=fixed_now)
    second = svc.start_drill("Priya Shah", now=fixed_now)

    ended = svc.stop_drill(first.session_id, "Alex Morgan", now=fixed_now + timedelta(minutes=5))

    assert ended.active is False
    assert ended.ended_by == "Alex Morgan"
    assert ended.ended_at == fixed_now + timedelta(minutes=5)
    assert svc.get_session(second.session_id).active is True


def test_stop_is_terminal_and_keeps_first_stamps(container, fixed_now):
    svc = container.session_service
    session = svc.start_drill("Alex Morgan", now=fixed_now)
    first_stop = svc.stop_drill(session.session_id, "Alex Morgan", now=fixed_now + timedelta(minutes=5))

    again = svc.stop_drill(session.session_id, "Priya Shah", now=fixed_now + timedelta(minutes=9))

    assert again == first_stop
    assert again.ended_by == "Alex Morgan"


def test_stop_unknown_drill_raises(container):
    with pytest.raises(NotFoundError):
        container.session_service.stop_drill(404, "Alex Morgan")


def test_join_returns_attendance_snapshot(container, roster, fixed_now):
    svc = container.session_service
    session = svc.start_drill("Alex Morgan", now=fixed_now)
    container.attendance_ledger.set_status(session.session_id, roster.ben.employee_id, "Alex Morgan", "present")

    snapshot = svc.join_session(session.session_id)

    assert list(snapshot) == [roster.ben.employee_id]


def test_join_unknown_drill_raises(container):
    with pytest.raises(NotFoundError):
        container.session_service.join_session(12)


def test_delete_cascades_to_attendance(container, roster, fixed_now):
    svc = container.session_service
    session = svc.start_drill("Alex Morgan", now=fixed_now)
    ledger = container.attendance_ledger
    ledger.set_status(session.session_id, roster.ben.employee_id, "Alex Morgan", "present")
    ledger.set_status(session.session_id, roster.daniel.employee_id, "Priya Shah", "missing")

    assert svc.delete_session(session.session_id) is True

    assert container.attendance_repo.list_for_session(session.session_id) == []
    with pytest.raises(NotFoundError):
        svc.get_session(session.session_id)
    assert svc.delete_session(session.session_id) is False


def test_delete_works_on_active_drill(container, fixed_now):
    svc = container.session_service
    session = svc.start_drill("Alex Morgan", now=fixed_now)

    svc.delete_session(session.session_id)

    assert svc.list_active() == []


def test_list_sessions_is_newest_first_and_paged(container, fixed_now):
    svc = SessionLifecycleService(container.sessions_repo, container.attendance_repo, page_size=3)
    created = [svc.start_drill("Alex Morgan", now=fixed_now + timedelta(minutes=i)) for i in range(5)]
    svc.stop_drill(created[0].session_id, "Alex Morgan")

    listed = svc.list_sessions()

    assert [s.session_id for s in listed] == [c.session_id for c in reversed(created)][:3]
    assert len(svc.list_sessions(limit=10)) == 5


def test_start_fails_when_store_is_down(container, store):
    store.available = False

    with pytest.raises(StoreUnavailableError):
        container.session_service.start_drill("Alex Morgan")


def test_drills_run_independently_end_to_end(container, roster, fixed_now):
    svc = container.session_service
    ledger = container.attendance_ledger
    first = svc.start_drill("Alex Morgan", now=fixed_now)
    ben = ledger.set_status(first.session_id, roster.ben.employee_id, "Alex Morgan", "present", now=fixed_now)
    amelia = ledger.save_note(first.session_id, roster.amelia.employee_id, "Alex Morgan", "Floor 2", now=fixed_now)

    second = svc.start_drill("Priya Shah", now=fixed_now + timedelta(minutes=1))

    assert svc.get_session(first.session_id).active is True
    assert ledger.load(first.session_id) == {roster.ben.employee_id: ben, roster.amelia.employee_id: amelia}
    assert ledger.load(second.session_id) == {}

    daniel = ledger.set_status(second.session_id, roster.daniel.employee_id, "Priya Shah", "missing", now=fixed_now)
    svc.stop_drill(first.session_id, "Alex Morgan", now=fixed_now + timedelta(minutes=5))

    assert svc.get_session(second.session_id) == second
    assert ledger.load(second.session_id) == {roster.daniel.employee_id: daniel}
    assert roster.daniel.employee_id not in ledger.load(first.session_id)
