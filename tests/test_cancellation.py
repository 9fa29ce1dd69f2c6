import pytest

from careerfair.booking import DEFAULT_CANCEL_REASON, BookingService
from careerfair.errors import InvalidStatusTransition, NotFound


@pytest.fixture
def service():
    return BookingService(publish=lambda event: None)


def test_cancel_is_idempotent(test_db_session, service, make_company, make_appointment):
    company = make_company()
    appt = make_appointment(company.id, "09:00 - 09:30")
    appt_id = appt.id

    first = service.cancel(test_db_session, appt_id, reason="Exam moved")
    state = (first.status, first.notes, first.cancelled_at)
    assert first.status == "cancelled"
    assert first.notes == "Exam moved"
    assert first.cancelled_at is not None

    second = service.cancel(test_db_session, appt_id, reason="again")
    assert (second.status, second.notes, second.cancelled_at) == state


def test_cancel_default_reason(test_db_session, service, make_company, make_appointment):
    appt = make_appointment(make_company().id, "09:30 - 10:00")
    assert service.cancel(test_db_session, appt.id).notes == DEFAULT_CANCEL_REASON


def test_cancel_unknown(test_db_session, service):
    with pytest.raises(NotFound):
        service.cancel(test_db_session, "a-missing")


def test_completed_cannot_be_cancelled(test_db_session, service, make_company, make_appointment):
    appt = make_appointment(make_company().id, "09:00 - 09:30", status="completed")
    with pytest.raises(InvalidStatusTransition):
        service.cancel(test_db_session, appt.id)


@pytest.mark.parametrize("target", ["completed", "no-show"])
def test_scheduled_moves_to_terminal_states(test_db_session, service, make_company, make_appointment, target):
    appt = make_appointment(make_company().id, "10:00 - 10:30")
    updated = service.set_status(test_db_session, appt.id, target)
    assert updated.status == target
    # re-applying is a no-op
    assert service.set_status(test_db_session, appt.id, target).status == target


@pytest.mark.parametrize("current,target", [
    ("cancelled", "scheduled"),
    ("cancelled", "completed"),
    ("completed", "no-show"),
    ("no-show", "scheduled"),
])
def test_rejected_transitions(test_db_session, service, make_company, make_appointment, current, target):
    appt = make_appointment(make_company().id, "10:30 - 11:00", status=current)
    with pytest.raises(InvalidStatusTransition):
        service.set_status(test_db_session, appt.id, target)


def test_status_to_cancelled_goes_through_cancel(test_db_session, service, make_company, make_appointment):
    appt = make_appointment(make_company().id, "11:00 - 11:30")
    updated = service.set_status(test_db_session, appt.id, "cancelled")
    assert updated.status == "cancelled"
    assert updated.notes == DEFAULT_CANCEL_REASON


def test_cancel_endpoint(client, make_company, make_appointment):
    appt = make_appointment(make_company().id, "09:00 - 09:30")

    r = client.post(f"/appointments/{appt.id}/cancel", json={"reason": "Sick"})
    assert r.status_code == 200
    assert r.json()["status"] == "cancelled"
    assert r.json()["notes"] == "Sick"

    r = client.post(f"/appointments/{appt.id}/cancel")
    assert r.status_code == 200
    assert r.json()["notes"] == "Sick"

    r = client.post("/appointments/a-missing/cancel", json={})
    assert r.status_code == 404
    assert r.json()["error"] == "not_found"


def test_status_endpoint(client, make_company, make_appointment):
    appt = make_appointment(make_company().id, "09:00 - 09:30")

    r = client.post(f"/appointments/{appt.id}/status", json={"status": "no-show"})
    assert r.status_code == 200
    assert r.json()["status"] == "no-show"

    r = client.post(f"/appointments/{appt.id}/status", json={"status": "completed"})
    assert r.status_code == 409
    assert r.json()["error"] == "invalid_status_transition"

    r = client.post(f"/appointments/{appt.id}/status", json={"status": "archived"})
    assert r.status_code == 422
