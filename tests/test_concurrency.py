import threading
from concurrent.futures import ThreadPoolExecutor

from careerfair.booking import BookingService
from careerfair.models import Appointment, Company


def seed(session_factory, *companies):
    db = session_factory()
    try:
        db.add_all(companies)
        db.commit()
    finally:
        db.close()


def race(session_factory, payloads):
    """Submit every payload from its own thread and session, released together."""
    service = BookingService(publish=lambda event: None)
    barrier = threading.Barrier(len(payloads))

    def attempt(payload):
        db = session_factory()
        try:
            barrier.wait()
            result = service.submit(db, payload)
            return [a.id for a in result.created], [f.reason for f in result.failures]
        finally:
            db.close()

    with ThreadPoolExecutor(max_workers=len(payloads)) as pool:
        return list(pool.map(attempt, payloads))


def payload(email, company_id, slot):
    return {
        "firstName": "Race", "lastName": "Runner", "email": email, "phoneNumber": "123",
        "fieldOfStudy": "Physics", "motivation": "Fast.",
        "requestedAppointments": [{"companyId": company_id, "timeSlot": slot}],
    }


def test_last_seat_goes_to_exactly_one_student(session_factory):
    seed(session_factory, Company(id="c-race", name="Race Co", interview_unit="quick", capacity_per_slot=1))
    n = 8
    outcomes = race(session_factory, [payload(f"s{i}@example.com", "c-race", "09:00 - 09:20") for i in range(n)])

    winners = [created for created, _ in outcomes if created]
    losers = [failed for created, failed in outcomes if not created]
    assert len(winners) == 1
    assert losers == [["slot_full"]] * (n - 1)

    db = session_factory()
    try:
        assert db.query(Appointment).filter(Appointment.company_id == "c-race").count() == 1
    finally:
        db.close()


def test_capacity_two_admits_exactly_two(session_factory):
    seed(session_factory, Company(id="c-duo", name="Duo Co", interview_unit="standard", capacity_per_slot=2))
    outcomes = race(session_factory, [payload(f"s{i}@example.com", "c-duo", "12:00 - 12:30") for i in range(6)])

    assert sum(1 for created, _ in outcomes if created) == 2
    assert sorted(r for _, failed in outcomes for r in failed) == ["slot_full"] * 4

    db = session_factory()
    try:
        seats = sorted(a.seat for a in db.query(Appointment).filter(Appointment.company_id == "c-duo"))
        assert seats == [0, 1]
    finally:
        db.close()


def test_one_student_racing_two_companies_gets_one(session_factory):
    seed(
        session_factory,
        Company(id="c-left", name="Left Co", interview_unit="quick"),
        Company(id="c-right", name="Right Co", interview_unit="quick"),
    )
    outcomes = race(session_factory, [
        payload("twin@example.com", "c-left", "15:00 - 15:20"),
        payload("twin@example.com", "c-right", "15:00 - 15:20"),
    ])

    assert sum(1 for created, _ in outcomes if created) == 1
    assert [r for _, failed in outcomes for r in failed] == ["time_conflict"]
