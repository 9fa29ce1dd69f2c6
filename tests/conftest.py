# tests/conftest.py
import os
import tempfile

os.environ["SKIP_DB_INIT"] = "1"
os.environ.setdefault("DATABASE_URL", f"sqlite:///{tempfile.gettempdir()}/career_fair_unused.db")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from careerfair.db import Base, get_db, make_engine
from careerfair.main import app
from careerfair.models import Appointment, Company
from careerfair.slots import EVENT_DATE


@pytest.fixture(scope="function")
def engine(tmp_path):
    # temp DB file so worker threads can open their own connections
    engine = make_engine(f"sqlite:///{tmp_path / 'career_fair.db'}", busy_timeout=30)
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        engine.dispose()


@pytest.fixture(scope="function")
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def test_db_session(session_factory):
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(scope="function")
def client(test_db_session):
    def override_get_db():
        try:
            yield test_db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()


# —— Factories ——
@pytest.fixture
def make_company(test_db_session):
    counter = {"n": 0}

    def _make_company(company_id=None, name=None, interview_unit="standard", capacity_per_slot=2,
                      booking_enabled=True, special_requirements=None, **extra):
        counter["n"] += 1
        company_id = company_id or f"c-{counter['n']}"
        c = Company(
            id=company_id,
            name=name or f"Company {counter['n']}",
            industry=extra.pop("industry", "Technology"),
            interview_unit=interview_unit,
            capacity_per_slot=capacity_per_slot,
            booking_enabled=booking_enabled,
            special_requirements=special_requirements or [],
            positions=extra.pop("positions", ["Engineer"]),
            **extra,
        )
        test_db_session.add(c)
        test_db_session.commit()
        return c
    return _make_company


@pytest.fixture
def make_appointment(test_db_session):
    counter = {"n": 0}

    def _make_appointment(company_id, time_slot, email=None, status="scheduled", seat=0,
                          field_of_study="Computer Science"):
        counter["n"] += 1
        a = Appointment(
            id=f"a-{counter['n']}",
            company_id=company_id,
            date=EVENT_DATE,
            time_slot=time_slot,
            seat=seat,
            status=status,
            student_email=email or f"student{counter['n']}@example.com",
            first_name="Stu",
            last_name=f"Dent{counter['n']}",
            phone_number="+43 660 0000000",
            field_of_study=field_of_study,
            motivation="Keen to interview.",
        )
        test_db_session.add(a)
        test_db_session.commit()
        return a
    return _make_appointment


@pytest.fixture
def student_payload():
    def _student_payload(email="ada@example.com", requested=None, **overrides):
        payload = {
            "firstName": "Ada",
            "lastName": "Lovelace",
            "email": email,
            "phoneNumber": "+43 660 1234567",
            "fieldOfStudy": "Computer Science",
            "motivation": "I want to build analytical engines.",
            "requestedAppointments": requested or [],
        }
        payload.update(overrides)
        return payload
    return _student_payload
