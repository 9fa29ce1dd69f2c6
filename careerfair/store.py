"""
Appointment store queries.

Booking-path queries (counts, seats, conflict checks) read inside the caller's
transaction and are strongly consistent. Reporting queries at the bottom are
plain aggregates and make no consistency promise.
"""
import uuid
from datetime import date, datetime

from sqlalchemy import JSON, Date, DateTime, bindparam, distinct, func, text
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from careerfair.models import Appointment, AppointmentStatus, Company
from careerfair.slots import EVENT_DATE

CANCELLED = AppointmentStatus.CANCELLED.value


def _active(query):
    return query.filter(Appointment.status != CANCELLED, Appointment.date == EVENT_DATE)


def count_active(db: Session, company_id: str, time_slot: str) -> int:
    return _active(db.query(func.count(Appointment.id))).filter(
        Appointment.company_id == company_id,
        Appointment.time_slot == time_slot,
    ).scalar()


def active_counts_by_slot(db: Session, company_id: str) -> dict[str, int]:
    rows = _active(db.query(Appointment.time_slot, func.count(Appointment.id))).filter(
        Appointment.company_id == company_id
    ).group_by(Appointment.time_slot).all()
    return {slot: count for slot, count in rows}


def taken_seats(db: Session, company_id: str, time_slot: str) -> set[int]:
    rows = _active(db.query(Appointment.seat)).filter(
        Appointment.company_id == company_id,
        Appointment.time_slot == time_slot,
    ).all()
    return {seat for (seat,) in rows}


def student_has_slot(db: Session, email: str, time_slot: str) -> bool:
    return db.query(
        _active(db.query(Appointment.id)).filter(
            Appointment.student_email == email,
            Appointment.time_slot == time_slot,
        ).exists()
    ).scalar()


def student_has_company(db: Session, email: str, company_id: str) -> bool:
    return db.query(
        _active(db.query(Appointment.id)).filter(
            Appointment.student_email == email,
            Appointment.company_id == company_id,
        ).exists()
    ).scalar()


def student_slots(db: Session, email: str) -> set[str]:
    rows = _active(db.query(Appointment.time_slot)).filter(Appointment.student_email == email).all()
    return {slot for (slot,) in rows}


# Single statement: the company gate, the seat bound and all three exclusivity
# rules are evaluated against the same snapshot as the write. The partial
# unique indexes on appointments reject whatever a concurrent writer slips in.
INSERT_GUARDED = text("""
    INSERT INTO appointments (
        id, company_id, date, time_slot, seat, status,
        student_email, first_name, last_name, phone_number, field_of_study, motivation,
        cv_reference, advisory_flags, created_at, updated_at
    )
    SELECT
        :id, :company_id, :date, :time_slot, :seat, 'scheduled',
        :student_email, :first_name, :last_name, :phone_number, :field_of_study, :motivation,
        :cv_reference, :advisory_flags, :now, :now
    WHERE EXISTS (
        SELECT 1 FROM companies c
        WHERE c.id = :company_id AND c.booking_enabled AND :seat < c.capacity_per_slot
    )
    AND NOT EXISTS (
        SELECT 1 FROM appointments a
        WHERE a.company_id = :company_id AND a.date = :date AND a.time_slot = :time_slot
          AND a.seat = :seat AND a.status != 'cancelled'
    )
    AND NOT EXISTS (
        SELECT 1 FROM appointments a
        WHERE a.student_email = :student_email AND a.date = :date AND a.time_slot = :time_slot
          AND a.status != 'cancelled'
    )
    AND NOT EXISTS (
        SELECT 1 FROM appointments a
        WHERE a.student_email = :student_email AND a.company_id = :company_id AND a.date = :date
          AND a.status != 'cancelled'
    )
""").bindparams(
    bindparam("date", type_=Date),
    bindparam("now", type_=DateTime),
    bindparam("advisory_flags", type_=JSON),
)


def insert_appointment(
    db: Session,
    *,
    company_id: str,
    time_slot: str,
    seat: int,
    student: dict,
    advisory_flags: list[str],
    cv_reference: str | None,
    booking_date: date = EVENT_DATE,
) -> str | None:
    """
    Try to claim ``seat`` in (company, slot) for the student.

    Returns the new appointment id, or None when a guard or a unique index
    rejected the row. The caller owns commit and rollback; on None the
    transaction has already been rolled back.
    """
    appointment_id = str(uuid.uuid4())
    params = {
        "id": appointment_id,
        "company_id": company_id,
        "date": booking_date,
        "time_slot": time_slot,
        "seat": seat,
        "student_email": student["email"],
        "first_name": student["first_name"],
        "last_name": student["last_name"],
        "phone_number": student["phone_number"],
        "field_of_study": student["field_of_study"],
        "motivation": student["motivation"],
        "cv_reference": cv_reference,
        "advisory_flags": list(advisory_flags),
        "now": datetime.utcnow(),
    }
    try:
        res = db.execute(INSERT_GUARDED, params)
    except IntegrityError:
        db.rollback()
        return None
    if res.rowcount != 1:
        db.rollback()
        return None
    return appointment_id


def get_appointment(db: Session, appointment_id: str) -> Appointment | None:
    return db.query(Appointment).options(joinedload(Appointment.company)).filter(
        Appointment.id == appointment_id
    ).first()


def get_appointments(db: Session, ids: list[str]) -> list[Appointment]:
    if not ids:
        return []
    rows = db.query(Appointment).options(joinedload(Appointment.company)).filter(
        Appointment.id.in_(ids)
    ).all()
    by_id = {a.id: a for a in rows}
    return [by_id[i] for i in ids if i in by_id]


def list_for_student(db: Session, email: str) -> list[Appointment]:
    return _active(db.query(Appointment).options(joinedload(Appointment.company))).filter(
        Appointment.student_email == email
    ).order_by(Appointment.time_slot.asc()).all()


def transition_status(
    db: Session, appointment_id: str, from_status: str, to_status: str, notes: str | None = None
) -> bool:
    """Compare-and-set on status. True when this call made the change."""
    now = datetime.utcnow()
    values = {"status": to_status, "updated_at": now}
    if to_status == CANCELLED:
        values["cancelled_at"] = now
    if notes is not None:
        values["notes"] = notes
    updated = db.query(Appointment).filter(
        Appointment.id == appointment_id,
        Appointment.status == from_status,
    ).update(values, synchronize_session=False)
    return updated == 1


def get_company(db: Session, company_id: str) -> Company | None:
    return db.get(Company, company_id)


def list_bookable_companies(db: Session) -> list[Company]:
    return db.query(Company).filter(Company.booking_enabled.is_(True)).order_by(Company.name.asc()).all()


# --- reporting ---

def count_students(db: Session) -> int:
    return _active(db.query(func.count(distinct(Appointment.student_email)))).scalar()


def count_appointments(db: Session) -> int:
    return _active(db.query(func.count(Appointment.id))).scalar()


def count_bookable_companies(db: Session) -> int:
    return db.query(func.count(Company.id)).filter(Company.booking_enabled.is_(True)).scalar()


def popular_companies(db: Session, limit: int = 5) -> list[tuple[str, str, int]]:
    total = func.count(Appointment.id).label("total")
    rows = _active(db.query(Company.id, Company.name, total).join(Appointment, Appointment.company_id == Company.id))
    return rows.group_by(Company.id, Company.name).order_by(total.desc(), Company.name.asc()).limit(limit).all()


def field_distribution(db: Session) -> list[tuple[str, int]]:
    total = func.count(Appointment.id).label("total")
    rows = _active(db.query(Appointment.field_of_study, total))
    return rows.group_by(Appointment.field_of_study).order_by(total.desc(), Appointment.field_of_study.asc()).all()


def status_counts(db: Session) -> dict[str, int]:
    rows = db.query(Appointment.status, func.count(Appointment.id)).filter(
        Appointment.date == EVENT_DATE
    ).group_by(Appointment.status).all()
    counts = {s.value: 0 for s in AppointmentStatus}
    counts.update({status: n for status, n in rows})
    return counts
