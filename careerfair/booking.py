import logging
from typing import Callable

from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.orm import Session

from careerfair import store
from careerfair.db import begin_write
from careerfair.errors import (
    BookingError, CompanyUnavailable, DuplicateCompanyBooking, InvalidSlot, InvalidStatusTransition,
    NotFound, SlotFull, TimeConflict, ValidationError,
)
from careerfair.models import ALLOWED_TRANSITIONS, Appointment, AppointmentStatus
from careerfair.notifications import RegistrationCompleted, notifier
from careerfair.schemas import (
    AppointmentOut, BatchResult, BookingFailure, BookingSubmission, RequestedAppointment, StudentSnapshot,
)
from careerfair.slots import is_valid_slot

logger = logging.getLogger(__name__)

Publisher = Callable[[RegistrationCompleted], object]

DEFAULT_CANCEL_REASON = "Cancelled by student"


class BookingService:
    """
    The only writer of appointments. Each requested appointment is checked
    and committed on its own, so one rejection never undoes another booking
    from the same submission.
    """

    def __init__(self, publish: Publisher | None = None):
        self.publish = publish or notifier.publish

    def submit(self, db: Session, submission: BookingSubmission | dict, publish: Publisher | None = None) -> BatchResult:
        if not isinstance(submission, BookingSubmission):
            try:
                submission = BookingSubmission.model_validate(submission)
            except PydanticValidationError as e:
                raise ValidationError(f"Invalid student information: {e.error_count()} error(s)") from e

        student = submission.student()
        created_ids: list[str] = []
        failures: list[BookingFailure] = []

        for item in submission.requested_appointments:
            try:
                created_ids.append(self.book_one(db, student, item, submission.cv_reference))
            except BookingError as exc:
                db.rollback()
                logger.info(
                    f"[Book] Rejected {student.email} -> {item.company_id} @ {item.time_slot}: {exc.code}"
                )
                failures.append(BookingFailure(
                    company_id=item.company_id, time_slot=item.time_slot, reason=exc.code, detail=exc.message,
                ))
            except Exception:
                db.rollback()
                raise

        created = [AppointmentOut.from_row(a) for a in store.get_appointments(db, created_ids)]
        db.commit()
        if created:
            try:
                (publish or self.publish)(RegistrationCompleted(student=student, appointments=created))
            except Exception:
                logger.exception(f"[Notify] Publishing registration for {student.email} failed")
        return BatchResult(success=bool(created), created=created, failures=failures)

    def book_one(
        self, db: Session, student: StudentSnapshot, item: RequestedAppointment, cv_reference: str | None = None
    ) -> str:
        """Validate and commit a single appointment. Returns its id or raises a BookingError."""
        company = store.get_company(db, item.company_id)
        if company is None or not company.booking_enabled:
            raise CompanyUnavailable(f"Company {item.company_id} is not accepting bookings.")
        if not is_valid_slot(company.unit, item.time_slot):
            raise InvalidSlot(f"{item.time_slot!r} is not a {company.unit.value} slot of {company.name}.")

        company_id, name, capacity = company.id, company.name, company.capacity_per_slot
        # a lost race rolls back and re-reads; each retry sees at least one more taken seat
        for _ in range(capacity + 1):
            begin_write(db)
            self._check_rules(db, company_id, name, capacity, student.email, item.time_slot)
            taken = store.taken_seats(db, company_id, item.time_slot)
            free = [seat for seat in range(capacity) if seat not in taken]
            if not free:
                raise SlotFull(f"{item.time_slot} is fully booked for {name}.")

            appointment_id = store.insert_appointment(
                db,
                company_id=company_id,
                time_slot=item.time_slot,
                seat=free[0],
                student=student.model_dump(),
                advisory_flags=item.advisory_flags,
                cv_reference=cv_reference,
            )
            if appointment_id:
                db.commit()
                logger.info(f"[Book] {student.email} -> {name} @ {item.time_slot} seat={free[0]} id={appointment_id}")
                return appointment_id
            logger.info(f"[Book] Insert for {name} @ {item.time_slot} lost a race, re-checking")
        raise SlotFull(f"{item.time_slot} is fully booked for {name}.")

    @staticmethod
    def _check_rules(db: Session, company_id: str, company_name: str, capacity: int, email: str, time_slot: str):
        if store.count_active(db, company_id, time_slot) >= capacity:
            raise SlotFull(f"{time_slot} is fully booked for {company_name}.")
        if store.student_has_slot(db, email, time_slot):
            raise TimeConflict(f"You already have an appointment at {time_slot}.")
        if store.student_has_company(db, email, company_id):
            raise DuplicateCompanyBooking(f"You already have an appointment with {company_name}.")

    def cancel(self, db: Session, appointment_id: str, reason: str | None = None) -> Appointment:
        """Cancel a scheduled appointment. Cancelling a cancelled one changes nothing."""
        begin_write(db)
        changed = store.transition_status(
            db, appointment_id,
            AppointmentStatus.SCHEDULED.value, AppointmentStatus.CANCELLED.value,
            notes=(reason or "").strip() or DEFAULT_CANCEL_REASON,
        )
        db.commit()
        appointment = store.get_appointment(db, appointment_id)
        if appointment is None:
            raise NotFound(f"Appointment {appointment_id} not found.")
        if not changed and appointment.status != AppointmentStatus.CANCELLED.value:
            raise InvalidStatusTransition(f"A {appointment.status} appointment cannot be cancelled.")
        if changed:
            logger.info(f"[Cancel] {appointment_id} ({appointment.student_email} @ {appointment.time_slot})")
        return appointment

    def set_status(self, db: Session, appointment_id: str, status: AppointmentStatus | str) -> Appointment:
        target = AppointmentStatus(status)
        if target is AppointmentStatus.CANCELLED:
            return self.cancel(db, appointment_id)

        begin_write(db)
        appointment = store.get_appointment(db, appointment_id)
        if appointment is None:
            db.rollback()
            raise NotFound(f"Appointment {appointment_id} not found.")
        current = AppointmentStatus(appointment.status)
        if current is target:
            db.commit()
            return appointment
        if target not in ALLOWED_TRANSITIONS.get(current, set()):
            db.rollback()
            raise InvalidStatusTransition(f"Cannot move appointment from {current.value} to {target.value}.")

        changed = store.transition_status(db, appointment_id, current.value, target.value)
        db.commit()
        if not changed:
            raise InvalidStatusTransition(f"Appointment {appointment_id} changed status concurrently.")
        logger.info(f"[Status] {appointment_id}: {current.value} -> {target.value}")
        return store.get_appointment(db, appointment_id)
