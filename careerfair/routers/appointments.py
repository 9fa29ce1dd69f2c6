from fastapi import APIRouter, BackgroundTasks, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from careerfair import store
from careerfair.booking import BookingService
from careerfair.db import get_db
from careerfair.errors import NotFound
from careerfair.notifications import notifier
from careerfair.schemas import (
    AppointmentOut, BatchResult, BookingSubmission, CancelBody, StatusBody, StudentAppointments, StudentSnapshot,
)

router = APIRouter()
service = BookingService()


@router.post("", status_code=201, response_model=BatchResult)
def submit_booking(body: BookingSubmission, background_tasks: BackgroundTasks, db: Session = Depends(get_db)):
    """
    Book every requested (company, slot) for the student independently.
    Returns 201 when at least one appointment was created, 400 with the
    itemized failures when none were.
    """
    result = service.submit(
        db, body, publish=lambda event: background_tasks.add_task(notifier.publish, event)
    )
    if not result.created:
        return JSONResponse(status_code=400, content=result.model_dump(mode="json", by_alias=True))
    return result


@router.get("", response_model=StudentAppointments)
def student_appointments(email: str = Query(...), db: Session = Depends(get_db)):
    rows = store.list_for_student(db, email.strip().lower())
    if not rows:
        raise NotFound("No appointments found for this email.")
    first = rows[0]
    return StudentAppointments(
        student=StudentSnapshot(
            first_name=first.first_name,
            last_name=first.last_name,
            email=first.student_email,
            phone_number=first.phone_number,
            field_of_study=first.field_of_study,
            motivation=first.motivation,
        ),
        appointments=[AppointmentOut.from_row(a) for a in rows],
    )


@router.get("/{appointment_id}", response_model=AppointmentOut)
def get_appointment(appointment_id: str, db: Session = Depends(get_db)):
    appointment = store.get_appointment(db, appointment_id)
    if appointment is None:
        raise NotFound(f"Appointment {appointment_id} not found.")
    return AppointmentOut.from_row(appointment)


@router.post("/{appointment_id}/cancel", response_model=AppointmentOut)
def cancel_appointment(appointment_id: str, body: CancelBody | None = None, db: Session = Depends(get_db)):
    reason = body.reason if body else None
    return AppointmentOut.from_row(service.cancel(db, appointment_id, reason))


@router.post("/{appointment_id}/status", response_model=AppointmentOut)
def update_status(appointment_id: str, body: StatusBody, db: Session = Depends(get_db)):
    return AppointmentOut.from_row(service.set_status(db, appointment_id, body.status))
