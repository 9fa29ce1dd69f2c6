from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from careerfair.availability import availability_for
from careerfair.db import get_db
from careerfair.schemas import SlotAvailability
from careerfair.slots import event_info

router = APIRouter()


@router.get("/event/info")
def slots_info():
    return event_info()


@router.get("/{company_id}", response_model=list[SlotAvailability])
def list_slots(
    company_id: str,
    email: str | None = Query(default=None),
    db: Session = Depends(get_db),
):
    """
    Every slot of the company in time order with a student-aware status:
      - conflict: the student (email) already has an appointment at this time
      - full: the company has no free interviewer left in the slot
      - available: otherwise

    Responds 409 booking_unavailable when the company has booking switched off.
    """
    return availability_for(db, company_id, email)
