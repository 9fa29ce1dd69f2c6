import logging

from sqlalchemy.orm import Session

from careerfair import store
from careerfair.errors import BookingUnavailable, NotFound
from careerfair.models import Company
from careerfair.schemas import SlotAvailability
from careerfair.slots import slots_for_unit

logger = logging.getLogger(__name__)

AVAILABLE = "available"
FULL = "full"
CONFLICT = "conflict"


def resolve_availability(company: Company, counts: dict[str, int], student_slots: set[str]) -> list[SlotAvailability]:
    """
    Classify every slot of the company's unit, in generator order.

    A slot the student already holds elsewhere is reported as a conflict even
    when it is also full, since picking another time is something the student
    can act on.
    """
    if not company.booking_enabled:
        raise BookingUnavailable(f"Booking is currently closed for {company.name}.")

    grid = []
    for slot in slots_for_unit(company.unit):
        booked = counts.get(slot.label, 0)
        conflict = slot.label in student_slots
        full = booked >= company.capacity_per_slot
        if conflict:
            status = CONFLICT
        elif full:
            status = FULL
        else:
            status = AVAILABLE
        grid.append(SlotAvailability(
            time_slot=slot.label,
            status=status,
            available=status == AVAILABLE,
            conflict=conflict,
            booking_count=booked,
            capacity=company.capacity_per_slot,
        ))
    return grid


def availability_for(db: Session, company_id: str, email: str | None = None) -> list[SlotAvailability]:
    """Availability grid for a company, optionally scoped to one student. Always read fresh."""
    company = store.get_company(db, company_id)
    if company is None:
        raise NotFound(f"Company {company_id} not found.")

    student_slots = set()
    if email:
        student_slots = store.student_slots(db, email.strip().lower())
    grid = resolve_availability(company, store.active_counts_by_slot(db, company.id), student_slots)
    logger.debug(f"[Availability] company={company.id} slots={len(grid)} student={'yes' if email else 'no'}")
    return grid
