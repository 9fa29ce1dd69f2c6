from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from careerfair import store
from careerfair.db import get_db
from careerfair.schemas import CompanyOut

router = APIRouter()


@router.get("", response_model=list[CompanyOut])
def list_companies(db: Session = Depends(get_db)):
    """Companies currently accepting bookings, by name."""
    return store.list_bookable_companies(db)
