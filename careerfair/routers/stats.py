from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from careerfair import store
from careerfair.db import get_db
from careerfair.schemas import CompanyCount, FairStats, FieldCount

router = APIRouter()


@router.get("", response_model=FairStats)
def fair_stats(db: Session = Depends(get_db)):
    return FairStats(
        total_students=store.count_students(db),
        total_companies=store.count_bookable_companies(db),
        total_appointments=store.count_appointments(db),
        popular_companies=[
            CompanyCount(company_id=cid, name=name, appointments=n)
            for cid, name, n in store.popular_companies(db)
        ],
        field_distribution=[
            FieldCount(field_of_study=field, count=n) for field, n in store.field_distribution(db)
        ],
        status_counts=store.status_counts(db),
    )
