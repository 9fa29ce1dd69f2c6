import enum
from datetime import datetime

from sqlalchemy import (
    JSON, Boolean, CheckConstraint, Column, Date, DateTime, ForeignKey, Index, Integer, String, Text, text,
)
from sqlalchemy.orm import relationship

from careerfair.db import Base
from careerfair.slots import EVENT_DATE, InterviewUnit

# Every exclusivity index only covers rows that still hold their place.
ACTIVE = text("status != 'cancelled'")


class AppointmentStatus(str, enum.Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no-show"


# scheduled is the only state with outgoing transitions
ALLOWED_TRANSITIONS = {
    AppointmentStatus.SCHEDULED: {
        AppointmentStatus.COMPLETED,
        AppointmentStatus.CANCELLED,
        AppointmentStatus.NO_SHOW,
    },
}


class Company(Base):
    __tablename__ = "companies"
    id = Column(String, primary_key=True)
    name = Column(String, nullable=False, unique=True)
    industry = Column(String, nullable=False, default="")
    package_type = Column(String, nullable=False, default="Silver")  # Platinum|Gold|Silver
    interview_unit = Column(String, nullable=False, default=InterviewUnit.STANDARD.value)
    capacity_per_slot = Column(Integer, nullable=False, default=2)
    booking_enabled = Column(Boolean, nullable=False, default=True)
    special_requirements = Column(JSON, nullable=False, default=list)
    positions = Column(JSON, nullable=False, default=list)
    description = Column(String(500))
    website = Column(String)
    created_at = Column(DateTime, default=datetime.utcnow)

    appointments = relationship("Appointment", back_populates="company")

    __table_args__ = (
        CheckConstraint("capacity_per_slot >= 1", name="company_capacity_positive"),
        CheckConstraint("interview_unit in ('standard','quick')", name="company_unit_valid"),
    )

    @property
    def unit(self) -> InterviewUnit:
        return InterviewUnit(self.interview_unit)


class Appointment(Base):
    __tablename__ = "appointments"
    id = Column(String, primary_key=True)
    company_id = Column(String, ForeignKey("companies.id", ondelete="RESTRICT"), nullable=False)
    date = Column(Date, nullable=False, default=EVENT_DATE)
    time_slot = Column(String, nullable=False)
    # interviewer seat within the slot, always below the company's capacity
    seat = Column(Integer, nullable=False, default=0)
    status = Column(String, nullable=False, default=AppointmentStatus.SCHEDULED.value)

    # student snapshot captured at booking time
    student_email = Column(String, nullable=False)
    first_name = Column(String, nullable=False)
    last_name = Column(String, nullable=False)
    phone_number = Column(String, nullable=False)
    field_of_study = Column(String, nullable=False)
    motivation = Column(Text, nullable=False)

    cv_reference = Column(String)
    advisory_flags = Column(JSON, nullable=False, default=list)
    notes = Column(String)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow)
    cancelled_at = Column(DateTime)

    company = relationship("Company", back_populates="appointments")

    __table_args__ = (
        CheckConstraint(
            "status in ('scheduled','completed','cancelled','no-show')", name="appointment_status_valid"
        ),
        CheckConstraint("seat >= 0", name="appointment_seat_valid"),
        Index(
            "uq_appointment_company_slot_seat", "company_id", "date", "time_slot", "seat",
            unique=True, sqlite_where=ACTIVE, postgresql_where=ACTIVE,
        ),
        Index(
            "uq_appointment_student_slot", "student_email", "date", "time_slot",
            unique=True, sqlite_where=ACTIVE, postgresql_where=ACTIVE,
        ),
        Index(
            "uq_appointment_student_company", "student_email", "company_id", "date",
            unique=True, sqlite_where=ACTIVE, postgresql_where=ACTIVE,
        ),
        Index("ix_appointment_company_slot", "company_id", "time_slot"),
        Index("ix_appointment_created_at", "created_at"),
    )

    @property
    def is_active(self) -> bool:
        return self.status != AppointmentStatus.CANCELLED.value
