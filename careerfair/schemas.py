import re
from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from careerfair.models import AppointmentStatus

EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class StudentSnapshot(CamelModel):
    first_name: str
    last_name: str
    email: str
    phone_number: str
    field_of_study: str
    motivation: str

    @field_validator("first_name", "last_name", "phone_number", "field_of_study", "motivation", "email")
    @classmethod
    def not_blank(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v

    @field_validator("email")
    @classmethod
    def normalize_email(cls, v: str) -> str:
        v = v.lower()
        if not EMAIL_RE.match(v):
            raise ValueError("is not a valid email address")
        return v


class RequestedAppointment(CamelModel):
    company_id: str
    time_slot: str
    advisory_flags: list[str] = Field(default_factory=list)

    @field_validator("time_slot")
    @classmethod
    def strip_slot(cls, v: str) -> str:
        return v.strip()


class BookingSubmission(StudentSnapshot):
    cv_reference: str | None = None
    requested_appointments: list[RequestedAppointment] = Field(min_length=1)

    def student(self) -> StudentSnapshot:
        return StudentSnapshot.model_validate(self.model_dump(include=set(StudentSnapshot.model_fields)))


class AppointmentOut(CamelModel):
    id: str
    company_id: str
    company_name: str | None = None
    date: date
    time_slot: str
    status: AppointmentStatus
    student_email: str
    first_name: str
    last_name: str
    phone_number: str
    field_of_study: str
    motivation: str
    cv_reference: str | None = None
    advisory_flags: list[str] = Field(default_factory=list)
    notes: str | None = None
    created_at: datetime | None = None
    cancelled_at: datetime | None = None

    @classmethod
    def from_row(cls, appointment) -> "AppointmentOut":
        out = cls.model_validate(appointment)
        if appointment.company is not None:
            out.company_name = appointment.company.name
        return out


class BookingFailure(CamelModel):
    company_id: str
    time_slot: str
    reason: str
    detail: str


class BatchResult(CamelModel):
    success: bool
    created: list[AppointmentOut]
    failures: list[BookingFailure]


class SlotAvailability(CamelModel):
    time_slot: str
    status: str  # available|full|conflict
    available: bool
    conflict: bool
    booking_count: int
    capacity: int


class CompanyOut(CamelModel):
    id: str
    name: str
    industry: str
    package_type: str
    interview_unit: str
    capacity_per_slot: int
    booking_enabled: bool
    special_requirements: list[str]
    positions: list[str]
    description: str | None = None
    website: str | None = None


class CancelBody(CamelModel):
    reason: str | None = None


class StatusBody(CamelModel):
    status: AppointmentStatus


class StudentAppointments(CamelModel):
    student: StudentSnapshot
    appointments: list[AppointmentOut]


class CompanyCount(CamelModel):
    company_id: str
    name: str
    appointments: int


class FieldCount(CamelModel):
    field_of_study: str
    count: int


class FairStats(CamelModel):
    total_students: int
    total_companies: int
    total_appointments: int
    popular_companies: list[CompanyCount]
    field_distribution: list[FieldCount]
    status_counts: dict[str, int]
