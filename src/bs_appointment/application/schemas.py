"""Pydantic schemas for bs_appointment API."""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from src.bs_appointment.domain.models import Appointment
from src.bs_common.enums import AppointmentStatus
from src.bs_common.pagination import Pagination


class CreateAppointmentRequest(BaseModel):
    subject: str = Field(..., min_length=3, max_length=200)
    details: str = Field(..., min_length=10, max_length=5000)
    # Must lie in the future; checked by the service against its clock
    date: datetime

    @field_validator("subject", "details")
    @classmethod
    def strip_text(cls, v: str) -> str:
        return v.strip()


class UpdateAppointmentRequest(BaseModel):
    subject: str | None = Field(None, min_length=3, max_length=200)
    details: str | None = Field(None, min_length=10, max_length=5000)
    date: datetime | None = None


class UpdateAppointmentStatusRequest(BaseModel):
    status: AppointmentStatus


class AppointmentResponse(BaseModel):
    id: str
    user_id: str
    subject: str
    details: str
    date: str
    status: str
    created_at: str | None
    updated_at: str | None

    @classmethod
    def from_domain(cls, a: Appointment) -> "AppointmentResponse":
        return cls(
            id=a.id,
            user_id=a.user_id,
            subject=a.subject,
            details=a.details,
            date=a.date.isoformat(),
            status=a.status,
            created_at=a.created_at.isoformat() if a.created_at else None,
            updated_at=a.updated_at.isoformat() if a.updated_at else None,
        )


class AppointmentListResponse(BaseModel):
    appointments: list[AppointmentResponse]
    pagination: Pagination


class AppointmentStatsResponse(BaseModel):
    total_appointments: int
    pending_appointments: int
    confirmed_appointments: int
    completed_appointments: int
    cancelled_appointments: int
    upcoming_appointments: int
    recent_appointments: list[AppointmentResponse]
