"""Domain models for bs_appointment — pure dataclasses, no SQLAlchemy dependency."""

from dataclasses import dataclass
from datetime import datetime

from src.bs_account.domain.models import AccountAppointment
from src.bs_common.enums import AppointmentStatus

# Owners may not edit these any more
_FROZEN_FOR_OWNER_EDIT = {AppointmentStatus.COMPLETED.value, AppointmentStatus.CANCELLED.value}
# Owners may not delete these (admins may)
_FROZEN_FOR_OWNER_DELETE = {AppointmentStatus.CONFIRMED.value, AppointmentStatus.COMPLETED.value}


@dataclass
class Appointment:
    id: str
    user_id: str
    subject: str
    details: str
    date: datetime
    status: str = AppointmentStatus.PENDING.value
    created_at: datetime | None = None
    updated_at: datetime | None = None

    @property
    def editable_by_owner(self) -> bool:
        return self.status not in _FROZEN_FOR_OWNER_EDIT

    @property
    def deletable_by_owner(self) -> bool:
        return self.status not in _FROZEN_FOR_OWNER_DELETE

    def to_account_appointment(self) -> AccountAppointment:
        return AccountAppointment(
            id=self.id,
            user_id=self.user_id,
            subject=self.subject,
            details=self.details,
            date=self.date,
            status=self.status,
            created_at=self.created_at,
        )


@dataclass
class AppointmentStats:
    total: int
    pending: int
    confirmed: int
    completed: int
    cancelled: int
    upcoming: int       # pending/confirmed within the next 7 days
