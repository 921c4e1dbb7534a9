"""Repository Protocol for the appointments table."""

from datetime import datetime
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from src.bs_appointment.domain.models import Appointment, AppointmentStats


class AppointmentRepositoryProtocol(Protocol):
    async def insert(self, db: AsyncSession, appointment: Appointment) -> Appointment: ...

    async def get(self, db: AsyncSession, appointment_id: str) -> Appointment | None: ...

    async def list_appointments(
        self,
        db: AsyncSession,
        status: str | None,
        user_id: str | None,
        start: datetime | None,
        end: datetime | None,
        offset: int,
        limit: int,
    ) -> list[Appointment]: ...

    async def count_appointments(
        self,
        db: AsyncSession,
        status: str | None,
        user_id: str | None,
        start: datetime | None,
        end: datetime | None,
    ) -> int: ...

    async def update(self, db: AsyncSession, appointment: Appointment) -> Appointment | None: ...

    async def delete(self, db: AsyncSession, appointment_id: str) -> bool: ...

    async def recent(self, db: AsyncSession, limit: int) -> list[Appointment]: ...

    async def stats(self, db: AsyncSession, now: datetime, until: datetime) -> AppointmentStats: ...
