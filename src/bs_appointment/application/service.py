"""AppointmentApplicationService — appointment CRUD mirrored into the owner's account.

The appointments row and the account's embedded copy are written in the same
DB transaction.
"""

import logging
from collections.abc import Callable
from datetime import datetime, timedelta, timezone

from sqlalchemy.ext.asyncio import AsyncSession

from src.bs_account.domain.repository import AccountRepositoryProtocol
from src.bs_account.infrastructure.persistence import AccountRepository
from src.bs_appointment.application.schemas import (
    AppointmentListResponse,
    AppointmentResponse,
    AppointmentStatsResponse,
    CreateAppointmentRequest,
    UpdateAppointmentRequest,
)
from src.bs_appointment.domain.models import Appointment
from src.bs_appointment.domain.repository import AppointmentRepositoryProtocol
from src.bs_appointment.infrastructure.persistence import AppointmentRepository
from src.bs_common.datetime_utils import utc_now
from src.bs_common.enums import AppointmentStatus
from src.bs_common.errors import (
    AccountNotFoundError,
    AppointmentLockedError,
    AppointmentNotFoundError,
    ForbiddenError,
    InvalidAppointmentDateError,
)
from src.bs_common.id_generator import generate_appointment_id
from src.bs_common.pagination import Pagination, page_offset

logger = logging.getLogger("bs.appointment")

_UPCOMING_WINDOW = timedelta(days=7)
_RECENT_LIMIT = 5


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=timezone.utc)


class AppointmentApplicationService:
    def __init__(
        self,
        repo: AppointmentRepositoryProtocol | None = None,
        accounts: AccountRepositoryProtocol | None = None,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self._repo: AppointmentRepositoryProtocol = repo or AppointmentRepository()
        self._accounts: AccountRepositoryProtocol = accounts or AccountRepository()
        self._clock = clock

    async def create(
        self, db: AsyncSession, user_id: str, req: CreateAppointmentRequest
    ) -> AppointmentResponse:
        date = _as_utc(req.date)
        if date <= self._clock():
            raise InvalidAppointmentDateError()
        try:
            account = await self._accounts.get_account(db, user_id)
            if account is None:
                raise AccountNotFoundError(user_id)
            appointment = await self._repo.insert(
                db,
                Appointment(
                    id=generate_appointment_id(user_id),
                    user_id=user_id,
                    subject=req.subject,
                    details=req.details,
                    date=date,
                ),
            )
            account.upsert_appointment(appointment.to_account_appointment())
            await self._accounts.replace(db, account)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Appointment %s booked by %s for %s", appointment.id, user_id, date.isoformat())
        return AppointmentResponse.from_domain(appointment)

    async def list_appointments(
        self,
        db: AsyncSession,
        status: str | None,
        user_id: str | None,
        start: datetime | None,
        end: datetime | None,
        page: int,
        limit: int,
    ) -> AppointmentListResponse:
        rows = await self._repo.list_appointments(
            db, status, user_id, start, end, page_offset(page, limit), limit
        )
        total = await self._repo.count_appointments(db, status, user_id, start, end)
        return AppointmentListResponse(
            appointments=[AppointmentResponse.from_domain(a) for a in rows],
            pagination=Pagination.build(page, limit, total),
        )

    async def get(
        self, db: AsyncSession, appointment_id: str, requester_id: str, is_admin: bool
    ) -> AppointmentResponse:
        appointment = await self._get_visible(db, appointment_id, requester_id, is_admin)
        return AppointmentResponse.from_domain(appointment)

    async def update(
        self,
        db: AsyncSession,
        appointment_id: str,
        requester_id: str,
        req: UpdateAppointmentRequest,
    ) -> AppointmentResponse:
        try:
            appointment = await self._repo.get(db, appointment_id)
            if appointment is None:
                raise AppointmentNotFoundError(appointment_id)
            if appointment.user_id != requester_id:
                raise ForbiddenError()
            if not appointment.editable_by_owner:
                raise AppointmentLockedError("Cannot update completed or cancelled appointments")
            if req.subject is not None:
                appointment.subject = req.subject.strip()
            if req.details is not None:
                appointment.details = req.details.strip()
            if req.date is not None:
                date = _as_utc(req.date)
                if date <= self._clock():
                    raise InvalidAppointmentDateError()
                appointment.date = date
            saved = await self._save(db, appointment)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        return AppointmentResponse.from_domain(saved)

    async def update_status(
        self, db: AsyncSession, appointment_id: str, status: AppointmentStatus
    ) -> AppointmentResponse:
        try:
            appointment = await self._repo.get(db, appointment_id)
            if appointment is None:
                raise AppointmentNotFoundError(appointment_id)
            appointment.status = status.value
            saved = await self._save(db, appointment)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Appointment %s set to %s", appointment_id, status.value)
        return AppointmentResponse.from_domain(saved)

    async def delete(
        self, db: AsyncSession, appointment_id: str, requester_id: str, is_admin: bool
    ) -> None:
        try:
            appointment = await self._get_visible(db, appointment_id, requester_id, is_admin)
            if not is_admin and not appointment.deletable_by_owner:
                raise AppointmentLockedError("Cannot delete confirmed or completed appointments")
            await self._repo.delete(db, appointment_id)
            account = await self._accounts.get_account(db, appointment.user_id)
            if account is not None:
                account.remove_appointment(appointment_id)
                await self._accounts.replace(db, account)
            await db.commit()
        except Exception:
            await db.rollback()
            raise
        logger.info("Appointment %s deleted by %s", appointment_id, requester_id)

    async def stats(self, db: AsyncSession) -> AppointmentStatsResponse:
        now = self._clock()
        stats = await self._repo.stats(db, now, now + _UPCOMING_WINDOW)
        recent = await self._repo.recent(db, _RECENT_LIMIT)
        return AppointmentStatsResponse(
            total_appointments=stats.total,
            pending_appointments=stats.pending,
            confirmed_appointments=stats.confirmed,
            completed_appointments=stats.completed,
            cancelled_appointments=stats.cancelled,
            upcoming_appointments=stats.upcoming,
            recent_appointments=[AppointmentResponse.from_domain(a) for a in recent],
        )

    async def _get_visible(
        self, db: AsyncSession, appointment_id: str, requester_id: str, is_admin: bool
    ) -> Appointment:
        appointment = await self._repo.get(db, appointment_id)
        if appointment is None:
            raise AppointmentNotFoundError(appointment_id)
        if not is_admin and appointment.user_id != requester_id:
            raise ForbiddenError()
        return appointment

    async def _save(self, db: AsyncSession, appointment: Appointment) -> Appointment:
        """Update the row and the owner's embedded copy; the caller commits."""
        saved = await self._repo.update(db, appointment)
        if saved is None:
            raise AppointmentNotFoundError(appointment.id)
        account = await self._accounts.get_account(db, saved.user_id)
        if account is not None:
            account.upsert_appointment(saved.to_account_appointment())
            await self._accounts.replace(db, account)
        return saved
