"""AppointmentRepository — concrete implementation of AppointmentRepositoryProtocol.

Transaction ownership: The CALLER (application service) commits.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncSession

from src.bs_appointment.domain.models import Appointment, AppointmentStats

_APT_COLUMNS = "id, user_id, subject, details, date, status, created_at, updated_at"

_INSERT_SQL = text(f"""
    INSERT INTO appointments (id, user_id, subject, details, date, status)
    VALUES (:id, :user_id, :subject, :details, :date, :status)
    RETURNING {_APT_COLUMNS}
""")

_GET_SQL = text(f"SELECT {_APT_COLUMNS} FROM appointments WHERE id = :appointment_id")

_FILTER = """
    (CAST(:status AS TEXT) IS NULL OR status = CAST(:status AS TEXT))
    AND (CAST(:user_id AS TEXT) IS NULL OR user_id = CAST(:user_id AS TEXT))
    AND (CAST(:start AS TIMESTAMPTZ) IS NULL OR date >= CAST(:start AS TIMESTAMPTZ))
    AND (CAST(:end AS TIMESTAMPTZ) IS NULL OR date <= CAST(:end AS TIMESTAMPTZ))
"""

_LIST_SQL = text(f"""
    SELECT {_APT_COLUMNS}
    FROM appointments
    WHERE {_FILTER}
    ORDER BY date ASC, id ASC
    OFFSET :offset
    LIMIT :limit
""")

_COUNT_SQL = text(f"SELECT COUNT(*) AS total FROM appointments WHERE {_FILTER}")

_UPDATE_SQL = text(f"""
    UPDATE appointments
    SET subject = :subject,
        details = :details,
        date = :date,
        status = :status,
        updated_at = NOW()
    WHERE id = :appointment_id
    RETURNING {_APT_COLUMNS}
""")

_DELETE_SQL = text("DELETE FROM appointments WHERE id = :appointment_id RETURNING id")

_RECENT_SQL = text(f"SELECT {_APT_COLUMNS} FROM appointments ORDER BY created_at DESC LIMIT :limit")

_STATS_SQL = text("""
    SELECT
        COUNT(*) AS total,
        COUNT(*) FILTER (WHERE status = 'pending') AS pending,
        COUNT(*) FILTER (WHERE status = 'confirmed') AS confirmed,
        COUNT(*) FILTER (WHERE status = 'completed') AS completed,
        COUNT(*) FILTER (WHERE status = 'cancelled') AS cancelled,
        COUNT(*) FILTER (
            WHERE status IN ('pending', 'confirmed') AND date >= :now AND date <= :until
        ) AS upcoming
    FROM appointments
""")


def _row_to_appointment(row: object) -> Appointment:
    return Appointment(
        id=row.id,  # type: ignore[attr-defined]
        user_id=row.user_id,  # type: ignore[attr-defined]
        subject=row.subject,  # type: ignore[attr-defined]
        details=row.details,  # type: ignore[attr-defined]
        date=row.date,  # type: ignore[attr-defined]
        status=row.status,  # type: ignore[attr-defined]
        created_at=row.created_at,  # type: ignore[attr-defined]
        updated_at=row.updated_at,  # type: ignore[attr-defined]
    )


def _filter_params(
    status: str | None, user_id: str | None, start: datetime | None, end: datetime | None
) -> dict[str, Any]:
    return {"status": status, "user_id": user_id, "start": start, "end": end}


class AppointmentRepository:
    async def insert(self, db: AsyncSession, appointment: Appointment) -> Appointment:
        result = await db.execute(
            _INSERT_SQL,
            {
                "id": appointment.id,
                "user_id": appointment.user_id,
                "subject": appointment.subject,
                "details": appointment.details,
                "date": appointment.date,
                "status": appointment.status,
            },
        )
        return _row_to_appointment(result.fetchone())

    async def get(self, db: AsyncSession, appointment_id: str) -> Appointment | None:
        row = (await db.execute(_GET_SQL, {"appointment_id": appointment_id})).fetchone()
        return _row_to_appointment(row) if row else None

    async def list_appointments(
        self,
        db: AsyncSession,
        status: str | None,
        user_id: str | None,
        start: datetime | None,
        end: datetime | None,
        offset: int,
        limit: int,
    ) -> list[Appointment]:
        params = _filter_params(status, user_id, start, end)
        params.update(offset=offset, limit=limit)
        result = await db.execute(_LIST_SQL, params)
        return [_row_to_appointment(row) for row in result.fetchall()]

    async def count_appointments(
        self,
        db: AsyncSession,
        status: str | None,
        user_id: str | None,
        start: datetime | None,
        end: datetime | None,
    ) -> int:
        row = (await db.execute(_COUNT_SQL, _filter_params(status, user_id, start, end))).fetchone()
        return int(row.total) if row else 0

    async def update(self, db: AsyncSession, appointment: Appointment) -> Appointment | None:
        result = await db.execute(
            _UPDATE_SQL,
            {
                "appointment_id": appointment.id,
                "subject": appointment.subject,
                "details": appointment.details,
                "date": appointment.date,
                "status": appointment.status,
            },
        )
        row = result.fetchone()
        return _row_to_appointment(row) if row else None

    async def delete(self, db: AsyncSession, appointment_id: str) -> bool:
        result = await db.execute(_DELETE_SQL, {"appointment_id": appointment_id})
        return result.fetchone() is not None

    async def recent(self, db: AsyncSession, limit: int) -> list[Appointment]:
        result = await db.execute(_RECENT_SQL, {"limit": limit})
        return [_row_to_appointment(row) for row in result.fetchall()]

    async def stats(self, db: AsyncSession, now: datetime, until: datetime) -> AppointmentStats:
        row = (await db.execute(_STATS_SQL, {"now": now, "until": until})).fetchone()
        return AppointmentStats(
            total=row.total,  # type: ignore[union-attr]
            pending=row.pending,  # type: ignore[union-attr]
            confirmed=row.confirmed,  # type: ignore[union-attr]
            completed=row.completed,  # type: ignore[union-attr]
            cancelled=row.cancelled,  # type: ignore[union-attr]
            upcoming=row.upcoming,  # type: ignore[union-attr]
        )
