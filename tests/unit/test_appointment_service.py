"""Unit tests for AppointmentApplicationService."""

from datetime import timedelta

import pytest

from src.bs_appointment.application.schemas import (
    CreateAppointmentRequest,
    UpdateAppointmentRequest,
)
from src.bs_appointment.application.service import AppointmentApplicationService
from src.bs_common.enums import AppointmentStatus
from src.bs_common.errors import (
    AppointmentLockedError,
    AppointmentNotFoundError,
    ForbiddenError,
    InvalidAppointmentDateError,
)
from tests.fakes import (
    NOW,
    FakeAccountRepository,
    FakeAppointmentRepository,
    FakeSession,
    fixed_clock,
    make_account,
)


@pytest.fixture
def env():  # type: ignore[no-untyped-def]
    repo = FakeAppointmentRepository()
    accounts = FakeAccountRepository(make_account("user_1"), make_account("user_2"))
    svc = AppointmentApplicationService(repo=repo, accounts=accounts, clock=fixed_clock)
    db = FakeSession(repo, accounts)
    return svc, db, repo, accounts


def _req(days_ahead: int = 3) -> CreateAppointmentRequest:
    return CreateAppointmentRequest(
        subject="Reading club",
        details="Discuss chapters one through five.",
        date=NOW + timedelta(days=days_ahead),
    )


class TestCreate:
    async def test_creates_pending_and_mirrors(self, env) -> None:  # type: ignore[no-untyped-def]
        svc, db, repo, accounts = env
        resp = await svc.create(db, "user_1", _req())
        assert resp.status == "pending"
        assert resp.id.startswith("apt_user_1_")
        assert resp.id in repo.rows
        assert accounts.rows["user_1"].appointments[0].id == resp.id

    async def test_past_date_rejected(self, env) -> None:  # type: ignore[no-untyped-def]
        svc, db, repo, _ = env
        with pytest.raises(InvalidAppointmentDateError):
            await svc.create(db, "user_1", _req(days_ahead=-1))
        assert repo.rows == {}


class TestUpdate:
    async def test_owner_edits_and_mirror_follows(self, env) -> None:  # type: ignore[no-untyped-def]
        svc, db, _, accounts = env
        created = await svc.create(db, "user_1", _req())
        resp = await svc.update(
            db, created.id, "user_1", UpdateAppointmentRequest(subject="Poetry night")
        )
        assert resp.subject == "Poetry night"
        assert accounts.rows["user_1"].appointments[0].subject == "Poetry night"

    async def test_non_owner_forbidden(self, env) -> None:  # type: ignore[no-untyped-def]
        svc, db, _, _ = env
        created = await svc.create(db, "user_1", _req())
        with pytest.raises(ForbiddenError):
            await svc.update(db, created.id, "user_2", UpdateAppointmentRequest(subject="Mine now"))

    async def test_cancelled_is_locked(self, env) -> None:  # type: ignore[no-untyped-def]
        svc, db, _, _ = env
        created = await svc.create(db, "user_1", _req())
        await svc.update_status(db, created.id, AppointmentStatus.CANCELLED)
        with pytest.raises(AppointmentLockedError):
            await svc.update(db, created.id, "user_1", UpdateAppointmentRequest(subject="Again"))

    async def test_status_change_mirrors(self, env) -> None:  # type: ignore[no-untyped-def]
        svc, db, _, accounts = env
        created = await svc.create(db, "user_1", _req())
        resp = await svc.update_status(db, created.id, AppointmentStatus.CONFIRMED)
        assert resp.status == "confirmed"
        assert accounts.rows["user_1"].appointments[0].status == "confirmed"

    async def test_status_of_missing(self, env) -> None:  # type: ignore[no-untyped-def]
        svc, db, _, _ = env
        with pytest.raises(AppointmentNotFoundError):
            await svc.update_status(db, "apt_missing", AppointmentStatus.CONFIRMED)


class TestDelete:
    async def test_owner_deletes_pending(self, env) -> None:  # type: ignore[no-untyped-def]
        svc, db, repo, accounts = env
        created = await svc.create(db, "user_1", _req())
        await svc.delete(db, created.id, "user_1", is_admin=False)
        assert repo.rows == {}
        assert accounts.rows["user_1"].appointments == []

    async def test_owner_cannot_delete_confirmed(self, env) -> None:  # type: ignore[no-untyped-def]
        svc, db, repo, _ = env
        created = await svc.create(db, "user_1", _req())
        await svc.update_status(db, created.id, AppointmentStatus.CONFIRMED)
        with pytest.raises(AppointmentLockedError):
            await svc.delete(db, created.id, "user_1", is_admin=False)
        assert created.id in repo.rows

    async def test_admin_can_delete_confirmed(self, env) -> None:  # type: ignore[no-untyped-def]
        svc, db, repo, _ = env
        created = await svc.create(db, "user_1", _req())
        await svc.update_status(db, created.id, AppointmentStatus.CONFIRMED)
        await svc.delete(db, created.id, "admin_1", is_admin=True)
        assert repo.rows == {}


class TestStats:
    async def test_upcoming_window(self, env) -> None:  # type: ignore[no-untyped-def]
        svc, db, _, _ = env
        await svc.create(db, "user_1", _req(days_ahead=2))
        await svc.create(db, "user_2", _req(days_ahead=30))
        resp = await svc.stats(db)
        assert resp.total_appointments == 2
        assert resp.pending_appointments == 2
        assert resp.upcoming_appointments == 1
        assert len(resp.recent_appointments) == 2

    async def test_list_by_user(self, env) -> None:  # type: ignore[no-untyped-def]
        svc, db, _, _ = env
        await svc.create(db, "user_1", _req())
        await svc.create(db, "user_2", _req())
        resp = await svc.list_appointments(db, None, "user_1", None, None, page=1, limit=10)
        assert resp.pagination.total == 1
        assert resp.appointments[0].user_id == "user_1"
