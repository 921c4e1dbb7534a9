"""bs_appointment REST API — all endpoints require JWT."""

from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.bs_appointment.application.schemas import (
    CreateAppointmentRequest,
    UpdateAppointmentRequest,
    UpdateAppointmentStatusRequest,
)
from src.bs_appointment.application.service import AppointmentApplicationService
from src.bs_common.database import get_db_session
from src.bs_common.enums import AppointmentStatus
from src.bs_common.response import ApiResponse, success_response
from src.bs_gateway.auth.dependencies import get_current_user, require_admin
from src.bs_gateway.user.db_models import UserModel

router = APIRouter(prefix="/appointments", tags=["appointments"])

_service = AppointmentApplicationService()


@router.post("", status_code=status.HTTP_201_CREATED)
async def create_appointment(
    body: CreateAppointmentRequest,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.create(db, current_user.id, body)
    return success_response(data.model_dump(), "Appointment created successfully", request=request)


@router.get("")
async def list_appointments(
    _admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    status_filter: AppointmentStatus | None = Query(None, alias="status"),
    user_id: str | None = Query(None),
    start_date: datetime | None = Query(None),
    end_date: datetime | None = Query(None),
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
) -> ApiResponse:
    data = await _service.list_appointments(
        db,
        status_filter.value if status_filter else None,
        user_id,
        start_date,
        end_date,
        page,
        limit,
    )
    return success_response(data.model_dump(), request=request)


@router.get("/my-appointments")
async def my_appointments(
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
) -> ApiResponse:
    data = await _service.list_appointments(db, None, current_user.id, None, None, page, limit)
    return success_response(data.model_dump(), request=request)


@router.get("/stats/overview")
async def appointment_stats(
    _admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.stats(db)
    return success_response(data.model_dump(), request=request)


@router.get("/{appointment_id}")
async def get_appointment(
    appointment_id: str,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.get(db, appointment_id, current_user.id, current_user.is_admin)
    return success_response(data.model_dump(), request=request)


@router.put("/{appointment_id}")
async def update_appointment(
    appointment_id: str,
    body: UpdateAppointmentRequest,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.update(db, appointment_id, current_user.id, body)
    return success_response(data.model_dump(), "Appointment updated successfully", request=request)


@router.put("/{appointment_id}/status")
async def update_appointment_status(
    appointment_id: str,
    body: UpdateAppointmentStatusRequest,
    _admin: Annotated[UserModel, Depends(require_admin)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    data = await _service.update_status(db, appointment_id, body.status)
    return success_response(data.model_dump(), "Appointment status updated successfully", request=request)


@router.delete("/{appointment_id}")
async def delete_appointment(
    appointment_id: str,
    current_user: Annotated[UserModel, Depends(get_current_user)],
    db: Annotated[AsyncSession, Depends(get_db_session)],
    request: Request,
) -> ApiResponse:
    await _service.delete(db, appointment_id, current_user.id, current_user.is_admin)
    return success_response(None, "Appointment deleted successfully", request=request)
