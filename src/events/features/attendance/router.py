from uuid import UUID

from fastapi import APIRouter, Depends, status

from src.auth.identity import Identity, get_identity
from src.events.errors import EventsError, to_http_exception
from src.events.features.attendance.dtos import (
    CheckOutRequest,
    MarkAttendanceRequest,
    UpdateAttendanceRequest,
)
from src.events.features.attendance.write_model import (
    AttendanceWriteModel,
    SqlAttendanceWriteModel,
)
from src.events.repository.read_models import AttendanceReadModel, SqlAttendanceReadModel
from src.events.schemas import AttendanceResponse
from src.events.urls import ATTENDANCE_URL, CHECK_OUT_URL, EVENT_ATTENDANCE_URL

router = APIRouter()


def get_attendance_write_model() -> AttendanceWriteModel:
    """Dependency to get attendance write model instance."""
    return SqlAttendanceWriteModel()


def get_attendance_read_model() -> AttendanceReadModel:
    """Dependency to get attendance read model instance."""
    return SqlAttendanceReadModel()


@router.post(
    EVENT_ATTENDANCE_URL,
    response_model=AttendanceResponse,
    status_code=status.HTTP_201_CREATED,
)
async def mark_attendance(
    event_id: UUID,
    request: MarkAttendanceRequest,
    actor: Identity = Depends(get_identity),
    write_model: AttendanceWriteModel = Depends(get_attendance_write_model),
) -> AttendanceResponse:
    """
    Record attendance for an approved registrant. SK staff only.

    A resident can be marked once per event; use PATCH on the record to correct it.
    """
    try:
        record = await write_model.mark_attendance(
            event_id,
            user_id=request.user_id,
            status=request.status,
            actor=actor,
            notes=request.notes,
            check_in_time=request.check_in_time,
        )
    except EventsError as e:
        raise to_http_exception(e) from e
    return AttendanceResponse.model_validate(record)


@router.get(EVENT_ATTENDANCE_URL, response_model=list[AttendanceResponse])
async def list_event_attendance(
    event_id: UUID,
    actor: Identity = Depends(get_identity),
    read_model: AttendanceReadModel = Depends(get_attendance_read_model),
) -> list[AttendanceResponse]:
    try:
        records = await read_model.list_event_attendance(event_id, actor=actor)
    except EventsError as e:
        raise to_http_exception(e) from e
    return [AttendanceResponse.model_validate(r) for r in records]


@router.post(CHECK_OUT_URL, response_model=AttendanceResponse)
async def check_out(
    attendance_id: UUID,
    request: CheckOutRequest | None = None,
    actor: Identity = Depends(get_identity),
    write_model: AttendanceWriteModel = Depends(get_attendance_write_model),
) -> AttendanceResponse:
    check_out_time = request.check_out_time if request else None
    try:
        record = await write_model.check_out(attendance_id, actor=actor, time=check_out_time)
    except EventsError as e:
        raise to_http_exception(e) from e
    return AttendanceResponse.model_validate(record)


@router.patch(ATTENDANCE_URL, response_model=AttendanceResponse)
async def update_attendance(
    attendance_id: UUID,
    request: UpdateAttendanceRequest,
    actor: Identity = Depends(get_identity),
    write_model: AttendanceWriteModel = Depends(get_attendance_write_model),
) -> AttendanceResponse:
    """Correct a mis-marked attendance record. The previous values are kept in an audit trail."""
    try:
        record = await write_model.update_attendance(
            attendance_id,
            actor=actor,
            reason=request.reason,
            status=request.status,
            notes=request.notes,
        )
    except EventsError as e:
        raise to_http_exception(e) from e
    return AttendanceResponse.model_validate(record)
