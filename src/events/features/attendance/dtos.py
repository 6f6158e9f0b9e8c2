from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from src.events.dtos import AttendanceStatus


class MarkAttendanceRequest(BaseModel):
    user_id: UUID
    status: AttendanceStatus
    notes: str | None = None
    check_in_time: datetime | None = None


class CheckOutRequest(BaseModel):
    check_out_time: datetime | None = None


class UpdateAttendanceRequest(BaseModel):
    reason: str = Field(..., min_length=1, max_length=1000)
    status: AttendanceStatus | None = None
    notes: str | None = None
