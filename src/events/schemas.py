"""Response bodies shared by the event feature routers."""

from datetime import date, datetime, time
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from src.events.dtos import AttendanceStatus, EventStatus, RegistrationStatus


class EventResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    description: str
    event_date: date
    start_time: time
    end_time: time | None = None
    location: str
    category: str | None = None
    max_participants: int | None = None
    status: EventStatus
    created_by: UUID
    published_at: datetime | None = None


class EventDetailResponse(EventResponse):
    active_registrations: int
    approved_registrations: int
    attendance_records: int
    spots_remaining: int | None = None


class RegistrationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    event_id: UUID
    user_id: UUID
    status: RegistrationStatus
    registered_at: datetime
    contact_number: str | None = None
    contact_email: str | None = None
    notes: str | None = None
    reviewed_by: UUID | None = None
    reviewed_at: datetime | None = None
    review_notes: str | None = None
    cancelled_at: datetime | None = None


class AttendanceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    event_id: UUID
    user_id: UUID
    check_in_time: datetime
    check_out_time: datetime | None = None
    attendance_status: AttendanceStatus
    notes: str | None = None
    recorded_by: UUID
