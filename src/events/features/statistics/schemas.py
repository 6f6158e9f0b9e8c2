from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class EventStatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    event_id: UUID
    title: str | None = None
    total_registrations: int
    total_attendance: int
    present: int
    absent: int
    late: int
    attendance_rate: float
    pending: int
    capacity: int | None = None
    spots_remaining: int | None = None


class CrossEventStatsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    total_registrations: int
    total_attendees: int
    average_attendance_rate: float
    top_events: list[EventStatsResponse]


class CategoryCountResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    category: str
    count: int


class MonthlyTrendResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    month: str
    events: int
    participants: int


class ParticipationReportResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    range: str
    start_date: datetime
    end_date: datetime
    total_events: int
    completed_events: int
    total_participants: int
    total_registrations: int
    average_attendance: float
    by_category: list[CategoryCountResponse]
    monthly_trends: list[MonthlyTrendResponse]
    top_events: list[EventStatsResponse]
    repeat_participants: int
    new_participants: int
    engagement_score: int
