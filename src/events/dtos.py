from dataclasses import dataclass, field
from datetime import date, datetime, time
from enum import Enum
from typing import TYPE_CHECKING
from uuid import UUID

if TYPE_CHECKING:
    from src.events.repository.orm_models import (
        AttendanceCorrection,
        AttendanceRecord,
        Event,
        Registration,
    )


class EventStatus(str, Enum):
    DRAFT = "draft"
    PUBLISHED = "published"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class RegistrationStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


class AttendanceStatus(str, Enum):
    PRESENT = "present"
    ABSENT = "absent"
    LATE = "late"


TERMINAL_EVENT_STATUSES = frozenset({EventStatus.COMPLETED, EventStatus.CANCELLED})

# Registrations that hold a seat and block a second registration by the same resident
ACTIVE_REGISTRATION_STATUSES = (RegistrationStatus.PENDING, RegistrationStatus.APPROVED)


@dataclass(frozen=True)
class EventDTO:
    id: UUID
    title: str
    description: str
    event_date: date
    start_time: time
    location: str
    status: EventStatus
    created_by: UUID
    end_time: time | None = None
    category: str | None = None
    max_participants: int | None = None
    published_at: datetime | None = None

    @classmethod
    def from_orm(cls, event: "Event") -> "EventDTO":
        return cls(
            id=event.uuid,
            title=event.title,
            description=event.description,
            event_date=event.event_date,
            start_time=event.start_time,
            end_time=event.end_time,
            location=event.location,
            category=event.category,
            max_participants=event.max_participants,
            status=EventStatus(event.status),
            created_by=event.created_by,
            published_at=event.published_at,
        )


@dataclass(frozen=True)
class EventDetailDTO:
    """Event with its live registration and attendance counts."""

    event: EventDTO
    active_registrations: int = 0
    approved_registrations: int = 0
    attendance_records: int = 0

    @property
    def spots_remaining(self) -> int | None:
        if self.event.max_participants is None:
            return None
        return max(0, self.event.max_participants - self.active_registrations)


@dataclass(frozen=True)
class RegistrationDTO:
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

    @classmethod
    def from_orm(cls, registration: "Registration") -> "RegistrationDTO":
        return cls(
            id=registration.uuid,
            event_id=registration.event_id,
            user_id=registration.user_id,
            status=RegistrationStatus(registration.status),
            registered_at=registration.registered_at,
            contact_number=registration.contact_number,
            contact_email=registration.contact_email,
            notes=registration.notes,
            reviewed_by=registration.reviewed_by,
            reviewed_at=registration.reviewed_at,
            review_notes=registration.review_notes,
            cancelled_at=registration.cancelled_at,
        )


@dataclass(frozen=True)
class AttendanceDTO:
    id: UUID
    event_id: UUID
    user_id: UUID
    check_in_time: datetime
    attendance_status: AttendanceStatus
    recorded_by: UUID
    check_out_time: datetime | None = None
    notes: str | None = None

    @classmethod
    def from_orm(cls, record: "AttendanceRecord") -> "AttendanceDTO":
        return cls(
            id=record.uuid,
            event_id=record.event_id,
            user_id=record.user_id,
            check_in_time=record.check_in_time,
            check_out_time=record.check_out_time,
            attendance_status=AttendanceStatus(record.attendance_status),
            notes=record.notes,
            recorded_by=record.recorded_by,
        )


@dataclass(frozen=True)
class AttendanceCorrectionDTO:
    id: UUID
    attendance_id: UUID
    previous_status: AttendanceStatus
    new_status: AttendanceStatus
    corrected_by: UUID
    reason: str
    corrected_at: datetime

    @classmethod
    def from_orm(cls, correction: "AttendanceCorrection") -> "AttendanceCorrectionDTO":
        return cls(
            id=correction.uuid,
            attendance_id=correction.attendance_id,
            previous_status=AttendanceStatus(correction.previous_status),
            new_status=AttendanceStatus(correction.new_status),
            corrected_by=correction.corrected_by,
            reason=correction.reason,
            corrected_at=correction.created_at,
        )


@dataclass(frozen=True)
class EventCountsDTO:
    """Raw per-event counts the statistics are derived from.

    Any count missing from the store is zero.
    """

    event_id: UUID
    title: str | None = None
    max_participants: int | None = None
    pending: int = 0
    approved: int = 0
    present: int = 0
    absent: int = 0
    late: int = 0


@dataclass(frozen=True)
class EventStatsDTO:
    event_id: UUID
    total_registrations: int
    present: int
    absent: int
    late: int
    attendance_rate: float
    pending: int = 0
    capacity: int | None = None
    spots_remaining: int | None = None
    title: str | None = None

    @property
    def total_attendance(self) -> int:
        return self.present


@dataclass(frozen=True)
class CrossEventStatsDTO:
    total_registrations: int
    total_attendees: int
    average_attendance_rate: float
    top_events: list[EventStatsDTO] = field(default_factory=list)


@dataclass(frozen=True)
class ParticipationRecordDTO:
    """One event as seen by the participation report."""

    event_id: UUID
    title: str
    category: str | None
    event_date: date
    created_at: datetime
    max_participants: int | None
    participant_ids: tuple[UUID, ...] = ()
    approved: int = 0
    present: int = 0
    absent: int = 0
    late: int = 0


@dataclass(frozen=True)
class CategoryCountDTO:
    category: str
    count: int


@dataclass(frozen=True)
class MonthlyTrendDTO:
    month: str
    events: int
    participants: int


@dataclass(frozen=True)
class ParticipationReportDTO:
    range: str
    start_date: datetime
    end_date: datetime
    total_events: int
    completed_events: int
    total_participants: int
    total_registrations: int
    average_attendance: float
    by_category: list[CategoryCountDTO] = field(default_factory=list)
    monthly_trends: list[MonthlyTrendDTO] = field(default_factory=list)
    top_events: list[EventStatsDTO] = field(default_factory=list)
    repeat_participants: int = 0
    new_participants: int = 0
    engagement_score: int = 0
