from datetime import date, datetime, time
from uuid import UUID

from sqlalchemy import (
    CheckConstraint,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    Time,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import Mapped, mapped_column

from src.common.datetime_utils import utc_now
from src.config.table_names import TableNames
from src.events.dtos import AttendanceStatus, EventStatus, RegistrationStatus
from src.models.base import Base, TimeStamp


def _enum_values(enum_cls):
    return [e.value for e in enum_cls]


class Event(Base, TimeStamp):
    __tablename__ = TableNames.EVENTS.value

    title: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    event_date: Mapped[date] = mapped_column(Date, nullable=False, index=True)
    start_time: Mapped[time] = mapped_column(Time, nullable=False)
    end_time: Mapped[time | None] = mapped_column(Time, nullable=True)
    location: Mapped[str] = mapped_column(String(500), nullable=False)
    # Free text, e.g. "Sports", "Environment", "Education"
    category: Mapped[str | None] = mapped_column(String(100), nullable=True, index=True)
    # None means unlimited
    max_participants: Mapped[int | None] = mapped_column(Integer, nullable=True)
    status: Mapped[EventStatus] = mapped_column(
        Enum(EventStatus, name="sk_event_status_enum", values_callable=_enum_values),
        default=EventStatus.DRAFT,
        nullable=False,
        index=True,
    )
    created_by: Mapped[UUID] = mapped_column(nullable=False)
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    # Bumped by every operation that must serialize against registrations of
    # this event; the UPDATE doubles as the row lock.
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    __table_args__ = (
        CheckConstraint(
            "max_participants IS NULL OR max_participants > 0",
            name="ck_sk_events_max_participants_positive",
        ),
    )

    def __repr__(self) -> str:
        return f"<Event {self.title} on {self.event_date} ({self.status.value})>"


class Registration(Base, TimeStamp):
    __tablename__ = TableNames.REGISTRATIONS.value

    event_id: Mapped[UUID] = mapped_column(
        ForeignKey(f"{TableNames.EVENTS.value}.uuid", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    # Resident identity from the portal's auth service
    user_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    contact_number: Mapped[str | None] = mapped_column(String(50), nullable=True)
    contact_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    status: Mapped[RegistrationStatus] = mapped_column(
        Enum(RegistrationStatus, name="sk_registration_status_enum", values_callable=_enum_values),
        default=RegistrationStatus.PENDING,
        nullable=False,
        index=True,
    )
    registered_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, nullable=False
    )
    reviewed_by: Mapped[UUID | None] = mapped_column(nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    review_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    cancelled_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        # One active registration per resident and event
        Index(
            "uq_sk_event_registrations_active",
            "event_id",
            "user_id",
            unique=True,
            postgresql_where=text("status IN ('pending', 'approved')"),
            sqlite_where=text("status IN ('pending', 'approved')"),
        ),
    )

    def __repr__(self) -> str:
        return f"<Registration {self.user_id} for {self.event_id} ({self.status.value})>"


class AttendanceRecord(Base, TimeStamp):
    __tablename__ = TableNames.ATTENDANCE_RECORDS.value

    event_id: Mapped[UUID] = mapped_column(
        ForeignKey(f"{TableNames.EVENTS.value}.uuid", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    user_id: Mapped[UUID] = mapped_column(nullable=False, index=True)
    check_in_time: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    check_out_time: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    attendance_status: Mapped[AttendanceStatus] = mapped_column(
        Enum(AttendanceStatus, name="sk_attendance_status_enum", values_callable=_enum_values),
        nullable=False,
    )
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    recorded_by: Mapped[UUID] = mapped_column(nullable=False)

    __table_args__ = (
        UniqueConstraint("event_id", "user_id", name="uq_sk_attendance_records_event_user"),
    )

    def __repr__(self) -> str:
        return f"<AttendanceRecord {self.user_id} at {self.event_id} ({self.attendance_status.value})>"


class AttendanceCorrection(Base, TimeStamp):
    """Audit trail of staff corrections to an attendance record."""

    __tablename__ = TableNames.ATTENDANCE_CORRECTIONS.value

    attendance_id: Mapped[UUID] = mapped_column(
        ForeignKey(f"{TableNames.ATTENDANCE_RECORDS.value}.uuid", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    previous_status: Mapped[AttendanceStatus] = mapped_column(
        Enum(AttendanceStatus, name="sk_attendance_status_enum", values_callable=_enum_values),
        nullable=False,
    )
    new_status: Mapped[AttendanceStatus] = mapped_column(
        Enum(AttendanceStatus, name="sk_attendance_status_enum", values_callable=_enum_values),
        nullable=False,
    )
    previous_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    corrected_by: Mapped[UUID] = mapped_column(nullable=False)
    reason: Mapped[str] = mapped_column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<AttendanceCorrection {self.attendance_id} {self.previous_status.value}->{self.new_status.value}>"
