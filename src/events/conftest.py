"""Fixtures that seed committed rows for the event model tests."""

import uuid
from datetime import date, time

import pytest

from src.common.datetime_utils import local_today, utc_now
from src.config.database import async_session_maker
from src.events.dtos import AttendanceStatus, EventStatus, RegistrationStatus
from src.events.repository.orm_models import AttendanceRecord, Event, Registration


@pytest.fixture
def make_event(db):
    async def _make_event(
        status: EventStatus = EventStatus.PUBLISHED,
        event_date: date | None = None,
        max_participants: int | None = None,
        category: str | None = "Sports",
        title: str = "Barangay Basketball League",
        **overrides,
    ) -> uuid.UUID:
        async with async_session_maker() as session:
            event = Event(
                title=title,
                description="Inter-purok tournament for the youth",
                event_date=event_date or local_today(),
                start_time=time(8, 0),
                end_time=time(17, 0),
                location="Barangay Covered Court",
                category=category,
                max_participants=max_participants,
                status=status,
                created_by=uuid.uuid4(),
                published_at=utc_now() if status != EventStatus.DRAFT else None,
                **overrides,
            )
            session.add(event)
            await session.commit()
            return event.uuid

    return _make_event


@pytest.fixture
def make_registration(db):
    async def _make_registration(
        event_id: uuid.UUID,
        user_id: uuid.UUID | None = None,
        status: RegistrationStatus = RegistrationStatus.PENDING,
        contact_email: str | None = None,
    ) -> uuid.UUID:
        async with async_session_maker() as session:
            registration = Registration(
                event_id=event_id,
                user_id=user_id or uuid.uuid4(),
                status=status,
                contact_email=contact_email,
            )
            session.add(registration)
            await session.commit()
            return registration.uuid

    return _make_registration


@pytest.fixture
def make_attendance(db):
    async def _make_attendance(
        event_id: uuid.UUID,
        user_id: uuid.UUID,
        status: AttendanceStatus = AttendanceStatus.PRESENT,
    ) -> uuid.UUID:
        async with async_session_maker() as session:
            record = AttendanceRecord(
                event_id=event_id,
                user_id=user_id,
                check_in_time=utc_now(),
                attendance_status=status,
                recorded_by=uuid.uuid4(),
            )
            session.add(record)
            await session.commit()
            return record.uuid

    return _make_attendance
