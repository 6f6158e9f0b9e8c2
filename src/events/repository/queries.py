"""Query helpers shared by the event read and write models."""

from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.events.dtos import ACTIVE_REGISTRATION_STATUSES, RegistrationStatus
from src.events.errors import NotFoundError
from src.events.repository.orm_models import AttendanceRecord, Event, Registration


async def lock_event(session: AsyncSession, event_id: UUID) -> Event:
    """Serialize on one event and return its fresh state.

    The version bump is a write, so it holds the event's row lock (PostgreSQL)
    or the database write lock (SQLite) until the transaction ends. Every read
    that follows in the same transaction sees the committed state of other
    writers.
    """
    result = await session.execute(
        update(Event)
        .where(Event.uuid == event_id)
        .values(version=Event.version + 1)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise NotFoundError("event", event_id)
    return await session.get(Event, event_id, populate_existing=True)


async def get_event(session: AsyncSession, event_id: UUID) -> Event:
    event = await session.get(Event, event_id)
    if event is None:
        raise NotFoundError("event", event_id)
    return event


async def count_active_registrations(session: AsyncSession, event_id: UUID) -> int:
    result = await session.execute(
        select(func.count(Registration.uuid)).where(
            Registration.event_id == event_id,
            Registration.status.in_(ACTIVE_REGISTRATION_STATUSES),
        )
    )
    return result.scalar_one()


async def get_active_registration(
    session: AsyncSession, event_id: UUID, user_id: UUID
) -> Registration | None:
    result = await session.execute(
        select(Registration).where(
            Registration.event_id == event_id,
            Registration.user_id == user_id,
            Registration.status.in_(ACTIVE_REGISTRATION_STATUSES),
        )
    )
    return result.scalars().first()


async def has_approved_registration(session: AsyncSession, event_id: UUID, user_id: UUID) -> bool:
    result = await session.execute(
        select(func.count(Registration.uuid)).where(
            Registration.event_id == event_id,
            Registration.user_id == user_id,
            Registration.status == RegistrationStatus.APPROVED,
        )
    )
    return result.scalar_one() > 0


async def get_attendance_record(
    session: AsyncSession, event_id: UUID, user_id: UUID
) -> AttendanceRecord | None:
    result = await session.execute(
        select(AttendanceRecord).where(
            AttendanceRecord.event_id == event_id,
            AttendanceRecord.user_id == user_id,
        )
    )
    return result.scalar_one_or_none()
