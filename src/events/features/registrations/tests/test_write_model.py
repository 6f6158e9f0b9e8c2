"""Tests for SqlRegistrationWriteModel."""

import asyncio
import uuid
from datetime import timedelta

import pytest
from sqlalchemy import func, select

from src.auth.identity import Identity, Role
from src.common.datetime_utils import local_today
from src.config.database import async_session_maker
from src.events.dtos import ACTIVE_REGISTRATION_STATUSES, EventStatus, RegistrationStatus
from src.events.errors import (
    CapacityExceededError,
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    RegistrationClosedError,
)
from src.events.features.registrations.write_model import SqlRegistrationWriteModel
from src.events.features.review_registration.write_model import SqlReviewWriteModel
from src.events.repository.orm_models import Registration


def _resident() -> Identity:
    return Identity.with_roles(uuid.uuid4(), Role.RESIDENT)


async def _active_count(event_id) -> int:
    async with async_session_maker() as session:
        result = await session.execute(
            select(func.count(Registration.uuid)).where(
                Registration.event_id == event_id,
                Registration.status.in_(ACTIVE_REGISTRATION_STATUSES),
            )
        )
        return result.scalar_one()


async def test_register_creates_pending_registration(make_event, resident_identity):
    event_id = await make_event()
    async with async_session_maker() as db_session:
        write_model = SqlRegistrationWriteModel(session_overwrite=db_session)

        result = await write_model.register(
            event_id,
            actor=resident_identity,
            contact_number="09171234567",
            contact_email="juan@example.com",
            notes="First time joining",
        )

        await db_session.rollback()
        assert result.status == RegistrationStatus.PENDING
        assert result.event_id == event_id
        assert result.user_id == resident_identity.user_id
        assert result.contact_email == "juan@example.com"
        assert result.registered_at is not None


async def test_register_unknown_event(db, resident_identity):
    with pytest.raises(NotFoundError):
        await SqlRegistrationWriteModel().register(uuid.uuid4(), actor=resident_identity)


async def test_concurrent_registrations_for_last_seat(make_event):
    event_id = await make_event(max_participants=1)
    write_model = SqlRegistrationWriteModel()

    results = await asyncio.gather(
        write_model.register(event_id, actor=_resident()),
        write_model.register(event_id, actor=_resident()),
        return_exceptions=True,
    )

    successes = [r for r in results if not isinstance(r, Exception)]
    failures = [r for r in results if isinstance(r, Exception)]
    assert len(successes) == 1
    assert len(failures) == 1
    assert isinstance(failures[0], CapacityExceededError)
    assert await _active_count(event_id) == 1


async def test_capacity_never_exceeded_under_load(make_event):
    event_id = await make_event(max_participants=3)
    write_model = SqlRegistrationWriteModel()

    results = await asyncio.gather(
        *(write_model.register(event_id, actor=_resident()) for _ in range(8)),
        return_exceptions=True,
    )

    assert sum(1 for r in results if not isinstance(r, Exception)) == 3
    assert all(isinstance(r, CapacityExceededError) for r in results if isinstance(r, Exception))
    assert await _active_count(event_id) == 3


async def test_rejected_and_cancelled_registrations_free_their_seat(make_event, make_registration):
    event_id = await make_event(max_participants=1)
    await make_registration(event_id, status=RegistrationStatus.REJECTED)
    await make_registration(event_id, status=RegistrationStatus.CANCELLED)

    result = await SqlRegistrationWriteModel().register(event_id, actor=_resident())

    assert result.status == RegistrationStatus.PENDING


async def test_duplicate_active_registration_conflicts(make_event, resident_identity):
    event_id = await make_event()
    write_model = SqlRegistrationWriteModel()
    await write_model.register(event_id, actor=resident_identity)

    with pytest.raises(ConflictError) as exc_info:
        await write_model.register(event_id, actor=resident_identity)
    assert exc_info.value.message == "You are already registered for this event"


async def test_register_again_after_rejection(make_event, make_registration, resident_identity):
    event_id = await make_event()
    await make_registration(
        event_id, user_id=resident_identity.user_id, status=RegistrationStatus.REJECTED
    )

    result = await SqlRegistrationWriteModel().register(event_id, actor=resident_identity)

    assert result.status == RegistrationStatus.PENDING


@pytest.mark.parametrize(
    "status",
    [EventStatus.CANCELLED, EventStatus.DRAFT, EventStatus.COMPLETED],
)
async def test_register_requires_published_event(make_event, resident_identity, status):
    # plenty of room left: capacity is never the reason
    event_id = await make_event(status=status, max_participants=100)

    with pytest.raises(RegistrationClosedError):
        await SqlRegistrationWriteModel().register(event_id, actor=resident_identity)


async def test_cancelled_event_is_an_invalid_state(make_event, resident_identity):
    event_id = await make_event(status=EventStatus.CANCELLED)

    with pytest.raises(InvalidStateError):
        await SqlRegistrationWriteModel().register(event_id, actor=resident_identity)


async def test_register_for_past_event_fails(make_event, resident_identity):
    event_id = await make_event(event_date=local_today() - timedelta(days=1))

    with pytest.raises(RegistrationClosedError):
        await SqlRegistrationWriteModel().register(event_id, actor=resident_identity)


async def test_cancel_own_pending_registration(make_event, resident_identity):
    event_id = await make_event()
    write_model = SqlRegistrationWriteModel()
    registration = await write_model.register(event_id, actor=resident_identity)

    result = await write_model.cancel_own(registration.id, actor=resident_identity)

    assert result.status == RegistrationStatus.CANCELLED
    assert result.cancelled_at is not None


async def test_cancel_after_approval_fails(make_event, resident_identity, staff_identity):
    event_id = await make_event()
    write_model = SqlRegistrationWriteModel()
    registration = await write_model.register(event_id, actor=resident_identity)
    await SqlReviewWriteModel().approve(registration.id, actor=staff_identity)

    with pytest.raises(InvalidStateError):
        await write_model.cancel_own(registration.id, actor=resident_identity)


async def test_cancel_someone_elses_registration(make_event, resident_identity):
    event_id = await make_event()
    write_model = SqlRegistrationWriteModel()
    registration = await write_model.register(event_id, actor=resident_identity)

    with pytest.raises(ForbiddenError):
        await write_model.cancel_own(registration.id, actor=_resident())


async def test_cancel_unknown_registration(db, resident_identity):
    with pytest.raises(NotFoundError):
        await SqlRegistrationWriteModel().cancel_own(uuid.uuid4(), actor=resident_identity)
