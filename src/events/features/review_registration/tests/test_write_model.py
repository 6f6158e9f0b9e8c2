"""Tests for SqlReviewWriteModel."""

import uuid

import pytest

from src.events.dtos import RegistrationStatus
from src.events.errors import ForbiddenError, InvalidStateError, NotFoundError
from src.events.features.review_registration.write_model import SqlReviewWriteModel


async def test_approve_pending_registration(
    make_event, make_registration, staff_identity, notification_dispatcher
):
    event_id = await make_event(title="Mural Painting Day")
    registration_id = await make_registration(event_id, contact_email="ana@example.com")
    write_model = SqlReviewWriteModel(notification_dispatcher=notification_dispatcher)

    result = await write_model.approve(registration_id, actor=staff_identity)
    await notification_dispatcher.drain()

    assert result.status == RegistrationStatus.APPROVED
    assert result.reviewed_by == staff_identity.user_id
    assert result.reviewed_at is not None

    (notification,) = notification_dispatcher.delivered
    assert notification.registration_id == registration_id
    assert notification.status == RegistrationStatus.APPROVED
    assert notification.event_title == "Mural Painting Day"
    assert notification.contact_email == "ana@example.com"
    assert notification.event_type == "registration.approved"


async def test_reject_with_reason(make_event, make_registration, staff_identity, notification_dispatcher):
    event_id = await make_event()
    registration_id = await make_registration(event_id)
    write_model = SqlReviewWriteModel(notification_dispatcher=notification_dispatcher)

    result = await write_model.reject(
        registration_id, actor=staff_identity, reason="Participants must be 15 to 30 years old"
    )
    await notification_dispatcher.drain()

    assert result.status == RegistrationStatus.REJECTED
    assert result.review_notes == "Participants must be 15 to 30 years old"
    assert notification_dispatcher.delivered[0].reason == "Participants must be 15 to 30 years old"


@pytest.mark.parametrize(
    "status",
    [RegistrationStatus.APPROVED, RegistrationStatus.REJECTED, RegistrationStatus.CANCELLED],
)
async def test_terminal_registrations_cannot_be_reviewed(
    make_event, make_registration, staff_identity, notification_dispatcher, status
):
    event_id = await make_event()
    registration_id = await make_registration(event_id, status=status)
    write_model = SqlReviewWriteModel(notification_dispatcher=notification_dispatcher)

    with pytest.raises(InvalidStateError):
        await write_model.approve(registration_id, actor=staff_identity)
    with pytest.raises(InvalidStateError):
        await write_model.reject(registration_id, actor=staff_identity)

    await notification_dispatcher.drain()
    assert notification_dispatcher.delivered == []


async def test_review_requires_staff(make_event, make_registration, resident_identity):
    event_id = await make_event()
    registration_id = await make_registration(event_id)

    with pytest.raises(ForbiddenError):
        await SqlReviewWriteModel().approve(registration_id, actor=resident_identity)


async def test_review_unknown_registration(db, staff_identity):
    with pytest.raises(NotFoundError):
        await SqlReviewWriteModel().reject(uuid.uuid4(), actor=staff_identity)
