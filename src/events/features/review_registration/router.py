from uuid import UUID

from fastapi import APIRouter, Depends

from src.auth.identity import Identity, get_identity
from src.events.errors import EventsError, to_http_exception
from src.events.features.review_registration.dtos import RejectRequest
from src.events.features.review_registration.write_model import (
    ReviewWriteModel,
    SqlReviewWriteModel,
)
from src.events.schemas import RegistrationResponse
from src.events.urls import APPROVE_REGISTRATION_URL, REJECT_REGISTRATION_URL
from src.notifications import get_notification_dispatcher

router = APIRouter()


def get_review_write_model() -> ReviewWriteModel:
    """Dependency to get review write model instance."""
    return SqlReviewWriteModel(notification_dispatcher=get_notification_dispatcher())


@router.post(APPROVE_REGISTRATION_URL, response_model=RegistrationResponse)
async def approve_registration(
    registration_id: UUID,
    actor: Identity = Depends(get_identity),
    write_model: ReviewWriteModel = Depends(get_review_write_model),
) -> RegistrationResponse:
    """Approve a pending registration and notify the resident. SK staff only."""
    try:
        registration = await write_model.approve(registration_id, actor=actor)
    except EventsError as e:
        raise to_http_exception(e) from e
    return RegistrationResponse.model_validate(registration)


@router.post(REJECT_REGISTRATION_URL, response_model=RegistrationResponse)
async def reject_registration(
    registration_id: UUID,
    request: RejectRequest | None = None,
    actor: Identity = Depends(get_identity),
    write_model: ReviewWriteModel = Depends(get_review_write_model),
) -> RegistrationResponse:
    """Reject a pending registration, optionally with a reason for the resident."""
    reason = request.reason if request else None
    try:
        registration = await write_model.reject(registration_id, actor=actor, reason=reason)
    except EventsError as e:
        raise to_http_exception(e) from e
    return RegistrationResponse.model_validate(registration)
