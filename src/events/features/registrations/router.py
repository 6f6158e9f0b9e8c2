from uuid import UUID

from fastapi import APIRouter, Depends, status

from src.auth.identity import Identity, get_identity
from src.events.dtos import RegistrationStatus
from src.events.errors import EventsError, to_http_exception
from src.events.features.registrations.dtos import RegisterRequest
from src.events.features.registrations.write_model import (
    RegistrationWriteModel,
    SqlRegistrationWriteModel,
)
from src.events.repository.read_models import RegistrationReadModel, SqlRegistrationReadModel
from src.events.schemas import RegistrationResponse
from src.events.urls import (
    CANCEL_REGISTRATION_URL,
    EVENT_REGISTRATIONS_URL,
    MY_REGISTRATIONS_URL,
)

router = APIRouter()


def get_registration_write_model() -> RegistrationWriteModel:
    """Dependency to get registration write model instance."""
    return SqlRegistrationWriteModel()


def get_registration_read_model() -> RegistrationReadModel:
    """Dependency to get registration read model instance."""
    return SqlRegistrationReadModel()


@router.post(
    EVENT_REGISTRATIONS_URL,
    response_model=RegistrationResponse,
    status_code=status.HTTP_201_CREATED,
)
async def register_for_event(
    event_id: UUID,
    request: RegisterRequest | None = None,
    actor: Identity = Depends(get_identity),
    write_model: RegistrationWriteModel = Depends(get_registration_write_model),
) -> RegistrationResponse:
    """
    Register the signed-in resident for a published event.

    The registration starts as pending until SK staff review it.
    """
    request = request or RegisterRequest()
    try:
        registration = await write_model.register(
            event_id,
            actor=actor,
            contact_number=request.contact_number,
            contact_email=request.contact_email,
            notes=request.notes,
        )
    except EventsError as e:
        raise to_http_exception(e) from e
    return RegistrationResponse.model_validate(registration)


@router.get(EVENT_REGISTRATIONS_URL, response_model=list[RegistrationResponse])
async def list_event_registrations(
    event_id: UUID,
    status: RegistrationStatus | None = None,
    actor: Identity = Depends(get_identity),
    read_model: RegistrationReadModel = Depends(get_registration_read_model),
) -> list[RegistrationResponse]:
    try:
        registrations = await read_model.list_event_registrations(event_id, actor=actor, status=status)
    except EventsError as e:
        raise to_http_exception(e) from e
    return [RegistrationResponse.model_validate(r) for r in registrations]


@router.get(MY_REGISTRATIONS_URL, response_model=list[RegistrationResponse])
async def list_my_registrations(
    actor: Identity = Depends(get_identity),
    read_model: RegistrationReadModel = Depends(get_registration_read_model),
) -> list[RegistrationResponse]:
    registrations = await read_model.list_user_registrations(actor=actor)
    return [RegistrationResponse.model_validate(r) for r in registrations]


@router.post(CANCEL_REGISTRATION_URL, response_model=RegistrationResponse)
async def cancel_registration(
    registration_id: UUID,
    actor: Identity = Depends(get_identity),
    write_model: RegistrationWriteModel = Depends(get_registration_write_model),
) -> RegistrationResponse:
    """Withdraw your own registration while it is still pending."""
    try:
        registration = await write_model.cancel_own(registration_id, actor=actor)
    except EventsError as e:
        raise to_http_exception(e) from e
    return RegistrationResponse.model_validate(registration)
