from dataclasses import asdict
from uuid import UUID

from fastapi import APIRouter, Depends

from src.auth.identity import Identity, get_identity
from src.events.dtos import EventStatus
from src.events.errors import EventsError, to_http_exception
from src.events.repository.read_models import EventReadModel, SqlEventReadModel
from src.events.schemas import EventDetailResponse, EventResponse
from src.events.urls import EVENT_URL, EVENTS_URL, PUBLIC_EVENTS_URL

router = APIRouter()


def get_event_read_model() -> EventReadModel:
    """Dependency to get event read model instance."""
    return SqlEventReadModel()


@router.get(EVENTS_URL, response_model=list[EventResponse])
async def list_events(
    status: EventStatus | None = None,
    category: str | None = None,
    actor: Identity = Depends(get_identity),
    read_model: EventReadModel = Depends(get_event_read_model),
) -> list[EventResponse]:
    """
    List events.
    SK staff see drafts and cancelled events too; residents see published and completed ones.
    """
    events = await read_model.list_events(actor=actor, status=status, category=category)
    return [EventResponse.model_validate(event) for event in events]


@router.get(PUBLIC_EVENTS_URL, response_model=list[EventResponse])
async def list_public_events(
    category: str | None = None,
    upcoming: bool = False,
    read_model: EventReadModel = Depends(get_event_read_model),
) -> list[EventResponse]:
    """Published events, no sign-in required."""
    events = await read_model.list_public_events(category=category, upcoming=upcoming)
    return [EventResponse.model_validate(event) for event in events]


@router.get(EVENT_URL, response_model=EventDetailResponse)
async def get_event(
    event_id: UUID,
    actor: Identity = Depends(get_identity),
    read_model: EventReadModel = Depends(get_event_read_model),
) -> EventDetailResponse:
    try:
        detail = await read_model.get_event(event_id, actor=actor)
    except EventsError as e:
        raise to_http_exception(e) from e

    return EventDetailResponse(
        **asdict(detail.event),
        active_registrations=detail.active_registrations,
        approved_registrations=detail.approved_registrations,
        attendance_records=detail.attendance_records,
        spots_remaining=detail.spots_remaining,
    )
