from uuid import UUID

from fastapi import APIRouter, Depends, status

from src.auth.identity import Identity, get_identity
from src.events.errors import EventsError, to_http_exception
from src.events.features.manage_events.dtos import EventCreateRequest, EventUpdateRequest
from src.events.features.manage_events.write_model import EventWriteModel, SqlEventWriteModel
from src.events.schemas import EventResponse
from src.events.urls import (
    CANCEL_EVENT_URL,
    COMPLETE_EVENT_URL,
    EVENT_URL,
    EVENTS_URL,
    PUBLISH_EVENT_URL,
)
from src.notifications import get_notification_dispatcher

router = APIRouter()


def get_event_write_model() -> EventWriteModel:
    """Dependency to get event write model instance."""
    return SqlEventWriteModel(notification_dispatcher=get_notification_dispatcher())


@router.post(EVENTS_URL, response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    request: EventCreateRequest,
    actor: Identity = Depends(get_identity),
    write_model: EventWriteModel = Depends(get_event_write_model),
) -> EventResponse:
    """Create a draft event. SK staff only."""
    try:
        event = await write_model.create_event(actor=actor, **request.model_dump())
    except EventsError as e:
        raise to_http_exception(e) from e
    return EventResponse.model_validate(event)


@router.put(EVENT_URL, response_model=EventResponse)
async def update_event(
    event_id: UUID,
    request: EventUpdateRequest,
    actor: Identity = Depends(get_identity),
    write_model: EventWriteModel = Depends(get_event_write_model),
) -> EventResponse:
    """
    Update event details.

    Date and times are frozen once residents hold active registrations.
    """
    try:
        event = await write_model.update_event(event_id, actor=actor, changes=request.changes())
    except EventsError as e:
        raise to_http_exception(e) from e
    return EventResponse.model_validate(event)


@router.post(PUBLISH_EVENT_URL, response_model=EventResponse)
async def publish_event(
    event_id: UUID,
    actor: Identity = Depends(get_identity),
    write_model: EventWriteModel = Depends(get_event_write_model),
) -> EventResponse:
    """Publish a draft event so residents can register."""
    try:
        event = await write_model.publish(event_id, actor=actor)
    except EventsError as e:
        raise to_http_exception(e) from e
    return EventResponse.model_validate(event)


@router.post(CANCEL_EVENT_URL, response_model=EventResponse)
async def cancel_event(
    event_id: UUID,
    actor: Identity = Depends(get_identity),
    write_model: EventWriteModel = Depends(get_event_write_model),
) -> EventResponse:
    """Cancel an event; active registrations are cancelled with it."""
    try:
        event = await write_model.cancel(event_id, actor=actor)
    except EventsError as e:
        raise to_http_exception(e) from e
    return EventResponse.model_validate(event)


@router.post(COMPLETE_EVENT_URL, response_model=EventResponse)
async def complete_event(
    event_id: UUID,
    actor: Identity = Depends(get_identity),
    write_model: EventWriteModel = Depends(get_event_write_model),
) -> EventResponse:
    try:
        event = await write_model.complete(event_id, actor=actor)
    except EventsError as e:
        raise to_http_exception(e) from e
    return EventResponse.model_validate(event)


@router.delete(EVENT_URL, status_code=status.HTTP_204_NO_CONTENT)
async def delete_event(
    event_id: UUID,
    actor: Identity = Depends(get_identity),
    write_model: EventWriteModel = Depends(get_event_write_model),
) -> None:
    """Delete a draft event. Published events must be cancelled instead."""
    try:
        await write_model.delete(event_id, actor=actor)
    except EventsError as e:
        raise to_http_exception(e) from e
