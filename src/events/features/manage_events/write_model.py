"""Write model for the event catalog.

Owns the event lifecycle: DRAFT -> PUBLISHED -> COMPLETED, with CANCELLED
reachable from DRAFT and PUBLISHED. COMPLETED and CANCELLED are terminal.
Returns DTOs, never ORM models.
"""

import logging
from abc import ABC, abstractmethod
from datetime import date, time
from functools import partial
from typing import Any
from uuid import UUID

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.identity import Identity
from src.common.datetime_utils import local_today, utc_now
from src.config.database import async_session_manager
from src.events.dtos import (
    ACTIVE_REGISTRATION_STATUSES,
    TERMINAL_EVENT_STATUSES,
    EventDTO,
    EventStatus,
    RegistrationStatus,
)
from src.events.errors import (
    CapacityExceededError,
    InvalidEventError,
    InvalidStateError,
    NotFoundError,
)
from src.events.permissions import ensure_staff
from src.events.repository.orm_models import Event, Registration
from src.events.repository.queries import count_active_registrations, lock_event
from src.notifications import NotificationDispatcherBase, RegistrationStatusChanged

logger = logging.getLogger(__name__)

REQUIRED_TEXT_FIELDS = ("title", "description", "location")
SCHEDULE_FIELDS = ("event_date", "start_time", "end_time")
UPDATABLE_FIELDS = frozenset(
    {*REQUIRED_TEXT_FIELDS, *SCHEDULE_FIELDS, "category", "max_participants"}
)


class EventWriteModel(ABC):
    """Abstract base class for event catalog write operations."""

    @abstractmethod
    async def create_event(
        self,
        actor: Identity,
        title: str,
        description: str,
        event_date: date,
        start_time: time,
        location: str,
        end_time: time | None = None,
        category: str | None = None,
        max_participants: int | None = None,
    ) -> EventDTO:
        """Create an event in DRAFT status."""
        raise NotImplementedError

    @abstractmethod
    async def update_event(self, event_id: UUID, actor: Identity, changes: dict[str, Any]) -> EventDTO:
        """Apply a partial update to a DRAFT or PUBLISHED event."""
        raise NotImplementedError

    @abstractmethod
    async def publish(self, event_id: UUID, actor: Identity) -> EventDTO:
        raise NotImplementedError

    @abstractmethod
    async def cancel(self, event_id: UUID, actor: Identity) -> EventDTO:
        """Cancel the event and void its active registrations."""
        raise NotImplementedError

    @abstractmethod
    async def complete(self, event_id: UUID, actor: Identity) -> EventDTO:
        raise NotImplementedError

    @abstractmethod
    async def delete(self, event_id: UUID, actor: Identity) -> None:
        raise NotImplementedError

    @abstractmethod
    async def complete_elapsed_events(self, actor: Identity) -> list[UUID]:
        """Complete every PUBLISHED event whose date has passed."""
        raise NotImplementedError


def _validate_schedule(event_date: date, start_time: time, end_time: time | None) -> None:
    if event_date < local_today():
        raise InvalidEventError("Event date cannot be in the past")
    if end_time is not None and end_time <= start_time:
        raise InvalidEventError("Event end time must be after its start time")


def _validate_capacity(max_participants: int | None) -> None:
    if max_participants is not None and max_participants <= 0:
        raise InvalidEventError("Maximum participants must be a positive number")


class SqlEventWriteModel(EventWriteModel):
    """SQL implementation of event catalog write operations."""

    async_session_manager = staticmethod(partial(async_session_manager))

    def __init__(
        self,
        session_overwrite: AsyncSession | None = None,
        notification_dispatcher: NotificationDispatcherBase | None = None,
    ) -> None:
        self.session_overwrite = session_overwrite
        self.notification_dispatcher = notification_dispatcher

    async def create_event(
        self,
        actor: Identity,
        title: str,
        description: str,
        event_date: date,
        start_time: time,
        location: str,
        end_time: time | None = None,
        category: str | None = None,
        max_participants: int | None = None,
    ) -> EventDTO:
        ensure_staff(actor, "create events")
        for name, value in zip(REQUIRED_TEXT_FIELDS, (title, description, location)):
            if not value or not value.strip():
                raise InvalidEventError(f"Event {name} is required")
        _validate_schedule(event_date, start_time, end_time)
        _validate_capacity(max_participants)

        async with self.async_session_manager(session_overwrite=self.session_overwrite) as session:
            event = Event(
                title=title.strip(),
                description=description.strip(),
                event_date=event_date,
                start_time=start_time,
                end_time=end_time,
                location=location.strip(),
                category=category.strip() if category and category.strip() else None,
                max_participants=max_participants,
                status=EventStatus.DRAFT,
                created_by=actor.user_id,
            )
            session.add(event)
            await session.flush()
            dto = EventDTO.from_orm(event)

        logger.info("Event %s '%s' created by %s", dto.id, dto.title, actor.user_id)
        return dto

    async def update_event(self, event_id: UUID, actor: Identity, changes: dict[str, Any]) -> EventDTO:
        ensure_staff(actor, "update events")
        unknown = set(changes) - UPDATABLE_FIELDS
        if unknown:
            raise InvalidEventError(f"Cannot update field(s): {', '.join(sorted(unknown))}")

        async with self.async_session_manager(session_overwrite=self.session_overwrite) as session:
            event = await lock_event(session, event_id)
            if event.status in TERMINAL_EVENT_STATUSES:
                raise InvalidStateError(f"A {event.status.value} event can no longer be changed")

            for name in REQUIRED_TEXT_FIELDS:
                if name in changes and (not changes[name] or not changes[name].strip()):
                    raise InvalidEventError(f"Event {name} is required")

            schedule_changed = any(
                name in changes and changes[name] != getattr(event, name) for name in SCHEDULE_FIELDS
            )
            active = await count_active_registrations(session, event.uuid)
            if schedule_changed:
                if active > 0:
                    raise InvalidStateError(
                        "Date and time cannot change once residents have registered"
                    )
                _validate_schedule(
                    changes.get("event_date", event.event_date),
                    changes.get("start_time", event.start_time),
                    changes.get("end_time", event.end_time),
                )

            if "max_participants" in changes:
                new_capacity = changes["max_participants"]
                _validate_capacity(new_capacity)
                if new_capacity is not None and new_capacity < active:
                    raise CapacityExceededError(
                        new_capacity,
                        f"{active} residents are already registered; capacity cannot drop to {new_capacity}",
                    )

            for name, value in changes.items():
                if isinstance(value, str):
                    value = value.strip()
                if name == "category" and not value:
                    value = None
                setattr(event, name, value)
            await session.flush()
            dto = EventDTO.from_orm(event)

        logger.info("Event %s updated by %s: %s", event_id, actor.user_id, sorted(changes))
        return dto

    async def publish(self, event_id: UUID, actor: Identity) -> EventDTO:
        ensure_staff(actor, "publish events")
        async with self.async_session_manager(session_overwrite=self.session_overwrite) as session:
            event = await self._transition(
                session,
                event_id,
                from_statuses=(EventStatus.DRAFT,),
                to_status=EventStatus.PUBLISHED,
                published_at=utc_now(),
            )
            dto = EventDTO.from_orm(event)

        logger.info("Event %s published by %s", event_id, actor.user_id)
        return dto

    async def complete(self, event_id: UUID, actor: Identity) -> EventDTO:
        ensure_staff(actor, "complete events")
        async with self.async_session_manager(session_overwrite=self.session_overwrite) as session:
            event = await self._transition(
                session,
                event_id,
                from_statuses=(EventStatus.PUBLISHED,),
                to_status=EventStatus.COMPLETED,
            )
            dto = EventDTO.from_orm(event)

        logger.info("Event %s completed by %s", event_id, actor.user_id)
        return dto

    async def cancel(self, event_id: UUID, actor: Identity) -> EventDTO:
        ensure_staff(actor, "cancel events")
        notifications: list[RegistrationStatusChanged] = []

        async with self.async_session_manager(session_overwrite=self.session_overwrite) as session:
            event = await lock_event(session, event_id)
            if event.status not in (EventStatus.DRAFT, EventStatus.PUBLISHED):
                raise InvalidStateError(f"A {event.status.value} event cannot be cancelled")

            event.status = EventStatus.CANCELLED

            # Cascade: active registrations no longer hold seats. The status guard
            # leaves alone anything a concurrent review already settled.
            result = await session.execute(
                update(Registration)
                .where(
                    Registration.event_id == event.uuid,
                    Registration.status.in_(ACTIVE_REGISTRATION_STATUSES),
                )
                .values(status=RegistrationStatus.CANCELLED, cancelled_at=utc_now())
                .returning(Registration.uuid, Registration.user_id, Registration.contact_email)
                .execution_options(synchronize_session=False)
            )
            for registration_id, user_id, contact_email in result.all():
                notifications.append(
                    RegistrationStatusChanged(
                        registration_id=registration_id,
                        event_id=event.uuid,
                        event_title=event.title,
                        user_id=user_id,
                        status=RegistrationStatus.CANCELLED,
                        contact_email=contact_email,
                        reason="The event was cancelled by the organizers",
                    )
                )
            await session.flush()
            dto = EventDTO.from_orm(event)

        logger.info(
            "Event %s cancelled by %s, %s registration(s) voided",
            event_id,
            actor.user_id,
            len(notifications),
        )
        if self.notification_dispatcher:
            for notification in notifications:
                self.notification_dispatcher.dispatch(notification)
        return dto

    async def delete(self, event_id: UUID, actor: Identity) -> None:
        ensure_staff(actor, "delete events")
        async with self.async_session_manager(session_overwrite=self.session_overwrite) as session:
            result = await session.execute(
                delete(Event)
                .where(Event.uuid == event_id, Event.status == EventStatus.DRAFT)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount == 0:
                event = await session.get(Event, event_id)
                if event is None:
                    raise NotFoundError("event", event_id)
                raise InvalidStateError(
                    f"Only draft events can be deleted; this event is {event.status.value}"
                )

        logger.info("Event %s deleted by %s", event_id, actor.user_id)

    async def complete_elapsed_events(self, actor: Identity) -> list[UUID]:
        ensure_staff(actor, "complete events")
        today = local_today()
        async with self.async_session_manager(session_overwrite=self.session_overwrite) as session:
            result = await session.execute(
                select(Event.uuid).where(
                    Event.status == EventStatus.PUBLISHED,
                    Event.event_date < today,
                )
            )
            event_ids = list(result.scalars().all())
            if event_ids:
                await session.execute(
                    update(Event)
                    .where(Event.uuid.in_(event_ids), Event.status == EventStatus.PUBLISHED)
                    .values(status=EventStatus.COMPLETED)
                    .execution_options(synchronize_session=False)
                )

        logger.info("Completed %s elapsed event(s)", len(event_ids))
        return event_ids

    async def _transition(
        self,
        session: AsyncSession,
        event_id: UUID,
        from_statuses: tuple[EventStatus, ...],
        to_status: EventStatus,
        **values: Any,
    ) -> Event:
        """Compare-and-set the event status; no lost updates between readers."""
        result = await session.execute(
            update(Event)
            .where(Event.uuid == event_id, Event.status.in_(from_statuses))
            .values(status=to_status, **values)
            .execution_options(synchronize_session=False)
        )
        event = await session.get(Event, event_id, populate_existing=True)
        if event is None:
            raise NotFoundError("event", event_id)
        if result.rowcount == 0:
            raise InvalidStateError(
                f"Cannot move a {event.status.value} event to {to_status.value}"
            )
        return event
