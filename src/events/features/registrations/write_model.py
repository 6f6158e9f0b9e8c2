"""Write model for the registration ledger.

A resident holds at most one active (PENDING or APPROVED) registration per
event, and the active registrations of an event never outnumber its
capacity. Both rules are checked and the row inserted while the event is
locked, so concurrent registrations near the capacity boundary queue up
instead of overbooking.
"""

import logging
from abc import ABC, abstractmethod
from functools import partial
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.identity import Identity
from src.common.datetime_utils import local_today, utc_now
from src.config.database import async_session_manager, retry_on_contention
from src.events.dtos import EventStatus, RegistrationDTO, RegistrationStatus
from src.events.errors import (
    CapacityExceededError,
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    RegistrationClosedError,
)
from src.events.repository.orm_models import Registration
from src.events.repository.queries import (
    count_active_registrations,
    get_active_registration,
    lock_event,
)

logger = logging.getLogger(__name__)


class RegistrationWriteModel(ABC):
    """Abstract base class for resident registration operations."""

    @abstractmethod
    async def register(
        self,
        event_id: UUID,
        actor: Identity,
        contact_number: str | None = None,
        contact_email: str | None = None,
        notes: str | None = None,
    ) -> RegistrationDTO:
        """Register the caller for a published event. Returns a PENDING registration.

        Raises:
            NotFoundError: the event does not exist
            RegistrationClosedError: the event is not published or its date has passed
            ConflictError: the caller already holds an active registration
            CapacityExceededError: the event is full
        """
        raise NotImplementedError

    @abstractmethod
    async def cancel_own(self, registration_id: UUID, actor: Identity) -> RegistrationDTO:
        """Withdraw the caller's own PENDING registration."""
        raise NotImplementedError


class SqlRegistrationWriteModel(RegistrationWriteModel):
    """SQL implementation of resident registration operations."""

    async_session_manager = staticmethod(partial(async_session_manager))

    def __init__(self, session_overwrite: AsyncSession | None = None) -> None:
        self.session_overwrite = session_overwrite

    async def register(
        self,
        event_id: UUID,
        actor: Identity,
        contact_number: str | None = None,
        contact_email: str | None = None,
        notes: str | None = None,
    ) -> RegistrationDTO:
        operation = partial(
            self._register,
            event_id=event_id,
            actor=actor,
            contact_number=contact_number,
            contact_email=contact_email,
            notes=notes,
        )
        if self.session_overwrite is not None:
            # the caller owns the transaction, it cannot be replayed here
            return await operation()
        return await retry_on_contention(operation)

    async def _register(
        self,
        event_id: UUID,
        actor: Identity,
        contact_number: str | None,
        contact_email: str | None,
        notes: str | None,
    ) -> RegistrationDTO:
        async with self.async_session_manager(session_overwrite=self.session_overwrite) as session:
            event = await lock_event(session, event_id)

            if event.status != EventStatus.PUBLISHED:
                raise RegistrationClosedError(
                    f"Event is not open for registration ({event.status.value})"
                )
            if event.event_date < local_today():
                raise RegistrationClosedError("Event has already taken place")

            if await get_active_registration(session, event.uuid, actor.user_id) is not None:
                raise ConflictError("You are already registered for this event")

            if event.max_participants is not None:
                active = await count_active_registrations(session, event.uuid)
                if active >= event.max_participants:
                    logger.info(
                        "Registration of %s for %s refused: event full (%s/%s)",
                        actor.user_id,
                        event.uuid,
                        active,
                        event.max_participants,
                    )
                    raise CapacityExceededError(event.max_participants)

            registration = Registration(
                event_id=event.uuid,
                user_id=actor.user_id,
                contact_number=contact_number,
                contact_email=contact_email,
                notes=notes,
                status=RegistrationStatus.PENDING,
                registered_at=utc_now(),
            )
            session.add(registration)
            try:
                await session.flush()
            except IntegrityError as e:
                # partial unique index on (event_id, user_id) for active registrations
                raise ConflictError("You are already registered for this event") from e
            dto = RegistrationDTO.from_orm(registration)

        logger.info("User %s registered for event %s (%s)", actor.user_id, event_id, dto.id)
        return dto

    async def cancel_own(self, registration_id: UUID, actor: Identity) -> RegistrationDTO:
        async with self.async_session_manager(session_overwrite=self.session_overwrite) as session:
            registration = await session.get(Registration, registration_id)
            if registration is None:
                raise NotFoundError("registration", registration_id)
            if registration.user_id != actor.user_id:
                raise ForbiddenError("You can only cancel your own registration")

            result = await session.execute(
                update(Registration)
                .where(
                    Registration.uuid == registration_id,
                    Registration.status == RegistrationStatus.PENDING,
                )
                .values(status=RegistrationStatus.CANCELLED, cancelled_at=utc_now())
                .execution_options(synchronize_session=False)
            )
            registration = await session.get(Registration, registration_id, populate_existing=True)
            if result.rowcount == 0:
                raise InvalidStateError(
                    f"Only pending registrations can be cancelled; this one is {registration.status.value}"
                )
            dto = RegistrationDTO.from_orm(registration)

        logger.info("User %s cancelled registration %s", actor.user_id, registration_id)
        return dto
