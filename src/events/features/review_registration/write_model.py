"""Write model for the staff approval workflow.

    PENDING --approve--> APPROVED
    PENDING --reject---> REJECTED

APPROVED, REJECTED and CANCELLED are terminal. Each transition is a single
conditional update, so two reviewers racing on one registration cannot both
win.
"""

import logging
from abc import ABC, abstractmethod
from functools import partial
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.identity import Identity
from src.common.datetime_utils import utc_now
from src.config.database import async_session_manager
from src.events.dtos import RegistrationDTO, RegistrationStatus
from src.events.errors import InvalidStateError, NotFoundError
from src.events.permissions import ensure_staff
from src.events.repository.orm_models import Event, Registration
from src.notifications import NotificationDispatcherBase, RegistrationStatusChanged

logger = logging.getLogger(__name__)


class ReviewWriteModel(ABC):
    @abstractmethod
    async def approve(self, registration_id: UUID, actor: Identity) -> RegistrationDTO:
        raise NotImplementedError

    @abstractmethod
    async def reject(
        self, registration_id: UUID, actor: Identity, reason: str | None = None
    ) -> RegistrationDTO:
        raise NotImplementedError


class SqlReviewWriteModel(ReviewWriteModel):
    """SQL implementation of the approval workflow."""

    async_session_manager = staticmethod(partial(async_session_manager))

    def __init__(
        self,
        session_overwrite: AsyncSession | None = None,
        notification_dispatcher: NotificationDispatcherBase | None = None,
    ) -> None:
        self.session_overwrite = session_overwrite
        self.notification_dispatcher = notification_dispatcher

    async def approve(self, registration_id: UUID, actor: Identity) -> RegistrationDTO:
        ensure_staff(actor, "approve registrations")
        return await self._review(registration_id, actor, RegistrationStatus.APPROVED)

    async def reject(
        self, registration_id: UUID, actor: Identity, reason: str | None = None
    ) -> RegistrationDTO:
        ensure_staff(actor, "reject registrations")
        return await self._review(registration_id, actor, RegistrationStatus.REJECTED, reason)

    async def _review(
        self,
        registration_id: UUID,
        actor: Identity,
        outcome: RegistrationStatus,
        reason: str | None = None,
    ) -> RegistrationDTO:
        async with self.async_session_manager(session_overwrite=self.session_overwrite) as session:
            result = await session.execute(
                update(Registration)
                .where(
                    Registration.uuid == registration_id,
                    Registration.status == RegistrationStatus.PENDING,
                )
                .values(
                    status=outcome,
                    reviewed_by=actor.user_id,
                    reviewed_at=utc_now(),
                    review_notes=reason,
                )
                .execution_options(synchronize_session=False)
            )
            registration = await session.get(Registration, registration_id, populate_existing=True)
            if registration is None:
                raise NotFoundError("registration", registration_id)
            if result.rowcount == 0:
                raise InvalidStateError(
                    f"Registration is already {registration.status.value}; only pending ones can be reviewed"
                )

            event = await session.get(Event, registration.event_id)
            dto = RegistrationDTO.from_orm(registration)
            notification = RegistrationStatusChanged(
                registration_id=registration.uuid,
                event_id=registration.event_id,
                event_title=event.title if event else "",
                user_id=registration.user_id,
                status=outcome,
                contact_email=registration.contact_email,
                reason=reason,
            )

        logger.info("Registration %s %s by %s", registration_id, outcome.value, actor.user_id)
        if self.notification_dispatcher:
            self.notification_dispatcher.dispatch(notification)
        return dto
