import abc
from uuid import UUID

from sqlalchemy import case, func, select

from src.auth.identity import Identity
from src.common.datetime_utils import local_today
from src.config.database import async_session_manager
from src.events.dtos import (
    ACTIVE_REGISTRATION_STATUSES,
    AttendanceDTO,
    EventDetailDTO,
    EventDTO,
    EventStatus,
    RegistrationDTO,
    RegistrationStatus,
)
from src.events.errors import NotFoundError
from src.events.permissions import ensure_staff
from src.events.repository.orm_models import AttendanceRecord, Event, Registration

# Statuses listed to non-staff readers; only drafts are hidden on direct lookup
RESIDENT_VISIBLE_STATUSES = (EventStatus.PUBLISHED, EventStatus.COMPLETED)


class EventReadModel(abc.ABC):
    @abc.abstractmethod
    async def list_events(
        self,
        actor: Identity,
        status: EventStatus | None = None,
        category: str | None = None,
    ) -> list[EventDTO]:
        """
        List events, newest date first.
        Staff see every status; everyone else sees published and completed events.
        """
        raise NotImplementedError

    @abc.abstractmethod
    async def list_public_events(
        self, category: str | None = None, upcoming: bool = False
    ) -> list[EventDTO]:
        """List published events by date; ``upcoming`` keeps today and later."""
        raise NotImplementedError

    @abc.abstractmethod
    async def get_event(self, event_id: UUID, actor: Identity) -> EventDetailDTO:
        raise NotImplementedError


class SqlEventReadModel(EventReadModel):
    """SQL implementation of event read model."""

    async def list_events(
        self,
        actor: Identity,
        status: EventStatus | None = None,
        category: str | None = None,
    ) -> list[EventDTO]:
        stmt = select(Event)
        if not actor.is_staff:
            stmt = stmt.where(Event.status.in_(RESIDENT_VISIBLE_STATUSES))
        if status is not None:
            stmt = stmt.where(Event.status == status)
        if category:
            stmt = stmt.where(Event.category == category)
        stmt = stmt.order_by(Event.event_date.desc(), Event.start_time.desc())

        async with async_session_manager() as session:
            result = await session.execute(stmt)
            return [EventDTO.from_orm(event) for event in result.scalars().all()]

    async def list_public_events(
        self, category: str | None = None, upcoming: bool = False
    ) -> list[EventDTO]:
        stmt = select(Event).where(Event.status == EventStatus.PUBLISHED)
        if category:
            stmt = stmt.where(Event.category == category)
        if upcoming:
            stmt = stmt.where(Event.event_date >= local_today())
        stmt = stmt.order_by(Event.event_date.asc(), Event.start_time.asc())

        async with async_session_manager() as session:
            result = await session.execute(stmt)
            return [EventDTO.from_orm(event) for event in result.scalars().all()]

    async def get_event(self, event_id: UUID, actor: Identity) -> EventDetailDTO:
        async with async_session_manager() as session:
            event = await session.get(Event, event_id)
            # Drafts do not exist for residents
            if event is None or (not actor.is_staff and event.status == EventStatus.DRAFT):
                raise NotFoundError("event", event_id)

            registration_counts = await session.execute(
                select(
                    func.count(
                        case((Registration.status.in_(ACTIVE_REGISTRATION_STATUSES), 1))
                    ),
                    func.count(
                        case((Registration.status == RegistrationStatus.APPROVED, 1))
                    ),
                ).where(Registration.event_id == event_id)
            )
            active, approved = registration_counts.one()

            attendance_count = await session.execute(
                select(func.count(AttendanceRecord.uuid)).where(
                    AttendanceRecord.event_id == event_id
                )
            )

            return EventDetailDTO(
                event=EventDTO.from_orm(event),
                active_registrations=active,
                approved_registrations=approved,
                attendance_records=attendance_count.scalar_one(),
            )


class RegistrationReadModel(abc.ABC):
    @abc.abstractmethod
    async def list_event_registrations(
        self,
        event_id: UUID,
        actor: Identity,
        status: RegistrationStatus | None = None,
    ) -> list[RegistrationDTO]:
        """Registrations of one event, newest first. Staff only."""
        raise NotImplementedError

    @abc.abstractmethod
    async def list_user_registrations(self, actor: Identity) -> list[RegistrationDTO]:
        """The caller's own registrations, newest first."""
        raise NotImplementedError


class SqlRegistrationReadModel(RegistrationReadModel):
    """SQL implementation of registration read model."""

    async def list_event_registrations(
        self,
        event_id: UUID,
        actor: Identity,
        status: RegistrationStatus | None = None,
    ) -> list[RegistrationDTO]:
        ensure_staff(actor, "view event registrations")
        async with async_session_manager() as session:
            if await session.get(Event, event_id) is None:
                raise NotFoundError("event", event_id)

            stmt = select(Registration).where(Registration.event_id == event_id)
            if status is not None:
                stmt = stmt.where(Registration.status == status)
            result = await session.execute(stmt.order_by(Registration.registered_at.desc()))
            return [RegistrationDTO.from_orm(r) for r in result.scalars().all()]

    async def list_user_registrations(self, actor: Identity) -> list[RegistrationDTO]:
        async with async_session_manager() as session:
            result = await session.execute(
                select(Registration)
                .where(Registration.user_id == actor.user_id)
                .order_by(Registration.registered_at.desc())
            )
            return [RegistrationDTO.from_orm(r) for r in result.scalars().all()]


class AttendanceReadModel(abc.ABC):
    @abc.abstractmethod
    async def list_event_attendance(self, event_id: UUID, actor: Identity) -> list[AttendanceDTO]:
        """Attendance records of one event by check-in time. Staff only."""
        raise NotImplementedError


class SqlAttendanceReadModel(AttendanceReadModel):
    """SQL implementation of attendance read model."""

    async def list_event_attendance(self, event_id: UUID, actor: Identity) -> list[AttendanceDTO]:
        ensure_staff(actor, "view attendance")
        async with async_session_manager() as session:
            if await session.get(Event, event_id) is None:
                raise NotFoundError("event", event_id)

            result = await session.execute(
                select(AttendanceRecord)
                .where(AttendanceRecord.event_id == event_id)
                .order_by(AttendanceRecord.check_in_time.asc())
            )
            return [AttendanceDTO.from_orm(record) for record in result.scalars().all()]
