"""Write model for the attendance tracker.

Only residents holding an APPROVED registration can be marked, once per
event. Corrections never overwrite silently: each one leaves an
AttendanceCorrection row behind.
"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime
from functools import partial
from uuid import UUID

from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.identity import Identity
from src.common.datetime_utils import as_utc, local_today, utc_now
from src.config.database import async_session_manager
from src.events.dtos import AttendanceDTO, AttendanceStatus
from src.events.errors import (
    ConflictError,
    InvalidEventError,
    InvalidStateError,
    NotFoundError,
    PreconditionError,
)
from src.events.permissions import ensure_staff
from src.events.repository.orm_models import AttendanceCorrection, AttendanceRecord
from src.events.repository.queries import (
    get_attendance_record,
    get_event,
    has_approved_registration,
)

logger = logging.getLogger(__name__)


class AttendanceWriteModel(ABC):
    @abstractmethod
    async def mark_attendance(
        self,
        event_id: UUID,
        user_id: UUID,
        status: AttendanceStatus,
        actor: Identity,
        notes: str | None = None,
        check_in_time: datetime | None = None,
    ) -> AttendanceDTO:
        """Record a resident's attendance at an event.

        Raises:
            ForbiddenError: the actor is not SK staff
            NotFoundError: the event does not exist
            InvalidStateError: the event is still in the future
            PreconditionError: the resident has no approved registration
            ConflictError: attendance was already recorded for the resident
        """
        raise NotImplementedError

    @abstractmethod
    async def check_out(
        self, attendance_id: UUID, actor: Identity, time: datetime | None = None
    ) -> AttendanceDTO:
        raise NotImplementedError

    @abstractmethod
    async def update_attendance(
        self,
        attendance_id: UUID,
        actor: Identity,
        reason: str,
        status: AttendanceStatus | None = None,
        notes: str | None = None,
    ) -> AttendanceDTO:
        """Correct the status or notes of a record, keeping an audit entry."""
        raise NotImplementedError


class SqlAttendanceWriteModel(AttendanceWriteModel):
    """SQL implementation of the attendance tracker."""

    async_session_manager = staticmethod(partial(async_session_manager))

    def __init__(self, session_overwrite: AsyncSession | None = None) -> None:
        self.session_overwrite = session_overwrite

    async def mark_attendance(
        self,
        event_id: UUID,
        user_id: UUID,
        status: AttendanceStatus,
        actor: Identity,
        notes: str | None = None,
        check_in_time: datetime | None = None,
    ) -> AttendanceDTO:
        ensure_staff(actor, "record attendance")
        async with self.async_session_manager(session_overwrite=self.session_overwrite) as session:
            event = await get_event(session, event_id)
            if event.event_date > local_today():
                raise InvalidStateError("Attendance can only be recorded on or after the event day")

            if not await has_approved_registration(session, event_id, user_id):
                raise PreconditionError(
                    "Attendance can only be recorded for residents with an approved registration"
                )
            if await get_attendance_record(session, event_id, user_id) is not None:
                raise ConflictError("Attendance was already recorded for this resident")

            record = AttendanceRecord(
                event_id=event_id,
                user_id=user_id,
                check_in_time=check_in_time or utc_now(),
                attendance_status=status,
                notes=notes,
                recorded_by=actor.user_id,
            )
            session.add(record)
            try:
                await session.flush()
            except IntegrityError as e:
                raise ConflictError("Attendance was already recorded for this resident") from e
            dto = AttendanceDTO.from_orm(record)

        logger.info(
            "Attendance of %s at event %s recorded as %s by %s",
            user_id,
            event_id,
            status.value,
            actor.user_id,
        )
        return dto

    async def check_out(
        self, attendance_id: UUID, actor: Identity, time: datetime | None = None
    ) -> AttendanceDTO:
        ensure_staff(actor, "record attendance")
        check_out_time = time or utc_now()
        async with self.async_session_manager(session_overwrite=self.session_overwrite) as session:
            record = await session.get(AttendanceRecord, attendance_id)
            if record is None:
                raise NotFoundError("attendance record", attendance_id)
            if as_utc(check_out_time) < as_utc(record.check_in_time):
                raise InvalidStateError("Check-out time cannot be before check-in time")

            record.check_out_time = check_out_time
            await session.flush()
            dto = AttendanceDTO.from_orm(record)

        logger.info("Attendance %s checked out at %s", attendance_id, check_out_time.isoformat())
        return dto

    async def update_attendance(
        self,
        attendance_id: UUID,
        actor: Identity,
        reason: str,
        status: AttendanceStatus | None = None,
        notes: str | None = None,
    ) -> AttendanceDTO:
        ensure_staff(actor, "correct attendance")
        if not reason or not reason.strip():
            raise InvalidEventError("A reason is required to correct attendance")
        if status is None and notes is None:
            raise InvalidEventError("Nothing to correct: provide a status or notes")

        async with self.async_session_manager(session_overwrite=self.session_overwrite) as session:
            record = await session.get(AttendanceRecord, attendance_id)
            if record is None:
                raise NotFoundError("attendance record", attendance_id)

            previous_status = AttendanceStatus(record.attendance_status)
            session.add(
                AttendanceCorrection(
                    attendance_id=record.uuid,
                    previous_status=previous_status,
                    new_status=status or previous_status,
                    previous_notes=record.notes,
                    corrected_by=actor.user_id,
                    reason=reason.strip(),
                )
            )
            if status is not None:
                record.attendance_status = status
            if notes is not None:
                record.notes = notes
            await session.flush()
            dto = AttendanceDTO.from_orm(record)

        logger.info(
            "Attendance %s corrected by %s: %s -> %s",
            attendance_id,
            actor.user_id,
            previous_status.value,
            dto.attendance_status.value,
        )
        return dto
