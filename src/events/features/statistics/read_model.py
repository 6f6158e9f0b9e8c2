import abc
from collections import defaultdict
from datetime import timedelta
from enum import Enum
from typing import Iterable
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from src.auth.identity import Identity
from src.common.datetime_utils import local_today, utc_now
from src.config.database import async_session_manager
from src.events.dtos import (
    AttendanceStatus,
    CrossEventStatsDTO,
    EventCountsDTO,
    EventStatsDTO,
    EventStatus,
    ParticipationRecordDTO,
    ParticipationReportDTO,
    RegistrationStatus,
)
from src.events.errors import NotFoundError
from src.events.features.statistics.calculations import (
    TOP_EVENTS_LIMIT,
    build_cross_event_stats,
    build_event_stats,
    build_participation_report,
)
from src.events.permissions import ensure_staff
from src.events.repository.orm_models import AttendanceRecord, Event, Registration


class ReportRange(str, Enum):
    ONE_MONTH = "1month"
    THREE_MONTHS = "3months"
    SIX_MONTHS = "6months"
    ONE_YEAR = "1year"


REPORT_RANGE_DAYS = {
    ReportRange.ONE_MONTH: 30,
    ReportRange.THREE_MONTHS: 90,
    ReportRange.SIX_MONTHS: 180,
    ReportRange.ONE_YEAR: 365,
}


class StatisticsReadModel(abc.ABC):
    @abc.abstractmethod
    async def event_stats(self, event_id: UUID, actor: Identity) -> EventStatsDTO:
        raise NotImplementedError

    @abc.abstractmethod
    async def cross_event_stats(
        self, event_ids: list[UUID], actor: Identity, top_limit: int = TOP_EVENTS_LIMIT
    ) -> CrossEventStatsDTO:
        """Aggregate several events. Unknown ids are ignored. Staff only."""
        raise NotImplementedError

    @abc.abstractmethod
    async def participation_report(
        self, report_range: ReportRange, actor: Identity
    ) -> ParticipationReportDTO:
        raise NotImplementedError


async def _load_counts(session: AsyncSession, events: Iterable[Event]) -> list[EventCountsDTO]:
    """Registration and attendance counts per event, zero where nothing is stored."""
    events = list(events)
    event_ids = [event.uuid for event in events]
    if not event_ids:
        return []

    registrations: dict[UUID, dict] = defaultdict(dict)
    result = await session.execute(
        select(Registration.event_id, Registration.status, func.count(Registration.uuid))
        .where(Registration.event_id.in_(event_ids))
        .group_by(Registration.event_id, Registration.status)
    )
    for event_id, status, count in result.all():
        registrations[event_id][RegistrationStatus(status)] = count

    attendance: dict[UUID, dict] = defaultdict(dict)
    result = await session.execute(
        select(
            AttendanceRecord.event_id,
            AttendanceRecord.attendance_status,
            func.count(AttendanceRecord.uuid),
        )
        .where(AttendanceRecord.event_id.in_(event_ids))
        .group_by(AttendanceRecord.event_id, AttendanceRecord.attendance_status)
    )
    for event_id, status, count in result.all():
        attendance[event_id][AttendanceStatus(status)] = count

    return [
        EventCountsDTO(
            event_id=event.uuid,
            title=event.title,
            max_participants=event.max_participants,
            pending=registrations[event.uuid].get(RegistrationStatus.PENDING, 0),
            approved=registrations[event.uuid].get(RegistrationStatus.APPROVED, 0),
            present=attendance[event.uuid].get(AttendanceStatus.PRESENT, 0),
            absent=attendance[event.uuid].get(AttendanceStatus.ABSENT, 0),
            late=attendance[event.uuid].get(AttendanceStatus.LATE, 0),
        )
        for event in events
    ]


class SqlStatisticsReadModel(StatisticsReadModel):
    """SQL implementation of the statistics aggregator. Never writes."""

    async def event_stats(self, event_id: UUID, actor: Identity) -> EventStatsDTO:
        async with async_session_manager() as session:
            event = await session.get(Event, event_id)
            if event is None or (not actor.is_staff and event.status == EventStatus.DRAFT):
                raise NotFoundError("event", event_id)

            (counts,) = await _load_counts(session, [event])
            return build_event_stats(counts)

    async def cross_event_stats(
        self, event_ids: list[UUID], actor: Identity, top_limit: int = TOP_EVENTS_LIMIT
    ) -> CrossEventStatsDTO:
        ensure_staff(actor, "view cross-event statistics")
        if not event_ids:
            return build_cross_event_stats([])

        async with async_session_manager() as session:
            result = await session.execute(select(Event).where(Event.uuid.in_(set(event_ids))))
            counts = await _load_counts(session, result.scalars().all())
            return build_cross_event_stats(counts, top_limit)

    async def participation_report(
        self, report_range: ReportRange, actor: Identity
    ) -> ParticipationReportDTO:
        ensure_staff(actor, "view participation reports")
        end_date = utc_now()
        start_date = end_date - timedelta(days=REPORT_RANGE_DAYS[report_range])

        async with async_session_manager() as session:
            result = await session.execute(
                select(Event)
                .where(Event.created_at >= start_date)
                .order_by(Event.created_at.asc())
            )
            events = list(result.scalars().all())
            counts = {c.event_id: c for c in await _load_counts(session, events)}

            participants: dict[UUID, list[UUID]] = defaultdict(list)
            if events:
                result = await session.execute(
                    select(Registration.event_id, Registration.user_id).where(
                        Registration.event_id.in_(list(counts)),
                        Registration.status == RegistrationStatus.APPROVED,
                    )
                )
                for event_id, user_id in result.all():
                    participants[event_id].append(user_id)

            records = [
                ParticipationRecordDTO(
                    event_id=event.uuid,
                    title=event.title,
                    category=event.category,
                    event_date=event.event_date,
                    created_at=event.created_at,
                    max_participants=event.max_participants,
                    participant_ids=tuple(participants[event.uuid]),
                    approved=counts[event.uuid].approved,
                    present=counts[event.uuid].present,
                    absent=counts[event.uuid].absent,
                    late=counts[event.uuid].late,
                )
                for event in events
            ]

        return build_participation_report(
            records,
            range_name=report_range.value,
            start_date=start_date,
            end_date=end_date,
            today=local_today(),
        )
