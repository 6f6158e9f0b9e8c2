from uuid import UUID

from fastapi import APIRouter, Depends, Query

from src.auth.identity import Identity, get_identity
from src.events.errors import EventsError, to_http_exception
from src.events.features.statistics.read_model import (
    ReportRange,
    SqlStatisticsReadModel,
    StatisticsReadModel,
)
from src.events.features.statistics.schemas import (
    CrossEventStatsResponse,
    EventStatsResponse,
    ParticipationReportResponse,
)
from src.events.urls import CROSS_EVENT_STATS_URL, EVENT_STATS_URL, PARTICIPATION_REPORT_URL

router = APIRouter()


def get_statistics_read_model() -> StatisticsReadModel:
    """Dependency to get statistics read model instance."""
    return SqlStatisticsReadModel()


@router.get(EVENT_STATS_URL, response_model=EventStatsResponse)
async def get_event_stats(
    event_id: UUID,
    actor: Identity = Depends(get_identity),
    read_model: StatisticsReadModel = Depends(get_statistics_read_model),
) -> EventStatsResponse:
    """
    Registration and attendance figures for one event.

    attendance_rate is present / approved registrations, between 0 and 1.
    """
    try:
        stats = await read_model.event_stats(event_id, actor=actor)
    except EventsError as e:
        raise to_http_exception(e) from e
    return EventStatsResponse.model_validate(stats)


@router.get(CROSS_EVENT_STATS_URL, response_model=CrossEventStatsResponse)
async def get_cross_event_stats(
    event_ids: list[UUID] | None = Query(default=None),
    top: int = Query(default=5, ge=1, le=50),
    actor: Identity = Depends(get_identity),
    read_model: StatisticsReadModel = Depends(get_statistics_read_model),
) -> CrossEventStatsResponse:
    try:
        stats = await read_model.cross_event_stats(event_ids or [], actor=actor, top_limit=top)
    except EventsError as e:
        raise to_http_exception(e) from e
    return CrossEventStatsResponse.model_validate(stats)


@router.get(PARTICIPATION_REPORT_URL, response_model=ParticipationReportResponse)
async def get_participation_report(
    report_range: ReportRange = Query(default=ReportRange.SIX_MONTHS, alias="range"),
    actor: Identity = Depends(get_identity),
    read_model: StatisticsReadModel = Depends(get_statistics_read_model),
) -> ParticipationReportResponse:
    """Participation across the events created in the chosen range. SK staff only."""
    try:
        report = await read_model.participation_report(report_range, actor=actor)
    except EventsError as e:
        raise to_http_exception(e) from e
    return ParticipationReportResponse.model_validate(report)
