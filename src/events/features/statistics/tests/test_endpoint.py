import uuid
from datetime import datetime, timezone

import pytest

from src.auth.identity import get_identity
from src.events.dtos import EventCountsDTO, ParticipationReportDTO
from src.events.errors import NotFoundError
from src.events.features.statistics.calculations import build_cross_event_stats, build_event_stats
from src.events.features.statistics.read_model import StatisticsReadModel
from src.events.features.statistics.router import get_statistics_read_model
from src.events.permissions import ensure_staff
from src.events.urls import CROSS_EVENT_STATS_URL, EVENT_STATS_URL, PARTICIPATION_REPORT_URL


class InMemoryStatisticsReadModel(StatisticsReadModel):
    """In-memory read model for testing."""

    def __init__(self, counts: dict[uuid.UUID, EventCountsDTO]):
        self._counts = counts
        self.requested_ranges = []

    async def event_stats(self, event_id, actor):
        if event_id not in self._counts:
            raise NotFoundError("event", event_id)
        return build_event_stats(self._counts[event_id])

    async def cross_event_stats(self, event_ids, actor, top_limit=5):
        ensure_staff(actor, "view cross-event statistics")
        return build_cross_event_stats(
            [self._counts[i] for i in event_ids if i in self._counts], top_limit
        )

    async def participation_report(self, report_range, actor):
        ensure_staff(actor, "view participation reports")
        self.requested_ranges.append(report_range)
        now = datetime(2026, 10, 19, tzinfo=timezone.utc)
        return ParticipationReportDTO(
            range=report_range.value,
            start_date=now,
            end_date=now,
            total_events=0,
            completed_events=0,
            total_participants=0,
            total_registrations=0,
            average_attendance=0.0,
        )


@pytest.mark.asyncio
async def test_event_stats(client_factory, resident_identity):
    event_id = uuid.uuid4()
    read_model = InMemoryStatisticsReadModel(
        {event_id: EventCountsDTO(event_id=event_id, max_participants=50, approved=30, present=25)}
    )
    overrides = {
        get_statistics_read_model: lambda: read_model,
        get_identity: lambda: resident_identity,
    }

    async with client_factory(overrides) as client:
        response = await client.get(EVENT_STATS_URL.format(event_id=event_id))

    assert response.status_code == 200
    data = response.json()
    assert data["total_registrations"] == 30
    assert data["total_attendance"] == 25
    assert data["attendance_rate"] == pytest.approx(25 / 30)


@pytest.mark.asyncio
async def test_event_stats_unknown_event(client_factory, staff_identity):
    overrides = {
        get_statistics_read_model: lambda: InMemoryStatisticsReadModel({}),
        get_identity: lambda: staff_identity,
    }

    async with client_factory(overrides) as client:
        response = await client.get(EVENT_STATS_URL.format(event_id=uuid.uuid4()))

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_cross_event_stats(client_factory, staff_identity):
    a, b = uuid.uuid4(), uuid.uuid4()
    read_model = InMemoryStatisticsReadModel(
        {
            a: EventCountsDTO(event_id=a, approved=10, present=9),
            b: EventCountsDTO(event_id=b, approved=10, present=3),
        }
    )
    overrides = {
        get_statistics_read_model: lambda: read_model,
        get_identity: lambda: staff_identity,
    }

    async with client_factory(overrides) as client:
        response = await client.get(
            CROSS_EVENT_STATS_URL, params=[("event_ids", str(b)), ("event_ids", str(a))]
        )

    assert response.status_code == 200
    data = response.json()
    assert data["total_registrations"] == 20
    assert data["total_attendees"] == 12
    assert [e["event_id"] for e in data["top_events"]] == [str(a), str(b)]


@pytest.mark.asyncio
async def test_cross_event_stats_forbidden_for_residents(client_factory, resident_identity):
    overrides = {
        get_statistics_read_model: lambda: InMemoryStatisticsReadModel({}),
        get_identity: lambda: resident_identity,
    }

    async with client_factory(overrides) as client:
        response = await client.get(CROSS_EVENT_STATS_URL)

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_participation_report_defaults_to_six_months(client_factory, staff_identity):
    read_model = InMemoryStatisticsReadModel({})
    overrides = {
        get_statistics_read_model: lambda: read_model,
        get_identity: lambda: staff_identity,
    }

    async with client_factory(overrides) as client:
        default = await client.get(PARTICIPATION_REPORT_URL)
        yearly = await client.get(PARTICIPATION_REPORT_URL, params={"range": "1year"})
        invalid = await client.get(PARTICIPATION_REPORT_URL, params={"range": "2weeks"})

    assert default.status_code == 200
    assert default.json()["range"] == "6months"
    assert yearly.json()["range"] == "1year"
    assert invalid.status_code == 422
