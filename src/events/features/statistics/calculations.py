"""Pure statistics over event counts.

Nothing here touches the database, so every function is deterministic for a
given input and safe to run on stale or partial counts.
"""

import math
from collections import Counter
from datetime import date, datetime
from typing import Iterable

from src.events.dtos import (
    CategoryCountDTO,
    CrossEventStatsDTO,
    EventCountsDTO,
    EventStatsDTO,
    MonthlyTrendDTO,
    ParticipationRecordDTO,
    ParticipationReportDTO,
)

DEFAULT_CATEGORY = "General"
TOP_EVENTS_LIMIT = 5
REPEAT_ENGAGEMENT_WEIGHT = 30


def attendance_rate(present: int, approved: int) -> float:
    """Fraction of approved registrants marked present, 0 when nobody was approved."""
    if approved <= 0:
        return 0.0
    return present / approved


def engagement_score(
    average_attendance: float, repeat_participants: int, unique_participants: int
) -> int:
    """Attendance percentage plus up to 30 points for returning residents, capped at 100."""
    repeat_share = repeat_participants / max(unique_participants, 1)
    score = average_attendance * 100 + repeat_share * REPEAT_ENGAGEMENT_WEIGHT
    return min(100, math.floor(round(score, 6)))


def build_event_stats(counts: EventCountsDTO, active_registrations: int | None = None) -> EventStatsDTO:
    active = counts.pending + counts.approved if active_registrations is None else active_registrations
    spots_remaining = None
    if counts.max_participants is not None:
        spots_remaining = max(0, counts.max_participants - active)

    return EventStatsDTO(
        event_id=counts.event_id,
        title=counts.title,
        total_registrations=counts.approved,
        present=counts.present,
        absent=counts.absent,
        late=counts.late,
        attendance_rate=attendance_rate(counts.present, counts.approved),
        pending=counts.pending,
        capacity=counts.max_participants,
        spots_remaining=spots_remaining,
    )


def rank_top_events(stats: Iterable[EventStatsDTO], limit: int = TOP_EVENTS_LIMIT) -> list[EventStatsDTO]:
    """Highest attendance rate first, then most attendees, then event id."""
    ranked = sorted(
        stats,
        key=lambda s: (-s.attendance_rate, -s.total_attendance, str(s.event_id)),
    )
    return ranked[:limit]


def build_cross_event_stats(
    counts: Iterable[EventCountsDTO], top_limit: int = TOP_EVENTS_LIMIT
) -> CrossEventStatsDTO:
    stats = [build_event_stats(c) for c in counts]
    if not stats:
        return CrossEventStatsDTO(total_registrations=0, total_attendees=0, average_attendance_rate=0.0)

    return CrossEventStatsDTO(
        total_registrations=sum(s.total_registrations for s in stats),
        total_attendees=sum(s.total_attendance for s in stats),
        average_attendance_rate=sum(s.attendance_rate for s in stats) / len(stats),
        top_events=rank_top_events(stats, top_limit),
    )


def _counts_of(record: ParticipationRecordDTO) -> EventCountsDTO:
    return EventCountsDTO(
        event_id=record.event_id,
        title=record.title,
        max_participants=record.max_participants,
        approved=record.approved,
        present=record.present,
        absent=record.absent,
        late=record.late,
    )


def build_participation_report(
    records: list[ParticipationRecordDTO],
    range_name: str,
    start_date: datetime,
    end_date: datetime,
    today: date,
) -> ParticipationReportDTO:
    """Summarize resident participation over the events created in a range.

    Participants are residents with an approved registration. A resident
    approved for more than one of the events is a repeat participant.
    """
    events_per_participant: Counter = Counter()
    for record in records:
        events_per_participant.update(set(record.participant_ids))

    unique_participants = len(events_per_participant)
    repeat_participants = sum(1 for n in events_per_participant.values() if n > 1)

    total_approved = sum(r.approved for r in records)
    total_present = sum(r.present for r in records)
    average_attendance = attendance_rate(total_present, total_approved)

    categories: Counter = Counter()
    for record in records:
        category = record.category.strip() if record.category else ""
        categories[category or DEFAULT_CATEGORY] += 1

    months: dict[str, list[int]] = {}
    for record in sorted(records, key=lambda r: r.created_at):
        month = months.setdefault(record.created_at.strftime("%Y-%m"), [0, 0])
        month[0] += 1
        month[1] += len(record.participant_ids)

    return ParticipationReportDTO(
        range=range_name,
        start_date=start_date,
        end_date=end_date,
        total_events=len(records),
        completed_events=sum(1 for r in records if r.event_date < today),
        total_participants=unique_participants,
        total_registrations=total_approved,
        average_attendance=average_attendance,
        by_category=[
            CategoryCountDTO(category=name, count=count)
            for name, count in sorted(categories.items(), key=lambda item: (-item[1], item[0]))
        ],
        monthly_trends=[
            MonthlyTrendDTO(month=month, events=events, participants=participants)
            for month, (events, participants) in sorted(months.items())
        ],
        top_events=rank_top_events(build_event_stats(_counts_of(r)) for r in records),
        repeat_participants=repeat_participants,
        new_participants=unique_participants - repeat_participants,
        engagement_score=engagement_score(
            average_attendance, repeat_participants, unique_participants
        ),
    )
