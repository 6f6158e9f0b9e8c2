import uuid
from dataclasses import replace

import pytest

from src.auth.identity import get_identity
from src.common.datetime_utils import utc_now
from src.events.dtos import AttendanceDTO, AttendanceStatus
from src.events.errors import ConflictError, NotFoundError, PreconditionError
from src.events.features.attendance.router import (
    get_attendance_read_model,
    get_attendance_write_model,
)
from src.events.features.attendance.write_model import AttendanceWriteModel
from src.events.permissions import ensure_staff
from src.events.repository.read_models import AttendanceReadModel
from src.events.urls import ATTENDANCE_URL, CHECK_OUT_URL, EVENT_ATTENDANCE_URL


class InMemoryAttendanceStore(AttendanceWriteModel, AttendanceReadModel):
    """In-memory attendance tracker for testing."""

    def __init__(self, approved: set[tuple[uuid.UUID, uuid.UUID]]):
        self.approved = approved
        self.records: dict[uuid.UUID, AttendanceDTO] = {}
        self.corrections: list[str] = []

    async def mark_attendance(self, event_id, user_id, status, actor, notes=None, check_in_time=None):
        ensure_staff(actor, "record attendance")
        if (event_id, user_id) not in self.approved:
            raise PreconditionError(
                "Attendance can only be recorded for residents with an approved registration"
            )
        if any(r.event_id == event_id and r.user_id == user_id for r in self.records.values()):
            raise ConflictError("Attendance was already recorded for this resident")
        record = AttendanceDTO(
            id=uuid.uuid4(),
            event_id=event_id,
            user_id=user_id,
            check_in_time=check_in_time or utc_now(),
            attendance_status=status,
            recorded_by=actor.user_id,
            notes=notes,
        )
        self.records[record.id] = record
        return record

    async def check_out(self, attendance_id, actor, time=None):
        if attendance_id not in self.records:
            raise NotFoundError("attendance record", attendance_id)
        self.records[attendance_id] = replace(self.records[attendance_id], check_out_time=time or utc_now())
        return self.records[attendance_id]

    async def update_attendance(self, attendance_id, actor, reason, status=None, notes=None):
        record = self.records[attendance_id]
        self.corrections.append(reason)
        self.records[attendance_id] = replace(
            record,
            attendance_status=status or record.attendance_status,
            notes=notes if notes is not None else record.notes,
        )
        return self.records[attendance_id]

    async def list_event_attendance(self, event_id, actor):
        ensure_staff(actor, "view attendance")
        return [r for r in self.records.values() if r.event_id == event_id]


def _overrides(store, identity):
    return {
        get_attendance_write_model: lambda: store,
        get_attendance_read_model: lambda: store,
        get_identity: lambda: identity,
    }


@pytest.mark.asyncio
async def test_mark_attendance(client_factory, staff_identity):
    event_id, user_id = uuid.uuid4(), uuid.uuid4()
    store = InMemoryAttendanceStore({(event_id, user_id)})

    async with client_factory(_overrides(store, staff_identity)) as client:
        response = await client.post(
            EVENT_ATTENDANCE_URL.format(event_id=event_id),
            json={"user_id": str(user_id), "status": "present"},
        )

    assert response.status_code == 201
    data = response.json()
    assert data["attendance_status"] == "present"
    assert data["recorded_by"] == str(staff_identity.user_id)


@pytest.mark.asyncio
async def test_mark_attendance_without_approval(client_factory, staff_identity):
    store = InMemoryAttendanceStore(set())

    async with client_factory(_overrides(store, staff_identity)) as client:
        response = await client.post(
            EVENT_ATTENDANCE_URL.format(event_id=uuid.uuid4()),
            json={"user_id": str(uuid.uuid4()), "status": "present"},
        )

    assert response.status_code == 412


@pytest.mark.asyncio
async def test_mark_attendance_twice(client_factory, staff_identity):
    event_id, user_id = uuid.uuid4(), uuid.uuid4()
    store = InMemoryAttendanceStore({(event_id, user_id)})
    body = {"user_id": str(user_id), "status": "late"}

    async with client_factory(_overrides(store, staff_identity)) as client:
        await client.post(EVENT_ATTENDANCE_URL.format(event_id=event_id), json=body)
        response = await client.post(EVENT_ATTENDANCE_URL.format(event_id=event_id), json=body)

    assert response.status_code == 409


@pytest.mark.asyncio
async def test_mark_attendance_rejects_unknown_status(client_factory, staff_identity):
    store = InMemoryAttendanceStore(set())

    async with client_factory(_overrides(store, staff_identity)) as client:
        response = await client.post(
            EVENT_ATTENDANCE_URL.format(event_id=uuid.uuid4()),
            json={"user_id": str(uuid.uuid4()), "status": "excused"},
        )

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_resident_cannot_list_attendance(client_factory, resident_identity):
    store = InMemoryAttendanceStore(set())

    async with client_factory(_overrides(store, resident_identity)) as client:
        response = await client.get(EVENT_ATTENDANCE_URL.format(event_id=uuid.uuid4()))

    assert response.status_code == 403


@pytest.mark.asyncio
async def test_check_out_and_correct(client_factory, staff_identity):
    event_id, user_id = uuid.uuid4(), uuid.uuid4()
    store = InMemoryAttendanceStore({(event_id, user_id)})
    record = await store.mark_attendance(event_id, user_id, AttendanceStatus.PRESENT, actor=staff_identity)

    async with client_factory(_overrides(store, staff_identity)) as client:
        checked_out = await client.post(CHECK_OUT_URL.format(attendance_id=record.id))
        corrected = await client.patch(
            ATTENDANCE_URL.format(attendance_id=record.id),
            json={"status": "late", "reason": "Signed in after the opening program"},
        )
        listed = await client.get(EVENT_ATTENDANCE_URL.format(event_id=event_id))

    assert checked_out.status_code == 200
    assert checked_out.json()["check_out_time"] is not None
    assert corrected.status_code == 200
    assert corrected.json()["attendance_status"] == "late"
    assert store.corrections == ["Signed in after the opening program"]
    assert [r["id"] for r in listed.json()] == [str(record.id)]


@pytest.mark.asyncio
async def test_correction_requires_reason(client_factory, staff_identity):
    store = InMemoryAttendanceStore(set())

    async with client_factory(_overrides(store, staff_identity)) as client:
        response = await client.patch(
            ATTENDANCE_URL.format(attendance_id=uuid.uuid4()), json={"status": "late"}
        )

    assert response.status_code == 422
