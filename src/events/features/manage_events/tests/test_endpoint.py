import uuid
from dataclasses import replace
from datetime import date, time

import pytest

from src.auth.identity import get_identity
from src.events.dtos import EventDTO, EventStatus
from src.events.errors import InvalidStateError, NotFoundError
from src.events.features.manage_events.router import get_event_write_model
from src.events.features.manage_events.write_model import EventWriteModel
from src.events.permissions import ensure_staff
from src.events.urls import (
    CANCEL_EVENT_URL,
    EVENT_URL,
    EVENTS_URL,
    PUBLISH_EVENT_URL,
)


class InMemoryEventWriteModel(EventWriteModel):
    """In-memory write model for testing."""

    def __init__(self, memory: dict):
        self._memory = memory

    async def create_event(self, actor, title, description, event_date, start_time, location,
                           end_time=None, category=None, max_participants=None):
        ensure_staff(actor, "create events")
        event = EventDTO(
            id=uuid.uuid4(),
            title=title,
            description=description,
            event_date=event_date,
            start_time=start_time,
            end_time=end_time,
            location=location,
            category=category,
            max_participants=max_participants,
            status=EventStatus.DRAFT,
            created_by=actor.user_id,
        )
        self._memory[event.id] = event
        return event

    async def update_event(self, event_id, actor, changes):
        event = self._get(event_id)
        self._memory[event_id] = replace(event, **changes)
        return self._memory[event_id]

    async def publish(self, event_id, actor):
        event = self._get(event_id)
        if event.status != EventStatus.DRAFT:
            raise InvalidStateError("Cannot move a published event to published")
        self._memory[event_id] = replace(event, status=EventStatus.PUBLISHED)
        return self._memory[event_id]

    async def cancel(self, event_id, actor):
        event = self._get(event_id)
        self._memory[event_id] = replace(event, status=EventStatus.CANCELLED)
        return self._memory[event_id]

    async def complete(self, event_id, actor):
        event = self._get(event_id)
        self._memory[event_id] = replace(event, status=EventStatus.COMPLETED)
        return self._memory[event_id]

    async def delete(self, event_id, actor):
        self._get(event_id)
        del self._memory[event_id]

    async def complete_elapsed_events(self, actor):
        return []

    def _get(self, event_id):
        if event_id not in self._memory:
            raise NotFoundError("event", event_id)
        return self._memory[event_id]


def _payload(**overrides):
    payload = {
        "title": "Youth Leadership Summit",
        "description": "Workshops for aspiring SK leaders",
        "event_date": "2099-03-01",
        "start_time": "09:00:00",
        "end_time": "16:00:00",
        "location": "Barangay Hall",
        "category": "Education",
        "max_participants": 60,
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_create_event(client_factory, staff_identity):
    memory = {}
    overrides = {
        get_event_write_model: lambda: InMemoryEventWriteModel(memory),
        get_identity: lambda: staff_identity,
    }

    async with client_factory(overrides) as client:
        response = await client.post(EVENTS_URL, json=_payload())

    assert response.status_code == 201
    data = response.json()
    assert data["status"] == "draft"
    assert data["title"] == "Youth Leadership Summit"
    assert data["created_by"] == str(staff_identity.user_id)
    assert len(memory) == 1


@pytest.mark.asyncio
async def test_create_event_as_resident_is_forbidden(client_factory, resident_identity):
    overrides = {
        get_event_write_model: lambda: InMemoryEventWriteModel({}),
        get_identity: lambda: resident_identity,
    }

    async with client_factory(overrides) as client:
        response = await client.post(EVENTS_URL, json=_payload())

    assert response.status_code == 403
    assert response.json()["detail"] == "Only SK staff can create events"


@pytest.mark.asyncio
async def test_create_event_validates_body(client_factory, staff_identity):
    overrides = {
        get_event_write_model: lambda: InMemoryEventWriteModel({}),
        get_identity: lambda: staff_identity,
    }

    async with client_factory(overrides) as client:
        response = await client.post(EVENTS_URL, json=_payload(max_participants=0))

    assert response.status_code == 422


@pytest.mark.asyncio
async def test_create_event_requires_authentication(client_factory):
    overrides = {get_event_write_model: lambda: InMemoryEventWriteModel({})}

    async with client_factory(overrides) as client:
        response = await client.post(EVENTS_URL, json=_payload())

    assert response.status_code == 401


@pytest.mark.asyncio
async def test_publish_twice_conflicts(client_factory, staff_identity):
    memory = {}
    write_model = InMemoryEventWriteModel(memory)
    event = await write_model.create_event(
        staff_identity, "Fun Run", "5k around the barangay", date(2099, 1, 5), time(5, 30), "Plaza"
    )
    overrides = {
        get_event_write_model: lambda: write_model,
        get_identity: lambda: staff_identity,
    }

    async with client_factory(overrides) as client:
        first = await client.post(PUBLISH_EVENT_URL.format(event_id=event.id))
        second = await client.post(PUBLISH_EVENT_URL.format(event_id=event.id))

    assert first.status_code == 200
    assert first.json()["status"] == "published"
    assert second.status_code == 409


@pytest.mark.asyncio
async def test_update_sends_only_given_fields(client_factory, staff_identity):
    memory = {}
    write_model = InMemoryEventWriteModel(memory)
    event = await write_model.create_event(
        staff_identity, "Fun Run", "5k around the barangay", date(2099, 1, 5), time(5, 30), "Plaza"
    )
    overrides = {
        get_event_write_model: lambda: write_model,
        get_identity: lambda: staff_identity,
    }

    async with client_factory(overrides) as client:
        response = await client.put(
            EVENT_URL.format(event_id=event.id), json={"location": "Covered Court", "title": None}
        )

    assert response.status_code == 200
    data = response.json()
    assert data["location"] == "Covered Court"
    assert data["title"] == "Fun Run"


@pytest.mark.asyncio
async def test_cancel_unknown_event(client_factory, staff_identity):
    overrides = {
        get_event_write_model: lambda: InMemoryEventWriteModel({}),
        get_identity: lambda: staff_identity,
    }

    async with client_factory(overrides) as client:
        response = await client.post(CANCEL_EVENT_URL.format(event_id=uuid.uuid4()))

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_event(client_factory, staff_identity):
    memory = {}
    write_model = InMemoryEventWriteModel(memory)
    event = await write_model.create_event(
        staff_identity, "Fun Run", "5k around the barangay", date(2099, 1, 5), time(5, 30), "Plaza"
    )
    overrides = {
        get_event_write_model: lambda: write_model,
        get_identity: lambda: staff_identity,
    }

    async with client_factory(overrides) as client:
        response = await client.delete(EVENT_URL.format(event_id=event.id))

    assert response.status_code == 204
    assert memory == {}

