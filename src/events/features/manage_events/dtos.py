"""Request bodies for the event catalog feature."""

from datetime import date, time

from pydantic import BaseModel, Field


class EventCreateRequest(BaseModel):
    """Request body for creating a draft event."""

    title: str = Field(min_length=1, max_length=255)
    description: str = Field(min_length=1)
    event_date: date
    start_time: time
    end_time: time | None = None
    location: str = Field(min_length=1, max_length=500)
    category: str | None = Field(default=None, max_length=100)
    max_participants: int | None = Field(default=None, gt=0)


class EventUpdateRequest(BaseModel):
    """Partial update; only the fields sent are changed."""

    title: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = Field(default=None, min_length=1)
    event_date: date | None = None
    start_time: time | None = None
    end_time: time | None = None
    location: str | None = Field(default=None, min_length=1, max_length=500)
    category: str | None = Field(default=None, max_length=100)
    # explicit null makes the event unlimited
    max_participants: int | None = Field(default=None, gt=0)

    def changes(self) -> dict:
        changes = self.model_dump(exclude_unset=True)
        # these columns are required, a null here means "leave as is"
        for name in ("title", "description", "event_date", "start_time", "location"):
            if name in changes and changes[name] is None:
                del changes[name]
        return changes
