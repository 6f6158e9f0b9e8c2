"""
Domain events for the SK events module.

These are handed to the notification dispatcher; they can also be used for:
- Audit logging
- Message bus integration
"""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from src.common.datetime_utils import utc_now
from src.events.dtos import RegistrationStatus


@dataclass
class DomainEvent:
    """Base domain event."""

    timestamp: datetime = None
    event_type: str = ""

    def __post_init__(self):
        if self.timestamp is None:
            self.timestamp = utc_now()


@dataclass(kw_only=True)
class RegistrationStatusChanged(DomainEvent):
    """Fired when staff approve/reject a registration or an event cancel voids it."""

    registration_id: UUID
    event_id: UUID
    event_title: str
    user_id: UUID
    status: RegistrationStatus
    contact_email: str | None = None
    reason: str | None = None

    def __post_init__(self):
        super().__post_init__()
        self.event_type = f"registration.{self.status.value}"
