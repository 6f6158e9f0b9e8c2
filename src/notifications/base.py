import asyncio
import logging
from abc import ABC, abstractmethod

from src.notifications.messages import RegistrationStatusChanged

logger = logging.getLogger(__name__)


class NotificationDispatcherBase(ABC):
    """Fire-and-forget delivery of registration status notifications.

    ``dispatch`` schedules delivery on the running loop and returns at once;
    the caller never awaits nor sees delivery failures.
    """

    def __init__(self) -> None:
        self._pending: set[asyncio.Task] = set()

    def dispatch(self, notification: RegistrationStatusChanged) -> None:
        task = asyncio.get_running_loop().create_task(self._deliver_and_log(notification))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def drain(self) -> None:
        """Wait for every scheduled delivery (shutdown and tests)."""
        if self._pending:
            await asyncio.gather(*self._pending, return_exceptions=True)

    async def _deliver_and_log(self, notification: RegistrationStatusChanged) -> None:
        try:
            await self.deliver(notification)
        except Exception:
            logger.exception(
                "Failed to deliver %s notification for registration %s",
                notification.event_type,
                notification.registration_id,
            )

    @abstractmethod
    async def deliver(self, notification: RegistrationStatusChanged) -> None:
        pass
