import logging

from src.notifications.base import NotificationDispatcherBase
from src.notifications.messages import RegistrationStatusChanged

logger = logging.getLogger(__name__)


class LogNotificationDispatcher(NotificationDispatcherBase):
    """Writes notifications to the log; the default when no delivery channel is configured."""

    async def deliver(self, notification: RegistrationStatusChanged) -> None:
        logger.info(
            "Notify user %s: registration %s for '%s' is now %s",
            notification.user_id,
            notification.registration_id,
            notification.event_title,
            notification.status.value,
        )
