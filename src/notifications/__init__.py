from functools import lru_cache

from src.config.settings import settings
from src.notifications.base import NotificationDispatcherBase
from src.notifications.log_dispatcher import LogNotificationDispatcher
from src.notifications.messages import RegistrationStatusChanged
from src.notifications.smtp_dispatcher import SMTPNotificationDispatcher


@lru_cache
def get_notification_dispatcher() -> NotificationDispatcherBase:
    if settings.notification_backend == "smtp":
        return SMTPNotificationDispatcher()
    return LogNotificationDispatcher()


__all__ = [
    "NotificationDispatcherBase",
    "RegistrationStatusChanged",
    "get_notification_dispatcher",
]
