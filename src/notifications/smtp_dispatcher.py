import asyncio
import logging
import smtplib
from email.message import EmailMessage

from src.config.settings import settings
from src.notifications.base import NotificationDispatcherBase
from src.notifications.messages import RegistrationStatusChanged
from src.notifications.templates import NotificationTemplates

logger = logging.getLogger(__name__)


class SMTPNotificationDispatcher(NotificationDispatcherBase):
    def __init__(self):
        super().__init__()
        self.host = settings.smtp_host
        self.port = settings.smtp_port
        self.username = settings.smtp_user
        self.password = settings.smtp_password
        self.from_address = settings.emails_from

    def _build_message(self, notification: RegistrationStatusChanged) -> EmailMessage:
        subject, html_body, text_body = NotificationTemplates.render(
            status=notification.status,
            event_title=notification.event_title,
            reason=notification.reason,
        )
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self.from_address
        msg["To"] = notification.contact_email
        msg["X-Registration-Id"] = str(notification.registration_id)
        msg.set_content(text_body)
        msg.add_alternative(html_body, subtype="html")
        return msg

    def _send(self, msg: EmailMessage) -> None:
        with smtplib.SMTP(self.host, self.port) as server:
            server.ehlo()
            # local relays (mailpit, postfix on the host) often speak plain SMTP
            if server.has_extn("starttls"):
                server.starttls()
                server.ehlo()
            if self.username and self.password:
                server.login(self.username, self.password)
            server.send_message(msg)

    async def deliver(self, notification: RegistrationStatusChanged) -> None:
        if not notification.contact_email:
            logger.info(
                "Registration %s has no contact email, skipping %s email",
                notification.registration_id,
                notification.event_type,
            )
            return

        msg = self._build_message(notification)
        # smtplib blocks; keep it off the event loop
        await asyncio.to_thread(self._send, msg)
        logger.info(
            "Sent %s email for registration %s",
            notification.event_type,
            notification.registration_id,
        )
