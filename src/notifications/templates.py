import html
from dataclasses import dataclass

from src.events.dtos import RegistrationStatus


@dataclass
class NotificationTemplates:
    APPROVED_SUBJECT = "You're in: {event_title}"
    APPROVED_TEXT = """Hello,

Your registration for "{event_title}" has been approved.
We look forward to seeing you there!

Sangguniang Kabataan
"""

    REJECTED_SUBJECT = "Registration update: {event_title}"
    REJECTED_TEXT = """Hello,

We're sorry, your registration for "{event_title}" was not approved.
{reason_line}
You are welcome to register again or join our other activities.

Sangguniang Kabataan
"""

    CANCELLED_SUBJECT = "Event cancelled: {event_title}"
    CANCELLED_TEXT = """Hello,

"{event_title}" has been cancelled and your registration is no longer active.
{reason_line}
Sangguniang Kabataan
"""

    HTML_WRAPPER = """
    <!DOCTYPE html>
    <html>
    <head><meta charset="utf-8"></head>
    <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
        <pre style="font-family: inherit; white-space: pre-wrap;">{text}</pre>
    </body>
    </html>
    """

    @classmethod
    def render(
        cls,
        status: RegistrationStatus,
        event_title: str,
        reason: str | None = None,
    ) -> tuple[str, str, str]:
        """Return (subject, html_body, text_body) for a registration status."""
        templates = {
            RegistrationStatus.APPROVED: (cls.APPROVED_SUBJECT, cls.APPROVED_TEXT),
            RegistrationStatus.REJECTED: (cls.REJECTED_SUBJECT, cls.REJECTED_TEXT),
            RegistrationStatus.CANCELLED: (cls.CANCELLED_SUBJECT, cls.CANCELLED_TEXT),
        }
        if status not in templates:
            raise ValueError(f"No notification template for status {status.value}")

        subject_template, text_template = templates[status]
        reason_line = f"Reason: {reason}\n" if reason else ""
        subject = subject_template.format(event_title=event_title)
        text_body = text_template.format(event_title=event_title, reason_line=reason_line)
        html_body = cls.HTML_WRAPPER.format(text=html.escape(text_body))
        return subject, html_body, text_body
