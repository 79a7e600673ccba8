"""Mail transport.

:class:`SmtpMailer` sends one message per call with the report attached.
Transport errors are logged and reported as ``False``; the dispatcher
decides what a failed recipient means for the attempt.
"""

from __future__ import annotations

import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from pathlib import Path
from typing import Protocol

from gst_audit.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class Attachment:
    """A file to attach, read from disk at send time."""

    path: Path
    filename: str
    media_type: str = "application/octet-stream"


class Mailer(Protocol):
    """Deliver one HTML message with an optional attachment."""

    def send(self, recipient: str, subject: str, html_body: str, attachment: Attachment | None = None) -> bool: ...


class SmtpMailer:
    """Email via SMTP (STARTTLS + login when configured)."""

    def __init__(
        self,
        smtp_host: str,
        from_address: str,
        *,
        smtp_port: int = 587,
        smtp_user: str | None = None,
        smtp_password: str | None = None,
        use_tls: bool = True,
        timeout: float = 30.0,
    ):
        self._smtp_host = smtp_host
        self._smtp_port = smtp_port
        self._smtp_user = smtp_user
        self._smtp_password = smtp_password
        self._from_address = from_address
        self._use_tls = use_tls
        self._timeout = timeout

    def _build_message(
        self, recipient: str, subject: str, html_body: str, attachment: Attachment | None
    ) -> EmailMessage:
        msg = EmailMessage()
        msg["Subject"] = subject
        msg["From"] = self._from_address
        msg["To"] = recipient
        msg.set_content("This message contains an HTML report summary. The report is attached.")
        msg.add_alternative(html_body, subtype="html")
        if attachment is not None:
            maintype, _, subtype = attachment.media_type.partition("/")
            msg.add_attachment(
                attachment.path.read_bytes(),
                maintype=maintype,
                subtype=subtype or "octet-stream",
                filename=attachment.filename,
            )
        return msg

    def send(self, recipient: str, subject: str, html_body: str, attachment: Attachment | None = None) -> bool:
        """Send one message. Returns ``False`` on transport failure."""
        try:
            message = self._build_message(recipient, subject, html_body, attachment)
            with smtplib.SMTP(self._smtp_host, self._smtp_port, timeout=self._timeout) as server:
                if self._use_tls:
                    server.starttls()
                if self._smtp_user and self._smtp_password:
                    server.login(self._smtp_user, self._smtp_password)
                server.send_message(message)
            return True
        except (smtplib.SMTPException, OSError) as e:
            logger.warning("mail.send_failed", recipient=recipient, error=str(e))
            return False


__all__ = ["Attachment", "Mailer", "SmtpMailer"]
