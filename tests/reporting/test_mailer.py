"""Tests for the SMTP mailer."""

from __future__ import annotations

import smtplib
from unittest.mock import MagicMock, patch

import pytest

from gst_audit.reporting.mailer import Attachment, SmtpMailer


@pytest.fixture
def attachment(tmp_path) -> Attachment:
    path = tmp_path / "report.xlsx"
    path.write_bytes(b"PK\x03\x04report")
    return Attachment(path=path, filename="gst-audit-export-2024-02.xlsx", media_type="application/zip")


@pytest.fixture
def smtp():
    with patch("gst_audit.reporting.mailer.smtplib.SMTP") as smtp_cls:
        server = MagicMock()
        smtp_cls.return_value.__enter__.return_value = server
        yield smtp_cls, server


class TestSmtpMailer:
    def test_sends_with_tls_and_login(self, smtp, attachment):
        smtp_cls, server = smtp
        mailer = SmtpMailer("mail.local", "reports@example.com", smtp_port=2525, smtp_user="u", smtp_password="p")

        assert mailer.send("audit@example.com", "Subject", "<p>hi</p>", attachment) is True

        smtp_cls.assert_called_once_with("mail.local", 2525, timeout=30.0)
        server.starttls.assert_called_once()
        server.login.assert_called_once_with("u", "p")
        message = server.send_message.call_args.args[0]
        assert message["To"] == "audit@example.com"
        assert message["From"] == "reports@example.com"
        [part] = list(message.iter_attachments())
        assert part.get_filename() == "gst-audit-export-2024-02.xlsx"
        assert part.get_content() == b"PK\x03\x04report"

    def test_no_tls_no_login(self, smtp):
        _, server = smtp
        mailer = SmtpMailer("mail.local", "reports@example.com", use_tls=False)
        assert mailer.send("audit@example.com", "Subject", "<p>hi</p>") is True
        server.starttls.assert_not_called()
        server.login.assert_not_called()

    def test_transport_error_returns_false(self, smtp):
        _, server = smtp
        server.send_message.side_effect = smtplib.SMTPRecipientsRefused({"audit@example.com": (550, b"no")})
        mailer = SmtpMailer("mail.local", "reports@example.com")
        assert mailer.send("audit@example.com", "Subject", "<p>hi</p>") is False

    def test_connection_refused_returns_false(self, smtp):
        smtp_cls, _ = smtp
        smtp_cls.side_effect = ConnectionRefusedError("refused")
        mailer = SmtpMailer("mail.local", "reports@example.com")
        assert mailer.send("audit@example.com", "Subject", "<p>hi</p>") is False
