"""SMTP delivery of backup reports with the artifact attached."""

import logging
import smtplib
from datetime import datetime
from email.message import EmailMessage
from pathlib import Path
from typing import Callable, Sequence

from db_snapshot.dump.models import DumpReport
from db_snapshot.errors import NotificationError
from db_snapshot.notifications.html import render_report_html, report_fields

logger = logging.getLogger(__name__)

_SMTPFactory = Callable[[str, int, float | None], smtplib.SMTP]


def _default_factory(host: str, port: int, timeout: float | None) -> smtplib.SMTP:
    return smtplib.SMTP(host=host, port=port, timeout=timeout)


def report_subject(sent_at: datetime) -> str:
    """Subject line, e.g. ``Database Backup Completed - March 5, 2025``."""
    return f"Database Backup Completed - {sent_at:%B} {sent_at.day}, {sent_at:%Y}"


class SmtpNotifier:
    """Mail the report as HTML with the artifact attached.

    Args:
        host: SMTP server host.
        sender: From address.
        recipients: To addresses (at least one).
        sender_name: Display name for the From header.
        port: SMTP port.
        username: Login user (requires ``password``).
        password: Login password (requires ``username``).
        use_starttls: Upgrade the connection with STARTTLS.
        timeout: Socket timeout in seconds.
        attach_artifact: Attach the dump file to the mail.
        smtp_factory: Builds the ``smtplib.SMTP`` client (tests inject fakes).
        clock: Returns the send time used in subject and body.
    """

    def __init__(
        self,
        host: str,
        *,
        sender: str,
        recipients: Sequence[str],
        sender_name: str = "Database Backup System",
        port: int = 587,
        username: str | None = None,
        password: str | None = None,
        use_starttls: bool = True,
        timeout: float | None = 30.0,
        attach_artifact: bool = True,
        smtp_factory: _SMTPFactory | None = None,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        if not host.strip():
            raise NotificationError("SMTP host must not be empty")
        if not sender.strip():
            raise NotificationError("SMTP sender must not be empty")
        cleaned = [addr.strip() for addr in recipients if addr and addr.strip()]
        if not cleaned:
            raise NotificationError("At least one SMTP recipient is required")
        if (username is None) ^ (password is None):
            raise NotificationError("Username and password must be provided together")
        self._host = host
        self._port = port
        self._sender = sender
        self._sender_name = sender_name
        self._recipients = tuple(cleaned)
        self._username = username
        self._password = password
        self._use_starttls = use_starttls
        self._timeout = timeout
        self._attach_artifact = attach_artifact
        self._factory = smtp_factory or _default_factory
        self._clock = clock

    def build_message(self, report: DumpReport, artifact: Path) -> EmailMessage:
        sent_at = self._clock()
        message = EmailMessage()
        message["Subject"] = report_subject(sent_at)
        message["From"] = f"{self._sender_name} <{self._sender}>"
        message["To"] = ", ".join(self._recipients)

        text_lines = ["Your database backup has been successfully completed.", ""]
        text_lines.extend(f"{label}: {value}" for label, value in report_fields(report, sent_at))
        message.set_content("\n".join(text_lines))
        message.add_alternative(render_report_html(report, sent_at), subtype="html")

        if self._attach_artifact:
            subtype = "gzip" if artifact.name.endswith(".gz") else "sql"
            try:
                data = artifact.read_bytes()
            except OSError as e:
                raise NotificationError(f"Cannot read artifact {artifact}: {e}") from e
            message.add_attachment(
                data,
                maintype="application",
                subtype=subtype,
                filename=report.filename,
            )
        return message

    def notify(self, report: DumpReport, artifact: Path) -> None:
        message = self.build_message(report, artifact)
        try:
            client = self._factory(self._host, self._port, self._timeout)
        except OSError as e:
            raise NotificationError(f"Failed to connect to SMTP server: {e}") from e
        try:
            with client:
                client.ehlo()
                if self._use_starttls:
                    client.starttls()
                    client.ehlo()
                if self._username and self._password:
                    client.login(self._username, self._password)
                client.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            raise NotificationError(f"SMTP delivery failed: {e}") from e
        logger.info(
            "Backup notification email sent",
            extra={"event": "notify.sent", "recipients": list(self._recipients)},
        )
