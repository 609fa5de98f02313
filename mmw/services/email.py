"""
MMW — Email Service
====================
SMTP delivery of plain-text and HTML messages.

The blocking ``smtplib`` exchange runs in a worker thread so callers on the
event loop (request handlers, scheduled jobs) are never blocked.  Every
failure surfaces as ``EmailDeliveryError``; callers decide whether one failed
recipient stops a batch.

Usage:
    service = EmailService.from_settings(get_settings())
    await service.send_html_email("qa@example.com", "Daily report", html)
"""

from __future__ import annotations

import asyncio
import smtplib
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formatdate, make_msgid

from mmw.core.config import Settings
from mmw.core.exceptions import EmailDeliveryError
from mmw.core.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class SmtpConfig:
    host: str = "localhost"
    port: int = 587
    username: str | None = None
    password: str | None = None
    starttls: bool = True
    timeout_seconds: float = 30.0
    sender: str = "noreply@mmw.local"

    @classmethod
    def from_settings(cls, settings: Settings) -> "SmtpConfig":
        return cls(
            host=settings.smtp_host,
            port=settings.smtp_port,
            username=settings.smtp_username,
            password=(
                settings.smtp_password.get_secret_value()
                if settings.smtp_password else None
            ),
            starttls=settings.smtp_starttls,
            timeout_seconds=settings.smtp_timeout_seconds,
            sender=settings.mail_from,
        )


class EmailService:
    """Sends one message per call; no queueing, no retries."""

    def __init__(self, config: SmtpConfig, *, enabled: bool = True) -> None:
        self._config = config
        self._enabled = enabled

    @classmethod
    def from_settings(cls, settings: Settings) -> "EmailService":
        return cls(
            SmtpConfig.from_settings(settings),
            enabled=settings.notification_email_enabled,
        )

    @property
    def enabled(self) -> bool:
        return self._enabled

    async def send_simple_email(self, to: str, subject: str, content: str) -> bool:
        return await self._send(to, subject, content, subtype="plain")

    async def send_html_email(self, to: str, subject: str, html: str) -> bool:
        return await self._send(to, subject, html, subtype="html")

    # ── Internals ───────────────────────────────────────────────────────

    async def _send(self, to: str, subject: str, body: str, *, subtype: str) -> bool:
        """``True`` once handed to the SMTP server, ``False`` when email is disabled."""
        if not to or not to.strip():
            raise EmailDeliveryError("Recipient address is empty")
        if not self._enabled:
            logger.info("email.skipped", to=to, subject=subject, reason="disabled")
            return False

        message = self._build_message(to.strip(), subject, body, subtype)
        try:
            await asyncio.to_thread(self._deliver, message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.warning("email.failed", to=to, subject=subject, error=str(exc))
            raise EmailDeliveryError(
                f"Failed to send email to {to}: {exc}", resource_id=to
            ) from exc
        logger.info("email.sent", to=to, subject=subject, subtype=subtype)
        return True

    def _build_message(
        self, to: str, subject: str, body: str, subtype: str
    ) -> MIMEMultipart:
        message = MIMEMultipart("alternative")
        message["Subject"] = subject
        message["From"] = self._config.sender
        message["To"] = to
        message["Date"] = formatdate(localtime=True)
        message["Message-ID"] = make_msgid()
        message.attach(MIMEText(body, subtype, "utf-8"))
        return message

    def _deliver(self, message: MIMEMultipart) -> None:
        cfg = self._config
        with smtplib.SMTP(cfg.host, cfg.port, timeout=cfg.timeout_seconds) as server:
            if cfg.starttls:
                server.starttls()
            if cfg.username:
                server.login(cfg.username, cfg.password or "")
            server.send_message(message)
