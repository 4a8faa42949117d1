"""Outbound account emails (verification and password reset)."""

from __future__ import annotations

import asyncio
import html
import logging
import smtplib
from email.message import EmailMessage
from typing import Protocol

from core import AppError, ErrorKind, Settings
from models import User

logger = logging.getLogger(__name__)

EMAIL_DELIVERY_FAILED_MESSAGE = "Unable to send email, try again later!"


class AccountMailer(Protocol):
    async def send_verification_email(self, user: User, token: str) -> None: ...

    async def send_reset_password_email(self, user: User, token: str) -> None: ...


def build_account_link(frontend_url: str, action: str, user_id: str, token: str) -> str:
    return f"{frontend_url.rstrip('/')}/{action}/{user_id}/{token}"


def _render_body(greeting_name: str, intro: str, link: str) -> str:
    link = html.escape(link)
    return (
        f"<h4>Hello {html.escape(greeting_name)}</h4>"
        f"<p>{intro}</p>"
        f'<a href="{link}">{link}</a>'
        "<p>Best Regards</p>"
        "<p><strong>Team Wander</strong></p>"
    )


class Mailer:
    """SMTP-backed mailer; sending runs in a worker thread."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    async def send_verification_email(self, user: User, token: str) -> None:
        link = build_account_link(self._settings.frontend_url, "verify-email", user.id, token)
        await self._send(
            to=user.email,
            subject="Email verification for Wander account",
            html=_render_body(
                user.username,
                "Thanks for signing up with Wander! Please verify your email address by clicking the link below.",
                link,
            ),
        )

    async def send_reset_password_email(self, user: User, token: str) -> None:
        link = build_account_link(self._settings.frontend_url, "reset-password", user.id, token)
        await self._send(
            to=user.email,
            subject="Password Reset for Wander account",
            html=_render_body(
                user.username,
                "You can reset your password by going to the link below.",
                link,
            ),
        )

    async def _send(self, *, to: str, subject: str, html: str) -> None:
        message = EmailMessage()
        message["From"] = self._settings.email_from
        message["To"] = to
        message["Subject"] = subject
        message.set_content("Please open this email in an HTML capable client.")
        message.add_alternative(html, subtype="html")
        try:
            await asyncio.to_thread(self._deliver, message)
        except (smtplib.SMTPException, OSError) as exc:
            logger.error(
                "Email delivery failed",
                extra={"recipient": to, "subject": subject},
                exc_info=exc,
            )
            raise AppError(ErrorKind.SERVER_ERROR, EMAIL_DELIVERY_FAILED_MESSAGE) from exc

    def _deliver(self, message: EmailMessage) -> None:
        settings = self._settings
        with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=10) as client:
            if settings.smtp_use_tls:
                client.starttls()
            if settings.smtp_username and settings.smtp_password:
                client.login(settings.smtp_username, settings.smtp_password)
            client.send_message(message)
