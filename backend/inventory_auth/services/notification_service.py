"""Email notifications for the password reset flows."""

from __future__ import annotations

import logging
import smtplib
from collections.abc import Callable, Iterable
from email.message import EmailMessage
from pathlib import Path
from typing import Any, Protocol

from fastapi import BackgroundTasks
from jinja2 import Environment, FileSystemLoader, select_autoescape

from inventory_auth.core.config import Settings, get_settings

logger = logging.getLogger(__name__)

_TEMPLATE_DIR = Path(__file__).resolve().parents[1] / "templates"
_ENV = Environment(
    loader=FileSystemLoader(_TEMPLATE_DIR),
    autoescape=select_autoescape(["html", "xml"]),
)


class Dispatcher(Protocol):
    """Interface the auth flows rely on to notify users."""

    def send_password_reset(self, *, email: str, name: str, token: str) -> None: ...

    def send_password_changed(self, *, email: str, name: str) -> None: ...


def render_template(name: str, /, **context: Any) -> str:
    return _ENV.get_template(name).render(**context)


def build_password_reset_email(
    *, name: str, reset_link: str, ttl_minutes: int
) -> tuple[str, str, str]:
    """Return subject, plain-text body and HTML body of the reset email."""
    subject = "Password recovery - Inventory System"
    body = (
        f"Hello {name},\n\n"
        "We received a request to reset your password. "
        f"Open the link below within {ttl_minutes} minutes to choose a new one:\n"
        f"{reset_link}\n\n"
        "If you did not request this change, you can ignore this message."
    )
    html = render_template(
        "password_reset_email.html",
        name=name,
        reset_link=reset_link,
        ttl_minutes=ttl_minutes,
    )
    return subject, body, html


def build_password_changed_email(*, name: str) -> tuple[str, str, str]:
    subject = "Security notice: your password was changed"
    body = (
        f"Hello {name},\n\n"
        "The password for your Inventory System account was just changed. "
        "If you did not make this change, contact an administrator immediately."
    )
    html = render_template("password_changed_email.html", name=name)
    return subject, body, html


class NotificationDispatcher:
    """SMTP-backed dispatcher; delivery problems are logged, never raised."""

    def __init__(self, settings: Settings) -> None:
        self._settings = settings

    @property
    def enabled(self) -> bool:
        return bool(self._settings.smtp_host and self._settings.smtp_port)

    def send_password_reset(self, *, email: str, name: str, token: str) -> None:
        subject, body, html = build_password_reset_email(
            name=name,
            reset_link=f"{self._settings.reset_link_base}/{token}",
            ttl_minutes=self._settings.reset_token_ttl_minutes,
        )
        self.send_email([email], subject, body, html)

    def send_password_changed(self, *, email: str, name: str) -> None:
        subject, body, html = build_password_changed_email(name=name)
        self.send_email([email], subject, body, html)

    def send_email(
        self,
        recipients: Iterable[str],
        subject: str,
        body: str,
        html_body: str | None = None,
    ) -> None:
        recipients_list = [addr for addr in recipients if addr]
        if not recipients_list:
            logger.debug("No recipients provided for email; skipping")
            return
        if not self.enabled:
            logger.info("SMTP settings missing; skipping email delivery to %s", recipients_list)
            return

        settings = self._settings
        message = EmailMessage()
        message["Subject"] = subject
        message["To"] = ", ".join(recipients_list)
        message["From"] = settings.smtp_from or settings.smtp_username or "no-reply@inventory.local"
        message.set_content(body)
        if html_body:
            message.add_alternative(html_body, subtype="html")

        try:
            with smtplib.SMTP(settings.smtp_host, settings.smtp_port, timeout=20) as smtp:
                if settings.smtp_username and settings.smtp_password:
                    smtp.starttls()
                    smtp.login(settings.smtp_username, settings.smtp_password)
                smtp.send_message(message)
            logger.info("Email sent to %s", recipients_list)
        except (smtplib.SMTPException, OSError):
            logger.exception("Failed to send email to %s", recipients_list)


_dispatcher: Dispatcher | None = None


def init_dispatcher(settings: Settings | None = None) -> Dispatcher:
    """Create the process-wide dispatcher."""
    global _dispatcher
    _dispatcher = NotificationDispatcher(settings or get_settings())
    return _dispatcher


def shutdown_dispatcher() -> None:
    global _dispatcher
    _dispatcher = None


def get_notification_dispatcher() -> Dispatcher:
    """FastAPI dependency returning the active dispatcher."""
    if _dispatcher is None:
        return init_dispatcher()
    return _dispatcher


def _deliver(send: Callable[..., None], kwargs: dict[str, Any]) -> None:
    try:
        send(**kwargs)
    except Exception:
        logger.exception("Notification %s failed", getattr(send, "__name__", send))


def schedule(
    background_tasks: BackgroundTasks, send: Callable[..., None], **kwargs: Any
) -> None:
    """Queue a fire-and-forget notification after the response is sent."""
    background_tasks.add_task(_deliver, send, kwargs)
