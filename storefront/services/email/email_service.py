"""
Transactional email: account verification and password reset.

Bodies are Jinja2 templates under ``templates/email`` (an HTML and a
plain-text part each). Delivery goes through one of three transports:

- console: write the plain-text part to the log (development)
- smtp: aiosmtplib, implicit TLS on 465 and STARTTLS elsewhere
- resend: Resend HTTP API over httpx

Senders never raise on delivery problems; they return
``{"success": False, "error": ...}`` and the caller decides.
"""

import logging
from dataclasses import dataclass
from email.message import EmailMessage
from pathlib import Path
from typing import Optional

import aiosmtplib
import httpx
from jinja2 import Environment, FileSystemLoader, select_autoescape

from config.email_config import EMAIL_DEFAULTS, EMAIL_SEND_TIMEOUT, RESEND_API_URL

logger = logging.getLogger(__name__)

EMAIL_TEMPLATES_DIR = Path(__file__).resolve().parents[2] / "templates" / "email"

email_env = Environment(
    loader=FileSystemLoader(EMAIL_TEMPLATES_DIR),
    autoescape=select_autoescape(enabled_extensions=("html",), default_for_string=False),
)


@dataclass
class OutgoingEmail:
    to: str
    subject: str
    html: str
    text: str


class EmailService:
    """Renders account emails and hands them to the configured transport."""

    def __init__(
        self,
        mode: str = EMAIL_DEFAULTS["mode"],
        resend_api_key: Optional[str] = None,
        from_email: str = "noreply@example.com",
        from_name: str = EMAIL_DEFAULTS["from_name"],
        team_name: str = EMAIL_DEFAULTS["team_name"],
        smtp_host: Optional[str] = None,
        smtp_port: int = 465,
        smtp_user: Optional[str] = None,
        smtp_password: Optional[str] = None,
        verification_expire_hours: int = 1,
        reset_expire_hours: int = 1,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Args:
            mode: "console", "smtp" or "resend"; a provider mode without its
                credentials degrades to console
            verification_expire_hours: Link lifetime quoted in the verification email
            reset_expire_hours: Link lifetime quoted in the reset email
            transport: httpx transport override for the Resend client
        """
        self._sender = f"{from_name} <{from_email}>"
        self._team_name = team_name
        self._resend_api_key = resend_api_key
        self._smtp = {
            "hostname": smtp_host,
            "port": smtp_port,
            "username": smtp_user,
            "password": smtp_password,
        }
        self._verification_expire_hours = verification_expire_hours
        self._reset_expire_hours = reset_expire_hours
        self._transport = transport

        if mode == "resend" and not resend_api_key:
            logger.warning("EMAIL_MODE=resend without RESEND_API_KEY; emails go to the log")
            mode = "console"
        elif mode == "smtp" and not smtp_host:
            logger.warning("EMAIL_MODE=smtp without SMTP_HOST; emails go to the log")
            mode = "console"
        self._mode = mode

    @property
    def mode(self) -> str:
        return self._mode

    async def send_verification_email(
        self,
        to_email: str,
        verification_link: str,
        user_name: Optional[str] = None,
    ) -> dict:
        """
        Send the link that activates a new account.

        Returns:
            Transport result, ``success`` is False when delivery failed
        """
        message = self._compose(
            "verify",
            to=to_email,
            subject="Verify your HelloStore account",
            link=verification_link,
            user_name=user_name,
            expires_hours=self._verification_expire_hours,
        )
        return await self._deliver(message)

    async def send_password_reset_email(
        self,
        to_email: str,
        reset_link: str,
        user_name: Optional[str] = None,
    ) -> dict:
        message = self._compose(
            "reset",
            to=to_email,
            subject="Reset your HelloStore password",
            link=reset_link,
            user_name=user_name,
            expires_hours=self._reset_expire_hours,
        )
        return await self._deliver(message)

    def _compose(self, template: str, to: str, subject: str, **context) -> OutgoingEmail:
        context["team_name"] = self._team_name
        return OutgoingEmail(
            to=to,
            subject=subject,
            html=email_env.get_template(f"{template}.html").render(**context),
            text=email_env.get_template(f"{template}.txt").render(**context),
        )

    async def _deliver(self, message: OutgoingEmail) -> dict:
        if self._mode == "smtp":
            return await self._deliver_smtp(message)
        if self._mode == "resend":
            return await self._deliver_resend(message)
        if self._mode != "console":
            logger.error(f"Unknown EMAIL_MODE {self._mode!r}; email to {message.to} not sent")
            return {"success": False, "error": f"Unknown email mode: {self._mode}"}
        return self._deliver_console(message)

    # ─────────────────────────────────────────────────────────────
    # Transports
    # ─────────────────────────────────────────────────────────────

    def _deliver_console(self, message: OutgoingEmail) -> dict:
        logger.info(f"[console email] to={message.to} subject={message.subject!r}\n{message.text}")
        return {"success": True, "mode": "console"}

    async def _deliver_smtp(self, message: OutgoingEmail) -> dict:
        mime = EmailMessage()
        mime["From"] = self._sender
        mime["To"] = message.to
        mime["Subject"] = message.subject
        mime.set_content(message.text)
        mime.add_alternative(message.html, subtype="html")

        implicit_tls = self._smtp["port"] == 465
        try:
            await aiosmtplib.send(
                mime,
                **self._smtp,
                use_tls=implicit_tls,
                start_tls=not implicit_tls,
                timeout=EMAIL_SEND_TIMEOUT,
            )
        except (aiosmtplib.SMTPException, OSError) as e:
            logger.error(f"SMTP delivery to {message.to} failed: {e}")
            return {"success": False, "error": str(e)}

        logger.info(f"Email {message.subject!r} sent to {message.to} via SMTP")
        return {"success": True, "mode": "smtp"}

    async def _deliver_resend(self, message: OutgoingEmail) -> dict:
        payload = {
            "from": self._sender,
            "to": [message.to],
            "subject": message.subject,
            "html": message.html,
            "text": message.text,
        }
        try:
            async with httpx.AsyncClient(timeout=EMAIL_SEND_TIMEOUT, transport=self._transport) as client:
                response = await client.post(
                    RESEND_API_URL,
                    headers={"Authorization": f"Bearer {self._resend_api_key}"},
                    json=payload,
                )
            body = response.json()
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Resend request for {message.to} failed: {e}")
            return {"success": False, "error": str(e)}

        if response.status_code != 200:
            error = body.get("message", "Unknown error")
            logger.error(f"Resend rejected email to {message.to}: {error}")
            return {"success": False, "error": error}

        logger.info(f"Email {message.subject!r} sent to {message.to} via Resend")
        return {"success": True, "mode": "resend", "messageId": body.get("id")}
