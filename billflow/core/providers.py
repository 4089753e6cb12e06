from abc import ABC, abstractmethod
from dataclasses import dataclass
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Any, Dict, Optional
import logging
import smtplib
import ssl

import httpx
from pydantic import ValidationError
from starlette.concurrency import run_in_threadpool

from billflow.core.config import settings
from billflow.core.errors import DispatchError, EmailConfigError
from billflow.schemas.email import EmailProviderConfig

logger = logging.getLogger(__name__)

DEFAULT_SMTP_PORT = 587
IMPLICIT_TLS_PORT = 465

@dataclass
class OutgoingEmail:
    to: str
    subject: str
    html: str
    text: str

class EmailProvider(ABC):
    name: str = "base"

    @abstractmethod
    async def send(self, config: EmailProviderConfig, message: OutgoingEmail):
        pass

class HttpEmailProvider(EmailProvider):
    """Provider backed by an HTTP API. Non-2xx answers raise DispatchError with the body text."""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.transport = transport

    async def _post(self, url: str, **kwargs: Any) -> httpx.Response:
        async with httpx.AsyncClient(timeout=settings.EMAIL_HTTP_TIMEOUT, transport=self.transport) as client:
            try:
                response = await client.post(url, **kwargs)
            except httpx.HTTPError as e:
                raise DispatchError(f"{self.name} request failed: {e}") from e

        if not response.is_success:
            raise DispatchError(f"HTTP {response.status_code}: {response.text}")
        return response

class MailgunProvider(HttpEmailProvider):
    name = "mailgun"

    async def send(self, config: EmailProviderConfig, message: OutgoingEmail):
        host = "api.eu.mailgun.net" if config.mailgun_region == "eu" else "api.mailgun.net"
        # Form-encoded body, basic auth with the literal user "api"
        await self._post(
            f"https://{host}/v3/{config.mailgun_domain}/messages",
            auth=("api", config.mailgun_api_key or ""),
            data={
                "from": f"{config.sender_name} <{config.from_email}>",
                "to": message.to,
                "subject": message.subject,
                "html": message.html,
                "text": message.text,
            },
        )

class SendGridProvider(HttpEmailProvider):
    name = "sendgrid"
    url = "https://api.sendgrid.com/v3/mail/send"

    async def send(self, config: EmailProviderConfig, message: OutgoingEmail):
        await self._post(
            self.url,
            headers={"Authorization": f"Bearer {config.sendgrid_api_key}"},
            json={
                "personalizations": [{"to": [{"email": message.to}]}],
                "from": {"email": config.from_email, "name": config.sender_name},
                "subject": message.subject,
                "content": [
                    {"type": "text/plain", "value": message.text},
                    {"type": "text/html", "value": message.html},
                ],
            },
        )

class ResendProvider(HttpEmailProvider):
    name = "resend"
    url = "https://api.resend.com/emails"

    async def send(self, config: EmailProviderConfig, message: OutgoingEmail):
        await self._post(
            self.url,
            headers={"Authorization": f"Bearer {config.resend_api_key}"},
            json={
                "from": f"{config.sender_name} <{config.from_email}>",
                "to": [message.to],
                "subject": message.subject,
                "html": message.html,
                "text": message.text,
            },
        )

def smtp_port(config: EmailProviderConfig) -> int:
    try:
        port = int(str(config.smtp_port).strip())
    except (TypeError, ValueError):
        return DEFAULT_SMTP_PORT
    return port or DEFAULT_SMTP_PORT

def smtp_uses_implicit_tls(config: EmailProviderConfig, port: int) -> bool:
    return config.smtp_secure is True or str(config.smtp_secure).lower() == "true" or port == IMPLICIT_TLS_PORT

def relaxed_tls_context() -> ssl.SSLContext:
    # Self-hosted relays commonly present self-signed certificates
    context = ssl.create_default_context()
    context.check_hostname = False
    context.verify_mode = ssl.CERT_NONE
    return context

class SmtpProvider(EmailProvider):
    name = "smtp"

    async def send(self, config: EmailProviderConfig, message: OutgoingEmail):
        await run_in_threadpool(self._deliver, config, message)

    def _deliver(self, config: EmailProviderConfig, message: OutgoingEmail):
        if not config.smtp_host:
            raise EmailConfigError("No SMTP host configured")

        port = smtp_port(config)
        secure = smtp_uses_implicit_tls(config, port)
        context = relaxed_tls_context()

        msg = MIMEMultipart("alternative")
        msg["Subject"] = message.subject
        msg["From"] = formataddr((config.sender_name, config.from_email))
        msg["To"] = message.to
        msg.attach(MIMEText(message.text, "plain", "utf-8"))
        msg.attach(MIMEText(message.html, "html", "utf-8"))

        try:
            if secure:
                server = smtplib.SMTP_SSL(config.smtp_host, port, context=context, timeout=settings.SMTP_TIMEOUT)
            else:
                server = smtplib.SMTP(config.smtp_host, port, timeout=settings.SMTP_TIMEOUT)

            with server:
                if not secure:
                    server.ehlo()
                    if server.has_extn("starttls"):
                        server.starttls(context=context)
                        server.ehlo()
                if config.smtp_user:
                    server.login(config.smtp_user, config.smtp_pass or "")
                server.sendmail(config.from_email, [message.to], msg.as_string())
        except (smtplib.SMTPException, OSError) as e:
            raise DispatchError(f"SMTP send failed: {e}") from e

# Global registry, keyed by the stored "provider" discriminator
PROVIDERS: Dict[str, EmailProvider] = {
    MailgunProvider.name: MailgunProvider(),
    SendGridProvider.name: SendGridProvider(),
    ResendProvider.name: ResendProvider(),
    SmtpProvider.name: SmtpProvider(),
}

def get_provider(name: str) -> EmailProvider:
    provider = PROVIDERS.get(name)
    if provider is None:
        raise EmailConfigError(f"Unknown provider: {name}")
    return provider

async def send_email(config: Optional[Dict[str, Any]], to: Optional[str], subject: str, html: str, text: str):
    """
    Validate the stored configuration and hand the message to the selected provider.
    Every validation failure is raised before any network activity.
    """
    if not config or not config.get("provider"):
        raise EmailConfigError("No email provider configured")
    try:
        cfg = EmailProviderConfig.model_validate(config)
    except ValidationError as e:
        raise EmailConfigError(f"Invalid email config: {e.error_count()} invalid field(s)") from e
    if not cfg.from_email:
        raise EmailConfigError("No sender email configured")
    if not to:
        raise EmailConfigError("No recipient email address")

    provider = get_provider(cfg.provider)
    message = OutgoingEmail(to=to, subject=subject, html=html, text=text)
    try:
        await provider.send(cfg, message)
    except DispatchError as e:
        logger.error(f"Email send via {provider.name} failed: {e}")
        raise
    logger.info(f"Email sent via {provider.name} to {to}")
