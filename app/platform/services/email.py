import smtplib
import ssl
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from email.utils import formataddr
from typing import Optional

import requests

from app.platform.config import settings
from app.platform.logger import get_logger

logger = get_logger("email_service")


class EmailDeliveryError(Exception):
    """Raised when every configured transport failed to deliver a message."""


def _relay_configured() -> bool:
    return bool(settings.EMAIL_RELAY_URL and settings.EMAIL_RELAY_API_KEY)


def _smtp_configured() -> bool:
    return bool(settings.MAIL_HOST and settings.MAIL_USERNAME)


def _from_header() -> str:
    return formataddr((settings.MAIL_FROM_NAME, settings.MAIL_FROM_ADDRESS))


def send_email(to_email: str, subject: str, html: str, text: Optional[str] = None) -> dict:
    """
    Send an email via the HTTP relay service.
    Falls back to direct SMTP if the relay fails or is not configured, and
    skips sending altogether when no transport is configured.
    """
    to_email = (to_email or "").strip()
    subject = (subject or "").strip()
    if not to_email:
        raise ValueError("Missing 'to' address")
    if not subject:
        raise ValueError("Missing email subject")

    if not _relay_configured() and not _smtp_configured():
        logger.warning(f"No email transport configured, skipping send to {to_email}")
        return {"skipped": True}

    logger.info(f"Sending email to {to_email}: {subject}")

    if _relay_configured():
        try:
            return send_email_via_relay(to_email, subject, html, text)
        except EmailDeliveryError as e:
            if not _smtp_configured():
                raise
            logger.error(f"Email relay failed: {str(e)}")
            logger.info("Attempting direct SMTP as fallback...")

    return send_email_direct_smtp(to_email, subject, html, text)


def send_email_via_relay(to_email: str, subject: str, html: str, text: Optional[str] = None) -> dict:
    """Send email via HTTP relay service"""
    payload = {
        "to_email": to_email,
        "subject": subject,
        "body": html,
        "text": text,
        "from_address": _from_header(),
    }

    headers = {
        "X-API-Key": settings.EMAIL_RELAY_API_KEY,
        "Content-Type": "application/json",
    }

    try:
        response = requests.post(
            settings.EMAIL_RELAY_URL,
            json=payload,
            headers=headers,
            timeout=settings.EMAIL_RELAY_TIMEOUT,
        )
        response.raise_for_status()
    except requests.exceptions.Timeout as e:
        logger.error(f"Email relay timeout for {to_email}")
        raise EmailDeliveryError("Email relay service timeout") from e
    except requests.exceptions.RequestException as e:
        logger.error(f"Email relay request failed: {str(e)}")
        if getattr(e, "response", None) is not None:
            logger.error(f"Response status: {e.response.status_code}")
            logger.error(f"Response body: {e.response.text}")
        raise EmailDeliveryError(f"Email relay service error: {str(e)}") from e

    try:
        result = response.json()
    except ValueError:
        result = {}

    logger.info(f"Email sent via relay to {to_email}: {result.get('message')}")
    return {"transport": "relay", "id": result.get("id"), "message": result.get("message")}


def send_email_direct_smtp(to_email: str, subject: str, html: str, text: Optional[str] = None) -> dict:
    """Send email via SMTP"""
    msg = MIMEMultipart("alternative")
    msg["Subject"] = subject
    msg["From"] = _from_header()
    msg["To"] = to_email

    # Plain part first so clients prefer the HTML alternative
    if text:
        msg.attach(MIMEText(text, "plain", "utf-8"))
    msg.attach(MIMEText(html, "html", "utf-8"))

    port = settings.MAIL_PORT

    try:
        if port == 465:
            context = ssl.create_default_context()
            with smtplib.SMTP_SSL(settings.MAIL_HOST, port, context=context) as server:
                server.login(settings.MAIL_USERNAME, settings.MAIL_PASSWORD)
                server.sendmail(settings.MAIL_FROM_ADDRESS, to_email, msg.as_string())
        else:
            with smtplib.SMTP(settings.MAIL_HOST, port) as server:
                server.ehlo()

                if str(settings.MAIL_ENCRYPTION).upper() in ["TLS", "TRUE"]:
                    server.starttls()
                    server.ehlo()

                server.login(settings.MAIL_USERNAME, settings.MAIL_PASSWORD)
                server.sendmail(settings.MAIL_FROM_ADDRESS, to_email, msg.as_string())
    except (smtplib.SMTPException, OSError) as e:
        logger.error(f"SMTP delivery to {to_email} failed: {str(e)}")
        raise EmailDeliveryError(f"SMTP error: {str(e)}") from e

    logger.info(f"Email sent via SMTP to {to_email}")
    return {"transport": "smtp"}
