from dataclasses import dataclass
from pathlib import Path
from typing import Optional
from urllib.parse import quote

from jinja2 import Environment, FileSystemLoader, select_autoescape

from app.features.waitlist.models.waitlist import WaitlistRole
from app.platform.config import settings
from app.platform.logger import get_logger
from app.platform.services.email import send_email

logger = get_logger(__name__)

template_dir = Path(__file__).resolve().parent.parent / "template"

env = Environment(
    loader=FileSystemLoader(str(template_dir)),
    autoescape=select_autoescape(enabled_extensions=("html",), default_for_string=False),
    keep_trailing_newline=True,
)

VENDOR_SUBJECT = "You’re officially on the PeerPlates Vendor Waitlist 🎉"
CONSUMER_SUBJECT = "You’re on the PeerPlates waitlist 🎉"


@dataclass
class RenderedEmail:
    subject: str
    text: str
    html: str


def referral_link(referral_code: Optional[str]) -> Optional[str]:
    if not referral_code:
        return None
    return f"{settings.SITE_URL.rstrip('/')}/join?ref={quote(referral_code)}"


def queue_link(queue_code: Optional[str]) -> Optional[str]:
    if not queue_code:
        return None
    return f"{settings.SITE_URL.rstrip('/')}/queue?code={quote(queue_code)}"


def vendor_waitlist_email(full_name: Optional[str], queue_url: Optional[str] = None) -> RenderedEmail:
    context = {"name": (full_name or "").strip() or "there", "queue_link": queue_url}
    return RenderedEmail(
        subject=VENDOR_SUBJECT,
        text=env.get_template("vendor_waitlist.txt").render(context),
        html=env.get_template("vendor_waitlist.html").render(context),
    )


def consumer_waitlist_email(full_name: Optional[str], referral_url: Optional[str] = None) -> RenderedEmail:
    parts = (full_name or "").strip().split()
    context = {"first_name": parts[0] if parts else "there", "referral_link": referral_url}
    return RenderedEmail(
        subject=CONSUMER_SUBJECT,
        text=env.get_template("consumer_waitlist.txt").render(context),
        html=env.get_template("consumer_waitlist.html").render(context),
    )


def send_waitlist_email(
    role: WaitlistRole,
    to_email: str,
    full_name: str,
    referral_code: Optional[str] = None,
    queue_code: Optional[str] = None,
):
    """Background task: a failed welcome email is logged, never surfaced to the signup."""
    if role == WaitlistRole.VENDOR:
        email = vendor_waitlist_email(full_name, queue_link(queue_code))
    else:
        email = consumer_waitlist_email(full_name, referral_link(referral_code))

    try:
        result = send_email(to_email, email.subject, email.html, email.text)
        logger.info(f"{role.value} waitlist email to {to_email}: {result}")
    except Exception as e:
        logger.error(f"Failed to send {role.value} waitlist email to {to_email}: {e}")


def send_test_email(to_email: str) -> dict:
    html = env.get_template("test_email.html").render()
    return send_email(
        to_email,
        "PeerPlates test email",
        html,
        "If you got this, PeerPlates email delivery is working.",
    )
