import aiosmtplib
from email.message import EmailMessage
from typing import List, Optional

from src.common.config import settings
from src.common.utils.logger import get_logger

logger = get_logger(__name__)


async def send_email(subject: str, body: str, recipients: List[str], html_body: Optional[str] = None) -> None:
    """
    Sends an email asynchronously using aiosmtplib.

    Args:
        subject (str): The subject of the email.
        body (str): The plain text content of the email.
        recipients (List[str]): List of recipient email addresses.
    """
    message = EmailMessage()
    message["From"] = settings.EMAIL_SENDER
    message["To"] = ", ".join(recipients)
    message["Subject"] = subject
    message.set_content(body)

    # If HTML content is provided, add it as an alternative.
    if html_body:
        message.add_alternative(html_body, subtype="html")

    await aiosmtplib.send(
        message,
        hostname=settings.SMTP_HOST,
        port=settings.SMTP_PORT,
        username=settings.SMTP_USER or None,
        password=settings.SMTP_PASSWORD or None,
        start_tls=True,
    )


async def send_account_invitation_email(recipient_email: str, name: str, role: str) -> None:
    """
    Tell a pre-provisioned user to finish sign-up with the same email address.

    Runs as a background task, so delivery failures are logged rather than raised.
    """
    if not settings.SMTP_HOST:
        logger.info("invitation_email_skipped", reason="SMTP_HOST not set", role=role)
        return

    sign_up_link = f"{settings.FRONTEND_URL}/auth/sign-up"

    email_content = f"""
Dear {name},

An account with the {role} role has been created for you.

Complete your registration here using this email address ({recipient_email}):
{sign_up_link}

Your role and records will be linked to your account automatically.
"""

    html_content = f"""
<p>Dear <strong>{name}</strong>,</p>
<p>An account with the <strong>{role}</strong> role has been created for you.</p>
<p><a href="{sign_up_link}">Complete your registration</a> using this email address ({recipient_email}).</p>
<p>Your role and records will be linked to your account automatically.</p>
"""

    try:
        await send_email("Your account is ready", email_content, [recipient_email], html_body=html_content)
    except (aiosmtplib.SMTPException, OSError):
        logger.exception("invitation_email_failed", role=role)
