"""
Email delivery through Resend.

Without RESEND_API_KEY delivery is skipped with a warning (local dev).
Any API error is raised as NotificationFailure so the consumer retries.
"""

import asyncio
import logging

import resend

from ..config import settings
from ..services.errors import NotificationFailure

logger = logging.getLogger(__name__)


async def send_email(to_email: str, subject: str, html: str) -> bool:
    """Returns True if the message was handed to Resend."""
    if not settings.resend_api_key:
        logger.warning(f"RESEND_API_KEY not set, skipping email to {to_email}: {subject}")
        return False

    resend.api_key = settings.resend_api_key
    params = {
        "from": settings.mail_from,
        "to": [to_email],
        "subject": subject,
        "html": html,
    }
    try:
        response = await asyncio.to_thread(resend.Emails.send, params)
    except Exception as e:
        logger.error(f"Failed to send email to {to_email}: {e}")
        raise NotificationFailure(f"Email delivery failed: {e}") from e

    logger.info(f"Email sent to {to_email} - Subject: {subject}")
    logger.debug(f"Resend response: {response}")
    return True
