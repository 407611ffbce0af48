"""
Email rendering for notification events.

Templates live in notifier/templates; times are shown in the booking's
own timezone.
"""

import logging
from datetime import datetime
from pathlib import Path
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from jinja2 import Environment, FileSystemLoader

from ..config import settings

logger = logging.getLogger(__name__)

TEMPLATE_DIR = Path(__file__).parent / "templates"

SUBJECTS = {
    "booking_confirmed": "Booking Confirmed: {title}",
    "host_booking_confirmed": "New booking: {title} with {booker}",
    "booking_cancelled": "Booking Cancelled: {title}",
    "booking_rescheduled": "Booking Rescheduled: {title}",
}


def local_time(iso_str: str, tz_name: str | None = None, fmt: str = "%A, %B %d, %Y at %H:%M") -> str:
    """Format an ISO instant in tz_name: 'Monday, June 02, 2025 at 10:00'."""
    if not iso_str:
        return ""
    try:
        dt = datetime.fromisoformat(iso_str)
    except ValueError:
        return iso_str
    if tz_name:
        try:
            dt = dt.astimezone(ZoneInfo(tz_name))
        except (ZoneInfoNotFoundError, ValueError):
            logger.warning(f"Unknown timezone in event payload: {tz_name}")
    return dt.strftime(fmt)


env = Environment(
    loader=FileSystemLoader(TEMPLATE_DIR),
    autoescape=True,
    trim_blocks=True,
    lstrip_blocks=True,
)
env.filters["local_time"] = local_time


def render_email(template: str, **context) -> tuple[str, str]:
    """Returns (subject, html) for one of the SUBJECTS templates."""
    booking = context.get("booking") or {}
    event_type = booking.get("event_type") or {}

    subject = SUBJECTS[template].format(
        title=event_type.get("title", "Meeting"),
        booker=booking.get("booker_name", ""),
    )
    html = env.get_template(f"{template}.html").render(
        frontend_url=settings.frontend_url,
        **context,
    )
    return subject, html
