"""
Booking event handlers.

Handles: booking_confirmed, booking_cancelled, booking_rescheduled.
Each one emails the booker; confirmations also go to the host.

Recipients that already got their email are recorded in data["_sent"],
which travels with the event through the retry queue, so a retry only
resends to the ones that failed.
"""

import logging

from . import register_event
from .delivery import send_email
from .formatters import render_email

logger = logging.getLogger(__name__)


def _booking(data: dict) -> dict | None:
    booking = data.get("booking")
    if not booking or not booking.get("booking_id"):
        logger.error(f"{data.get('type')} event without booking payload")
        return None
    return booking


async def _deliver_once(data: dict, recipient: str, to_email: str, subject: str, html: str) -> None:
    sent = data.setdefault("_sent", [])
    if recipient in sent:
        logger.info(f"{data.get('type')}: {recipient} already notified, skipping")
        return
    await send_email(to_email, subject, html)
    sent.append(recipient)


@register_event("booking_confirmed")
async def handle_booking_confirmed(data: dict) -> None:
    """Confirmation to the booker, heads-up to the host."""
    booking = _booking(data)
    if booking is None:
        return

    subject, html = render_email("booking_confirmed", booking=booking)
    await _deliver_once(data, "booker", booking["booker_email"], subject, html)

    host = booking.get("host")
    if host and host.get("email"):
        subject, html = render_email("host_booking_confirmed", booking=booking)
        await _deliver_once(data, "host", host["email"], subject, html)


@register_event("booking_cancelled")
async def handle_booking_cancelled(data: dict) -> None:
    booking = _booking(data)
    if booking is None:
        return

    subject, html = render_email("booking_cancelled", booking=booking)
    await _deliver_once(data, "booker", booking["booker_email"], subject, html)


@register_event("booking_rescheduled")
async def handle_booking_rescheduled(data: dict) -> None:
    booking = _booking(data)
    if booking is None:
        return

    subject, html = render_email(
        "booking_rescheduled",
        booking=booking,
        previous=data.get("previous") or {},
    )
    await _deliver_once(data, "booker", booking["booker_email"], subject, html)
