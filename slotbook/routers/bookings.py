# slotbook/routers/bookings.py
# Host-side booking management. Creation happens only via /public/{slug}/book.

from datetime import datetime, time, timedelta, timezone

from fastapi import APIRouter, Depends
from sqlalchemy import or_
from sqlalchemy.orm import Session, selectinload

from ..config import settings
from ..database import get_db
from ..deps import get_host_id, get_ledger
from ..models import BookingAnswers, Bookings, Hosts
from ..schemas.bookings import (
    BookingCancel,
    BookingRead,
    BookingReschedule,
    BookingStats,
)
from ..services.errors import NotFound, ValidationError
from ..services.ledger import BookingLedger
from ..services.repository import CANCELLED, CONFIRMED, RESCHEDULED
from ..services.scheduling.config import get_zone

router = APIRouter(prefix="/bookings", tags=["bookings"])

STATUSES = (CONFIRMED, CANCELLED, RESCHEDULED)


@router.get("/", response_model=list[BookingRead])
def list_bookings(
    status: str | None = None,
    upcoming: bool = False,
    past: bool = False,
    db: Session = Depends(get_db),
    host_id: int = Depends(get_host_id),
):
    if status is not None and status not in STATUSES:
        raise ValidationError(f"status must be one of {', '.join(STATUSES)}")

    now = datetime.now(timezone.utc)
    q = (
        db.query(Bookings)
        .options(
            selectinload(Bookings.event_type),
            selectinload(Bookings.answers).selectinload(BookingAnswers.question),
        )
        .filter(Bookings.host_id == host_id)
    )

    if upcoming:
        q = q.filter(Bookings.start_time >= now, Bookings.status == CONFIRMED)
    elif past:
        q = q.filter(
            or_(
                Bookings.start_time < now,
                Bookings.status.in_((CANCELLED, RESCHEDULED)),
            )
        )
        if status:
            q = q.filter(Bookings.status == status)
    elif status:
        q = q.filter(Bookings.status == status)

    order = Bookings.start_time.asc() if upcoming else Bookings.start_time.desc()
    return q.order_by(order).all()


@router.get("/stats", response_model=BookingStats)
def booking_stats(
    db: Session = Depends(get_db),
    host_id: int = Depends(get_host_id),
):
    now = datetime.now(timezone.utc)
    host = db.get(Hosts, host_id)
    tz = get_zone(host.timezone if host else settings.default_timezone)
    today = now.astimezone(tz).date()
    day_start = datetime.combine(today, time.min, tzinfo=tz).astimezone(timezone.utc)
    day_end = datetime.combine(today + timedelta(days=1), time.min, tzinfo=tz).astimezone(timezone.utc)

    base = db.query(Bookings).filter(Bookings.host_id == host_id)
    confirmed = base.filter(Bookings.status == CONFIRMED)

    return BookingStats(
        upcoming=confirmed.filter(Bookings.start_time > now).count(),
        today=confirmed.filter(
            Bookings.start_time >= day_start,
            Bookings.start_time < day_end,
        ).count(),
        total=base.count(),
        cancelled=base.filter(Bookings.status == CANCELLED).count(),
    )


@router.get("/{id}", response_model=BookingRead)
def get_booking(
    id: int,
    db: Session = Depends(get_db),
    host_id: int = Depends(get_host_id),
):
    obj = db.get(Bookings, id)
    if not obj or obj.host_id != host_id:
        raise NotFound("Booking not found")
    return obj


@router.post("/{id}/cancel", response_model=BookingRead)
def cancel_booking(
    id: int,
    data: BookingCancel | None = None,
    db: Session = Depends(get_db),
    host_id: int = Depends(get_host_id),
    ledger: BookingLedger = Depends(get_ledger),
):
    get_booking(id, db, host_id)
    return ledger.cancel(id, reason=data.reason if data else None)


@router.post("/{id}/reschedule", response_model=BookingRead)
def reschedule_booking(
    id: int,
    data: BookingReschedule,
    db: Session = Depends(get_db),
    host_id: int = Depends(get_host_id),
    ledger: BookingLedger = Depends(get_ledger),
):
    get_booking(id, db, host_id)
    return ledger.reschedule(id, data.new_start_time, timezone_name=data.timezone)
