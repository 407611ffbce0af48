# slotbook/routers/public.py
# Booker-facing endpoints; only active event types are visible

from datetime import datetime, timedelta, timezone

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from ..database import get_db
from ..deps import get_ledger
from ..schemas.bookings import BookingRead
from ..schemas.public import (
    DatesResponse,
    PublicBookingCreate,
    PublicEventType,
    SlotsResponse,
)
from ..services.errors import ValidationError
from ..services.ledger import AnswerInput, BookerIdentity, BookingLedger
from ..services.repository import get_event_type_row
from ..services.scheduling.config import (
    get_scheduling_config,
    get_zone,
    local_to_utc,
    parse_date,
    time_str_to_minutes,
)
from ..services.scheduling.query import (
    get_available_dates,
    get_available_slots,
    load_event_type_with_schedule,
)

router = APIRouter(prefix="/public", tags=["public"])


@router.get("/{slug}", response_model=PublicEventType)
def get_public_event_type(slug: str, db: Session = Depends(get_db)):
    return get_event_type_row(db, slug=slug, active_only=True)


@router.get("/{slug}/slots", response_model=SlotsResponse)
def list_slots(
    slug: str,
    date: str = Query(..., description="YYYY-MM-DD in the schedule timezone"),
    timezone_name: str | None = Query(None, alias="timezone"),
    db: Session = Depends(get_db),
):
    return get_available_slots(db, slug, date, timezone_name=timezone_name)


@router.get("/{slug}/dates", response_model=DatesResponse)
def list_dates(
    slug: str,
    month: int = Query(...),
    year: int = Query(...),
    db: Session = Depends(get_db),
):
    return get_available_dates(db, slug, month, year)


@router.post("/{slug}/book", response_model=BookingRead, status_code=status.HTTP_201_CREATED)
def create_public_booking(
    slug: str,
    data: PublicBookingCreate,
    db: Session = Depends(get_db),
    ledger: BookingLedger = Depends(get_ledger),
):
    """
    Book the slot starting at date + time (schedule timezone).

    The slot is re-derived inside the reservation lock, so a slot that
    was listed a moment ago but has since been taken yields 409.
    """
    event_type, schedule = load_event_type_with_schedule(db, slug)
    if data.timezone:
        get_zone(data.timezone)

    target_date = parse_date(data.date)
    tz = get_zone(schedule.timezone)
    today = datetime.now(timezone.utc).astimezone(tz).date()
    horizon = get_scheduling_config().horizon_days
    if target_date < today:
        raise ValidationError("Cannot book a date in the past")
    if target_date > today + timedelta(days=horizon):
        raise ValidationError(f"Bookings are open up to {horizon} days ahead")

    start = local_to_utc(target_date, time_str_to_minutes(data.time), tz)
    end = start + timedelta(minutes=event_type.duration)

    # Release the read session's connection before the ledger opens its own
    db.close()

    return ledger.reserve(
        event_type.id,
        start,
        end,
        BookerIdentity(name=data.name, email=data.email, timezone=data.timezone),
        answers=[AnswerInput(a.question_id, a.answer) for a in data.answers],
    )
