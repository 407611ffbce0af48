# slotbook/routers/availability.py
# Schedules with weekly rules; date overrides live under /availability/overrides

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy import update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, selectinload

from ..config import settings
from ..database import get_db
from ..deps import get_host_id
from ..models import AvailabilityRules, AvailabilitySchedules, DateOverrides, EventTypes
from ..schemas.availability import (
    AvailabilityRuleIn,
    DateOverrideCreate,
    DateOverrideRead,
    DateOverrideUpdate,
    ScheduleCreate,
    ScheduleRead,
    ScheduleUpdate,
)
from ..services.errors import ConstraintViolation, NotFound
from ..services.scheduling.config import get_zone

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/availability", tags=["availability"])


def _get_owned(db: Session, id: int, host_id: int) -> AvailabilitySchedules:
    obj = db.get(AvailabilitySchedules, id)
    if not obj or obj.host_id != host_id:
        raise NotFound("Schedule not found")
    return obj


def _get_override(db: Session, id: int, host_id: int) -> DateOverrides:
    obj = db.get(DateOverrides, id)
    if not obj or obj.schedule.host_id != host_id:
        raise NotFound("Date override not found")
    return obj


def _build_rules(items: list[AvailabilityRuleIn]) -> list[AvailabilityRules]:
    return [
        AvailabilityRules(
            day_of_week=r.day_of_week,
            start_time=r.start_time,
            end_time=r.end_time,
        )
        for r in items
    ]


def _demote_other_defaults(db: Session, host_id: int, keep_id: int | None) -> None:
    """Clear is_default on the host's other schedules; caller commits with the promotion."""
    stmt = (
        update(AvailabilitySchedules)
        .where(
            AvailabilitySchedules.host_id == host_id,
            AvailabilitySchedules.is_default.is_(True),
        )
        .values(is_default=False)
        .execution_options(synchronize_session="fetch")
    )
    if keep_id is not None:
        stmt = stmt.where(AvailabilitySchedules.id != keep_id)
    db.execute(stmt)


def _commit_schedule(db: Session) -> None:
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Schedule write rejected: {e.orig}")
        raise ConstraintViolation("Another schedule became the default concurrently, please retry")


@router.get("/", response_model=list[ScheduleRead])
def list_schedules(
    db: Session = Depends(get_db),
    host_id: int = Depends(get_host_id),
):
    return (
        db.query(AvailabilitySchedules)
        .options(
            selectinload(AvailabilitySchedules.rules),
            selectinload(AvailabilitySchedules.overrides),
        )
        .filter(AvailabilitySchedules.host_id == host_id)
        .order_by(AvailabilitySchedules.is_default.desc(), AvailabilitySchedules.id)
        .all()
    )


@router.get("/{id}", response_model=ScheduleRead)
def get_schedule(
    id: int,
    db: Session = Depends(get_db),
    host_id: int = Depends(get_host_id),
):
    return _get_owned(db, id, host_id)


@router.post("/", response_model=ScheduleRead, status_code=status.HTTP_201_CREATED)
def create_schedule(
    data: ScheduleCreate,
    db: Session = Depends(get_db),
    host_id: int = Depends(get_host_id),
):
    tz = data.timezone or settings.default_timezone
    get_zone(tz)

    if data.is_default:
        _demote_other_defaults(db, host_id, keep_id=None)

    obj = AvailabilitySchedules(
        host_id=host_id,
        name=data.name,
        timezone=tz,
        is_default=data.is_default,
    )
    obj.rules = _build_rules(data.rules)
    db.add(obj)
    _commit_schedule(db)
    db.refresh(obj)

    logger.info(f"Schedule created: id={obj.id} default={obj.is_default}")
    return obj


@router.put("/{id}", response_model=ScheduleRead)
def update_schedule(
    id: int,
    data: ScheduleUpdate,
    db: Session = Depends(get_db),
    host_id: int = Depends(get_host_id),
):
    obj = _get_owned(db, id, host_id)

    if data.timezone is not None:
        get_zone(data.timezone)
        obj.timezone = data.timezone
    if data.name is not None:
        obj.name = data.name
    if data.is_default is not None:
        if data.is_default:
            _demote_other_defaults(db, host_id, keep_id=obj.id)
        obj.is_default = data.is_default
    if data.rules is not None:
        obj.rules = _build_rules(data.rules)

    _commit_schedule(db)
    db.refresh(obj)
    return obj


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_schedule(
    id: int,
    db: Session = Depends(get_db),
    host_id: int = Depends(get_host_id),
):
    obj = _get_owned(db, id, host_id)

    in_use = db.query(EventTypes).filter(EventTypes.availability_schedule_id == obj.id).count()
    if in_use:
        raise ConstraintViolation(
            f"Schedule is used by {in_use} event type(s); reassign them first"
        )

    db.delete(obj)
    db.commit()
    logger.info(f"Schedule deleted: id={id}")


# ── Date overrides ───────────────────────────────────────────────────────


@router.post(
    "/{schedule_id}/overrides",
    response_model=DateOverrideRead,
    status_code=status.HTTP_201_CREATED,
)
def add_date_override(
    schedule_id: int,
    data: DateOverrideCreate,
    db: Session = Depends(get_db),
    host_id: int = Depends(get_host_id),
):
    schedule = _get_owned(db, schedule_id, host_id)

    obj = DateOverrides(schedule_id=schedule.id, **data.model_dump())
    db.add(obj)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise ConstraintViolation(
            f"An override for {data.date.isoformat()} already exists on this schedule"
        )
    db.refresh(obj)
    return obj


@router.put("/overrides/{id}", response_model=DateOverrideRead)
def update_date_override(
    id: int,
    data: DateOverrideUpdate,
    db: Session = Depends(get_db),
    host_id: int = Depends(get_host_id),
):
    obj = _get_override(db, id, host_id)

    for field, value in data.model_dump().items():
        setattr(obj, field, value)

    db.commit()
    db.refresh(obj)
    return obj


@router.delete("/overrides/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_date_override(
    id: int,
    db: Session = Depends(get_db),
    host_id: int = Depends(get_host_id),
):
    obj = _get_override(db, id, host_id)
    db.delete(obj)
    db.commit()
