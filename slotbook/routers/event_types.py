# slotbook/routers/event_types.py
# slug is fixed at creation; DELETE = hard delete (bookings cascade), toggle = soft on/off

import logging

from fastapi import APIRouter, Depends, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..database import get_db
from ..deps import get_host_id
from ..models import AvailabilitySchedules, BookingQuestions, EventTypes
from ..schemas.event_types import (
    BookingQuestionIn,
    EventTypeCreate,
    EventTypeRead,
    EventTypeUpdate,
)
from ..services.errors import ConstraintViolation, NotFound, ValidationError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/event-types", tags=["event-types"])


def _get_owned(db: Session, id: int, host_id: int) -> EventTypes:
    obj = db.get(EventTypes, id)
    if not obj or obj.host_id != host_id:
        raise NotFound("Event type not found")
    return obj


def _check_schedule(db: Session, schedule_id: int | None, host_id: int) -> None:
    if schedule_id is None:
        return
    schedule = db.get(AvailabilitySchedules, schedule_id)
    if not schedule or schedule.host_id != host_id:
        raise ValidationError(f"Availability schedule {schedule_id} does not exist")


def _check_slug_free(db: Session, slug: str) -> None:
    if db.query(EventTypes).filter(EventTypes.slug == slug).first():
        raise ConstraintViolation(f"Slug {slug!r} is already taken")


def _build_questions(items: list[BookingQuestionIn]) -> list[BookingQuestions]:
    return [
        BookingQuestions(
            question=q.question,
            type=q.type,
            is_required=q.is_required,
            options=q.options,
            order=index,
        )
        for index, q in enumerate(items)
    ]


def _commit(db: Session, obj: EventTypes) -> EventTypes:
    try:
        db.commit()
    except IntegrityError as e:
        db.rollback()
        logger.warning(f"Event type write rejected: {e.orig}")
        raise ConstraintViolation("Slug is already taken")
    db.refresh(obj)
    return obj


@router.get("/", response_model=list[EventTypeRead])
def list_event_types(
    db: Session = Depends(get_db),
    host_id: int = Depends(get_host_id),
):
    return (
        db.query(EventTypes)
        .filter(EventTypes.host_id == host_id)
        .order_by(EventTypes.created_at.desc())
        .all()
    )


@router.get("/{id}", response_model=EventTypeRead)
def get_event_type(
    id: int,
    db: Session = Depends(get_db),
    host_id: int = Depends(get_host_id),
):
    return _get_owned(db, id, host_id)


@router.post("/", response_model=EventTypeRead, status_code=status.HTTP_201_CREATED)
def create_event_type(
    data: EventTypeCreate,
    db: Session = Depends(get_db),
    host_id: int = Depends(get_host_id),
):
    _check_slug_free(db, data.slug)
    _check_schedule(db, data.availability_schedule_id, host_id)

    obj = EventTypes(
        host_id=host_id,
        **data.model_dump(exclude={"questions"}),
    )
    obj.questions = _build_questions(data.questions)
    db.add(obj)
    obj = _commit(db, obj)

    logger.info(f"Event type created: id={obj.id} slug={obj.slug}")
    return obj


@router.put("/{id}", response_model=EventTypeRead)
def update_event_type(
    id: int,
    data: EventTypeUpdate,
    db: Session = Depends(get_db),
    host_id: int = Depends(get_host_id),
):
    obj = _get_owned(db, id, host_id)
    changes = data.model_dump(exclude_unset=True, exclude={"questions"})

    if "availability_schedule_id" in changes:
        _check_schedule(db, changes["availability_schedule_id"], host_id)

    for field, value in changes.items():
        if value is None and field not in ("description", "availability_schedule_id"):
            continue
        setattr(obj, field, value)

    if data.questions is not None:
        # Replaced wholesale; answers of removed questions go with them
        obj.questions = _build_questions(data.questions)

    return _commit(db, obj)


@router.delete("/{id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_event_type(
    id: int,
    db: Session = Depends(get_db),
    host_id: int = Depends(get_host_id),
):
    obj = _get_owned(db, id, host_id)
    db.delete(obj)
    db.commit()
    logger.info(f"Event type deleted: id={id}")


@router.patch("/{id}/toggle", response_model=EventTypeRead)
def toggle_event_type(
    id: int,
    db: Session = Depends(get_db),
    host_id: int = Depends(get_host_id),
):
    obj = _get_owned(db, id, host_id)
    obj.is_active = not obj.is_active
    db.commit()
    db.refresh(obj)
    return obj
