"""
Bootstrap the single host.

Creates (if missing):
- the host row with id = HOST_ID
- a default "Working Hours" schedule (Mon-Fri 09:00-17:00, Sat 10:00-14:00)
- a sample 30-minute event type

Safe to run repeatedly. Run after `alembic upgrade head`:

    HOST_NAME="Jane Doe" HOST_EMAIL=jane@example.com python scripts/init_host.py
"""

import os

from dotenv import load_dotenv

load_dotenv()

from slotbook.config import settings  # noqa: E402
from slotbook.database import SessionLocal  # noqa: E402
from slotbook.models import (  # noqa: E402
    AvailabilityRules,
    AvailabilitySchedules,
    BookingQuestions,
    EventTypes,
    Hosts,
)

HOST_NAME = os.getenv("HOST_NAME", "Admin User")
HOST_EMAIL = os.getenv("HOST_EMAIL", "admin@example.com")
HOST_TIMEZONE = os.getenv("HOST_TIMEZONE", settings.default_timezone)

WEEKLY_RULES = [(day, "09:00", "17:00") for day in range(1, 6)] + [(6, "10:00", "14:00")]


def main():
    with SessionLocal() as db:
        host = db.get(Hosts, settings.host_id)
        if host is None:
            host = Hosts(
                id=settings.host_id,
                name=HOST_NAME,
                email=HOST_EMAIL,
                timezone=HOST_TIMEZONE,
            )
            db.add(host)
            db.flush()
            print(f"[BOOTSTRAP] Host created (id={host.id}, email={host.email})")
        else:
            print(f"[BOOTSTRAP] Host already exists (id={host.id})")

        schedule = (
            db.query(AvailabilitySchedules)
            .filter(AvailabilitySchedules.host_id == host.id)
            .first()
        )
        if schedule is None:
            schedule = AvailabilitySchedules(
                host_id=host.id,
                name="Working Hours",
                timezone=host.timezone,
                is_default=True,
                rules=[
                    AvailabilityRules(day_of_week=day, start_time=start, end_time=end)
                    for day, start, end in WEEKLY_RULES
                ],
            )
            db.add(schedule)
            db.flush()
            print(f"[BOOTSTRAP] Default schedule created (id={schedule.id})")

        if db.query(EventTypes).filter(EventTypes.host_id == host.id).count() == 0:
            db.add(
                EventTypes(
                    host_id=host.id,
                    title="30 Minute Meeting",
                    description="A quick 30 minute call.",
                    slug="30min",
                    duration=30,
                    availability_schedule_id=schedule.id,
                    questions=[
                        BookingQuestions(
                            question="What would you like to discuss?",
                            type="TEXTAREA",
                            order=0,
                        ),
                    ],
                )
            )
            print("[BOOTSTRAP] Sample event type created (slug=30min)")

        db.commit()


if __name__ == "__main__":
    main()
