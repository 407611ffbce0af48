"""HTTP-level tests through FastAPI's TestClient."""

from datetime import datetime, timedelta, timezone

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.exc import IntegrityError

from slotbook import redis_client as redis_client_module
from slotbook.database import get_db
from slotbook.deps import get_host_id, get_ledger
from slotbook.main import app
from slotbook.services.ledger import BookingLedger
from slotbook.services.locks import event_type_lock_key
from tests.conftest import HOST_ID, make_booking, make_event_type, make_host, make_schedule

WEEKDAY_RULES = [
    {"day_of_week": d, "start_time": "09:00", "end_time": "17:00"} for d in range(1, 6)
]


def next_monday():
    today = datetime.now(timezone.utc).date()
    return today + timedelta(days=7 - today.weekday())


@pytest.fixture
def client(session_factory, ledger, db):
    make_host(db)
    db.commit()

    def override_get_db():
        session = session_factory()
        try:
            yield session
        finally:
            session.close()

    api_ledger = BookingLedger(
        session_factory=session_factory,
        redis=ledger.redis,
        lock_ttl_seconds=5.0,
        lock_wait_seconds=0.1,
    )

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_host_id] = lambda: HOST_ID
    app.dependency_overrides[get_ledger] = lambda: api_ledger
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


class TestHealth:
    def test_health(self, client, redis, monkeypatch):
        monkeypatch.setattr(redis_client_module, "redis_client", redis)
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok", "redis": True}


class TestEventTypes:
    PAYLOAD = {
        "title": "Intro Call",
        "slug": "intro-call",
        "duration": 30,
        "buffer_time_after": 10,
        "questions": [
            {"question": "Topic", "is_required": True},
            {"question": "Level", "type": "SELECT", "options": ["Beginner", "Expert"]},
        ],
    }

    def test_create_and_get(self, client):
        response = client.post("/event-types/", json=self.PAYLOAD)
        assert response.status_code == 201
        body = response.json()
        assert body["slug"] == "intro-call"
        assert body["is_active"] is True
        assert [q["question"] for q in body["questions"]] == ["Topic", "Level"]
        assert body["questions"][1]["options"] == ["Beginner", "Expert"]

        fetched = client.get(f"/event-types/{body['id']}")
        assert fetched.json()["buffer_time_after"] == 10

    def test_duplicate_slug(self, client):
        client.post("/event-types/", json=self.PAYLOAD)
        response = client.post("/event-types/", json=self.PAYLOAD)
        assert response.status_code == 409

    def test_invalid_payload(self, client):
        response = client.post("/event-types/", json={**self.PAYLOAD, "duration": 0})
        assert response.status_code == 422
        response = client.post("/event-types/", json={**self.PAYLOAD, "slug": "Has Spaces"})
        assert response.status_code == 422

    def test_unknown_schedule(self, client):
        response = client.post("/event-types/", json={**self.PAYLOAD, "availability_schedule_id": 999})
        assert response.status_code == 400

    def test_update_replaces_questions(self, client):
        created = client.post("/event-types/", json=self.PAYLOAD).json()
        response = client.put(
            f"/event-types/{created['id']}",
            json={"title": "Renamed", "questions": [{"question": "Agenda"}]},
        )
        assert response.status_code == 200
        body = response.json()
        assert body["title"] == "Renamed"
        assert body["duration"] == 30
        assert [q["question"] for q in body["questions"]] == ["Agenda"]

    def test_toggle_and_delete(self, client):
        created = client.post("/event-types/", json=self.PAYLOAD).json()
        toggled = client.patch(f"/event-types/{created['id']}/toggle")
        assert toggled.json()["is_active"] is False

        assert client.get(f"/public/{created['slug']}").status_code == 404

        assert client.delete(f"/event-types/{created['id']}").status_code == 204
        assert client.get(f"/event-types/{created['id']}").status_code == 404


class TestAvailability:
    def test_create_schedule(self, client):
        response = client.post(
            "/availability/",
            json={"name": "Office", "timezone": "Europe/Berlin", "rules": WEEKDAY_RULES},
        )
        assert response.status_code == 201
        body = response.json()
        assert body["timezone"] == "Europe/Berlin"
        assert len(body["rules"]) == 5

    def test_single_default(self, client):
        first = client.post("/availability/", json={"name": "A", "timezone": "UTC", "is_default": True}).json()
        second = client.post("/availability/", json={"name": "B", "timezone": "UTC", "is_default": True}).json()

        assert client.get(f"/availability/{first['id']}").json()["is_default"] is False
        assert client.get(f"/availability/{second['id']}").json()["is_default"] is True

        client.put(f"/availability/{first['id']}", json={"is_default": True})
        defaults = [s["id"] for s in client.get("/availability/").json() if s["is_default"]]
        assert defaults == [first["id"]]

    def test_database_rejects_second_default(self, db):
        make_schedule(db, is_default=True)
        with pytest.raises(IntegrityError):
            make_schedule(db, is_default=True)
        db.rollback()

        # non-default schedules are unconstrained
        make_schedule(db)
        make_schedule(db)

    def test_bad_rule_rejected(self, client):
        response = client.post(
            "/availability/",
            json={"name": "A", "timezone": "UTC", "rules": [{"day_of_week": 1, "start_time": "17:00", "end_time": "09:00"}]},
        )
        assert response.status_code == 422

    def test_unknown_timezone(self, client):
        response = client.post("/availability/", json={"name": "A", "timezone": "Moon/Base"})
        assert response.status_code == 400

    def test_update_replaces_rules(self, client):
        created = client.post("/availability/", json={"name": "A", "timezone": "UTC", "rules": WEEKDAY_RULES}).json()
        response = client.put(
            f"/availability/{created['id']}",
            json={"rules": [{"day_of_week": 6, "start_time": "10:00", "end_time": "14:00"}]},
        )
        assert [r["day_of_week"] for r in response.json()["rules"]] == [6]

    def test_overrides(self, client):
        schedule = client.post("/availability/", json={"name": "A", "timezone": "UTC", "rules": WEEKDAY_RULES}).json()
        url = f"/availability/{schedule['id']}/overrides"

        created = client.post(url, json={"date": "2030-06-03", "is_blocked": True})
        assert created.status_code == 201

        duplicate = client.post(url, json={"date": "2030-06-03", "is_blocked": True})
        assert duplicate.status_code == 409

        missing_window = client.post(url, json={"date": "2030-06-04", "is_blocked": False})
        assert missing_window.status_code == 422

        override_id = created.json()["id"]
        updated = client.put(
            f"/availability/overrides/{override_id}",
            json={"is_blocked": False, "start_time": "10:00", "end_time": "12:00"},
        )
        assert updated.json()["start_time"] == "10:00"

        assert client.delete(f"/availability/overrides/{override_id}").status_code == 204
        assert client.get(f"/availability/{schedule['id']}").json()["overrides"] == []

    def test_delete_in_use_refused(self, client, db):
        event_type = make_event_type(db)
        schedule_id = event_type.availability_schedule_id

        assert client.delete(f"/availability/{schedule_id}").status_code == 409

        client.put(f"/event-types/{event_type.id}", json={"availability_schedule_id": None})
        assert client.delete(f"/availability/{schedule_id}").status_code == 204


class TestPublicBooking:
    def test_event_info(self, client, db):
        make_event_type(db, questions=[{"question": "Topic"}])
        body = client.get("/public/intro").json()
        assert body["title"] == "Intro"
        assert body["host"]["name"] == "Ada Host"
        assert body["questions"][0]["question"] == "Topic"

    def test_book_flow(self, client, db, redis):
        make_event_type(db)
        day = next_monday().isoformat()

        slots = client.get("/public/intro/slots", params={"date": day}).json()
        assert slots["slots"][0]["time"] == "09:00"

        response = client.post(
            "/public/intro/book",
            json={"name": "Grace", "email": "grace@example.com", "date": day, "time": "09:00"},
        )
        assert response.status_code == 201
        booking = response.json()
        assert booking["status"] == "CONFIRMED"
        assert booking["event_type"]["slug"] == "intro"

        again = client.post(
            "/public/intro/book",
            json={"name": "Other", "email": "other@example.com", "date": day, "time": "09:00"},
        )
        assert again.status_code == 409

        times = [s["time"] for s in client.get("/public/intro/slots", params={"date": day}).json()["slots"]]
        assert "09:00" not in times
        assert "09:30" in times

    def test_dates(self, client, db):
        make_event_type(db)
        day = next_monday()
        body = client.get("/public/intro/dates", params={"month": day.month, "year": day.year}).json()
        assert day.isoformat() in body["available_dates"]

    def test_past_date_refused(self, client, db):
        make_event_type(db)
        yesterday = (datetime.now(timezone.utc) - timedelta(days=1)).date().isoformat()
        response = client.post(
            "/public/intro/book",
            json={"name": "Grace", "email": "grace@example.com", "date": yesterday, "time": "09:00"},
        )
        assert response.status_code == 400

    def test_beyond_horizon_refused(self, client, db):
        make_event_type(db)
        far = (next_monday() + timedelta(days=70)).isoformat()
        response = client.post(
            "/public/intro/book",
            json={"name": "Grace", "email": "grace@example.com", "date": far, "time": "09:00"},
        )
        assert response.status_code == 400

    def test_unknown_slug(self, client):
        assert client.get("/public/missing/slots", params={"date": "2030-06-03"}).status_code == 404

    def test_busy_lock_returns_retry_after(self, client, db, redis):
        event_type = make_event_type(db)
        redis.set(event_type_lock_key(event_type.id), "held", px=10_000)
        response = client.post(
            "/public/intro/book",
            json={"name": "Grace", "email": "grace@example.com", "date": next_monday().isoformat(), "time": "09:00"},
        )
        assert response.status_code == 503
        assert response.headers["retry-after"] == "1"


class TestBookingsAdmin:
    def book(self, client, time: str = "10:00") -> dict:
        return client.post(
            "/public/intro/book",
            json={"name": "Grace", "email": "grace@example.com", "date": next_monday().isoformat(), "time": time},
        ).json()

    def test_list_and_stats(self, client, db):
        make_event_type(db)
        self.book(client)

        listed = client.get("/bookings/", params={"upcoming": True}).json()
        assert len(listed) == 1

        stats = client.get("/bookings/stats").json()
        assert stats["total"] == 1
        assert stats["upcoming"] == 1
        assert stats["cancelled"] == 0

    def test_invalid_status_filter(self, client):
        assert client.get("/bookings/", params={"status": "LOST"}).status_code == 400

    def test_cancel(self, client, db):
        make_event_type(db)
        booking = self.book(client)

        response = client.post(f"/bookings/{booking['id']}/cancel", json={"reason": "Conflict"})
        assert response.status_code == 200
        assert response.json()["status"] == "CANCELLED"

        again = client.post(f"/bookings/{booking['id']}/cancel", json={})
        assert again.status_code == 400

        cancelled = client.get("/bookings/", params={"status": "CANCELLED"}).json()
        assert [b["id"] for b in cancelled] == [booking["id"]]

    def test_reschedule(self, client, db):
        make_event_type(db)
        booking = self.book(client)
        new_start = datetime.combine(next_monday(), datetime.min.time(), tzinfo=timezone.utc) + timedelta(hours=15)

        response = client.post(
            f"/bookings/{booking['id']}/reschedule",
            json={"new_start_time": new_start.isoformat()},
        )
        assert response.status_code == 200
        assert response.json()["rescheduled_from_id"] == booking["id"]
        assert client.get(f"/bookings/{booking['id']}").json()["status"] == "RESCHEDULED"

    def test_reschedule_conflict(self, client, db):
        event_type = make_event_type(db)
        booking = self.book(client, "10:00")
        other_start = datetime.combine(next_monday(), datetime.min.time(), tzinfo=timezone.utc) + timedelta(hours=15)
        make_booking(db, event_type, other_start)

        response = client.post(
            f"/bookings/{booking['id']}/reschedule",
            json={"new_start_time": other_start.isoformat()},
        )
        assert response.status_code == 409
        assert client.get(f"/bookings/{booking['id']}").json()["status"] == "CONFIRMED"

    def test_unknown_booking(self, client):
        assert client.get("/bookings/999").status_code == 404
