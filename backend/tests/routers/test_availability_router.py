from typing import AsyncIterator

import pytest
from conftest import InMemoryReservationRepo, make_reservation
from fastapi import FastAPI
from fastapi.testclient import TestClient
from rental_booking.deps import get_session
from rental_booking.models import ReservationStatus
from rental_booking.routers import availability as router


def _client(monkeypatch: pytest.MonkeyPatch, repo: InMemoryReservationRepo) -> TestClient:
    app = FastAPI()

    async def override_get_session() -> AsyncIterator[object]:
        yield object()

    app.dependency_overrides[get_session] = override_get_session
    monkeypatch.setattr(router, "SqlAlchemyReservationRepository", lambda s: repo)  # type: ignore[assignment]
    app.include_router(router.router)
    return TestClient(app)


def test_availability_lists_grid_with_blocked_slots(monkeypatch: pytest.MonkeyPatch) -> None:
    repo = InMemoryReservationRepo(
        [make_reservation("BK-1", time_slot="08:00 - 10:00", status=ReservationStatus.PAID)]
    )
    client = _client(monkeypatch, repo)

    res = client.get("/availability", params={"date": "2025-01-10", "booking_type": "warnet"})

    assert res.status_code == 200
    body = res.json()
    assert body["unit_type"] == "PC Gaming"
    assert body["blocked"] == ["08:00", "09:00"]
    assert body["hourly_rate"] == 15000
    statuses = {slot["label"]: slot["status"] for slot in body["slots"]}
    assert statuses["08:00"] == "booked"
    assert statuses["10:00"] == "available"


def test_availability_fetch_failure_returns_503(monkeypatch: pytest.MonkeyPatch) -> None:
    repo = InMemoryReservationRepo()
    repo.fail_list = True
    client = _client(monkeypatch, repo)

    res = client.get("/availability", params={"date": "2025-01-10", "booking_type": "ps4"})

    assert res.status_code == 503


def test_availability_rejects_unknown_booking_type(monkeypatch: pytest.MonkeyPatch) -> None:
    client = _client(monkeypatch, InMemoryReservationRepo())
    res = client.get("/availability", params={"date": "2025-01-10", "booking_type": "xbox"})
    assert res.status_code == 422


def test_select_rejects_extension_across_booked_hours(monkeypatch: pytest.MonkeyPatch) -> None:
    client = _client(monkeypatch, InMemoryReservationRepo())

    res = client.post(
        "/availability/select",
        json={
            "label": "14:00",
            "index": 14,
            "selection": {"start": "09:00"},
            "blocked": ["10:00", "11:00", "12:00"],
        },
    )

    assert res.status_code == 200
    body = res.json()
    assert body["accepted"] is False
    assert body["notice"]
    assert body["selection"] == {"start": "09:00", "end": None}
    assert body["state"] == "start_only"
    assert body["total_price"] == 15000


def test_select_extends_range_and_prices_it(monkeypatch: pytest.MonkeyPatch) -> None:
    client = _client(monkeypatch, InMemoryReservationRepo())

    res = client.post(
        "/availability/select",
        json={"label": "12:00", "index": 12, "selection": {"start": "10:00"}, "blocked": ["08:00"]},
    )

    body = res.json()
    assert body["accepted"] is True
    assert body["selection"] == {"start": "10:00", "end": "12:00"}
    assert body["state"] == "full"
    assert body["total_price"] == 30000


def test_quote(monkeypatch: pytest.MonkeyPatch) -> None:
    client = _client(monkeypatch, InMemoryReservationRepo())
    res = client.post("/quote", json={"selection": {"start": "10:00", "end": "13:00"}})
    assert res.json()["total_price"] == 45000


def test_select_rejects_label_that_does_not_match_index(monkeypatch: pytest.MonkeyPatch) -> None:
    client = _client(monkeypatch, InMemoryReservationRepo())

    mismatched = client.post(
        "/availability/select",
        json={"label": "09:00", "index": 14, "selection": {"start": "09:00"}, "blocked": ["11:00"]},
    )
    unknown = client.post("/availability/select", json={"label": "banana", "index": 3})

    assert mismatched.status_code == 422
    assert unknown.status_code == 422
