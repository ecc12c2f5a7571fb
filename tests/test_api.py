"""Tests for the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from gridxchange.api import create_app


@pytest.fixture
def client(service):
    return TestClient(create_app(service))


def register(client, user_id, generation, consumption, **extra):
    response = client.post(
        "/households",
        json={
            "user_id": user_id,
            "current_generation_kwh": generation,
            "current_consumption_kwh": consumption,
            **extra,
        },
    )
    assert response.status_code == 201
    return response.json()


def test_health(client):
    assert client.get("/").json()["status"] == "healthy"
    assert client.get("/health").json()["transactions"] is True


def test_offer_lifecycle_over_http(client):
    # Arrange
    seller = register(client, "ana", 10, 5, latitude=40.7128, longitude=-74.0060)
    buyer = register(client, "ben", 2, 8, latitude=40.7306, longitude=-73.9352)
    offer = client.post(
        "/offers", json={"home_id": seller["id"], "quantity_kwh": 4, "price_per_kwh": 0.15}
    ).json()

    # Act
    eligible = client.get(
        f"/households/{buyer['id']}/eligible/offer",
        params={"latitude": 40.7306, "longitude": -73.9352, "radius_km": 10},
    ).json()
    trade = client.post(
        f"/entries/{offer['id']}/accept",
        json={"household_id": buyer["id"], "caller_user_id": "ben"},
    )
    completed = client.post(
        f"/trades/{trade.json()['id']}/complete", json={"caller_user_id": "ana"}
    )
    again = client.post(
        f"/trades/{trade.json()['id']}/complete", json={"caller_user_id": "ben"}
    )

    # Assert
    assert [e["id"] for e in eligible] == [offer["id"]]
    assert eligible[0]["distance_label"].endswith("km")
    assert trade.status_code == 201
    assert trade.json()["total_amount"] == pytest.approx(0.60)
    assert completed.status_code == 200
    assert completed.json()["status"] == "completed"
    assert again.status_code == 409
    assert client.get(f"/households/{seller['id']}").json()["current_generation_kwh"] == 6
    assert client.get(f"/entries/{offer['id']}").json()["status"] == "completed"


def test_error_mapping(client):
    seller = register(client, "ana", 10, 5)
    buyer = register(client, "ben", 6, 0)
    request = client.post(
        "/requests", json={"home_id": seller["id"], "quantity_kwh": 8}
    ).json()

    assert client.get("/households/missing").status_code == 404
    assert client.post(
        "/offers", json={"home_id": seller["id"], "quantity_kwh": -1}
    ).status_code == 400
    assert client.post(
        f"/entries/{request['id']}/accept", json={"household_id": buyer["id"]}
    ).status_code == 422
    assert client.post(
        f"/entries/{request['id']}/cancel", json={"caller_user_id": "ben"}
    ).status_code == 403
    assert client.post(
        f"/entries/{request['id']}/cancel", json={"caller_user_id": "ana"}
    ).status_code == 200
    assert client.post(
        f"/entries/{request['id']}/cancel", json={"caller_user_id": "ana"}
    ).status_code == 409


def test_naive_expiry_is_accepted_as_utc(client):
    seller = register(client, "ana", 10, 5)

    posted = client.post(
        "/offers",
        json={"home_id": seller["id"], "quantity_kwh": 1, "expires_at": "2030-01-01T00:00:00"},
    )
    stale = client.post(
        "/offers",
        json={"home_id": seller["id"], "quantity_kwh": 1, "expires_at": "2020-01-01T00:00:00"},
    )

    assert posted.status_code == 201
    assert posted.json()["expires_at"].startswith("2030-01-01T00:00:00")
    assert stale.status_code == 400


def test_listing_trades_and_summary(client):
    seller = register(client, "ana", 10, 0)
    buyer = register(client, "ben", 0, 10)
    offer = client.post("/offers", json={"home_id": seller["id"], "quantity_kwh": 2}).json()
    client.post(f"/entries/{offer['id']}/accept", json={"household_id": buyer["id"]})

    trades = client.get(f"/households/{buyer['id']}/trades", params={"active_only": True})
    summary = client.get("/summary").json()

    assert len(trades.json()) == 1
    assert summary["households"] == 2
    assert summary["active_trades"] == 1
    assert summary["open_offers"] == 0
    assert [o["status"] for o in client.get("/offers").json()] == ["matched"]


def test_geo_utilities(client):
    distance = client.post(
        "/geo/distance",
        json={
            "from_latitude": 40.7128,
            "from_longitude": -74.0060,
            "to_latitude": 34.0522,
            "to_longitude": -118.2437,
        },
    ).json()

    assert 3935 < distance["distance_km"] < 3945
    assert distance["label"].endswith("km")
    assert client.get("/geo/suggested-radius/urban").json()["radius_km"] == 5
    assert client.post(
        "/geo/distance",
        json={
            "from_latitude": 0,
            "from_longitude": 0,
            "to_latitude": 1,
            "to_longitude": 1,
            "mode": "teleport",
        },
    ).status_code == 400
