"""Integration tests for the vehicle and user endpoints."""

from datetime import timedelta

import pytest
from httpx import AsyncClient

from tests.conftest import NOW

DOCUMENTS = {
    "registration": {"number": "REG-DHAKA-GA-12-0042"},
    "insurance": {
        "number": "INS-77120",
        "provider": "Green Delta",
        "expiryDate": "2027-06-30",
    },
    "fitness": {"number": "FIT-5531"},
}


def _vehicle_payload(driver_id: int, **overrides) -> dict:
    payload = {
        "driver": driver_id,
        "type": "car",
        "brand": "Honda",
        "model": "Grace",
        "year": 2021,
        "plateNumber": "dhaka-ga-12-0042",
        "color": "Silver",
        "capacity": {"passengers": 4, "luggage": "small"},
        "features": ["AC", "WiFi"],
        "pricing": {
            "basePrice": 120,
            "pricePerKm": 18,
            "pricePerHour": 80,
            "minimumFare": 200,
        },
        "location": {
            "city": "Dhaka",
            "area": "Banani",
            "coordinates": {"latitude": 23.7937, "longitude": 90.4066},
        },
    }
    payload.update(overrides)
    return payload


# ── Vehicles ──────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_create_vehicle(client: AsyncClient, seeded):
    resp = await client.post("/api/v1/vehicles", json=_vehicle_payload(seeded["driver_id"]))
    assert resp.status_code == 201
    body = resp.json()
    assert body["plateNumber"] == "DHAKA-GA-12-0042"
    assert body["status"] == "pending"
    assert body["features"] == ["AC", "WiFi"]
    assert body["driver"]["id"] == seeded["driver_id"]
    assert body["availability"]["availableHours"] == {"start": "06:00", "end": "22:00"}


@pytest.mark.asyncio
async def test_duplicate_plate_is_case_insensitive(client: AsyncClient, seeded):
    resp = await client.post(
        "/api/v1/vehicles",
        json=_vehicle_payload(seeded["driver_id"], plateNumber=" Dhaka-GA-11-2345 "),
    )
    assert resp.status_code == 409
    assert resp.json()["code"] == "DUPLICATE_KEY"


@pytest.mark.asyncio
async def test_create_vehicle_requires_driver_role(client: AsyncClient, seeded):
    resp = await client.post(
        "/api/v1/vehicles", json=_vehicle_payload(seeded["passenger_id"])
    )
    assert resp.status_code == 400
    assert resp.json()["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_create_vehicle_rejects_bad_year(client: AsyncClient, seeded):
    resp = await client.post(
        "/api/v1/vehicles", json=_vehicle_payload(seeded["driver_id"], year=1985)
    )
    assert resp.status_code == 400
    assert resp.json()["code"] == "VALIDATION_ERROR"
    assert resp.json()["details"]["path"] == "year"


@pytest.mark.asyncio
async def test_search_lists_only_approved(client: AsyncClient, seeded):
    await client.post("/api/v1/vehicles", json=_vehicle_payload(seeded["driver_id"]))

    resp = await client.get("/api/v1/vehicles")
    assert resp.status_code == 200
    body = resp.json()
    assert [v["id"] for v in body["vehicles"]] == [seeded["vehicle_id"]]
    assert body["pagination"]["totalCount"] == 1


@pytest.mark.asyncio
async def test_search_filters(client: AsyncClient, seeded):
    resp = await client.get(
        "/api/v1/vehicles",
        params={"minPrice": 10, "maxPrice": 20, "features": "AC,GPS", "city": "dhaka"},
    )
    assert [v["id"] for v in resp.json()["vehicles"]] == [seeded["vehicle_id"]]

    resp = await client.get("/api/v1/vehicles", params={"minPrice": 16})
    assert resp.json()["vehicles"] == []
    assert resp.json()["pagination"]["totalCount"] == 0


@pytest.mark.asyncio
async def test_search_rejects_unknown_feature(client: AsyncClient):
    resp = await client.get("/api/v1/vehicles", params={"features": "Jetpack"})
    assert resp.status_code == 400
    assert resp.json()["details"]["path"] == "features"


@pytest.mark.asyncio
async def test_search_rejects_unknown_sort(client: AsyncClient):
    resp = await client.get("/api/v1/vehicles", params={"sortBy": "password"})
    assert resp.status_code == 400
    assert resp.json()["code"] == "VALIDATION_ERROR"


@pytest.mark.asyncio
async def test_approve_makes_vehicle_listable(client: AsyncClient, seeded):
    vehicle_id = (
        await client.post(
            "/api/v1/vehicles",
            json=_vehicle_payload(seeded["driver_id"], documents=DOCUMENTS),
        )
    ).json()["id"]

    resp = await client.patch(
        f"/api/v1/vehicles/{vehicle_id}/status", json={"status": "approved"}
    )
    assert resp.status_code == 200
    assert resp.json()["approvedAt"] is not None

    resp = await client.get("/api/v1/vehicles", params={"features": "WiFi"})
    assert [v["id"] for v in resp.json()["vehicles"]] == [vehicle_id]


@pytest.mark.asyncio
async def test_approval_requires_complete_documents(client: AsyncClient, seeded):
    partial = {"registration": DOCUMENTS["registration"]}
    vehicle_id = (
        await client.post(
            "/api/v1/vehicles",
            json=_vehicle_payload(seeded["driver_id"], documents=partial),
        )
    ).json()["id"]

    resp = await client.patch(
        f"/api/v1/vehicles/{vehicle_id}/status", json={"status": "approved"}
    )
    assert resp.status_code == 400
    assert resp.json()["details"]["path"] == "documents"

    resp = await client.patch(
        f"/api/v1/vehicles/{vehicle_id}",
        json={
            "documents": {
                "insurance": DOCUMENTS["insurance"],
                "fitness": DOCUMENTS["fitness"],
            }
        },
    )
    body = resp.json()
    assert body["documentsComplete"] is True
    assert body["documents"]["registration"]["number"] == "REG-DHAKA-GA-12-0042"

    resp = await client.patch(
        f"/api/v1/vehicles/{vehicle_id}/status", json={"status": "approved"}
    )
    assert resp.status_code == 200


@pytest.mark.asyncio
async def test_documents_and_images_on_create(client: AsyncClient, seeded):
    resp = await client.post(
        "/api/v1/vehicles",
        json=_vehicle_payload(
            seeded["driver_id"],
            documents=DOCUMENTS,
            images=[
                {"url": "https://img.example.com/front.jpg", "caption": "Front"},
                {"url": "https://img.example.com/side.jpg", "isPrimary": True},
            ],
        ),
    )
    body = resp.json()
    assert body["documentsComplete"] is True
    assert body["documents"]["insurance"] == {
        "number": "INS-77120",
        "provider": "Green Delta",
        "expiryDate": "2027-06-30",
    }
    assert body["primaryImage"] == "https://img.example.com/side.jpg"
    assert body["images"][0] == {
        "url": "https://img.example.com/front.jpg",
        "caption": "Front",
        "isPrimary": False,
    }


@pytest.mark.asyncio
async def test_primary_image_falls_back_to_first(client: AsyncClient, seeded):
    resp = await client.patch(
        f"/api/v1/vehicles/{seeded['vehicle_id']}",
        json={"images": [{"url": "https://img.example.com/a.jpg"}]},
    )
    assert resp.json()["primaryImage"] == "https://img.example.com/a.jpg"

    resp = await client.get(f"/api/v1/vehicles/{seeded['vehicle_id']}")
    body = resp.json()
    assert body["documentsComplete"] is False

    resp = await client.patch(
        f"/api/v1/vehicles/{seeded['vehicle_id']}", json={"images": []}
    )
    assert resp.json()["primaryImage"] is None


@pytest.mark.asyncio
async def test_patch_vehicle(client: AsyncClient, seeded):
    resp = await client.patch(
        f"/api/v1/vehicles/{seeded['vehicle_id']}",
        json={"color": "Black", "pricing": {"pricePerKm": 20}, "features": ["GPS"]},
    )
    assert resp.status_code == 200
    body = resp.json()
    assert body["color"] == "Black"
    assert body["pricing"]["pricePerKm"] == 20
    assert body["pricing"]["basePrice"] == 100
    assert body["features"] == ["GPS"]


@pytest.mark.asyncio
async def test_patch_vehicle_rejects_unknown_field(client: AsyncClient, seeded):
    resp = await client.patch(
        f"/api/v1/vehicles/{seeded['vehicle_id']}", json={"wings": 2}
    )
    assert resp.status_code == 400
    assert resp.json()["code"] == "VALIDATION_ERROR"
    assert resp.json()["details"]["path"] == "wings"


@pytest.mark.asyncio
async def test_get_vehicle_and_driver_listing(client: AsyncClient, seeded):
    resp = await client.get(f"/api/v1/vehicles/{seeded['vehicle_id']}")
    assert resp.status_code == 200
    assert resp.json()["rating"]["average"] == 4.5

    resp = await client.get(f"/api/v1/vehicles/driver/{seeded['driver_id']}")
    assert resp.json()["count"] == 1

    resp = await client.get("/api/v1/vehicles/999")
    assert resp.status_code == 404


@pytest.mark.asyncio
async def test_filter_options(client: AsyncClient, seeded):
    resp = await client.get("/api/v1/vehicles/meta/filters")
    assert resp.status_code == 200
    body = resp.json()
    assert body["vehicleTypes"] == ["car"]
    assert body["cities"] == ["Dhaka"]
    assert body["features"] == ["AC"]
    assert body["priceRange"] == {"minPrice": 15, "maxPrice": 15}


@pytest.mark.asyncio
async def test_availability_report(client: AsyncClient, seeded):
    at = NOW + timedelta(days=1)
    await client.post(
        "/api/v1/bookings",
        json={
            "vehicleId": seeded["vehicle_id"],
            "userId": seeded["passenger_id"],
            "pickupLocation": {
                "address": "Gulshan 2 Circle",
                "coordinates": {"latitude": 23.79, "longitude": 90.41},
            },
            "dropoffLocation": {
                "address": "Banani 11",
                "coordinates": {"latitude": 23.79, "longitude": 90.40},
            },
            "distance": 3,
            "estimatedDuration": 15,
            "scheduledDateTime": at.isoformat(),
        },
    )
    resp = await client.get(
        f"/api/v1/vehicles/{seeded['vehicle_id']}/availability",
        params={"at": at.isoformat()},
    )
    body = resp.json()
    # the new booking is still pending, so the slot is open
    assert body["bookable"] is True
    assert body["withinSchedule"] is True
    assert body["conflictingBookingIds"] == []


# ── Users ─────────────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_sync_user_creates_then_returns_existing(client: AsyncClient):
    payload = {"externalUid": "firebase-123", "email": "Sadia@Example.com", "name": "Sadia"}
    resp = await client.post("/api/v1/users/sync", json=payload)
    assert resp.status_code == 201
    body = resp.json()
    assert body["email"] == "sadia@example.com"
    assert body["role"] == "passenger"
    assert body["authProvider"] == "google"
    assert body["profileComplete"] is False

    resp = await client.post(
        "/api/v1/users/sync", json={**payload, "phone": "+8801711000009"}
    )
    assert resp.status_code == 200
    assert resp.json()["id"] == body["id"]
    assert resp.json()["phone"] == "+8801711000009"


@pytest.mark.asyncio
async def test_sync_user_missing_fields(client: AsyncClient):
    resp = await client.post("/api/v1/users/sync", json={"email": "a@example.com"})
    assert resp.status_code == 400
    assert resp.json()["details"]["missing"] == ["external_uid", "name"]


@pytest.mark.asyncio
async def test_select_role_and_profile(client: AsyncClient, seeded):
    user_id = seeded["passenger_id"]
    resp = await client.patch(f"/api/v1/users/{user_id}/role", json={"role": "driver"})
    assert resp.status_code == 200
    assert resp.json()["role"] == "driver"

    resp = await client.patch(
        f"/api/v1/users/{user_id}/profile",
        json={"driverDetails": {"licenseNumber": "DL-77", "experience": 4}},
    )
    assert resp.status_code == 200
    assert resp.json()["driverDetails"] == {"licenseNumber": "DL-77", "experience": 4}


@pytest.mark.asyncio
async def test_get_unknown_user(client: AsyncClient):
    resp = await client.get("/api/v1/users/999")
    assert resp.status_code == 404
    assert resp.json()["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_get_user_by_external_uid(client: AsyncClient, seeded):
    resp = await client.get("/api/v1/users/uid/uid-nusrat-jahan")
    assert resp.status_code == 200
    assert resp.json()["id"] == seeded["passenger_id"]

    resp = await client.get("/api/v1/users/uid/nobody")
    assert resp.status_code == 404
    assert resp.json()["code"] == "NOT_FOUND"


@pytest.mark.asyncio
async def test_list_users(client: AsyncClient, seeded):
    resp = await client.get("/api/v1/users")
    assert resp.status_code == 200
    body = resp.json()
    assert body["count"] == 2
    assert {u["id"] for u in body["users"]} == {
        seeded["passenger_id"],
        seeded["driver_id"],
    }
