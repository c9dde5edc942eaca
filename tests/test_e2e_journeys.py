"""
End-to-end tests for complete booking journeys.
These tests drive the API from booking to trip completion.
"""
import pytest
from httpx import AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession

from src.models.driver import Driver
from src.models.vehicle import Vehicle
from src.utils.constants import VehicleStatus


def booking(vehicle_id: int, pickup: str, ret: str, driver_id: int | None = None) -> dict:
    payload = {
        "vehicle_id": vehicle_id,
        "pickup_date": f"{pickup}T09:00:00+00:00",
        "return_date": f"{ret}T09:00:00+00:00",
    }
    if driver_id is not None:
        payload.update(driver_required=True, driver_id=driver_id)
    return payload


async def refreshed(db_session: AsyncSession, *objs):
    for obj in objs:
        await db_session.refresh(obj)


@pytest.mark.asyncio
async def test_book_confirm_cancel_rebook(
    client: AsyncClient,
    db_session: AsyncSession,
    auth_headers: dict,
    admin_headers: dict,
    vehicle: Vehicle,
):
    # 1. Book a two day rental
    response = await client.post(
        "/api/v1/reservations",
        json=booking(vehicle.id, "2030-01-10", "2030-01-12"),
        headers=auth_headers,
    )
    assert response.status_code == 200
    first = response.json()
    assert first["days"] == 2
    assert first["base_price"] == 10000
    assert first["status"] == "pending"

    # 2. An overlapping booking on the same vehicle is refused
    response = await client.post(
        "/api/v1/reservations",
        json=booking(vehicle.id, "2030-01-11", "2030-01-13"),
        headers=auth_headers,
    )
    assert response.status_code == 409
    assert response.json()["detail"]["conflicting_reservation_id"] == first["id"]

    # 3. Confirmation puts the vehicle on rent
    response = await client.put(
        f"/api/v1/reservations/{first['id']}/status",
        json={"status": "confirmed"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    await refreshed(db_session, vehicle)
    assert vehicle.status == VehicleStatus.RENTED

    # 4. Cancelling frees the vehicle and the dates
    response = await client.put(
        f"/api/v1/reservations/{first['id']}/status",
        json={"status": "cancelled"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    await refreshed(db_session, vehicle)
    assert vehicle.status == VehicleStatus.AVAILABLE

    response = await client.post(
        "/api/v1/reservations",
        json=booking(vehicle.id, "2030-01-10", "2030-01-12"),
        headers=auth_headers,
    )
    assert response.status_code == 200
    assert response.json()["id"] != first["id"]

    # Cancelled bookings stay cancelled
    response = await client.put(
        f"/api/v1/reservations/{first['id']}/status",
        json={"status": "confirmed"},
        headers=admin_headers,
    )
    assert response.status_code == 409


@pytest.mark.asyncio
async def test_chauffeured_trip_journey(
    client: AsyncClient,
    db_session: AsyncSession,
    auth_headers: dict,
    admin_headers: dict,
    driver_headers: dict,
    vehicle: Vehicle,
    driver: Driver,
):
    # 5. Three days with a driver at 2500/day
    response = await client.post(
        "/api/v1/reservations",
        json=booking(vehicle.id, "2030-02-01", "2030-02-04", driver_id=driver.id),
        headers=auth_headers,
    )
    assert response.status_code == 200
    reservation = response.json()
    assert reservation["days"] == 3
    assert reservation["base_price"] == 15000
    assert reservation["driver_price"] == 7500
    assert reservation["total_price"] == 22500
    reservation_id = reservation["id"]

    # The driver sees the assignment and can open it
    response = await client.get("/api/v1/reservations/driver", headers=driver_headers)
    assert response.status_code == 200
    assert [r["id"] for r in response.json()["reservations"]] == [reservation_id]

    response = await client.get(f"/api/v1/reservations/{reservation_id}", headers=driver_headers)
    assert response.status_code == 200

    # Trip cannot start before confirmation
    response = await client.put(
        f"/api/v1/reservations/{reservation_id}/trip-status",
        json={"trip_status": "started"},
        headers=driver_headers,
    )
    assert response.status_code == 409

    response = await client.put(
        f"/api/v1/reservations/{reservation_id}/status",
        json={"status": "confirmed"},
        headers=admin_headers,
    )
    assert response.status_code == 200
    await refreshed(db_session, vehicle, driver)
    assert vehicle.status == VehicleStatus.RENTED
    assert driver.availability is False

    # 6. Driver runs the trip
    response = await client.put(
        f"/api/v1/reservations/{reservation_id}/trip-status",
        json={"trip_status": "started"},
        headers=driver_headers,
    )
    assert response.status_code == 200
    assert response.json()["status"] == "confirmed"
    assert response.json()["trip_status"] == "started"

    # Once the trip is under way the customer can no longer cancel
    response = await client.put(
        f"/api/v1/reservations/{reservation_id}/cancel", headers=auth_headers
    )
    assert response.status_code == 409

    response = await client.put(
        f"/api/v1/reservations/{reservation_id}/trip-status",
        json={"trip_status": "completed"},
        headers=driver_headers,
    )
    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "completed"
    assert data["trip_status"] == "completed"
    assert data["completed_at"] is not None

    await refreshed(db_session, vehicle, driver)
    assert vehicle.status == VehicleStatus.AVAILABLE
    assert driver.availability is True

    # Settle the bill
    response = await client.put(
        f"/api/v1/reservations/{reservation_id}/payment",
        json={"payment_status": "paid", "bill_details": {"total": 22500}},
        headers=admin_headers,
    )
    assert response.status_code == 200
    assert response.json()["payment_status"] == "paid"
