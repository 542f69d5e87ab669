"""
Bookings API: status codes and error bodies
"""
from datetime import timedelta
from decimal import Decimal

import pytest

from bus_reservation.core.timeutils import today_local


@pytest.mark.asyncio
async def test_create_booking(client, user, bus):
    response = await client.post(
        f"/api/v1/bookings?user_id={user.id}",
        json={"bus_id": bus.id, "seats_booked": [5, 6]},
    )

    assert response.status_code == 201
    body = response.json()
    assert body["seats_booked"] == [5, 6]
    assert Decimal(body["total_amount"]) == Decimal("1000")
    assert body["status"] == "confirmed"
    assert body["payment_status"] == "completed"
    assert body["bus"]["bus_number"] == bus.bus_number
    assert body["user"]["email"] == user.email
    assert "X-Trace-ID" in response.headers

    bus_response = await client.get(f"/api/v1/buses/{bus.id}")
    assert bus_response.json()["available_seats"] == 38


@pytest.mark.asyncio
async def test_create_booking_requires_known_user(client, bus):
    response = await client.post("/api/v1/bookings?user_id=999", json={"bus_id": bus.id, "seats_booked": [1]})
    assert response.status_code == 401


@pytest.mark.asyncio
async def test_create_booking_requires_user_id(client, bus):
    response = await client.post("/api/v1/bookings", json={"bus_id": bus.id, "seats_booked": [1]})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_seat_conflict_body(client, user, other_user, bus):
    await client.post(f"/api/v1/bookings?user_id={user.id}", json={"bus_id": bus.id, "seats_booked": [5]})

    response = await client.post(
        f"/api/v1/bookings?user_id={other_user.id}",
        json={"bus_id": bus.id, "seats_booked": [4, 5]},
    )

    assert response.status_code == 409
    body = response.json()
    assert body["error"] == "seat_conflict"
    assert body["conflicting_seats"] == [5]
    assert "5" in body["message"]


@pytest.mark.asyncio
@pytest.mark.parametrize("seats, status_code, error", [
    ([], 400, "invalid_request"),
    ([2, 2], 400, "invalid_request"),
    ([41], 400, "invalid_seat"),
])
async def test_rejected_selections(client, user, bus, seats, status_code, error):
    response = await client.post(
        f"/api/v1/bookings?user_id={user.id}",
        json={"bus_id": bus.id, "seats_booked": seats},
    )

    assert response.status_code == status_code
    assert response.json()["error"] == error


@pytest.mark.asyncio
async def test_insufficient_capacity_body(client, user, create_bus):
    bus = await create_bus(available_seats=1)

    response = await client.post(
        f"/api/v1/bookings?user_id={user.id}",
        json={"bus_id": bus.id, "seats_booked": [1, 2]},
    )

    assert response.status_code == 409
    assert response.json() == {
        "error": "insufficient_capacity",
        "message": "Only 1 seats available",
        "available_seats": 1,
    }


@pytest.mark.asyncio
async def test_booking_past_bus(client, user, create_bus):
    bus = await create_bus(travel_date=today_local() - timedelta(days=2))

    response = await client.post(
        f"/api/v1/bookings?user_id={user.id}",
        json={"bus_id": bus.id, "seats_booked": [1]},
    )

    assert response.status_code == 400
    assert response.json()["error"] == "past_date"


@pytest.mark.asyncio
async def test_booking_unknown_bus(client, user):
    response = await client.post(
        f"/api/v1/bookings?user_id={user.id}",
        json={"bus_id": 4242, "seats_booked": [1]},
    )

    assert response.status_code == 404
    assert response.json()["error"] == "not_found"


@pytest.mark.asyncio
async def test_list_and_get_own_bookings(client, user, other_user, bus):
    created = await client.post(
        f"/api/v1/bookings?user_id={user.id}",
        json={"bus_id": bus.id, "seats_booked": [1]},
    )
    booking_id = created.json()["id"]
    await client.post(f"/api/v1/bookings?user_id={other_user.id}", json={"bus_id": bus.id, "seats_booked": [2]})

    listing = await client.get(f"/api/v1/bookings?user_id={user.id}")
    assert listing.status_code == 200
    assert listing.json()["total"] == 1
    assert listing.json()["bookings"][0]["id"] == booking_id

    own = await client.get(f"/api/v1/bookings/{booking_id}?user_id={user.id}")
    assert own.status_code == 200

    foreign = await client.get(f"/api/v1/bookings/{booking_id}?user_id={other_user.id}")
    assert foreign.status_code == 403
    assert foreign.json()["error"] == "forbidden"

    missing = await client.get(f"/api/v1/bookings/9999?user_id={user.id}")
    assert missing.status_code == 404


@pytest.mark.asyncio
async def test_cancel_booking(client, user, create_bus):
    bus = await create_bus(travel_date=today_local() + timedelta(days=2))
    created = await client.post(
        f"/api/v1/bookings?user_id={user.id}",
        json={"bus_id": bus.id, "seats_booked": [3, 4]},
    )
    booking_id = created.json()["id"]

    response = await client.patch(f"/api/v1/bookings/{booking_id}/cancel?user_id={user.id}")

    assert response.status_code == 200
    assert response.json()["status"] == "cancelled"
    assert response.json()["cancelled_at"] is not None

    seats = await client.get(f"/api/v1/buses/{bus.id}/booked-seats")
    assert seats.json()["booked_seats"] == []

    again = await client.patch(f"/api/v1/bookings/{booking_id}/cancel?user_id={user.id}")
    assert again.status_code == 400
    assert again.json()["error"] == "already_cancelled"

    cancelled = await client.get(f"/api/v1/bookings?user_id={user.id}&status=cancelled")
    assert cancelled.json()["total"] == 1


@pytest.mark.asyncio
async def test_cancel_too_close_to_departure(client, user, create_bus):
    # Departed at midnight today, still bookable by date
    bus = await create_bus(travel_date=today_local(), departure_time="00:00")
    created = await client.post(
        f"/api/v1/bookings?user_id={user.id}",
        json={"bus_id": bus.id, "seats_booked": [1]},
    )
    booking_id = created.json()["id"]

    response = await client.patch(f"/api/v1/bookings/{booking_id}/cancel?user_id={user.id}")

    assert response.status_code == 400
    assert response.json()["error"] == "too_late_to_cancel"
    assert response.json()["cutoff_hours"] == 2


@pytest.mark.asyncio
async def test_cancel_someone_elses_booking(client, user, other_user, admin, bus):
    created = await client.post(
        f"/api/v1/bookings?user_id={user.id}",
        json={"bus_id": bus.id, "seats_booked": [1]},
    )
    booking_id = created.json()["id"]

    forbidden = await client.patch(f"/api/v1/bookings/{booking_id}/cancel?user_id={other_user.id}")
    assert forbidden.status_code == 403

    by_admin = await client.patch(f"/api/v1/bookings/{booking_id}/cancel?user_id={admin.id}")
    assert by_admin.status_code == 200
    assert by_admin.json()["status"] == "cancelled"


@pytest.mark.asyncio
@pytest.mark.parametrize("seats", [[True], [1.0], ["1"]])
async def test_seat_numbers_must_be_json_integers(client, user, bus, seats):
    response = await client.post(
        f"/api/v1/bookings?user_id={user.id}",
        json={"bus_id": bus.id, "seats_booked": seats},
    )

    assert response.status_code == 422
    assert response.json()["error"] == "invalid_request"

    seat_map = await client.get(f"/api/v1/buses/{bus.id}/booked-seats")
    assert seat_map.json()["booked_seats"] == []


@pytest.mark.asyncio
async def test_selection_longer_than_largest_bus(client, user, bus):
    response = await client.post(
        f"/api/v1/bookings?user_id={user.id}",
        json={"bus_id": bus.id, "seats_booked": list(range(1, 62))},
    )

    assert response.status_code == 422
    body = response.json()
    assert body["error"] == "invalid_request"
    assert body["message"] == "Request validation failed"
    assert body["detail"][0]["loc"] == ["body", "seats_booked"]
