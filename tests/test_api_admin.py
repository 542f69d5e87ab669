"""
Admin fleet management API
"""
from datetime import timedelta

import pytest

from bus_reservation.core.timeutils import today_local
from bus_reservation.services import BusService


def bus_payload(**overrides):
    payload = {
        "bus_number": "mh12ab1234",
        "origin": "Mumbai",
        "destination": "Pune",
        "travel_date": (today_local() + timedelta(days=3)).isoformat(),
        "departure_time": "8:00",
        "total_seats": 40,
        "price": "500.00",
    }
    payload.update(overrides)
    return payload


@pytest.mark.asyncio
async def test_admin_routes_require_admin_role(client, user):
    listing = await client.get(f"/api/v1/admin/buses?user_id={user.id}")
    assert listing.status_code == 403

    create = await client.post(f"/api/v1/admin/buses?user_id={user.id}", json=bus_payload())
    assert create.status_code == 403

    anonymous = await client.get("/api/v1/admin/bookings")
    assert anonymous.status_code == 422


@pytest.mark.asyncio
async def test_create_bus(client, admin):
    response = await client.post(f"/api/v1/admin/buses?user_id={admin.id}", json=bus_payload())

    assert response.status_code == 201
    body = response.json()
    assert body["bus_number"] == "MH12AB1234"
    assert body["departure_time"] == "08:00"
    assert body["available_seats"] == 40

    duplicate = await client.post(f"/api/v1/admin/buses?user_id={admin.id}", json=bus_payload())
    assert duplicate.status_code == 409
    assert duplicate.json()["error"] == "duplicate_bus_number"


@pytest.mark.asyncio
async def test_create_bus_in_the_past(client, admin):
    response = await client.post(
        f"/api/v1/admin/buses?user_id={admin.id}",
        json=bus_payload(travel_date=(today_local() - timedelta(days=1)).isoformat()),
    )

    assert response.status_code == 400
    assert response.json()["error"] == "past_date"


@pytest.mark.asyncio
@pytest.mark.parametrize("overrides", [
    {"total_seats": 0},
    {"total_seats": 61},
    {"price": "0"},
    {"departure_time": "25:00"},
    {"origin": "   "},
])
async def test_create_bus_validation(client, admin, overrides):
    response = await client.post(f"/api/v1/admin/buses?user_id={admin.id}", json=bus_payload(**overrides))
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_update_bus_recomputes_availability(client, admin, user, bus):
    await client.post(f"/api/v1/bookings?user_id={user.id}", json={"bus_id": bus.id, "seats_booked": [30, 31]})

    too_small = await client.put(f"/api/v1/admin/buses/{bus.id}?user_id={admin.id}", json={"total_seats": 30})
    assert too_small.status_code == 409
    assert too_small.json()["error"] == "seat_capacity"
    assert too_small.json()["highest_booked_seat"] == 31

    resized = await client.put(
        f"/api/v1/admin/buses/{bus.id}?user_id={admin.id}",
        json={"total_seats": 35, "price": "650.00"},
    )
    assert resized.status_code == 200
    body = resized.json()
    assert body["total_seats"] == 35
    assert body["available_seats"] == 33
    assert body["origin"] == bus.origin


@pytest.mark.asyncio
async def test_update_unknown_bus(client, admin):
    response = await client.put(f"/api/v1/admin/buses/999?user_id={admin.id}", json={"origin": "Surat"})
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_delete_bus_with_confirmed_bookings_is_refused(client, admin, user, bus):
    created = await client.post(
        f"/api/v1/bookings?user_id={user.id}",
        json={"bus_id": bus.id, "seats_booked": [1]},
    )
    booking_id = created.json()["id"]

    refused = await client.delete(f"/api/v1/admin/buses/{bus.id}?user_id={admin.id}")
    assert refused.status_code == 409
    assert refused.json()["active_bookings"] == 1

    await client.patch(f"/api/v1/bookings/{booking_id}/cancel?user_id={user.id}")

    deleted = await client.delete(f"/api/v1/admin/buses/{bus.id}?user_id={admin.id}")
    assert deleted.status_code == 200
    assert deleted.json() == {"message": "Bus deleted successfully", "bus_id": bus.id}

    gone = await client.get(f"/api/v1/buses/{bus.id}")
    assert gone.status_code == 404


@pytest.mark.asyncio
async def test_admin_lists_every_booking(client, admin, user, other_user, bus):
    await client.post(f"/api/v1/bookings?user_id={user.id}", json={"bus_id": bus.id, "seats_booked": [1]})
    await client.post(f"/api/v1/bookings?user_id={other_user.id}", json={"bus_id": bus.id, "seats_booked": [2]})

    response = await client.get(f"/api/v1/admin/bookings?user_id={admin.id}")

    assert response.status_code == 200
    body = response.json()
    assert body["total"] == 2
    assert {b["user"]["email"] for b in body["bookings"]} == {user.email, other_user.email}

    buses = await client.get(f"/api/v1/admin/buses?user_id={admin.id}")
    assert buses.json()["count"] == 1


@pytest.mark.asyncio
async def test_rename_racing_onto_taken_number(client, admin, create_bus, monkeypatch):
    first = await create_bus(bus_number="MH12AB1234")
    second = await create_bus(bus_number="KA03EF9012")

    # Another admin's rename lands between the lookup and the commit
    async def number_looks_free(db, bus_number):
        return False

    monkeypatch.setattr(BusService, "_number_taken", staticmethod(number_looks_free))

    response = await client.put(
        f"/api/v1/admin/buses/{second.id}?user_id={admin.id}",
        json={"bus_number": first.bus_number, "origin": "Surat"},
    )

    assert response.status_code == 409
    assert response.json()["error"] == "duplicate_bus_number"

    unchanged = await client.get(f"/api/v1/buses/{second.id}")
    assert unchanged.json()["bus_number"] == "KA03EF9012"
    assert unchanged.json()["origin"] == "Mumbai"
