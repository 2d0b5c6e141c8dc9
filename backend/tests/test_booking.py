"""
Tests for the booking endpoints: GET /booking, POST /booking, PUT /booking/{bookingId}.
"""

from datetime import datetime

import pytest
from httpx import AsyncClient
from sqlalchemy.exc import SQLAlchemyError

from hotel_booking.core.security import create_access_token
from hotel_booking.models.booking import Booking
from hotel_booking.models.ticket import TicketStatus
from hotel_booking.services.booking_service import BookingService

from tests import factories


def _parse_timestamp(value: str) -> datetime:
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


@pytest.mark.parametrize(
    "method, path",
    [("get", "/booking"), ("post", "/booking"), ("put", "/booking/1")],
)
class TestUnauthenticated:
    @pytest.mark.asyncio
    async def test_no_token(self, client: AsyncClient, method, path):
        response = await client.request(method.upper(), path, json={"roomId": 1})
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_no_token_no_body(self, client: AsyncClient, method, path):
        response = await client.request(method.upper(), path)
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_no_token_malformed_body(self, client: AsyncClient, method, path):
        """Auth is decided before the body is decoded."""
        response = await client.request(
            method.upper(), path, content=b"{not json", headers={"Content-Type": "application/json"}
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_token_not_valid(self, client: AsyncClient, method, path):
        response = await client.request(
            method.upper(), path, json={"roomId": 1}, headers={"Authorization": "Bearer lorem"}
        )
        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_no_session_for_token(self, client: AsyncClient, db_session, method, path):
        """A correctly signed token is still rejected when no session holds it."""
        user = await factories.create_user(db_session)
        token = create_access_token(data={"sub": str(user.id)})

        response = await client.request(
            method.upper(), path, json={"roomId": 1}, headers={"Authorization": f"Bearer {token}"}
        )
        assert response.status_code == 401


# POST /booking

@pytest.mark.asyncio
async def test_create_booking_without_room_id(client: AsyncClient, db_session, auth_headers, eligible_user):
    """Missing roomId returns 400 and creates nothing."""
    response = await client.post("/booking", json={}, headers=auth_headers)
    assert response.status_code == 400
    assert await factories.count_bookings(db_session) == 0


@pytest.mark.asyncio
async def test_create_booking_without_body(client: AsyncClient, auth_headers, eligible_user):
    response = await client.post("/booking", headers=auth_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_create_booking_malformed_json(client: AsyncClient, db_session, auth_headers, eligible_user):
    response = await client.post(
        "/booking", content=b"{not json", headers={**auth_headers, "Content-Type": "application/json"}
    )
    assert response.status_code == 400
    assert await factories.count_bookings(db_session) == 0


@pytest.mark.asyncio
async def test_create_booking_room_id_not_a_number(client: AsyncClient, auth_headers, eligible_user):
    response = await client.post("/booking", json={"roomId": "abc"}, headers=auth_headers)
    assert response.status_code == 422
    assert response.json()["detail"][0]["loc"] == ["body", "roomId"]


@pytest.mark.asyncio
async def test_create_booking_without_enrollment(client: AsyncClient, db_session, auth_headers, room):
    response = await client.post("/booking", json={"roomId": room.id}, headers=auth_headers)
    assert response.status_code == 403
    assert response.json()["detail"] == "Enrollment is needed"
    assert await factories.count_bookings(db_session) == 0


@pytest.mark.asyncio
async def test_create_booking_without_ticket(client: AsyncClient, db_session, test_user, auth_headers, room):
    await factories.create_enrollment_with_address(db_session, test_user)

    response = await client.post("/booking", json={"roomId": room.id}, headers=auth_headers)
    assert response.status_code == 403
    assert response.json()["detail"] == "Ticket Error"


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "ticket_type_factory, status",
    [
        (factories.create_ticket_type_remote, TicketStatus.PAID),
        (factories.create_ticket_type_without_hotel, TicketStatus.PAID),
        (factories.create_ticket_type_with_hotel, TicketStatus.RESERVED),
    ],
    ids=["remote", "without_hotel", "not_paid"],
)
async def test_create_booking_with_ineligible_ticket(
    client: AsyncClient, db_session, test_user, auth_headers, room, ticket_type_factory, status
):
    enrollment = await factories.create_enrollment_with_address(db_session, test_user)
    ticket_type = await ticket_type_factory(db_session)
    await factories.create_ticket(db_session, enrollment.id, ticket_type.id, status)

    response = await client.post("/booking", json={"roomId": room.id}, headers=auth_headers)
    assert response.status_code == 403
    assert await factories.count_bookings(db_session) == 0


@pytest.mark.asyncio
async def test_create_booking_room_full(client: AsyncClient, db_session, auth_headers, eligible_user, room):
    """A room holding `capacity` bookings rejects another with 403."""
    await factories.sell_out_room(db_session, room)

    response = await client.post("/booking", json={"roomId": room.id}, headers=auth_headers)
    assert response.status_code == 403
    assert response.json()["detail"] == "Room is currently unavailable"
    assert await factories.count_bookings(db_session, room.id) == room.capacity


@pytest.mark.asyncio
async def test_create_booking_takes_last_slot(client: AsyncClient, db_session, auth_headers, eligible_user, room):
    """A room holding capacity - 1 bookings accepts exactly one more."""
    await factories.sell_out_room(db_session, room, leave_free=1)

    response = await client.post("/booking", json={"roomId": room.id}, headers=auth_headers)
    assert response.status_code == 200
    assert await factories.count_bookings(db_session, room.id) == room.capacity


@pytest.mark.asyncio
async def test_create_booking_room_not_found(client: AsyncClient, auth_headers, eligible_user, room):
    response = await client.post("/booking", json={"roomId": 999999}, headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_create_booking(client: AsyncClient, db_session, auth_headers, eligible_user, room):
    """All conditions met: 200 with the new booking id."""
    response = await client.post("/booking", json={"roomId": room.id}, headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert set(data) == {"bookingId"}
    assert isinstance(data["bookingId"], int)

    booking = await db_session.get(Booking, data["bookingId"])
    assert booking.user_id == eligible_user.id
    assert booking.room_id == room.id


@pytest.mark.asyncio
async def test_create_second_booking_rejected(client: AsyncClient, db_session, auth_headers, eligible_user, hotel, room):
    """A user holding a booking cannot reserve another room."""
    await factories.create_booking(db_session, room.id, eligible_user.id)
    other_room = await factories.create_room_with_hotel_id(db_session, hotel.id)

    response = await client.post("/booking", json={"roomId": other_room.id}, headers=auth_headers)
    assert response.status_code == 403
    assert response.json()["detail"] == "User already has a booking"
    assert await factories.count_bookings(db_session) == 1


# GET /booking

@pytest.mark.asyncio
async def test_get_booking_when_user_has_none(client: AsyncClient, auth_headers, eligible_user, room):
    response = await client.get("/booking", headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_get_booking_database_error(client: AsyncClient, auth_headers, eligible_user, monkeypatch):
    async def failing_fetch(self, user_id):
        raise SQLAlchemyError("connection lost")

    monkeypatch.setattr(BookingService, "fetch_booking", failing_fetch)

    response = await client.get("/booking", headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_get_booking(client: AsyncClient, db_session, auth_headers, eligible_user, room):
    """Returns the booking id and the stored room, timestamps as ISO strings."""
    booking = await factories.create_booking(db_session, room.id, eligible_user.id)

    response = await client.get("/booking", headers=auth_headers)
    assert response.status_code == 200
    data = response.json()
    assert data["id"] == booking.id

    returned_room = data["Room"]
    assert set(returned_room) == {"id", "name", "capacity", "hotelId", "createdAt", "updatedAt"}
    assert returned_room["id"] == room.id
    assert returned_room["name"] == room.name
    assert returned_room["capacity"] == room.capacity
    assert returned_room["hotelId"] == room.hotel_id
    assert _parse_timestamp(returned_room["createdAt"]) == room.created_at
    assert _parse_timestamp(returned_room["updatedAt"]) == room.updated_at


# PUT /booking/{bookingId}

@pytest.mark.asyncio
async def test_change_booking_without_any_booking(client: AsyncClient, db_session, auth_headers, hotel, room):
    mock_booking = await factories.create_mock_booking(db_session, room.id)
    new_room = await factories.create_room_with_hotel_id(db_session, hotel.id)

    response = await client.put(
        f"/booking/{mock_booking.id}", json={"roomId": new_room.id}, headers=auth_headers
    )
    assert response.status_code == 403


@pytest.mark.asyncio
async def test_change_booking_not_owned(client: AsyncClient, db_session, test_user, auth_headers, hotel, room):
    """Owning some booking does not allow moving someone else's."""
    await factories.create_booking(db_session, room.id, test_user.id)
    mock_booking = await factories.create_mock_booking(db_session, room.id)
    new_room = await factories.create_room_with_hotel_id(db_session, hotel.id)

    response = await client.put(
        f"/booking/{mock_booking.id}", json={"roomId": new_room.id}, headers=auth_headers
    )
    assert response.status_code == 403

    await db_session.refresh(mock_booking)
    assert mock_booking.room_id == room.id


@pytest.mark.asyncio
async def test_change_booking_unknown_booking_id(client: AsyncClient, db_session, test_user, auth_headers, hotel, room):
    await factories.create_booking(db_session, room.id, test_user.id)
    new_room = await factories.create_room_with_hotel_id(db_session, hotel.id)

    response = await client.put("/booking/999999", json={"roomId": new_room.id}, headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_change_booking_room_not_found(client: AsyncClient, db_session, test_user, auth_headers, room):
    booking = await factories.create_booking(db_session, room.id, test_user.id)

    response = await client.put(f"/booking/{booking.id}", json={"roomId": room.id + 10}, headers=auth_headers)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_change_booking_room_full(client: AsyncClient, db_session, test_user, auth_headers, room):
    booking = await factories.create_booking(db_session, room.id, test_user.id)
    other_hotel = await factories.create_hotel(db_session)
    full_room = await factories.create_room_with_hotel_id(db_session, other_hotel.id)
    await factories.sell_out_room(db_session, full_room)

    response = await client.put(f"/booking/{booking.id}", json={"roomId": full_room.id}, headers=auth_headers)
    assert response.status_code == 403
    assert await factories.count_bookings(db_session, full_room.id) == full_room.capacity


@pytest.mark.asyncio
async def test_change_booking_without_room_id(client: AsyncClient, db_session, test_user, auth_headers, room):
    booking = await factories.create_booking(db_session, room.id, test_user.id)

    response = await client.put(f"/booking/{booking.id}", json={}, headers=auth_headers)
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_change_booking(client: AsyncClient, db_session, test_user, auth_headers, room):
    """Moving to a room with a free slot returns the same booking id and updates its room."""
    booking = await factories.create_booking(db_session, room.id, test_user.id)
    other_hotel = await factories.create_hotel(db_session)
    new_room = await factories.create_room_with_hotel_id(db_session, other_hotel.id)

    response = await client.put(f"/booking/{booking.id}", json={"roomId": new_room.id}, headers=auth_headers)
    assert response.status_code == 200
    assert response.json() == {"bookingId": booking.id}

    await db_session.refresh(booking)
    assert booking.room_id == new_room.id

    # GET reflects the move
    response = await client.get("/booking", headers=auth_headers)
    assert response.json()["Room"]["id"] == new_room.id
