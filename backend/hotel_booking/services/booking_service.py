"""
Booking service: who may hold a room, and moving a hold between rooms.

ELIGIBILITY
===========

A user may reserve a room when, checked in this order:
  1. they have an enrollment
  2. their enrollment has a ticket that is paid, in-person and includes hotel
  3. they do not already hold a booking
  4. the room exists
  5. the room's bookings are strictly fewer than its capacity

CAPACITY UNDER CONCURRENCY
==========================

Problem:
  Two users read occupancy = capacity - 1 for the same room, both pass the
  check, both insert. Result: overbooked room.

Solution:
  Everything below runs in the request's single transaction.

  1. SELECT ... FOR UPDATE on the room row. Concurrent writers for the same
     room queue here on PostgreSQL until the first one commits.
  2. Count bookings on the room and reject early with a clear reason.
  3. Write with a predicate that re-counts occupancy inside the statement
     (see BookingRepository). If the predicate fails the write touches no
     rows and the request is rejected as unavailable.

  Step 3 alone keeps capacity on backends where step 1 is a no-op (SQLite).

  One booking per user is kept the same way: reserve_room locks the user row
  before looking for an existing booking, and the insert refuses a user who
  already holds one.
"""

from typing import NoReturn

from sqlalchemy.ext.asyncio import AsyncSession

from hotel_booking.core.exceptions import BusinessRuleError, NotFoundError
from hotel_booking.core.logging import get_logger
from hotel_booking.models.booking import Booking
from hotel_booking.models.ticket import TicketStatus
from hotel_booking.repositories import BookingRepository, EnrollmentRepository, TicketRepository

logger = get_logger(__name__)

ENROLLMENT_NEEDED = "Enrollment is needed"
TICKET_ERROR = "Ticket Error"
ALREADY_BOOKED = "User already has a booking"
ROOM_UNAVAILABLE = "Room is currently unavailable"
NO_RESERVATION = "No reservation by this user was found"


class BookingService:
    def __init__(self, db: AsyncSession):
        self.bookings = BookingRepository(db)
        self.enrollments = EnrollmentRepository(db)
        self.tickets = TicketRepository(db)

    async def reserve_room(self, room_id: int, user_id: int) -> Booking:
        """
        Reserve `room_id` for `user_id`.

        Raises BusinessRuleError for every eligibility or capacity failure and
        NotFoundError when the room does not exist.
        """
        enrollment = await self.enrollments.find_with_address_by_user_id(user_id)
        if not enrollment:
            self._reject("reserve", ENROLLMENT_NEEDED, user_id=user_id, room_id=room_id)

        ticket = await self.tickets.find_ticket_by_enrollment_id(enrollment.id)
        if (
            not ticket
            or ticket.status == TicketStatus.RESERVED
            or ticket.ticket_type.is_remote
            or not ticket.ticket_type.includes_hotel
        ):
            self._reject("reserve", TICKET_ERROR, user_id=user_id, room_id=room_id)

        await self.bookings.lock_user(user_id)
        if await self.bookings.find_booking(user_id):
            self._reject("reserve", ALREADY_BOOKED, user_id=user_id, room_id=room_id)

        await self._check_room_has_free_slot("reserve", room_id, user_id)

        booking = await self.bookings.new_booking(room_id, user_id)
        if booking is None:
            # Another transaction wrote between the checks and the insert
            reason = ALREADY_BOOKED if await self.bookings.find_booking(user_id) else ROOM_UNAVAILABLE
            self._reject("reserve", reason, user_id=user_id, room_id=room_id, raced=True)

        logger.info("booking_created", booking_id=booking.id, user_id=user_id, room_id=room_id)
        return booking

    async def fetch_booking(self, user_id: int) -> dict:
        """The user's booking as {"id", "Room"}; NotFoundError if they have none."""
        booking = await self.bookings.find_booking(user_id)
        if not booking:
            raise NotFoundError()

        return {"id": booking.id, "Room": booking.room}

    async def change_booking_room(self, room_id: int, user_id: int, booking_id: int) -> int:
        """Move the user's booking `booking_id` to `room_id` and return the booking id."""
        if not await self.bookings.find_booking(user_id):
            self._reject("change", NO_RESERVATION, user_id=user_id, booking_id=booking_id)

        booking = await self.bookings.get_booking_id(booking_id)
        if booking is None:
            raise NotFoundError(f"Booking {booking_id} not found")
        if booking.user_id != user_id:
            self._reject("change", NO_RESERVATION, user_id=user_id, booking_id=booking_id)

        await self._check_room_has_free_slot("change", room_id, user_id)

        updated = await self.bookings.redo_booking(room_id, booking_id)
        if updated is None:
            self._reject(
                "change", ROOM_UNAVAILABLE, user_id=user_id, room_id=room_id, raced=True
            )

        logger.info("booking_room_changed", booking_id=booking_id, user_id=user_id, room_id=room_id)
        return updated.id

    async def _check_room_has_free_slot(self, operation: str, room_id: int, user_id: int) -> None:
        room = await self.bookings.room_capacity(room_id, for_update=True)
        if not room:
            logger.info("booking_room_not_found", operation=operation, room_id=room_id)
            raise NotFoundError(f"Room {room_id} not found")

        occupancy = len(await self.bookings.room_availability(room_id))
        if occupancy >= room.capacity:
            self._reject(
                operation,
                ROOM_UNAVAILABLE,
                user_id=user_id,
                room_id=room_id,
                occupancy=occupancy,
                capacity=room.capacity,
            )

    @staticmethod
    def _reject(operation: str, reason: str, **context) -> NoReturn:
        logger.warning("booking_rejected", operation=operation, reason=reason, **context)
        raise BusinessRuleError(reason)
