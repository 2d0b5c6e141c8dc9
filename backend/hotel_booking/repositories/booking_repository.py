"""
Data access for bookings and the rooms they occupy.

No business rules live here. The two writes are conditional on room
occupancy so that capacity holds even when two requests race for the last
slot. The insert also refuses a second booking for the same user:

  INSERT INTO bookings (user_id, room_id)
  SELECT :user_id, :room_id
  WHERE (SELECT count(*) FROM bookings WHERE room_id = :room_id)
      < (SELECT capacity FROM rooms WHERE id = :room_id)
    AND NOT EXISTS (SELECT 1 FROM bookings WHERE user_id = :user_id)

  UPDATE bookings SET room_id = :room_id
  WHERE id = :booking_id AND <same occupancy predicate>

Combined with the room row lock taken by `room_capacity(..., for_update=True)`
in the same transaction, concurrent writers against one room are serialised
on PostgreSQL, and the predicate re-checks occupancy at write time.
`lock_user` does the same for one user's concurrent reservations.
"""

from typing import Optional

from sqlalchemy import Integer, and_, exists, func, insert, literal, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import aliased, selectinload

from hotel_booking.models.booking import Booking
from hotel_booking.models.hotel import Room
from hotel_booking.models.user import User


def _has_free_slot(room_id: int):
    # Aliased so the count is never correlated against the bookings row being updated
    occupant = aliased(Booking)
    occupancy = (
        select(func.count(occupant.id))
        .where(occupant.room_id == room_id)
        .scalar_subquery()
    )
    capacity = select(Room.capacity).where(Room.id == room_id).scalar_subquery()
    return occupancy < capacity


def _holds_no_booking(user_id: int):
    held = aliased(Booking)
    return ~exists().where(held.user_id == user_id)


class BookingRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def new_booking(self, room_id: int, user_id: int) -> Optional[Booking]:
        """
        Insert a booking if the room still has room and the user holds none.
        Returns None when either condition fails.
        """
        bookings = Booking.__table__
        stmt = (
            insert(bookings)
            .from_select(
                ["user_id", "room_id"],
                select(
                    literal(user_id, type_=Integer),
                    literal(room_id, type_=Integer),
                ).where(and_(_has_free_slot(room_id), _holds_no_booking(user_id))),
            )
            .returning(bookings.c.id)
        )
        booking_id = (await self.db.execute(stmt)).scalar_one_or_none()
        if booking_id is None:
            return None
        return await self.db.get(Booking, booking_id)

    async def lock_user(self, user_id: int) -> None:
        """SELECT ... FOR UPDATE on the user row; held until the transaction ends."""
        await self.db.execute(select(User.id).where(User.id == user_id).with_for_update())

    async def room_capacity(self, room_id: int, for_update: bool = False) -> Optional[Room]:
        stmt = select(Room).where(Room.id == room_id)
        if for_update:
            stmt = stmt.with_for_update()
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def room_availability(self, room_id: int) -> list[Booking]:
        result = await self.db.execute(select(Booking).where(Booking.room_id == room_id))
        return list(result.scalars().all())

    async def find_booking(self, user_id: int) -> Optional[Booking]:
        """First booking owned by the user, with its room loaded."""
        result = await self.db.execute(
            select(Booking)
            .where(Booking.user_id == user_id)
            .options(selectinload(Booking.room))
            .order_by(Booking.id)
            .limit(1)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_booking_id(self, booking_id: int) -> Optional[Booking]:
        result = await self.db.execute(select(Booking).where(Booking.id == booking_id))
        return result.scalar_one_or_none()

    async def redo_booking(self, room_id: int, booking_id: int) -> Optional[Booking]:
        """Move a booking to another room if it has a free slot. None when nothing changed."""
        bookings = Booking.__table__
        result = await self.db.execute(
            update(bookings)
            .where(bookings.c.id == booking_id, _has_free_slot(room_id))
            .values(room_id=room_id, updated_at=func.now())
        )
        if result.rowcount == 0:
            return None
        return await self.db.get(Booking, booking_id, populate_existing=True)
