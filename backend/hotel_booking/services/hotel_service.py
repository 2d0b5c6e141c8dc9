"""
Read-only hotel catalog: hotels, their rooms, and how full each room is.
"""

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from hotel_booking.core.exceptions import NotFoundError
from hotel_booking.models.booking import Booking
from hotel_booking.models.hotel import Hotel, Room


async def list_hotels(db: AsyncSession) -> list[Hotel]:
    result = await db.execute(select(Hotel).order_by(Hotel.id))
    return list(result.scalars().all())


async def get_hotel_with_rooms(db: AsyncSession, hotel_id: int) -> tuple[Hotel, dict[int, int]]:
    """
    Hotel with its rooms loaded, plus a room_id -> booking count map.
    One grouped COUNT covers every room of the hotel.
    """
    result = await db.execute(
        select(Hotel)
        .where(Hotel.id == hotel_id)
        .options(selectinload(Hotel.rooms))
        .execution_options(populate_existing=True)
    )
    hotel = result.scalar_one_or_none()
    if not hotel:
        raise NotFoundError(f"Hotel {hotel_id} not found")

    counts = await db.execute(
        select(Booking.room_id, func.count(Booking.id))
        .join(Room, Room.id == Booking.room_id)
        .where(Room.hotel_id == hotel_id)
        .group_by(Booking.room_id)
    )
    occupancy = {room_id: count for room_id, count in counts.all()}
    return hotel, occupancy
