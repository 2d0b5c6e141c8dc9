"""
Hotel catalog endpoints. Read-only; rooms carry their current booking count.
"""

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_booking.api.deps import get_current_user_id
from hotel_booking.core.exceptions import NotFoundError
from hotel_booking.db.session import get_db
from hotel_booking.schemas.hotel import HotelResponse, HotelWithRoomsResponse, RoomOccupancyResponse
from hotel_booking.services.hotel_service import list_hotels, get_hotel_with_rooms

router = APIRouter(prefix="/hotels", tags=["Hotels"])


@router.get("", response_model=list[HotelResponse])
async def list_hotels_endpoint(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    return await list_hotels(db)


@router.get("/{hotel_id}", response_model=HotelWithRoomsResponse)
async def get_hotel_endpoint(
    hotel_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    """A hotel with every room and how many bookings each holds."""
    try:
        hotel, occupancy = await get_hotel_with_rooms(db, hotel_id)
    except NotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.message) from exc

    rooms = [
        RoomOccupancyResponse(
            id=room.id,
            name=room.name,
            capacity=room.capacity,
            hotel_id=room.hotel_id,
            created_at=room.created_at,
            updated_at=room.updated_at,
            booked=occupancy.get(room.id, 0),
        )
        for room in hotel.rooms
    ]
    return HotelWithRoomsResponse(
        id=hotel.id,
        name=hotel.name,
        image=hotel.image,
        created_at=hotel.created_at,
        updated_at=hotel.updated_at,
        rooms=rooms,
    )
