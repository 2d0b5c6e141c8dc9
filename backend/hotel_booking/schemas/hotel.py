"""
Pydantic schemas for the hotel catalog.
"""

from datetime import datetime
from pydantic import BaseModel, Field

from hotel_booking.schemas.booking import RoomResponse


class HotelResponse(BaseModel):
    id: int
    name: str
    image: str
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")

    model_config = {"from_attributes": True, "populate_by_name": True}


class RoomOccupancyResponse(RoomResponse):
    booked: int


class HotelWithRoomsResponse(HotelResponse):
    rooms: list[RoomOccupancyResponse] = Field(..., alias="Rooms")
