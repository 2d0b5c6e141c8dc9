"""
Pydantic schemas for booking-related request/response validation.

Wire names are camelCase (`roomId`, `bookingId`, `hotelId`, ...) and the
booked room is nested under `Room`.
"""

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field


class BookingRoomRequest(BaseModel):
    # Optional here so a missing roomId can be answered with 400 rather than 422
    room_id: Optional[int] = Field(default=None, alias="roomId")

    model_config = {"populate_by_name": True}


class BookingIdResponse(BaseModel):
    booking_id: int = Field(..., alias="bookingId")

    model_config = {"populate_by_name": True}


class RoomResponse(BaseModel):
    id: int
    name: str
    capacity: int
    hotel_id: int = Field(..., alias="hotelId")
    created_at: datetime = Field(..., alias="createdAt")
    updated_at: datetime = Field(..., alias="updatedAt")

    model_config = {"from_attributes": True, "populate_by_name": True}


class BookingResponse(BaseModel):
    id: int
    room: RoomResponse = Field(..., alias="Room")

    model_config = {"from_attributes": True, "populate_by_name": True}
