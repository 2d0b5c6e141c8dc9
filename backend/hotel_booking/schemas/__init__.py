from hotel_booking.schemas.user import UserCreate, UserResponse, UserLogin, SignInResponse
from hotel_booking.schemas.booking import (
    BookingRoomRequest, BookingIdResponse, BookingResponse, RoomResponse,
)
from hotel_booking.schemas.hotel import HotelResponse, HotelWithRoomsResponse, RoomOccupancyResponse

__all__ = [
    "UserCreate", "UserResponse", "UserLogin", "SignInResponse",
    "BookingRoomRequest", "BookingIdResponse", "BookingResponse", "RoomResponse",
    "HotelResponse", "HotelWithRoomsResponse", "RoomOccupancyResponse",
]
