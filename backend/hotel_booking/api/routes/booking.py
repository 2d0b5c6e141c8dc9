"""
Booking endpoints: view, reserve and change the caller's hotel room.

Status mapping:
  any   no valid session -> 401, checked before the body is read
  GET   any failure, including a database error -> 404
  POST  missing roomId or malformed JSON -> 400, room not found -> 404, rule violated -> 403
  PUT   same as POST
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError

from hotel_booking.api.deps import get_booking_service, get_current_user_id, get_room_request
from hotel_booking.core.exceptions import BookingError, BusinessRuleError, NotFoundError
from hotel_booking.core.logging import get_logger
from hotel_booking.core.metrics import booking_latency, record_booking_operation
from hotel_booking.schemas.booking import BookingIdResponse, BookingResponse, BookingRoomRequest
from hotel_booking.services.booking_service import BookingService

logger = get_logger(__name__)
router = APIRouter(prefix="/booking", tags=["Booking"])

# The body is read by get_room_request, so document it by hand
ROOM_REQUEST_BODY = {
    "requestBody": {
        "content": {"application/json": {"schema": BookingRoomRequest.model_json_schema(by_alias=True)}},
    },
}


def _require_room_id(payload: Optional[BookingRoomRequest]) -> int:
    if payload is None or not payload.room_id:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="roomId is required")
    return payload.room_id


def _to_http_error(operation: str, exc: BookingError) -> HTTPException:
    if isinstance(exc, NotFoundError):
        record_booking_operation(operation, "not_found")
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.message)
    record_booking_operation(operation, "rejected")
    return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=exc.message)


@router.get("", response_model=BookingResponse)
async def get_booking(
    user_id: int = Depends(get_current_user_id),
    service: BookingService = Depends(get_booking_service),
):
    """The caller's booking and the room it holds."""
    with booking_latency.labels(operation="fetch").time():
        try:
            booking = await service.fetch_booking(user_id)
        except BookingError as exc:
            record_booking_operation("fetch", "not_found")
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=exc.message) from exc
        except SQLAlchemyError as exc:
            logger.exception("booking_fetch_failed", user_id=user_id)
            record_booking_operation("fetch", "error")
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=NotFoundError().message) from exc

    record_booking_operation("fetch", "success")
    return booking


@router.post("", response_model=BookingIdResponse, openapi_extra=ROOM_REQUEST_BODY)
async def create_booking(
    payload: Optional[BookingRoomRequest] = Depends(get_room_request),
    user_id: int = Depends(get_current_user_id),
    service: BookingService = Depends(get_booking_service),
):
    """
    Reserve a room.

    The caller needs an enrollment and a paid, in-person ticket that includes
    hotel, must not already hold a booking, and the room must have a free slot.
    """
    room_id = _require_room_id(payload)

    with booking_latency.labels(operation="reserve").time():
        try:
            booking = await service.reserve_room(room_id, user_id)
        except (NotFoundError, BusinessRuleError) as exc:
            raise _to_http_error("reserve", exc) from exc

    record_booking_operation("reserve", "success")
    return BookingIdResponse(booking_id=booking.id)


@router.put("/{booking_id}", response_model=BookingIdResponse, openapi_extra=ROOM_REQUEST_BODY)
async def change_booking(
    booking_id: int,
    payload: Optional[BookingRoomRequest] = Depends(get_room_request),
    user_id: int = Depends(get_current_user_id),
    service: BookingService = Depends(get_booking_service),
):
    """Move the caller's booking to another room with a free slot."""
    room_id = _require_room_id(payload)

    with booking_latency.labels(operation="change").time():
        try:
            updated_id = await service.change_booking_room(room_id, user_id, booking_id)
        except (NotFoundError, BusinessRuleError) as exc:
            raise _to_http_error("change", exc) from exc

    record_booking_operation("change", "success")
    return BookingIdResponse(booking_id=updated_id)
