"""
Shared route dependencies: the authenticated user, the booking body and the
booking service.
"""

from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import TypeAdapter, ValidationError
from sqlalchemy.ext.asyncio import AsyncSession
import structlog

from hotel_booking.db.session import get_db
from hotel_booking.core.metrics import record_auth_failure
from hotel_booking.schemas.booking import BookingRoomRequest
from hotel_booking.services.auth_service import resolve_session
from hotel_booking.services.booking_service import BookingService

# auto_error=False: a missing header must be 401, not the scheme's default
bearer_scheme = HTTPBearer(auto_error=False)


def _unauthorized() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="You must be signed in to continue",
        headers={"WWW-Authenticate": "Bearer"},
    )


async def get_current_user_id(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    db: AsyncSession = Depends(get_db),
) -> int:
    if credentials is None:
        record_auth_failure("missing")
        raise _unauthorized()

    user_id = await resolve_session(db, credentials.credentials)
    if user_id is None:
        record_auth_failure("invalid")
        raise _unauthorized()

    structlog.contextvars.bind_contextvars(user_id=user_id)
    return user_id


def get_booking_service(db: AsyncSession = Depends(get_db)) -> BookingService:
    return BookingService(db)


_room_request = TypeAdapter(Optional[BookingRoomRequest])


async def get_room_request(
    request: Request,
    user_id: int = Depends(get_current_user_id),
) -> Optional[BookingRoomRequest]:
    """
    The `{"roomId": ...}` body of POST/PUT /booking.

    FastAPI decodes declared bodies before dependencies run, so the body is
    read here, after get_current_user_id: an anonymous request stays 401
    whatever its body holds. Unparseable JSON is 400, a wrongly typed roomId 422.
    """
    body = await request.body()
    if not body.strip():
        return None
    try:
        return _room_request.validate_json(body)
    except ValidationError as exc:
        errors = exc.errors(include_url=False)
        if any(err["type"] == "json_invalid" for err in errors):
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Malformed JSON body") from exc
        raise RequestValidationError(
            [{**err, "loc": ("body", *err["loc"])} for err in errors]
        ) from exc
