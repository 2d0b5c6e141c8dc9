"""
Authentication endpoints: sign-up and sign-in.
"""

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from hotel_booking.db.session import get_db
from hotel_booking.schemas.user import UserCreate, UserResponse, UserLogin, SignInResponse
from hotel_booking.services.auth_service import register_user, authenticate_user

router = APIRouter(tags=["Authentication"])


@router.post("/users", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def sign_up(user_data: UserCreate, db: AsyncSession = Depends(get_db)):
    """Register a new user account."""
    user = await register_user(db, user_data)
    return user


@router.post("/auth/sign-in", response_model=SignInResponse)
async def sign_in(login_data: UserLogin, db: AsyncSession = Depends(get_db)):
    """Authenticate and receive a bearer token backed by a session."""
    user, token = await authenticate_user(db, login_data)
    return SignInResponse(user=UserResponse.model_validate(user), token=token)
