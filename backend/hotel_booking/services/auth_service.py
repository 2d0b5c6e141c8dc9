"""
Authentication service handling sign-up, sign-in and bearer-token sessions.
"""

from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from fastapi import HTTPException, status

from hotel_booking.models.user import User, UserSession
from hotel_booking.schemas.user import UserCreate, UserLogin
from hotel_booking.core.security import (
    hash_password,
    verify_password,
    create_access_token,
    decode_access_token,
)
from hotel_booking.core.logging import get_logger

logger = get_logger(__name__)


async def register_user(db: AsyncSession, user_data: UserCreate) -> User:
    """
    Register a new user with hashed password.
    Raises 409 if the email already exists.
    """
    result = await db.execute(select(User).where(User.email == user_data.email))
    if result.scalar_one_or_none():
        logger.warning("registration_failed", reason="email_exists", email=user_data.email)
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Email already registered",
        )

    user = User(
        email=user_data.email,
        hashed_password=hash_password(user_data.password),
    )
    db.add(user)
    await db.flush()
    await db.refresh(user)

    logger.info("user_registered", user_id=user.id, email=user.email)
    return user


async def open_session(db: AsyncSession, user: User) -> str:
    """Issue a token for `user` and persist the session that makes it valid."""
    token = create_access_token(data={"sub": str(user.id)})
    db.add(UserSession(user_id=user.id, token=token))
    await db.flush()
    return token


async def authenticate_user(db: AsyncSession, login_data: UserLogin) -> tuple[User, str]:
    """
    Authenticate user and open a session.
    Raises 401 if credentials are invalid.
    """
    result = await db.execute(select(User).where(User.email == login_data.email))
    user = result.scalar_one_or_none()

    if not user or not verify_password(login_data.password, user.hashed_password):
        logger.warning("login_failed", email=login_data.email)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    token = await open_session(db, user)
    logger.info("user_logged_in", user_id=user.id)
    return user, token


async def resolve_session(db: AsyncSession, token: str) -> Optional[int]:
    """
    Return the user id for a bearer token, or None.

    The token must verify and a session row must still hold it.
    """
    user_id = decode_access_token(token)
    if user_id is None:
        return None

    result = await db.execute(
        select(UserSession.user_id).where(
            UserSession.token == token,
            UserSession.user_id == user_id,
        )
    )
    return result.scalar_one_or_none()
