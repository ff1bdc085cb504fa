import logging
from typing import Optional
from uuid import UUID

from fastapi import Depends, HTTPException, Request, Response
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.user import User
from app.services.user_service import UserService
from app.utils.session import session_manager

logger = logging.getLogger(__name__)


def _parse_uuid(value: Optional[str]) -> Optional[UUID]:
    if not value:
        return None
    try:
        return UUID(value)
    except ValueError:
        return None


async def get_optional_user(request: Request, db: AsyncSession = Depends(get_db)) -> Optional[User]:
    """Signed-in user, or the guest remembered by the guest cookie, or None"""
    user_id = _parse_uuid(session_manager.get_session(request, "user_id"))
    if user_id:
        user = await UserService.get_user_by_id(db, user_id)
        if user:
            return user

    guest_id = _parse_uuid(session_manager.get_guest(request))
    if guest_id:
        user = await UserService.get_user_by_id(db, guest_id)
        if user and user.is_guest:
            return user

    return None


async def get_current_user_or_guest(
    response: Response,
    user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Get the current user, creating a guest user when nobody is signed in"""
    if user:
        return user

    guest = await UserService.create_guest_user(db)
    session_manager.set_guest(response, str(guest.id))
    return guest


async def get_current_user(user: Optional[User] = Depends(get_optional_user)) -> User:
    """Get the current user (signed in or existing guest) or fail with 401"""
    if not user:
        raise HTTPException(status_code=401, detail="Not authenticated")
    return user
