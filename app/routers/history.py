from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.errors import ChatSDKError
from app.models.user import User
from app.schemas.chat import ChatListResponse, ChatResponse
from app.services.chat_service import ChatService
from app.utils.auth import get_optional_user

router = APIRouter(prefix="/api/history", tags=["history"])


@router.get("", response_model=ChatListResponse)
async def get_history(
    limit: int = Query(10, ge=1, le=100),
    starting_after: Optional[UUID] = None,
    ending_before: Optional[UUID] = None,
    db: AsyncSession = Depends(get_db),
    user: Optional[User] = Depends(get_optional_user),
):
    """Page through the current user's chats, newest first"""
    if starting_after and ending_before:
        raise ChatSDKError("bad_request:api", "Only one of starting_after or ending_before can be provided.")
    if not user:
        raise ChatSDKError("unauthorized:chat")

    page = await ChatService.get_chats_by_user_id(
        db,
        user.id,
        limit=limit,
        starting_after=starting_after,
        ending_before=ending_before,
    )
    return ChatListResponse(
        chats=[ChatResponse.model_validate(chat) for chat in page["chats"]],
        hasMore=page["hasMore"],
    )


@router.delete("")
async def delete_history(
    db: AsyncSession = Depends(get_db),
    user: Optional[User] = Depends(get_optional_user),
):
    """Delete every chat of the current user"""
    if not user:
        raise ChatSDKError("unauthorized:chat")

    deleted = await ChatService.delete_all_chats_by_user_id(db, user.id)
    return {"deletedCount": deleted}
