from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.errors import ChatSDKError
from app.models.user import User
from app.schemas.chat import VoteRequest, VoteResponse
from app.services.chat_service import ChatService
from app.utils.auth import get_optional_user

router = APIRouter(prefix="/api/vote", tags=["votes"])


@router.get("", response_model=list[VoteResponse])
async def get_votes_by_chat(
    chatId: Optional[UUID] = None,
    db: AsyncSession = Depends(get_db),
    user: Optional[User] = Depends(get_optional_user),
):
    """Get all votes for a chat"""
    if chatId is None:
        raise ChatSDKError("bad_request:api", "Parameter chatId is required.")
    if not user:
        raise ChatSDKError("unauthorized:vote")

    chat = await ChatService.get_chat_by_id(db, chatId)
    if not chat:
        raise ChatSDKError("not_found:chat")
    if chat.userId != user.id:
        raise ChatSDKError("forbidden:vote")

    votes = await ChatService.get_votes_by_chat_id(db, chatId)
    return [VoteResponse.model_validate(vote) for vote in votes]


@router.patch("", response_model=VoteResponse)
async def vote_message(
    vote_request: VoteRequest,
    db: AsyncSession = Depends(get_db),
    user: Optional[User] = Depends(get_optional_user),
):
    """Upvote or downvote a message"""
    if not user:
        raise ChatSDKError("unauthorized:vote")

    chat = await ChatService.get_chat_by_id(db, vote_request.chatId)
    if not chat:
        raise ChatSDKError("not_found:vote")
    if chat.userId != user.id:
        raise ChatSDKError("forbidden:vote")

    message = await ChatService.get_message_by_id(db, vote_request.messageId)
    if not message or message.chatId != vote_request.chatId:
        raise ChatSDKError("not_found:vote")

    vote = await ChatService.vote_message(
        db, vote_request.chatId, vote_request.messageId, vote_request.type
    )
    return VoteResponse.model_validate(vote)
