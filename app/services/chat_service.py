import logging
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import delete, desc, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.errors import ChatSDKError
from app.models.chat import Chat, Message, Stream, Vote

logger = logging.getLogger(__name__)


class ChatService:
    """Queries for chats, messages, votes and stream ids"""

    @staticmethod
    async def save_chat(
        db: AsyncSession,
        chat_id: UUID,
        user_id: UUID,
        title: str,
        visibility: str = "private",
    ) -> Chat:
        chat = Chat(
            id=chat_id,
            userId=user_id,
            title=title,
            visibility=visibility,
            createdAt=datetime.utcnow(),
        )
        db.add(chat)
        await db.commit()
        await db.refresh(chat)
        return chat

    @staticmethod
    async def get_chat_by_id(db: AsyncSession, chat_id: UUID) -> Optional[Chat]:
        result = await db.execute(select(Chat).where(Chat.id == chat_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def delete_chat_by_id(db: AsyncSession, chat_id: UUID) -> Optional[Chat]:
        """Delete a chat with its messages, votes and streams"""
        chat = await ChatService.get_chat_by_id(db, chat_id)
        if not chat:
            return None

        await db.execute(delete(Vote).where(Vote.chatId == chat_id))
        await db.execute(delete(Message).where(Message.chatId == chat_id))
        await db.execute(delete(Stream).where(Stream.chatId == chat_id))
        await db.execute(delete(Chat).where(Chat.id == chat_id))
        await db.commit()
        return chat

    @staticmethod
    async def delete_all_chats_by_user_id(db: AsyncSession, user_id: UUID) -> int:
        result = await db.execute(select(Chat.id).where(Chat.userId == user_id))
        chat_ids = list(result.scalars().all())
        if not chat_ids:
            return 0

        await db.execute(delete(Vote).where(Vote.chatId.in_(chat_ids)))
        await db.execute(delete(Message).where(Message.chatId.in_(chat_ids)))
        await db.execute(delete(Stream).where(Stream.chatId.in_(chat_ids)))
        await db.execute(delete(Chat).where(Chat.id.in_(chat_ids)))
        await db.commit()
        return len(chat_ids)

    @staticmethod
    async def get_chats_by_user_id(
        db: AsyncSession,
        user_id: UUID,
        limit: int = 20,
        starting_after: Optional[UUID] = None,
        ending_before: Optional[UUID] = None,
    ) -> Dict[str, Any]:
        """
        Page through a user's chats, newest first

        Args:
            db: Database session
            user_id: Owner of the chats
            limit: Page size
            starting_after: Return chats created after this chat
            ending_before: Return chats created before this chat

        Returns:
            Dict with "chats" and "hasMore"

        Raises:
            ChatSDKError: If a cursor chat does not exist
        """
        query = select(Chat).where(Chat.userId == user_id)

        cursor_id = starting_after or ending_before
        if cursor_id:
            cursor_chat = await ChatService.get_chat_by_id(db, cursor_id)
            if not cursor_chat:
                raise ChatSDKError("not_found:database", f"Chat with id {cursor_id} not found")
            if starting_after:
                query = query.where(Chat.createdAt > cursor_chat.createdAt)
            else:
                query = query.where(Chat.createdAt < cursor_chat.createdAt)

        query = query.order_by(desc(Chat.createdAt)).limit(limit + 1)
        result = await db.execute(query)
        chats = list(result.scalars().all())

        has_more = len(chats) > limit
        return {"chats": chats[:limit] if has_more else chats, "hasMore": has_more}

    @staticmethod
    async def update_chat_visibility(db: AsyncSession, chat_id: UUID, visibility: str) -> None:
        chat = await ChatService.get_chat_by_id(db, chat_id)
        if chat:
            chat.visibility = visibility
            await db.commit()

    @staticmethod
    async def save_messages(db: AsyncSession, messages: List[Dict[str, Any]]) -> List[Message]:
        rows = [
            Message(
                id=message.get("id"),
                chatId=message["chatId"],
                role=message["role"],
                parts=message["parts"],
                attachments=message.get("attachments", []),
                createdAt=message.get("createdAt") or datetime.utcnow(),
            )
            for message in messages
        ]
        db.add_all(rows)
        await db.commit()
        return rows

    @staticmethod
    async def get_messages_by_chat_id(db: AsyncSession, chat_id: UUID) -> List[Message]:
        result = await db.execute(
            select(Message)
            .where(Message.chatId == chat_id)
            .order_by(Message.createdAt)
        )
        return list(result.scalars().all())

    @staticmethod
    async def get_message_by_id(db: AsyncSession, message_id: UUID) -> Optional[Message]:
        result = await db.execute(select(Message).where(Message.id == message_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def delete_messages_by_chat_id_after_timestamp(
        db: AsyncSession, chat_id: UUID, timestamp: datetime
    ) -> int:
        """Delete messages (and their votes) created at or after timestamp"""
        result = await db.execute(
            select(Message.id).where(Message.chatId == chat_id, Message.createdAt >= timestamp)
        )
        message_ids = list(result.scalars().all())
        if not message_ids:
            return 0

        await db.execute(
            delete(Vote).where(Vote.chatId == chat_id, Vote.messageId.in_(message_ids))
        )
        await db.execute(delete(Message).where(Message.id.in_(message_ids)))
        await db.commit()
        return len(message_ids)

    @staticmethod
    async def get_message_count_by_user_id(
        db: AsyncSession, user_id: UUID, difference_in_hours: int = 24
    ) -> int:
        """Count user messages sent across all of a user's chats recently"""
        since = datetime.utcnow() - timedelta(hours=difference_in_hours)
        result = await db.execute(
            select(func.count(Message.id))
            .join(Chat, Message.chatId == Chat.id)
            .where(
                Chat.userId == user_id,
                Message.createdAt >= since,
                Message.role == "user",
            )
        )
        return result.scalar_one()

    @staticmethod
    async def vote_message(db: AsyncSession, chat_id: UUID, message_id: UUID, vote_type: str) -> Vote:
        result = await db.execute(
            select(Vote).where(Vote.chatId == chat_id, Vote.messageId == message_id)
        )
        vote = result.scalar_one_or_none()
        is_upvoted = vote_type == "up"

        if vote:
            vote.isUpvoted = is_upvoted
        else:
            vote = Vote(chatId=chat_id, messageId=message_id, isUpvoted=is_upvoted)
            db.add(vote)

        await db.commit()
        await db.refresh(vote)
        return vote

    @staticmethod
    async def get_votes_by_chat_id(db: AsyncSession, chat_id: UUID) -> List[Vote]:
        result = await db.execute(select(Vote).where(Vote.chatId == chat_id))
        return list(result.scalars().all())

    @staticmethod
    async def create_stream_id(db: AsyncSession, stream_id: UUID, chat_id: UUID) -> None:
        db.add(Stream(id=stream_id, chatId=chat_id, createdAt=datetime.utcnow()))
        await db.commit()

    @staticmethod
    async def get_stream_ids_by_chat_id(db: AsyncSession, chat_id: UUID) -> List[UUID]:
        result = await db.execute(
            select(Stream.id).where(Stream.chatId == chat_id).order_by(Stream.createdAt)
        )
        return list(result.scalars().all())
