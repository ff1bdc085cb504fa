import uuid
from datetime import datetime, timedelta

import pytest

from app.models.chat import Chat, Message
from app.services.chat_service import ChatService


async def seed_chats(session_factory, owner, count):
    """Chats one minute apart; returns ids oldest first"""
    start = datetime.utcnow() - timedelta(hours=1)
    chat_ids = []
    async with session_factory() as db:
        for index in range(count):
            chat = Chat(
                id=uuid.uuid4(),
                userId=owner.id,
                title=f"Chat {index}",
                visibility="private",
                createdAt=start + timedelta(minutes=index),
            )
            db.add(chat)
            chat_ids.append(chat.id)
        await db.commit()
    return chat_ids


async def seed_message(session_factory, chat_id):
    async with session_factory() as db:
        message = Message(
            id=uuid.uuid4(),
            chatId=chat_id,
            role="assistant",
            parts=[{"type": "text", "text": "Answer"}],
            attachments=[],
            createdAt=datetime.utcnow(),
        )
        db.add(message)
        await db.commit()
    return message.id


class TestHistory:
    @pytest.mark.asyncio
    async def test_first_page_is_newest_first(self, client, sign_in, user, session_factory):
        chat_ids = await seed_chats(session_factory, user, 5)
        sign_in(client, user)

        response = await client.get("/api/history", params={"limit": 2})

        body = response.json()
        assert [chat["id"] for chat in body["chats"]] == [str(chat_ids[4]), str(chat_ids[3])]
        assert body["hasMore"] is True

    @pytest.mark.asyncio
    async def test_ending_before_pages_backwards_in_time(self, client, sign_in, user, session_factory):
        chat_ids = await seed_chats(session_factory, user, 5)
        sign_in(client, user)

        response = await client.get("/api/history", params={"limit": 10, "ending_before": str(chat_ids[2])})

        body = response.json()
        assert [chat["id"] for chat in body["chats"]] == [str(chat_ids[1]), str(chat_ids[0])]
        assert body["hasMore"] is False

    @pytest.mark.asyncio
    async def test_starting_after_returns_newer_chats(self, client, sign_in, user, session_factory):
        chat_ids = await seed_chats(session_factory, user, 3)
        sign_in(client, user)

        response = await client.get("/api/history", params={"starting_after": str(chat_ids[0])})

        assert [chat["id"] for chat in response.json()["chats"]] == [str(chat_ids[2]), str(chat_ids[1])]

    @pytest.mark.asyncio
    async def test_only_own_chats(self, client, sign_in, user, other_user, session_factory):
        await seed_chats(session_factory, other_user, 2)
        sign_in(client, user)

        response = await client.get("/api/history")

        assert response.json() == {"chats": [], "hasMore": False}

    @pytest.mark.asyncio
    async def test_both_cursors_rejected(self, client, sign_in, user):
        sign_in(client, user)

        response = await client.get(
            "/api/history",
            params={"starting_after": str(uuid.uuid4()), "ending_before": str(uuid.uuid4())},
        )

        assert response.status_code == 400
        assert response.json()["code"] == "bad_request:api"

    @pytest.mark.asyncio
    async def test_unknown_cursor(self, client, sign_in, user):
        sign_in(client, user)

        response = await client.get("/api/history", params={"ending_before": str(uuid.uuid4())})

        assert response.status_code == 404
        assert response.json()["code"] == "not_found:database"

    @pytest.mark.asyncio
    async def test_requires_session(self, client):
        response = await client.get("/api/history")

        assert response.status_code == 401
        assert response.json()["code"] == "unauthorized:chat"

    @pytest.mark.asyncio
    async def test_delete_all(self, client, sign_in, user, other_user, session_factory):
        await seed_chats(session_factory, user, 3)
        others = await seed_chats(session_factory, other_user, 1)
        sign_in(client, user)

        response = await client.delete("/api/history")

        assert response.json() == {"deletedCount": 3}
        async with session_factory() as db:
            assert (await ChatService.get_chats_by_user_id(db, user.id))["chats"] == []
            assert await ChatService.get_chat_by_id(db, others[0]) is not None


class TestVote:
    @pytest.mark.asyncio
    async def test_upvote_then_downvote(self, client, sign_in, user, session_factory):
        [chat_id] = await seed_chats(session_factory, user, 1)
        message_id = await seed_message(session_factory, chat_id)
        sign_in(client, user)

        vote = {"chatId": str(chat_id), "messageId": str(message_id), "type": "up"}
        response = await client.patch("/api/vote", json=vote)
        assert response.status_code == 200
        assert response.json()["isUpvoted"] is True

        response = await client.patch("/api/vote", json={**vote, "type": "down"})
        assert response.json()["isUpvoted"] is False

        votes = (await client.get("/api/vote", params={"chatId": str(chat_id)})).json()
        assert votes == [{"chatId": str(chat_id), "messageId": str(message_id), "isUpvoted": False}]

    @pytest.mark.asyncio
    async def test_vote_on_someone_elses_chat(self, client, sign_in, user, other_user, session_factory):
        [chat_id] = await seed_chats(session_factory, other_user, 1)
        message_id = await seed_message(session_factory, chat_id)
        sign_in(client, user)

        response = await client.patch(
            "/api/vote",
            json={"chatId": str(chat_id), "messageId": str(message_id), "type": "up"},
        )

        assert response.status_code == 403
        assert response.json()["code"] == "forbidden:vote"

    @pytest.mark.asyncio
    async def test_vote_on_missing_chat(self, client, sign_in, user):
        sign_in(client, user)

        response = await client.patch(
            "/api/vote",
            json={"chatId": str(uuid.uuid4()), "messageId": str(uuid.uuid4()), "type": "down"},
        )

        assert response.status_code == 404
        assert response.json()["code"] == "not_found:vote"

    @pytest.mark.asyncio
    async def test_vote_on_unknown_message(self, client, sign_in, user, session_factory):
        [chat_id] = await seed_chats(session_factory, user, 1)
        sign_in(client, user)

        response = await client.patch(
            "/api/vote",
            json={"chatId": str(chat_id), "messageId": str(uuid.uuid4()), "type": "up"},
        )

        assert response.status_code == 404
        assert response.json()["code"] == "not_found:vote"

    @pytest.mark.asyncio
    async def test_vote_on_message_of_another_chat(self, client, sign_in, user, session_factory):
        first, second = await seed_chats(session_factory, user, 2)
        message_id = await seed_message(session_factory, second)
        sign_in(client, user)

        response = await client.patch(
            "/api/vote",
            json={"chatId": str(first), "messageId": str(message_id), "type": "up"},
        )

        assert response.status_code == 404
        async with session_factory() as db:
            assert await ChatService.get_votes_by_chat_id(db, first) == []

    @pytest.mark.asyncio
    async def test_get_requires_chat_id(self, client, sign_in, user):
        sign_in(client, user)

        response = await client.get("/api/vote")

        assert response.status_code == 400
        assert response.json()["code"] == "bad_request:api"

    @pytest.mark.asyncio
    async def test_votes_of_someone_elses_chat(self, client, sign_in, user, other_user, session_factory):
        [chat_id] = await seed_chats(session_factory, other_user, 1)
        sign_in(client, user)

        response = await client.get("/api/vote", params={"chatId": str(chat_id)})

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_requires_session(self, client):
        response = await client.get("/api/vote", params={"chatId": str(uuid.uuid4())})

        assert response.status_code == 401
        assert response.json()["code"] == "unauthorized:vote"
