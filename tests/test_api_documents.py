import uuid
from datetime import datetime, timedelta

import pytest

from app.models.document import Document, Suggestion


async def seed_versions(session_factory, owner, contents, document_id=None):
    """Versions one minute apart, oldest first"""
    document_id = document_id or uuid.uuid4()
    start = datetime.utcnow() - timedelta(hours=1)
    versions = []
    async with session_factory() as db:
        for index, content in enumerate(contents):
            version = Document(
                id=document_id,
                createdAt=start + timedelta(minutes=index),
                title="Draft",
                content=content,
                kind="text",
                userId=owner.id,
            )
            db.add(version)
            versions.append(version)
        await db.commit()
    return document_id, versions


class TestDocumentVersions:
    @pytest.mark.asyncio
    async def test_get_all_versions(self, client, sign_in, user, session_factory):
        document_id, _ = await seed_versions(session_factory, user, ["v1", "v2"])
        sign_in(client, user)

        response = await client.get("/api/document", params={"id": str(document_id)})

        assert response.status_code == 200
        assert [version["content"] for version in response.json()] == ["v1", "v2"]

    @pytest.mark.asyncio
    async def test_get_requires_id(self, client, sign_in, user):
        sign_in(client, user)

        response = await client.get("/api/document")

        assert response.status_code == 400
        assert response.json()["code"] == "bad_request:api"

    @pytest.mark.asyncio
    async def test_get_missing(self, client, sign_in, user):
        sign_in(client, user)

        response = await client.get("/api/document", params={"id": str(uuid.uuid4())})

        assert response.status_code == 404
        assert response.json()["code"] == "not_found:document"

    @pytest.mark.asyncio
    async def test_get_someone_elses(self, client, sign_in, user, other_user, session_factory):
        document_id, _ = await seed_versions(session_factory, other_user, ["secret"])
        sign_in(client, user)

        response = await client.get("/api/document", params={"id": str(document_id)})

        assert response.status_code == 403
        assert response.json()["code"] == "forbidden:document"

    @pytest.mark.asyncio
    async def test_requires_session(self, client):
        response = await client.get("/api/document", params={"id": str(uuid.uuid4())})

        assert response.status_code == 401
        assert response.json()["code"] == "unauthorized:document"

    @pytest.mark.asyncio
    async def test_post_adds_a_version(self, client, sign_in, user, session_factory):
        document_id, _ = await seed_versions(session_factory, user, ["v1"])
        sign_in(client, user)

        response = await client.post(
            "/api/document",
            params={"id": str(document_id)},
            json={"title": "Draft", "content": "v2", "kind": "text"},
        )

        assert response.status_code == 200
        assert response.json()["content"] == "v2"
        versions = (await client.get("/api/document", params={"id": str(document_id)})).json()
        assert [version["content"] for version in versions] == ["v1", "v2"]

    @pytest.mark.asyncio
    async def test_post_creates_new_document(self, client, sign_in, user):
        sign_in(client, user)
        document_id = uuid.uuid4()

        response = await client.post(
            "/api/document",
            params={"id": str(document_id)},
            json={"title": "Fresh", "content": "print('hi')", "kind": "code"},
        )

        assert response.json()["id"] == str(document_id)
        assert response.json()["kind"] == "code"
        assert response.json()["userId"] == str(user.id)

    @pytest.mark.asyncio
    async def test_post_to_someone_elses(self, client, sign_in, user, other_user, session_factory):
        document_id, _ = await seed_versions(session_factory, other_user, ["theirs"])
        sign_in(client, user)

        response = await client.post(
            "/api/document",
            params={"id": str(document_id)},
            json={"title": "Mine now", "content": "x", "kind": "text"},
        )

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_delete_after_timestamp(self, client, sign_in, user, session_factory):
        document_id, versions = await seed_versions(session_factory, user, ["v1", "v2", "v3"])
        async with session_factory() as db:
            db.add(Suggestion(
                id=uuid.uuid4(),
                documentId=document_id,
                documentCreatedAt=versions[2].createdAt,
                originalText="v3",
                suggestedText="v3!",
                description="emphasis",
                isResolved=False,
                userId=user.id,
                createdAt=datetime.utcnow(),
            ))
            await db.commit()
        sign_in(client, user)

        response = await client.delete(
            "/api/document",
            params={"id": str(document_id), "timestamp": versions[0].createdAt.isoformat()},
        )

        assert response.status_code == 200
        assert [version["content"] for version in response.json()] == ["v2", "v3"]
        remaining = (await client.get("/api/document", params={"id": str(document_id)})).json()
        assert [version["content"] for version in remaining] == ["v1"]
        suggestions = (await client.get("/api/suggestions", params={"documentId": str(document_id)})).json()
        assert suggestions == []

    @pytest.mark.asyncio
    async def test_delete_accepts_utc_offset(self, client, sign_in, user, session_factory):
        document_id, versions = await seed_versions(session_factory, user, ["v1", "v2"])
        sign_in(client, user)

        response = await client.delete(
            "/api/document",
            params={"id": str(document_id), "timestamp": versions[0].createdAt.isoformat() + "Z"},
        )

        assert [version["content"] for version in response.json()] == ["v2"]

    @pytest.mark.asyncio
    async def test_delete_requires_timestamp(self, client, sign_in, user, session_factory):
        document_id, _ = await seed_versions(session_factory, user, ["v1"])
        sign_in(client, user)

        response = await client.delete("/api/document", params={"id": str(document_id)})

        assert response.status_code == 400


class TestSuggestions:
    @pytest.mark.asyncio
    async def test_list(self, client, sign_in, user, session_factory):
        document_id, versions = await seed_versions(session_factory, user, ["Their here."])
        async with session_factory() as db:
            db.add(Suggestion(
                id=uuid.uuid4(),
                documentId=document_id,
                documentCreatedAt=versions[0].createdAt,
                originalText="Their here.",
                suggestedText="They're here.",
                description="Contraction",
                isResolved=False,
                userId=user.id,
                createdAt=datetime.utcnow(),
            ))
            await db.commit()
        sign_in(client, user)

        response = await client.get("/api/suggestions", params={"documentId": str(document_id)})

        assert [s["suggestedText"] for s in response.json()] == ["They're here."]

    @pytest.mark.asyncio
    async def test_someone_elses(self, client, sign_in, user, other_user, session_factory):
        document_id, versions = await seed_versions(session_factory, other_user, ["text"])
        async with session_factory() as db:
            db.add(Suggestion(
                id=uuid.uuid4(),
                documentId=document_id,
                documentCreatedAt=versions[0].createdAt,
                originalText="text",
                suggestedText="Text",
                description="Capitalise",
                isResolved=False,
                userId=other_user.id,
                createdAt=datetime.utcnow(),
            ))
            await db.commit()
        sign_in(client, user)

        response = await client.get("/api/suggestions", params={"documentId": str(document_id)})

        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_requires_document_id(self, client, sign_in, user):
        sign_in(client, user)

        response = await client.get("/api/suggestions")

        assert response.status_code == 400
