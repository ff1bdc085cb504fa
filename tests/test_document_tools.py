"""Tests for the document artifact tools and their handlers."""

import json
import uuid

import pytest

from app.ai.stream_writer import DataStreamWriter
from app.artifacts import document_handlers_by_kind, get_document_handler
from app.services.document_service import DocumentService
from app.tools import (
    CreateDocumentTool,
    RequestSuggestionsTool,
    ToolError,
    ToolExecutionContext,
    UpdateDocumentTool,
)
from app.tools.request_suggestions import parse_suggestions


@pytest.fixture
def writer():
    return DataStreamWriter()


@pytest.fixture
def context(user, session_factory, writer):
    return ToolExecutionContext(user=user, session_factory=session_factory, data_stream=writer)


def data_parts(writer):
    return [(event["data"]["type"], event["data"].get("content")) for event in writer.get_all_events()]


class TestDocumentHandlers:
    def test_one_handler_per_kind(self):
        assert set(document_handlers_by_kind) == {"text", "code", "sheet", "image"}
        assert get_document_handler("video") is None

    def test_create_messages_use_kind_prompt(self):
        handler = get_document_handler("code")
        messages = handler.create_messages("Fibonacci in Python")
        assert messages[0]["role"] == "system"
        assert messages[1] == {"role": "user", "content": "Fibonacci in Python"}


class TestCreateDocumentTool:
    @pytest.mark.asyncio
    async def test_streams_and_saves_document(self, fake_openai, context, writer, session_factory, user):
        fake_openai.queue_stream(
            fake_openai.text_chunk("# Autumn"),
            fake_openai.text_chunk("\nLeaves fall."),
        )

        result = await CreateDocumentTool().execute(context, title="Autumn", kind="text")

        assert result["title"] == "Autumn"
        assert result["kind"] == "text"
        assert data_parts(writer) == [
            ("kind", "text"),
            ("id", result["id"]),
            ("title", "Autumn"),
            ("clear", ""),
            ("text-delta", "# Autumn"),
            ("text-delta", "\nLeaves fall."),
            ("finish", ""),
        ]

        async with session_factory() as db:
            document = await DocumentService.get_document_by_id(db, uuid.UUID(result["id"]))
        assert document.content == "# Autumn\nLeaves fall."
        assert document.userId == user.id

        request = fake_openai.calls[0]
        assert request["temperature"] == get_document_handler("text").temperature

    @pytest.mark.asyncio
    async def test_requires_user(self, session_factory, writer):
        context = ToolExecutionContext(user=None, session_factory=session_factory, data_stream=writer)

        with pytest.raises(ToolError, match="User session required"):
            await CreateDocumentTool().execute(context, title="Autumn", kind="text")


class TestUpdateDocumentTool:
    @pytest.mark.asyncio
    async def test_saves_new_version(self, fake_openai, context, writer, session_factory, user):
        document_id = uuid.uuid4()
        async with session_factory() as db:
            await DocumentService.save_document(db, document_id, "Poem", "text", "Roses are red.", user.id)

        fake_openai.queue_stream(fake_openai.text_chunk("Roses are crimson."))

        result = await UpdateDocumentTool().execute(context, id=document_id, description="Use a richer word")

        assert result["content"] == "The document has been updated successfully."
        assert data_parts(writer) == [("clear", "Poem"), ("text-delta", "Roses are crimson.")]

        update_prompt = fake_openai.calls[0]["messages"][0]["content"]
        assert "Roses are red." in update_prompt

        async with session_factory() as db:
            versions = await DocumentService.get_documents_by_id(db, document_id)
        assert [version.content for version in versions] == ["Roses are red.", "Roses are crimson."]

    @pytest.mark.asyncio
    async def test_missing_document(self, fake_openai, context):
        with pytest.raises(ToolError, match="Document not found"):
            await UpdateDocumentTool().execute(context, id=uuid.uuid4(), description="anything")


class TestRequestSuggestionsTool:
    @pytest.mark.asyncio
    async def test_streams_and_saves_valid_suggestions(self, fake_openai, context, writer, session_factory, user):
        document_id = uuid.uuid4()
        async with session_factory() as db:
            document = await DocumentService.save_document(
                db, document_id, "Essay", "text", "Their going home. It was good.", user.id
            )

        fake_openai.queue_reply(json.dumps({"suggestions": [
            {"originalSentence": "Their going home.", "suggestedSentence": "They're going home.", "description": "Wrong word"},
            {"originalSentence": "It was good.", "suggestedSentence": "It was excellent.", "description": "Stronger adjective"},
            {"originalSentence": "", "suggestedSentence": "x", "description": "incomplete"},
        ]}))

        result = await RequestSuggestionsTool().execute(context, documentId=document_id)

        assert result["suggestionsCount"] == 2
        assert [part[0] for part in data_parts(writer)] == ["suggestion", "suggestion"]
        assert fake_openai.calls[0]["response_format"] == {"type": "json_object"}

        async with session_factory() as db:
            saved = await DocumentService.get_suggestions_by_document_id(db, document_id)
        assert {s.suggestedText for s in saved} == {"They're going home.", "It was excellent."}
        assert all(s.documentCreatedAt == document.createdAt for s in saved)
        assert all(s.userId == user.id for s in saved)

    @pytest.mark.asyncio
    async def test_unparsable_answer(self, fake_openai, context, session_factory, user):
        document_id = uuid.uuid4()
        async with session_factory() as db:
            await DocumentService.save_document(db, document_id, "Essay", "text", "Some text.", user.id)

        fake_openai.queue_reply("not json")

        with pytest.raises(ToolError, match="Failed to parse suggestions"):
            await RequestSuggestionsTool().execute(context, documentId=document_id)


class TestParseSuggestions:
    def test_accepts_list_or_wrapped_list(self):
        item = {"originalSentence": "a", "suggestedSentence": "b", "description": "c"}
        assert parse_suggestions(json.dumps([item])) == [item]
        assert parse_suggestions(json.dumps({"suggestions": [item]})) == [item]

    def test_other_shapes_yield_nothing(self):
        assert parse_suggestions(json.dumps({"answer": "none"})) == []
