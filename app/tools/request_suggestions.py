"""Request Suggestions Tool - Ask the model for edits to a document"""

import json
import logging
import uuid
from datetime import datetime
from typing import Any, Dict, List
from uuid import UUID

from pydantic import BaseModel, Field

from app.ai.openrouter_client import get_openrouter_client
from app.ai.prompts import SUGGESTIONS_PROMPT
from app.config import settings
from app.services.document_service import DocumentService
from .base import BaseTool, ToolError, ToolExecutionContext

logger = logging.getLogger(__name__)

MAX_SUGGESTIONS = 5


class RequestSuggestionsInput(BaseModel):
    """Input schema for request suggestions tool."""
    documentId: UUID = Field(..., description="The ID of the document to request suggestions for")


def parse_suggestions(content: str) -> List[Dict[str, Any]]:
    """Read the model's JSON answer, either a list or {"suggestions": [...]}"""
    try:
        parsed = json.loads(content)
    except json.JSONDecodeError:
        raise ToolError("Failed to parse suggestions from AI response")

    if isinstance(parsed, list):
        return parsed
    if isinstance(parsed, dict) and isinstance(parsed.get("suggestions"), list):
        return parsed["suggestions"]
    return []


class RequestSuggestionsTool(BaseTool):
    """Tool to generate and store writing suggestions for a document."""

    def __init__(self):
        super().__init__()
        self.name = "requestSuggestions"

    @property
    def description(self) -> str:
        return "Request suggestions for a document"

    @property
    def input_schema(self) -> type[BaseModel]:
        return RequestSuggestionsInput

    async def execute(self, context: ToolExecutionContext, documentId: UUID) -> Dict[str, Any]:
        """
        Generate suggestions for the latest version of a document.

        Each valid suggestion is streamed as a ``suggestion`` data part
        before all of them are saved against that version.
        """
        if context.user is None:
            raise ToolError("User session required to request suggestions")
        if context.data_stream is None:
            raise ToolError("Data stream required for suggestions")

        async with context.session_factory() as db:
            document = await DocumentService.get_document_by_id(db, documentId)

        if document is None or not document.content:
            raise ToolError("Document not found or has no content")

        logger.info(f"Requesting suggestions for document: {documentId}")

        content = await get_openrouter_client().chat_completion(
            settings.default_artifact_model,
            [
                {"role": "system", "content": SUGGESTIONS_PROMPT},
                {"role": "user", "content": document.content},
            ],
            response_format={"type": "json_object"},
        )
        if not content:
            raise ToolError("No response content received")

        suggestions = []
        for element in parse_suggestions(content):
            if not isinstance(element, dict) or not all(
                element.get(key) for key in ("originalSentence", "suggestedSentence", "description")
            ):
                logger.warning(f"Skipping invalid suggestion: {element}")
                continue

            suggestion = {
                "id": str(uuid.uuid4()),
                "documentId": str(documentId),
                "originalText": element["originalSentence"],
                "suggestedText": element["suggestedSentence"],
                "description": element["description"],
                "isResolved": False,
            }
            context.data_stream.write_data({"type": "suggestion", "content": suggestion})
            suggestions.append(suggestion)

            if len(suggestions) >= MAX_SUGGESTIONS:
                break

        if suggestions:
            async with context.session_factory() as db:
                await DocumentService.save_suggestions(db, [
                    {
                        **suggestion,
                        "id": UUID(suggestion["id"]),
                        "documentId": documentId,
                        "documentCreatedAt": document.createdAt,
                        "userId": context.user.id,
                        "createdAt": datetime.utcnow(),
                    }
                    for suggestion in suggestions
                ])

        return {
            "id": str(documentId),
            "title": document.title,
            "kind": document.kind,
            "message": "Suggestions have been added to the document",
            "suggestionsCount": len(suggestions),
        }
