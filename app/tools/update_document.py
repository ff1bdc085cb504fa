"""Update Document Tool - Revise an existing artifact"""

import logging
from typing import Any, Dict
from uuid import UUID

from pydantic import BaseModel, Field

from app.artifacts import get_document_handler
from app.services.document_service import DocumentService
from .base import BaseTool, ToolError, ToolExecutionContext

logger = logging.getLogger(__name__)


class UpdateDocumentInput(BaseModel):
    """Input schema for update document tool."""
    id: UUID = Field(..., description="The ID of the document to update")
    description: str = Field(
        ..., min_length=1, max_length=1000, description="The description of changes that need to be made"
    )


class UpdateDocumentTool(BaseTool):
    """Tool to rewrite a document from a description of the change."""

    def __init__(self):
        super().__init__()
        self.name = "updateDocument"

    @property
    def description(self) -> str:
        return "Update a document with the given description."

    @property
    def input_schema(self) -> type[BaseModel]:
        return UpdateDocumentInput

    async def execute(self, context: ToolExecutionContext, id: UUID, description: str) -> Dict[str, Any]:
        if context.user is None:
            raise ToolError("User session required to update documents")
        if context.data_stream is None:
            raise ToolError("Data stream required for document updates")

        async with context.session_factory() as db:
            document = await DocumentService.get_document_by_id(db, id)

        if document is None:
            raise ToolError("Document not found")

        handler = get_document_handler(document.kind)
        if handler is None:
            raise ToolError(f"No document handler found for kind: {document.kind}")

        logger.info(f"Updating document {id} with description: {description!r}")
        context.data_stream.write_data({"type": "clear", "content": document.title})

        # The chat stream sends its own finish once the turn is over
        await handler.on_update_document(document, description, context)

        return {
            "id": str(id),
            "title": document.title,
            "kind": document.kind,
            "content": "The document has been updated successfully.",
        }
