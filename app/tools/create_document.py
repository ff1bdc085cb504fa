"""Create Document Tool - Generate a new artifact beside the conversation"""

import logging
import uuid
from typing import Any, Dict, Literal

from pydantic import BaseModel, Field

from app.artifacts import get_document_handler
from .base import BaseTool, ToolError, ToolExecutionContext

logger = logging.getLogger(__name__)


class CreateDocumentInput(BaseModel):
    """Input schema for create document tool."""
    title: str = Field(..., min_length=1, max_length=200, description="The title of the document to create")
    kind: Literal["text", "code", "image", "sheet"] = Field(..., description="The type of document to create")


class CreateDocumentTool(BaseTool):
    """Tool to create a document and stream its content to the client."""

    def __init__(self):
        super().__init__()
        self.name = "createDocument"

    @property
    def description(self) -> str:
        return (
            "Create a document for writing or content creation activities. This tool will call other "
            "functions that will generate the contents of the document based on the title and kind."
        )

    @property
    def input_schema(self) -> type[BaseModel]:
        return CreateDocumentInput

    async def execute(self, context: ToolExecutionContext, title: str, kind: str) -> Dict[str, Any]:
        if context.user is None:
            raise ToolError("User session required to create documents")
        if context.data_stream is None:
            raise ToolError("Data stream required for document creation")

        handler = get_document_handler(kind)
        if handler is None:
            raise ToolError(f"No document handler found for kind: {kind}")

        document_id = uuid.uuid4()
        logger.info(f"Creating document: {title!r} of type {kind!r}")

        data_stream = context.data_stream
        data_stream.write_data({"type": "kind", "content": kind})
        data_stream.write_data({"type": "id", "content": str(document_id)})
        data_stream.write_data({"type": "title", "content": title})
        data_stream.write_data({"type": "clear", "content": ""})

        await handler.on_create_document(document_id, title, context)

        data_stream.write_data({"type": "finish", "content": ""})

        return {
            "id": str(document_id),
            "title": title,
            "kind": kind,
            "content": "A document was created and is now visible to the user.",
        }
