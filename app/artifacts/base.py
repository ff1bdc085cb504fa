"""Document handlers: stream a nested completion into the chat stream and save it"""

import logging
from typing import TYPE_CHECKING, Any, Dict, List, Optional
from uuid import UUID

from app.ai.openrouter_client import get_openrouter_client
from app.ai.prompts import update_document_prompt
from app.ai.stream_writer import DataStreamWriter
from app.models.document import Document
from app.services.document_service import DocumentService

if TYPE_CHECKING:
    from app.tools.base import ToolExecutionContext

logger = logging.getLogger(__name__)


class DocumentHandler:
    """Generates and revises one kind of artifact"""

    kind: str = "text"
    system_prompt: str = ""
    model_key: str = "artifact-model"
    temperature: float = 0.7
    max_tokens: int = 2000

    def create_messages(self, title: str) -> List[Dict[str, Any]]:
        return [
            {"role": "system", "content": self.system_prompt},
            {"role": "user", "content": title},
        ]

    def update_messages(self, document: Document, description: str) -> List[Dict[str, Any]]:
        return [
            {"role": "system", "content": update_document_prompt(document.content, self.kind)},
            {"role": "user", "content": description},
        ]

    async def stream_content(
        self, messages: List[Dict[str, Any]], data_stream: Optional[DataStreamWriter]
    ) -> str:
        """Forward every content delta to the data stream and return the full text"""
        draft_content = ""
        async for delta in get_openrouter_client().stream_text(
            self.model_key,
            messages,
            temperature=self.temperature,
            max_tokens=self.max_tokens,
        ):
            draft_content += delta
            if data_stream is not None:
                data_stream.write_tool_content_delta(delta)
        return draft_content

    async def _save(self, context: "ToolExecutionContext", document_id: UUID, title: str, content: str) -> None:
        if not context.user:
            return
        async with context.session_factory() as db:
            await DocumentService.save_document(
                db,
                document_id=document_id,
                title=title,
                kind=self.kind,
                content=content,
                user_id=context.user.id,
            )

    async def on_create_document(
        self, document_id: UUID, title: str, context: "ToolExecutionContext"
    ) -> str:
        logger.info(f"Generating {self.kind} document {document_id}: {title!r}")
        content = await self.stream_content(self.create_messages(title), context.data_stream)
        await self._save(context, document_id, title, content)
        return content

    async def on_update_document(
        self, document: Document, description: str, context: "ToolExecutionContext"
    ) -> str:
        logger.info(f"Updating {self.kind} document {document.id}")
        content = await self.stream_content(
            self.update_messages(document, description), context.data_stream
        )
        await self._save(context, document.id, document.title, content)
        return content
