"""Artifact document handlers keyed by kind"""

from typing import Dict, Optional

from .base import DocumentHandler
from .code import CodeDocumentHandler
from .image import ImageDocumentHandler
from .sheet import SheetDocumentHandler
from .text import TextDocumentHandler

document_handlers_by_kind: Dict[str, DocumentHandler] = {
    handler.kind: handler
    for handler in (
        TextDocumentHandler(),
        CodeDocumentHandler(),
        ImageDocumentHandler(),
        SheetDocumentHandler(),
    )
}


def get_document_handler(kind: str) -> Optional[DocumentHandler]:
    return document_handlers_by_kind.get(kind)


__all__ = [
    "DocumentHandler",
    "TextDocumentHandler",
    "CodeDocumentHandler",
    "ImageDocumentHandler",
    "SheetDocumentHandler",
    "document_handlers_by_kind",
    "get_document_handler",
]
