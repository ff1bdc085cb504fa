from datetime import datetime
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy import delete, desc, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.document import Document, Suggestion


class DocumentService:
    """Queries for versioned documents and their suggestions"""

    @staticmethod
    async def save_document(
        db: AsyncSession,
        document_id: UUID,
        title: str,
        kind: str,
        content: Optional[str],
        user_id: UUID,
    ) -> Document:
        """Save a new version of a document"""
        document = Document(
            id=document_id,
            title=title,
            kind=kind,
            content=content,
            userId=user_id,
            createdAt=datetime.utcnow(),
        )
        db.add(document)
        await db.commit()
        await db.refresh(document)
        return document

    @staticmethod
    async def get_documents_by_id(db: AsyncSession, document_id: UUID) -> List[Document]:
        """All versions of a document, oldest first"""
        result = await db.execute(
            select(Document)
            .where(Document.id == document_id)
            .order_by(Document.createdAt)
        )
        return list(result.scalars().all())

    @staticmethod
    async def get_document_by_id(db: AsyncSession, document_id: UUID) -> Optional[Document]:
        """Latest version of a document"""
        result = await db.execute(
            select(Document)
            .where(Document.id == document_id)
            .order_by(desc(Document.createdAt))
            .limit(1)
        )
        return result.scalar_one_or_none()

    @staticmethod
    async def delete_documents_by_id_after_timestamp(
        db: AsyncSession, document_id: UUID, timestamp: datetime
    ) -> List[Document]:
        """Drop versions newer than timestamp together with their suggestions"""
        result = await db.execute(
            select(Document)
            .where(Document.id == document_id, Document.createdAt > timestamp)
            .order_by(Document.createdAt)
        )
        documents = list(result.scalars().all())

        await db.execute(
            delete(Suggestion).where(
                Suggestion.documentId == document_id,
                Suggestion.documentCreatedAt > timestamp,
            )
        )
        await db.execute(
            delete(Document).where(Document.id == document_id, Document.createdAt > timestamp)
        )
        await db.commit()
        return documents

    @staticmethod
    async def save_suggestions(db: AsyncSession, suggestions: List[Dict[str, Any]]) -> List[Suggestion]:
        rows = [Suggestion(**suggestion) for suggestion in suggestions]
        db.add_all(rows)
        await db.commit()
        return rows

    @staticmethod
    async def get_suggestions_by_document_id(db: AsyncSession, document_id: UUID) -> List[Suggestion]:
        result = await db.execute(
            select(Suggestion)
            .where(Suggestion.documentId == document_id)
            .order_by(Suggestion.createdAt)
        )
        return list(result.scalars().all())
