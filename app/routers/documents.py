from datetime import datetime, timezone
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.errors import ChatSDKError
from app.models.user import User
from app.schemas.document import DocumentResponse, DocumentSave, SuggestionResponse
from app.services.document_service import DocumentService
from app.utils.auth import get_optional_user

router = APIRouter(prefix="/api", tags=["documents"])


def _as_naive_utc(value: datetime) -> datetime:
    """Stored timestamps are naive UTC"""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


@router.get("/document", response_model=list[DocumentResponse])
async def get_document_versions(
    id: Optional[UUID] = None,
    db: AsyncSession = Depends(get_db),
    user: Optional[User] = Depends(get_optional_user),
):
    """All versions of a document, oldest first"""
    if id is None:
        raise ChatSDKError("bad_request:api", "Parameter id is missing")
    if not user:
        raise ChatSDKError("unauthorized:document")

    documents = await DocumentService.get_documents_by_id(db, id)
    if not documents:
        raise ChatSDKError("not_found:document")
    if documents[0].userId != user.id:
        raise ChatSDKError("forbidden:document")

    return [DocumentResponse.model_validate(document) for document in documents]


@router.post("/document", response_model=DocumentResponse)
async def save_document_version(
    document: DocumentSave,
    id: Optional[UUID] = None,
    db: AsyncSession = Depends(get_db),
    user: Optional[User] = Depends(get_optional_user),
):
    """Save a new version of a document"""
    if id is None:
        raise ChatSDKError("bad_request:api", "Parameter id is required.")
    if not user:
        raise ChatSDKError("unauthorized:document")

    existing = await DocumentService.get_documents_by_id(db, id)
    if existing and existing[0].userId != user.id:
        raise ChatSDKError("forbidden:document")

    saved = await DocumentService.save_document(
        db, id, document.title, document.kind, document.content, user.id
    )
    return DocumentResponse.model_validate(saved)


@router.delete("/document", response_model=list[DocumentResponse])
async def delete_document_versions(
    id: Optional[UUID] = None,
    timestamp: Optional[datetime] = None,
    db: AsyncSession = Depends(get_db),
    user: Optional[User] = Depends(get_optional_user),
):
    """Delete the versions of a document saved after a timestamp"""
    if id is None:
        raise ChatSDKError("bad_request:api", "Parameter id is required.")
    if timestamp is None:
        raise ChatSDKError("bad_request:api", "Parameter timestamp is required.")
    if not user:
        raise ChatSDKError("unauthorized:document")

    documents = await DocumentService.get_documents_by_id(db, id)
    if not documents:
        raise ChatSDKError("not_found:document")
    if documents[0].userId != user.id:
        raise ChatSDKError("forbidden:document")

    deleted = await DocumentService.delete_documents_by_id_after_timestamp(
        db, id, _as_naive_utc(timestamp)
    )
    return [DocumentResponse.model_validate(document) for document in deleted]


@router.get("/suggestions", response_model=list[SuggestionResponse])
async def get_suggestions(
    documentId: Optional[UUID] = None,
    db: AsyncSession = Depends(get_db),
    user: Optional[User] = Depends(get_optional_user),
):
    """Suggestions made for a document"""
    if documentId is None:
        raise ChatSDKError("bad_request:api", "Parameter documentId is required.")
    if not user:
        raise ChatSDKError("unauthorized:suggestions")

    suggestions = await DocumentService.get_suggestions_by_document_id(db, documentId)
    if not suggestions:
        return []
    if suggestions[0].userId != user.id:
        raise ChatSDKError("forbidden:api")

    return [SuggestionResponse.model_validate(suggestion) for suggestion in suggestions]
