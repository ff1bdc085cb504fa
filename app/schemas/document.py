from pydantic import BaseModel, ConfigDict, Field, UUID4
from typing import Optional, Literal
from datetime import datetime

ArtifactKind = Literal["text", "code", "image", "sheet"]


class DocumentSave(BaseModel):
    title: str = Field(min_length=1)
    content: Optional[str] = None
    kind: ArtifactKind = "text"


class DocumentResponse(BaseModel):
    id: UUID4
    createdAt: datetime
    title: str
    content: Optional[str]
    kind: str
    userId: UUID4

    model_config = ConfigDict(from_attributes=True)


class SuggestionResponse(BaseModel):
    id: UUID4
    documentId: UUID4
    documentCreatedAt: datetime
    originalText: str
    suggestedText: str
    description: Optional[str]
    isResolved: bool
    userId: UUID4
    createdAt: datetime

    model_config = ConfigDict(from_attributes=True)
