from pydantic import BaseModel, ConfigDict, Field, UUID4, field_validator
from typing import List, Optional, Any, Dict, Literal
from datetime import datetime
from urllib.parse import unquote

ChatModelId = Literal["chat-model", "chat-model-reasoning", "gemini-flash-lite"]
VisibilityType = Literal["public", "private"]


class TextPart(BaseModel):
    type: Literal["text"]
    text: str = Field(min_length=1, max_length=2000)


class MessageAttachment(BaseModel):
    url: str
    name: str = Field(min_length=1, max_length=2000)
    contentType: Literal["image/png", "image/jpg", "image/jpeg"]


class UserMessage(BaseModel):
    id: UUID4
    createdAt: Optional[datetime] = None
    role: Literal["user"]
    content: str = Field(min_length=1, max_length=2000)
    parts: List[TextPart] = Field(min_length=1)
    experimental_attachments: List[MessageAttachment] = []


class ChatRequest(BaseModel):
    id: UUID4
    message: UserMessage
    selectedChatModel: ChatModelId = "chat-model"
    selectedVisibilityType: VisibilityType = "private"


class MessageResponse(BaseModel):
    id: UUID4
    chatId: UUID4
    role: str
    parts: List[Dict[str, Any]]
    attachments: List[Dict[str, Any]]
    createdAt: datetime

    model_config = ConfigDict(from_attributes=True)


class ChatResponse(BaseModel):
    id: UUID4
    title: str
    createdAt: datetime
    userId: UUID4
    visibility: str

    model_config = ConfigDict(from_attributes=True)


class ChatListResponse(BaseModel):
    chats: List[ChatResponse]
    hasMore: bool


class VisibilityUpdate(BaseModel):
    visibility: VisibilityType


class ChatModelSelection(BaseModel):
    model: ChatModelId


class VoteRequest(BaseModel):
    chatId: UUID4
    messageId: UUID4
    type: Literal["up", "down"]


class VoteResponse(BaseModel):
    chatId: UUID4
    messageId: UUID4
    isUpvoted: bool

    model_config = ConfigDict(from_attributes=True)


class RequestHints(BaseModel):
    """Geolocation hints forwarded by the edge in request headers"""
    latitude: Optional[str] = None
    longitude: Optional[str] = None
    city: Optional[str] = None
    country: Optional[str] = None

    @field_validator("city")
    @classmethod
    def decode_city(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return None
        return unquote(value)
