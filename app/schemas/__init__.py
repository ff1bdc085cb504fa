from app.schemas.auth import (
    GoogleTokenResponse,
    AuthStatusResponse,
    UserResponse,
)
from app.schemas.chat import (
    ChatRequest,
    ChatResponse,
    ChatListResponse,
    MessageResponse,
    VoteRequest,
    VoteResponse,
)
from app.schemas.document import DocumentSave, DocumentResponse, SuggestionResponse
from app.schemas.files import FileUploadResponse

__all__ = [
    "GoogleTokenResponse",
    "AuthStatusResponse",
    "UserResponse",
    "ChatRequest",
    "ChatResponse",
    "ChatListResponse",
    "MessageResponse",
    "VoteRequest",
    "VoteResponse",
    "DocumentSave",
    "DocumentResponse",
    "SuggestionResponse",
    "FileUploadResponse",
]
