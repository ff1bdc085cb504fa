from app.models.user import User
from app.models.chat import Chat, Message, Vote, Stream
from app.models.document import Document, Suggestion

__all__ = ["User", "Chat", "Message", "Vote", "Stream", "Document", "Suggestion"]
