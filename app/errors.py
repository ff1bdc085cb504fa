"""
API errors shared by the chat, vote, history and document routes.

Errors are identified by a ``"<type>:<surface>"`` code such as
``"forbidden:chat"``. The type picks the HTTP status, the surface picks the
user-facing message.
"""
from typing import Optional

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse

STATUS_BY_TYPE = {
    "bad_request": 400,
    "unauthorized": 401,
    "forbidden": 403,
    "not_found": 404,
    "rate_limit": 429,
    "offline": 503,
}

MESSAGE_BY_CODE = {
    "bad_request:api": "The request couldn't be processed. Please check your input and try again.",
    "unauthorized:auth": "You need to sign in before continuing.",
    "forbidden:auth": "Your account does not have access to this feature.",
    "rate_limit:chat": "You have exceeded your maximum number of messages for the day. Please try again later.",
    "not_found:chat": "The requested chat was not found. Please check the chat ID and try again.",
    "forbidden:chat": "This chat belongs to another user. Please check the chat ID and try again.",
    "unauthorized:chat": "You need to sign in to view this chat. Please sign in and try again.",
    "offline:chat": "We're having trouble sending your message. Please check your internet connection and try again.",
    "not_found:document": "The requested document was not found. Please check the document ID and try again.",
    "forbidden:document": "This document belongs to another user. Please check the document ID and try again.",
    "unauthorized:document": "You need to sign in to view this document. Please sign in and try again.",
    "bad_request:document": "The request to create or update the document was invalid. Please check your input and try again.",
    "not_found:vote": "The chat to vote on was not found.",
    "forbidden:vote": "You can only vote on messages in your own chats.",
    "unauthorized:vote": "You need to sign in to vote.",
    "not_found:stream": "No stream was found for this chat.",
    "not_found:database": "A record referenced by the request was not found.",
    "unauthorized:suggestions": "You need to sign in to view suggestions. Please sign in and try again.",
    "forbidden:api": "You do not have access to this resource.",
}


class ChatSDKError(HTTPException):
    """HTTP error carrying a ``type:surface`` code"""

    def __init__(self, code: str, cause: Optional[str] = None):
        error_type, _, surface = code.partition(":")
        self.code = code
        self.error_type = error_type
        self.surface = surface
        self.cause = cause
        self.message = MESSAGE_BY_CODE.get(code, "Something went wrong. Please try again later.")
        super().__init__(status_code=STATUS_BY_TYPE.get(error_type, 500), detail=self.message)

    def to_dict(self) -> dict:
        return {"code": self.code, "message": self.message, "cause": self.cause}


async def chat_sdk_error_handler(request: Request, exc: ChatSDKError) -> JSONResponse:
    return JSONResponse(status_code=exc.status_code, content=exc.to_dict())
