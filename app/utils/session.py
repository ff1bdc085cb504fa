from typing import Optional

from fastapi import Request, Response
from itsdangerous import BadData, URLSafeTimedSerializer

from app.config import settings

GUEST_COOKIE_NAME = "guest_id"
MODEL_COOKIE_NAME = "chat-model"


class SessionManager:
    """Session management using signed cookies"""

    def __init__(self, secret_key: Optional[str] = None):
        self.serializer = URLSafeTimedSerializer(secret_key or settings.secret_key)
        self.session_cookie_name = "session"
        self.max_age = 86400  # 24 hours
        self.guest_max_age = 86400 * 30

    def _set_cookie(self, response: Response, key: str, value: str, max_age: int) -> None:
        response.set_cookie(
            key=key,
            value=value,
            httponly=True,
            samesite="lax",
            secure=settings.session_cookie_secure,
            max_age=max_age,
        )

    def _load(self, cookie: Optional[str], max_age: int) -> dict:
        if not cookie:
            return {}
        try:
            return self.serializer.loads(cookie, max_age=max_age)
        except BadData:
            return {}

    def set_session(self, response: Response, key: str, value: str) -> None:
        """Set a session value in a signed cookie"""
        self._set_cookie(
            response, self.session_cookie_name, self.serializer.dumps({key: value}), self.max_age
        )

    def get_session(self, request: Request, key: str) -> Optional[str]:
        """Get a session value from the signed cookie"""
        return self._load(request.cookies.get(self.session_cookie_name), self.max_age).get(key)

    def clear_session(self, response: Response) -> None:
        response.delete_cookie(key=self.session_cookie_name)
        response.delete_cookie(key=GUEST_COOKIE_NAME)

    def set_guest(self, response: Response, guest_id: str) -> None:
        """Remember a guest user between requests"""
        self._set_cookie(
            response, GUEST_COOKIE_NAME, self.serializer.dumps({"guest_id": guest_id}), self.guest_max_age
        )

    def get_guest(self, request: Request) -> Optional[str]:
        return self._load(request.cookies.get(GUEST_COOKIE_NAME), self.guest_max_age).get("guest_id")


session_manager = SessionManager()
