from pydantic import BaseModel, UUID4
from typing import Optional


class GoogleTokenResponse(BaseModel):
    access_token: str
    refresh_token: Optional[str] = None
    expires_in: int
    scope: str
    token_type: str
    id_token: str


class AuthStatusResponse(BaseModel):
    authenticated: bool
    user_id: Optional[UUID4] = None
    user_type: Optional[str] = None


class UserResponse(BaseModel):
    user_id: UUID4
    email: str
    name: Optional[str] = None
    picture: Optional[str] = None
    user_type: str
    authenticated: bool = True
