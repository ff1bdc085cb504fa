import logging
from typing import Optional
from urllib.parse import urlencode, urlsplit

from fastapi import APIRouter, Depends, HTTPException, Request, Response
from fastapi.responses import RedirectResponse
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import settings
from app.database import get_db
from app.models.user import User
from app.schemas.auth import AuthStatusResponse, UserResponse
from app.services.google_auth_service import GoogleAuthService
from app.services.user_service import UserService
from app.utils.auth import get_current_user, get_optional_user
from app.utils.session import session_manager

router = APIRouter(prefix="/auth", tags=["authentication"])
session_router = APIRouter(prefix="/api/auth", tags=["authentication"])

logger = logging.getLogger(__name__)

OAUTH_STATE_KEY = "oauth_state"


def is_frontend_url(url: Optional[str]) -> bool:
    """True when ``url`` points at the frontend's own scheme and host"""
    if not url:
        return False
    target = urlsplit(url)
    frontend = urlsplit(settings.frontend_url)
    if target.username is not None or target.password is not None:
        return False
    return target.scheme == frontend.scheme and target.netloc == frontend.netloc


@router.get("/google/login")
async def google_login():
    """Initiate Google OAuth flow"""
    state = GoogleAuthService.generate_state()
    response = RedirectResponse(url=GoogleAuthService.get_authorization_url(state))
    session_manager.set_session(response, OAUTH_STATE_KEY, state)
    return response


@router.get("/google/callback")
async def google_callback(
    request: Request,
    code: str,
    state: Optional[str] = None,
    db: AsyncSession = Depends(get_db),
):
    """Handle Google OAuth callback"""
    expected_state = session_manager.get_session(request, OAUTH_STATE_KEY)
    if not state or state != expected_state:
        raise HTTPException(status_code=400, detail="Invalid OAuth state")

    try:
        token_response = await GoogleAuthService.exchange_code_for_token(code)
        user_info = GoogleAuthService.decode_id_token(token_response.id_token)
    except Exception as e:
        logger.error(f"Google OAuth callback error: {type(e).__name__}: {str(e)}", exc_info=True)
        error_detail = str(e) if str(e) else f"{type(e).__name__}: {repr(e)}"
        raise HTTPException(status_code=500, detail=f"Authentication failed: {error_detail}")

    email = user_info.get("email")
    google_id = user_info.get("sub")
    if not email or not google_id:
        raise HTTPException(
            status_code=400,
            detail="Failed to extract user information from Google",
        )

    user = await UserService.upsert_google_user(
        db, email, google_id, user_info.get("name"), user_info.get("picture")
    )
    logger.info(f"User {user.id} signed in with Google")

    params = {
        "userId": str(user.id),
        "email": email,
        "name": user.name or "",
        "picture": user.picture or "",
    }
    response = RedirectResponse(url=f"{settings.frontend_url}/auth/success?{urlencode(params)}")
    session_manager.set_session(response, "user_id", str(user.id))
    return response


@router.get("/status", response_model=AuthStatusResponse)
async def auth_status(user: Optional[User] = Depends(get_optional_user)):
    """Check authentication status"""
    if not user:
        return AuthStatusResponse(authenticated=False)
    return AuthStatusResponse(authenticated=True, user_id=user.id, user_type=user.user_type)


@router.get("/me", response_model=UserResponse)
async def get_me(user: User = Depends(get_current_user)):
    """Get current user info"""
    return UserResponse(
        user_id=user.id,
        email=user.email,
        name=user.name,
        picture=user.picture,
        user_type=user.user_type,
        authenticated=True,
    )


@router.post("/logout")
async def logout(response: Response):
    session_manager.clear_session(response)
    return {"success": True}


@session_router.get("/session")
async def get_session(user: Optional[User] = Depends(get_optional_user)):
    """Session in the shape the chat frontend reads"""
    if not user:
        return {"user": None}
    return {
        "user": {
            "id": str(user.id),
            "email": user.email,
            "name": user.name,
            "image": user.picture,
            "type": user.user_type,
        }
    }


@session_router.get("/guest")
async def guest_sign_in(
    redirectUrl: Optional[str] = None,
    user: Optional[User] = Depends(get_optional_user),
    db: AsyncSession = Depends(get_db),
):
    """Start a guest session and send the browser back to the app"""
    target = redirectUrl if is_frontend_url(redirectUrl) else settings.frontend_url
    response = RedirectResponse(url=target)

    if user:
        return response

    guest = await UserService.create_guest_user(db)
    session_manager.set_guest(response, str(guest.id))
    return response
