import logging
import uuid
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.models.user import GUEST_EMAIL_PREFIX, User

logger = logging.getLogger(__name__)


class UserService:
    """User lookup and creation for guests and Google accounts"""

    @staticmethod
    async def get_user_by_id(db: AsyncSession, user_id: UUID) -> Optional[User]:
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_user_by_google_id(db: AsyncSession, google_id: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.googleId == google_id))
        return result.scalar_one_or_none()

    @staticmethod
    async def get_user_by_email(db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalar_one_or_none()

    @staticmethod
    async def create_guest_user(db: AsyncSession) -> User:
        """Create an anonymous user whose email carries the guest prefix"""
        user = User(
            id=uuid.uuid4(),
            email=f"{GUEST_EMAIL_PREFIX}{uuid.uuid4().hex}",
            name="Guest",
            createdAt=datetime.utcnow(),
        )
        db.add(user)
        await db.commit()
        await db.refresh(user)
        logger.info(f"Created guest user {user.id}")
        return user

    @staticmethod
    async def upsert_google_user(
        db: AsyncSession,
        email: str,
        google_id: str,
        name: Optional[str],
        picture: Optional[str],
    ) -> User:
        """
        Find the user for a Google profile or create one

        Args:
            db: Database session
            email: Verified Google email
            google_id: Google "sub" claim
            name: Display name
            picture: Profile picture URL

        Returns:
            The matching or newly created User, with profile fields refreshed
        """
        user = await UserService.get_user_by_google_id(db, google_id)
        if not user:
            # Accounts created before Google sign-in are matched by email
            user = await UserService.get_user_by_email(db, email)

        if user:
            user.googleId = google_id
            user.name = name or user.name
            user.picture = picture or user.picture
        else:
            user = User(email=email, googleId=google_id, name=name, picture=picture)
            db.add(user)
            logger.info(f"Creating user for Google account {email}")

        await db.commit()
        await db.refresh(user)
        return user
