from sqlalchemy import Column, String, DateTime, Text
from sqlalchemy.dialects.postgresql import UUID
import uuid
from datetime import datetime
from app.database import Base

GUEST_EMAIL_PREFIX = "guest-"


class User(Base):
    __tablename__ = "User"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4, index=True)
    email = Column(String(64), unique=True, nullable=False, index=True)
    password = Column(String(64), nullable=True)  # Not used with OAuth

    # Google OAuth profile
    googleId = Column(String(255), unique=True, nullable=True, index=True)
    name = Column(String(255), nullable=True)
    picture = Column(Text, nullable=True)

    createdAt = Column(DateTime, default=datetime.utcnow, nullable=False)
    updatedAt = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    @property
    def is_guest(self) -> bool:
        return self.email.startswith(GUEST_EMAIL_PREFIX)

    @property
    def user_type(self) -> str:
        return "guest" if self.is_guest else "regular"

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email}, type={self.user_type})>"
