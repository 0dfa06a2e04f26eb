from sqlalchemy import Column, String, Boolean, DateTime, Enum as SQLEnum, Text
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from storyai.core.database import Base
from storyai.core.types import GUID, generate_uuid


class UserRole(str, enum.Enum):
    """User roles"""
    USER = "user"
    AUTHOR = "author"
    STAFF = "staff"
    ADMIN = "admin"

    @property
    def is_staff(self) -> bool:
        return self in (UserRole.STAFF, UserRole.ADMIN)


class User(Base):
    """User model"""
    __tablename__ = "users"

    id = Column(GUID, primary_key=True, default=generate_uuid)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=False)
    hashed_password = Column(String(255), nullable=False)
    avatar_url = Column(Text, nullable=True)

    role = Column(SQLEnum(UserRole), default=UserRole.AUTHOR, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)

    # Per-author content key: written once at registration, never rotated
    data_encryption_key = Column(String(64), nullable=False)

    # Token fields (SHA-256 digests)
    refresh_token_hash = Column(String(64), nullable=True, index=True)
    refresh_token_expires = Column(DateTime, nullable=True)
    reset_token_hash = Column(String(64), nullable=True, index=True)
    reset_token_expires = Column(DateTime, nullable=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    last_login = Column(DateTime, nullable=True)

    # Relationships
    projects = relationship("Project", back_populates="author", cascade="all, delete-orphan", passive_deletes=True)

    def __repr__(self):
        return f"<User {self.email}>"
