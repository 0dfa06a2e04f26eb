from sqlalchemy import Column, String, DateTime, Enum as SQLEnum, Text, ForeignKey, Boolean, Index
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from storyai.core.database import Base
from storyai.core.types import GUID, generate_uuid


class ProjectStatus(str, enum.Enum):
    """Project status"""
    DRAFT = "draft"
    PUBLISHED = "published"
    COMPLETED = "completed"
    PAUSED = "paused"


class Project(Base):
    """
    Story project owned by one author.

    title, summary and cover_image_url hold Field Cipher output under the
    author's data encryption key, never plaintext.
    """
    __tablename__ = "projects"

    __table_args__ = (
        Index('ix_projects_author_deleted', 'author_id', 'is_deleted'),
        Index('ix_projects_created_at', 'created_at'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    author_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Ciphertext columns
    title = Column(Text, nullable=False)
    summary = Column(Text, nullable=True)
    cover_image_url = Column(Text, nullable=True)

    status = Column(SQLEnum(ProjectStatus), default=ProjectStatus.DRAFT, nullable=False)
    is_deleted = Column(Boolean, default=False, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Relationships
    author = relationship("User", back_populates="projects")
    chapters = relationship("Chapter", back_populates="project", cascade="all, delete-orphan", passive_deletes=True)

    def __repr__(self):
        return f"<Project {self.id}>"
