from sqlalchemy import Column, DateTime, Integer, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime

from storyai.core.database import Base
from storyai.core.types import GUID, generate_uuid


class Chapter(Base):
    """Chapter of a project; title/summary encrypted under the project author's key"""
    __tablename__ = "chapters"

    __table_args__ = (
        UniqueConstraint('project_id', 'chapter_no', name='uq_chapters_project_chapter_no'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    project_id = Column(GUID, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    chapter_no = Column(Integer, nullable=False)

    # Ciphertext columns
    title = Column(Text, nullable=False)
    summary = Column(Text, nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    project = relationship("Project", back_populates="chapters")
    versions = relationship("ChapterVersion", back_populates="chapter", cascade="all, delete-orphan", passive_deletes=True)

    def __repr__(self):
        return f"<Chapter {self.chapter_no} of {self.project_id}>"
