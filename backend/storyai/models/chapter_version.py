"""
Chapter Version Model - manuscript revisions of a chapter

Version tracking:
- version 1: created active
- version 2+: created inactive, activated explicitly
At most one version per chapter has is_active = True.
"""

from sqlalchemy import Column, DateTime, Integer, Text, ForeignKey, Boolean, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime

from storyai.core.database import Base
from storyai.core.types import GUID, generate_uuid


class ChapterVersion(Base):
    __tablename__ = "chapter_versions"

    __table_args__ = (
        UniqueConstraint('chapter_id', 'version_number', name='uq_chapter_versions_number'),
        Index('ix_chapter_versions_chapter_active', 'chapter_id', 'is_active'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    chapter_id = Column(GUID, ForeignKey("chapters.id", ondelete="CASCADE"), nullable=False, index=True)

    version_number = Column(Integer, nullable=False)
    raw_content = Column(Text, nullable=False)
    word_count = Column(Integer, default=0, nullable=False)
    is_active = Column(Boolean, default=False, nullable=False)

    upload_date = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    chapter = relationship("Chapter", back_populates="versions")

    def __repr__(self):
        return f"<ChapterVersion v{self.version_number}{' (active)' if self.is_active else ''}>"
