"""
Versioning Engine - chapter version numbering and the single-active rule.

Rules:
- version numbers are max(existing) + 1; gaps left by deletes are kept
- the first version of a chapter starts active, later ones inactive
- activation flips the whole chapter in one UPDATE, so concurrent
  activations serialize on the row locks and exactly one version ends up active
- the active version cannot be deleted
"""

from typing import Optional

from sqlalchemy.ext.asyncio import AsyncSession

from storyai.core.exceptions import CannotDeleteActiveVersionError, VersionNotFoundError
from storyai.core.logging_config import logger
from storyai.models.chapter_version import ChapterVersion
from storyai.repositories.chapter_version_repository import ChapterVersionRepository


def count_words(content: Optional[str]) -> int:
    """Whitespace-delimited token count"""
    if not content or not content.strip():
        return 0
    return len(content.split())


class VersioningEngine:
    def __init__(self, db: AsyncSession, versions: Optional[ChapterVersionRepository] = None):
        self.db = db
        self.versions = versions or ChapterVersionRepository(db)

    async def create_version(self, chapter_id: str, content: str) -> ChapterVersion:
        next_number = await self.versions.get_max_version_number(chapter_id) + 1
        version = ChapterVersion(
            chapter_id=chapter_id,
            version_number=next_number,
            raw_content=content.strip(),
            word_count=count_words(content),
            is_active=next_number == 1,
        )
        await self.versions.create(version)
        logger.debug(f"Created version {next_number} for chapter {chapter_id}")
        return version

    async def update_content(self, version: ChapterVersion, content: str) -> ChapterVersion:
        version.raw_content = content.strip()
        version.word_count = count_words(content)
        return await self.versions.update(version)

    async def set_active(self, version: ChapterVersion) -> ChapterVersion:
        touched = await self.versions.activate_exclusively(version.chapter_id, version.id)
        if touched == 0:
            raise VersionNotFoundError(version.id)
        # The UPDATE bypassed the identity map
        await self.db.refresh(version)
        logger.debug(f"Version {version.version_number} of chapter {version.chapter_id} is now active")
        return version

    async def delete(self, version: ChapterVersion) -> None:
        if version.is_active:
            raise CannotDeleteActiveVersionError(version.version_number)
        await self.versions.delete(version)
