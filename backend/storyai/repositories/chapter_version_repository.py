from typing import Optional, List
from datetime import datetime
from sqlalchemy import select, func, update, case
from sqlalchemy.ext.asyncio import AsyncSession

from storyai.models.chapter import Chapter
from storyai.models.chapter_version import ChapterVersion
from storyai.models.project import Project


class ChapterVersionRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, version: ChapterVersion) -> ChapterVersion:
        self.db.add(version)
        await self.db.flush()
        return version

    def _visible(self):
        """Versions whose project has not been soft-deleted"""
        return (
            select(ChapterVersion)
            .join(Chapter, Chapter.id == ChapterVersion.chapter_id)
            .join(Project, Project.id == Chapter.project_id)
            .where(Project.is_deleted.is_(False))
        )

    async def get_by_id(self, version_id: str) -> Optional[ChapterVersion]:
        result = await self.db.execute(
            self._visible()
            .where(ChapterVersion.id == version_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_by_chapter(self, chapter_id: str) -> List[ChapterVersion]:
        """All versions of a chapter, newest first"""
        result = await self.db.execute(
            self._visible()
            .where(ChapterVersion.chapter_id == chapter_id)
            .order_by(ChapterVersion.version_number.desc())
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def get_active(self, chapter_id: str) -> Optional[ChapterVersion]:
        result = await self.db.execute(
            self._visible()
            .where(ChapterVersion.chapter_id == chapter_id, ChapterVersion.is_active.is_(True))
            .order_by(ChapterVersion.version_number.desc())
            .limit(1)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def get_max_version_number(self, chapter_id: str) -> int:
        result = await self.db.execute(
            select(func.max(ChapterVersion.version_number))
            .where(ChapterVersion.chapter_id == chapter_id)
        )
        return result.scalar() or 0

    async def update(self, version: ChapterVersion) -> ChapterVersion:
        version.updated_at = datetime.utcnow()
        await self.db.flush()
        return version

    async def delete(self, version: ChapterVersion) -> None:
        await self.db.delete(version)
        await self.db.flush()

    async def activate_exclusively(self, chapter_id: str, version_id: str) -> int:
        """
        Single statement: the target row becomes active and every sibling
        inactive. Returns the number of rows touched (0 if the chapter has
        no such version).
        """
        result = await self.db.execute(
            update(ChapterVersion)
            .where(ChapterVersion.chapter_id == chapter_id)
            .values(
                is_active=case((ChapterVersion.id == version_id, True), else_=False),
                updated_at=datetime.utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def count_active(self, chapter_id: str) -> int:
        result = await self.db.execute(
            select(func.count())
            .select_from(ChapterVersion)
            .where(ChapterVersion.chapter_id == chapter_id, ChapterVersion.is_active.is_(True))
        )
        return result.scalar_one()

    async def get_author_id(self, version_id: str) -> Optional[str]:
        """Walk version -> chapter -> project to the owning author"""
        result = await self.db.execute(
            select(Project.author_id)
            .join(Chapter, Chapter.project_id == Project.id)
            .join(ChapterVersion, ChapterVersion.chapter_id == Chapter.id)
            .where(ChapterVersion.id == version_id, Project.is_deleted.is_(False))
        )
        return result.scalar_one_or_none()
