from typing import Optional, List
from datetime import datetime
from sqlalchemy import select, func, delete
from sqlalchemy.ext.asyncio import AsyncSession

from storyai.models.chapter import Chapter
from storyai.models.chapter_version import ChapterVersion
from storyai.models.project import Project


class ChapterRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, chapter: Chapter) -> Chapter:
        self.db.add(chapter)
        await self.db.flush()
        return chapter

    async def get_by_id(self, chapter_id: str) -> Optional[Chapter]:
        """Chapter by id; chapters of soft-deleted projects are hidden"""
        result = await self.db.execute(
            select(Chapter)
            .join(Project, Project.id == Chapter.project_id)
            .where(Chapter.id == chapter_id, Project.is_deleted.is_(False))
        )
        return result.scalar_one_or_none()

    async def get_by_project(self, project_id: str) -> List[Chapter]:
        result = await self.db.execute(
            select(Chapter)
            .where(Chapter.project_id == project_id)
            .order_by(Chapter.chapter_no)
        )
        return list(result.scalars().all())

    async def update(self, chapter: Chapter) -> Chapter:
        chapter.updated_at = datetime.utcnow()
        await self.db.flush()
        return chapter

    async def delete(self, chapter: Chapter) -> None:
        """Remove a chapter together with all of its versions"""
        await self.db.execute(
            delete(ChapterVersion).where(ChapterVersion.chapter_id == chapter.id)
        )
        await self.db.delete(chapter)
        await self.db.flush()

    async def exists(self, project_id: str, chapter_no: int) -> bool:
        result = await self.db.execute(
            select(func.count())
            .select_from(Chapter)
            .where(Chapter.project_id == project_id, Chapter.chapter_no == chapter_no)
        )
        return result.scalar_one() > 0

    async def get_max_chapter_no(self, project_id: str) -> int:
        result = await self.db.execute(
            select(func.max(Chapter.chapter_no)).where(Chapter.project_id == project_id)
        )
        return result.scalar() or 0

    async def get_author_id(self, chapter_id: str) -> Optional[str]:
        """Author of the project owning the chapter (None if either is gone)"""
        result = await self.db.execute(
            select(Project.author_id)
            .join(Chapter, Chapter.project_id == Project.id)
            .where(Chapter.id == chapter_id, Project.is_deleted.is_(False))
        )
        return result.scalar_one_or_none()
