from typing import Optional, List
from datetime import datetime
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from storyai.models.project import Project, ProjectStatus


class ProjectRepository:
    """
    Persistence for projects. Text columns are read and written exactly as
    stored (ciphertext); encryption happens in the service layer.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, project: Project) -> Project:
        self.db.add(project)
        await self.db.flush()
        return project

    async def get_by_id(self, project_id: str, include_deleted: bool = False) -> Optional[Project]:
        query = select(Project).where(Project.id == project_id)
        if not include_deleted:
            query = query.where(Project.is_deleted.is_(False))
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_by_author(self, author_id: str, include_draft: bool = True) -> List[Project]:
        query = (
            select(Project)
            .where(Project.author_id == author_id, Project.is_deleted.is_(False))
            .order_by(Project.created_at.desc())
        )
        if not include_draft:
            query = query.where(Project.status != ProjectStatus.DRAFT)
        result = await self.db.execute(query)
        return list(result.scalars().all())

    async def update(self, project: Project) -> Project:
        project.updated_at = datetime.utcnow()
        await self.db.flush()
        return project

    async def soft_delete(self, project: Project) -> None:
        project.is_deleted = True
        project.updated_at = datetime.utcnow()
        await self.db.flush()

    async def is_owner(self, project_id: str, user_id: str) -> bool:
        result = await self.db.execute(
            select(func.count())
            .select_from(Project)
            .where(
                Project.id == project_id,
                Project.author_id == user_id,
                Project.is_deleted.is_(False),
            )
        )
        return result.scalar_one() > 0
