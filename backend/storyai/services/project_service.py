"""
Project Service - story projects with author-encrypted text fields.

title, summary and cover_image_url are encrypted with the author's data
encryption key before they reach the database and decrypted on the way out,
so callers only ever see plaintext.
"""

from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession

from storyai.core.config import settings
from storyai.core.exceptions import (
    ValidationError,
    ForbiddenError,
    ProjectNotFoundError,
)
from storyai.core.logging_config import logger
from storyai.core.result import ServiceResult, service_operation
from storyai.models.project import Project, ProjectStatus
from storyai.repositories.project_repository import ProjectRepository
from storyai.schemas.project import ProjectResponse, ProjectListResponse
from storyai.services.content_cipher import AuthorContentCipher, clean_text
from storyai.services.key_provider import KeyProvider


def _validate_project_fields(title: Optional[str], cover_image_url: Optional[str]) -> None:
    if not title or not title.strip():
        raise ValidationError("Title is required", field="title")
    if len(title.strip()) > settings.PROJECT_TITLE_MAX_LENGTH:
        raise ValidationError(
            f"Title must not exceed {settings.PROJECT_TITLE_MAX_LENGTH} characters", field="title"
        )
    if cover_image_url and len(cover_image_url.strip()) > settings.COVER_IMAGE_URL_MAX_LENGTH:
        raise ValidationError(
            f"Cover image URL must not exceed {settings.COVER_IMAGE_URL_MAX_LENGTH} characters",
            field="cover_image_url",
        )


def _parse_status(status: str) -> ProjectStatus:
    try:
        return ProjectStatus(status.strip().lower())
    except ValueError:
        allowed = ", ".join(s.value for s in ProjectStatus)
        raise ValidationError(f"Status must be one of: {allowed}", field="status")


class ProjectService:
    def __init__(
        self,
        db: AsyncSession,
        projects: Optional[ProjectRepository] = None,
        key_provider: Optional[KeyProvider] = None,
    ):
        self.db = db
        self.projects = projects or ProjectRepository(db)
        self.cipher = AuthorContentCipher(key_provider or KeyProvider(db))

    async def _to_response(self, project: Project) -> ProjectResponse:
        plain = await self.cipher.decrypt_fields(
            project.author_id,
            f"project:{project.id}",
            title=project.title,
            summary=project.summary,
            cover_image_url=project.cover_image_url,
        )
        return ProjectResponse(
            id=project.id,
            author_id=project.author_id,
            status=ProjectStatus(project.status).value,
            created_at=project.created_at,
            updated_at=project.updated_at,
            **plain,
        )

    async def _require_owned_project(self, project_id: str, user_id: str) -> Project:
        """Ownership first: non-authors get Forbidden whether or not the project exists"""
        if not await self.projects.is_owner(project_id, user_id):
            raise ForbiddenError("You do not have permission to modify this project")
        project = await self.projects.get_by_id(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    @service_operation
    async def create_project(
        self,
        author_id: str,
        title: str,
        summary: Optional[str] = None,
        cover_image_url: Optional[str] = None,
    ) -> ServiceResult[ProjectResponse]:
        _validate_project_fields(title, cover_image_url)

        title, summary, cover_image_url = clean_text(title), clean_text(summary), clean_text(cover_image_url)
        encrypted = await self.cipher.encrypt_fields(
            author_id, title=title, summary=summary, cover_image_url=cover_image_url
        )

        project = await self.projects.create(Project(
            author_id=author_id,
            status=ProjectStatus.DRAFT,
            is_deleted=False,
            **encrypted,
        ))
        await self.db.commit()

        logger.info(f"Project {project.id} created by author {author_id}")
        response = ProjectResponse(
            id=project.id,
            author_id=project.author_id,
            title=title,
            summary=summary,
            cover_image_url=cover_image_url,
            status=ProjectStatus.DRAFT.value,
            created_at=project.created_at,
            updated_at=project.updated_at,
        )
        return ServiceResult.ok("Project created successfully", response, created=True)

    @service_operation
    async def get_my_projects(
        self,
        author_id: str,
        include_draft: bool = True,
    ) -> ServiceResult[ProjectListResponse]:
        projects: List[Project] = await self.projects.get_by_author(author_id, include_draft)
        items = [await self._to_response(p) for p in projects]
        return ServiceResult.ok(
            "Projects retrieved successfully",
            ProjectListResponse(projects=items, total=len(items)),
        )

    @service_operation
    async def get_project_by_id(self, project_id: str) -> ServiceResult[ProjectResponse]:
        project = await self.projects.get_by_id(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return ServiceResult.ok("Project retrieved successfully", await self._to_response(project))

    @service_operation
    async def update_project(
        self,
        project_id: str,
        user_id: str,
        title: str,
        summary: Optional[str] = None,
        cover_image_url: Optional[str] = None,
        status: Optional[str] = None,
    ) -> ServiceResult[ProjectResponse]:
        project = await self._require_owned_project(project_id, user_id)
        _validate_project_fields(title, cover_image_url)
        new_status = _parse_status(status) if status and status.strip() else None

        title, summary, cover_image_url = clean_text(title), clean_text(summary), clean_text(cover_image_url)
        # Always the project author's key, even if editing is ever delegated
        encrypted = await self.cipher.encrypt_fields(
            project.author_id, title=title, summary=summary, cover_image_url=cover_image_url
        )
        project.title = encrypted["title"]
        project.summary = encrypted["summary"]
        project.cover_image_url = encrypted["cover_image_url"]
        if new_status is not None:
            project.status = new_status

        await self.projects.update(project)
        await self.db.commit()

        response = ProjectResponse(
            id=project.id,
            author_id=project.author_id,
            title=title,
            summary=summary,
            cover_image_url=cover_image_url,
            status=ProjectStatus(project.status).value,
            created_at=project.created_at,
            updated_at=project.updated_at,
        )
        return ServiceResult.ok("Project updated successfully", response)

    @service_operation
    async def delete_project(self, project_id: str, user_id: str) -> ServiceResult[None]:
        project = await self._require_owned_project(project_id, user_id)
        await self.projects.soft_delete(project)
        await self.db.commit()

        logger.info(f"Project {project_id} soft-deleted by author {user_id}")
        return ServiceResult.ok("Project deleted successfully")
