"""
Chapter Service - chapters of a project.

Chapter title/summary are encrypted under the key of the project's author.
Chapter numbers are unique within a project.
"""

from typing import Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storyai.core.config import settings
from storyai.core.exceptions import (
    ValidationError,
    ForbiddenError,
    ChapterNotFoundError,
    ProjectNotFoundError,
    DuplicateChapterNumberError,
)
from storyai.core.logging_config import logger
from storyai.core.result import ServiceResult, service_operation
from storyai.models.chapter import Chapter
from storyai.repositories.chapter_repository import ChapterRepository
from storyai.repositories.project_repository import ProjectRepository
from storyai.schemas.chapter import ChapterResponse, ChapterListResponse
from storyai.services.content_cipher import AuthorContentCipher, clean_text
from storyai.services.key_provider import KeyProvider


def _validate_title(title: Optional[str]) -> None:
    if not title or not title.strip():
        raise ValidationError("Chapter title is required", field="title")
    if len(title.strip()) > settings.CHAPTER_TITLE_MAX_LENGTH:
        raise ValidationError(
            f"Chapter title must not exceed {settings.CHAPTER_TITLE_MAX_LENGTH} characters", field="title"
        )


def _validate_chapter_no(chapter_no: int) -> None:
    if chapter_no < 1 or chapter_no > settings.MAX_CHAPTER_NO:
        raise ValidationError(
            f"Chapter number must be between 1 and {settings.MAX_CHAPTER_NO}", field="chapter_no"
        )


class ChapterService:
    def __init__(
        self,
        db: AsyncSession,
        chapters: Optional[ChapterRepository] = None,
        projects: Optional[ProjectRepository] = None,
        key_provider: Optional[KeyProvider] = None,
    ):
        self.db = db
        self.chapters = chapters or ChapterRepository(db)
        self.projects = projects or ProjectRepository(db)
        self.cipher = AuthorContentCipher(key_provider or KeyProvider(db))

    async def _to_response(self, chapter: Chapter, author_id: str) -> ChapterResponse:
        plain = await self.cipher.decrypt_fields(
            author_id,
            f"chapter:{chapter.id}",
            title=chapter.title,
            summary=chapter.summary,
        )
        return ChapterResponse(
            id=chapter.id,
            project_id=chapter.project_id,
            chapter_no=chapter.chapter_no,
            created_at=chapter.created_at,
            updated_at=chapter.updated_at,
            **plain,
        )

    async def _require_owned_chapter(self, chapter_id: str, user_id: str) -> tuple:
        """Returns (chapter, author_id); Forbidden for anyone but the author"""
        author_id = await self.chapters.get_author_id(chapter_id)
        if author_id is None or author_id != user_id:
            raise ForbiddenError("You do not have permission to modify this chapter")
        chapter = await self.chapters.get_by_id(chapter_id)
        if chapter is None:
            raise ChapterNotFoundError(chapter_id)
        return chapter, author_id

    @service_operation
    async def create_chapter(
        self,
        user_id: str,
        project_id: str,
        chapter_no: int,
        title: str,
        summary: Optional[str] = None,
    ) -> ServiceResult[ChapterResponse]:
        if not await self.projects.is_owner(project_id, user_id):
            raise ForbiddenError("You do not have permission to add chapters to this project")
        project = await self.projects.get_by_id(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)

        _validate_chapter_no(chapter_no)
        _validate_title(title)
        if await self.chapters.exists(project_id, chapter_no):
            raise DuplicateChapterNumberError(chapter_no)

        title, summary = clean_text(title), clean_text(summary)
        encrypted = await self.cipher.encrypt_fields(project.author_id, title=title, summary=summary)

        try:
            chapter = await self.chapters.create(Chapter(
                project_id=project_id,
                chapter_no=chapter_no,
                **encrypted,
            ))
            await self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent create of the same number
            await self.db.rollback()
            raise DuplicateChapterNumberError(chapter_no)

        logger.info(f"Chapter {chapter_no} ({chapter.id}) created in project {project_id}")
        response = ChapterResponse(
            id=chapter.id,
            project_id=project_id,
            chapter_no=chapter_no,
            title=title,
            summary=summary,
            created_at=chapter.created_at,
            updated_at=chapter.updated_at,
        )
        return ServiceResult.ok("Chapter created successfully", response, created=True)

    @service_operation
    async def get_chapter_by_id(self, chapter_id: str) -> ServiceResult[ChapterResponse]:
        chapter = await self.chapters.get_by_id(chapter_id)
        if chapter is None:
            raise ChapterNotFoundError(chapter_id)
        project = await self.projects.get_by_id(chapter.project_id)
        if project is None:
            raise ProjectNotFoundError(chapter.project_id)
        return ServiceResult.ok(
            "Chapter retrieved successfully",
            await self._to_response(chapter, project.author_id),
        )

    @service_operation
    async def get_chapters_by_project(self, project_id: str) -> ServiceResult[ChapterListResponse]:
        project = await self.projects.get_by_id(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)

        chapters = await self.chapters.get_by_project(project_id)
        items = [await self._to_response(c, project.author_id) for c in chapters]
        return ServiceResult.ok(
            "Chapters retrieved successfully",
            ChapterListResponse(chapters=items, total=len(items)),
        )

    @service_operation
    async def update_chapter(
        self,
        user_id: str,
        chapter_id: str,
        title: str,
        summary: Optional[str] = None,
        chapter_no: Optional[int] = None,
    ) -> ServiceResult[ChapterResponse]:
        chapter, author_id = await self._require_owned_chapter(chapter_id, user_id)
        _validate_title(title)

        renumber = chapter_no is not None and chapter_no != chapter.chapter_no
        if renumber:
            _validate_chapter_no(chapter_no)
            if await self.chapters.exists(chapter.project_id, chapter_no):
                raise DuplicateChapterNumberError(chapter_no)

        title, summary = clean_text(title), clean_text(summary)
        encrypted = await self.cipher.encrypt_fields(author_id, title=title, summary=summary)

        # Nothing on the row changes until every check above has passed
        if renumber:
            chapter.chapter_no = chapter_no
        chapter.title = encrypted["title"]
        chapter.summary = encrypted["summary"]

        try:
            await self.chapters.update(chapter)
            await self.db.commit()
        except IntegrityError:
            # Another writer took the number after the check above
            await self.db.rollback()
            raise DuplicateChapterNumberError(chapter_no)

        response = ChapterResponse(
            id=chapter.id,
            project_id=chapter.project_id,
            chapter_no=chapter.chapter_no,
            title=title,
            summary=summary,
            created_at=chapter.created_at,
            updated_at=chapter.updated_at,
        )
        return ServiceResult.ok("Chapter updated successfully", response)

    @service_operation
    async def delete_chapter(self, user_id: str, chapter_id: str) -> ServiceResult[None]:
        chapter, _ = await self._require_owned_chapter(chapter_id, user_id)
        await self.chapters.delete(chapter)
        await self.db.commit()

        logger.info(f"Chapter {chapter_id} and its versions deleted by author {user_id}")
        return ServiceResult.ok("Chapter deleted successfully")

    @service_operation
    async def get_next_chapter_no(self, project_id: str) -> ServiceResult[int]:
        project = await self.projects.get_by_id(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        next_no = await self.chapters.get_max_chapter_no(project_id) + 1
        return ServiceResult.ok("Next chapter number retrieved", next_no)
