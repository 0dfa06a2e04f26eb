"""
Chapter Version Service - manuscript versions of a chapter.

Every mutation checks the chain of custody first (version -> chapter ->
project -> author) and only then looks at the version itself.
"""

from typing import Optional, List
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storyai.core.exceptions import (
    ValidationError,
    ForbiddenError,
    ConflictError,
    ChapterNotFoundError,
    VersionNotFoundError,
)
from storyai.core.logging_config import logger
from storyai.core.result import ErrorCode, ServiceResult, service_operation
from storyai.models.chapter_version import ChapterVersion
from storyai.repositories.chapter_repository import ChapterRepository
from storyai.repositories.chapter_version_repository import ChapterVersionRepository
from storyai.schemas.chapter_version import ChapterVersionResponse
from storyai.services.versioning import VersioningEngine


def _validate_content(raw_content: Optional[str]) -> None:
    if not raw_content or not raw_content.strip():
        raise ValidationError("Content must not be empty", field="raw_content")


class ChapterVersionService:
    def __init__(
        self,
        db: AsyncSession,
        versions: Optional[ChapterVersionRepository] = None,
        chapters: Optional[ChapterRepository] = None,
    ):
        self.db = db
        self.versions = versions or ChapterVersionRepository(db)
        self.chapters = chapters or ChapterRepository(db)
        self.engine = VersioningEngine(db, self.versions)

    async def _require_owned_version(self, version_id: str, user_id: str) -> ChapterVersion:
        author_id = await self.versions.get_author_id(version_id)
        if author_id is None or author_id != user_id:
            raise ForbiddenError("You do not have permission to modify this version")
        version = await self.versions.get_by_id(version_id)
        if version is None:
            raise VersionNotFoundError(version_id)
        return version

    @service_operation
    async def create_version(
        self,
        user_id: str,
        chapter_id: str,
        raw_content: str,
    ) -> ServiceResult[ChapterVersionResponse]:
        author_id = await self.chapters.get_author_id(chapter_id)
        if author_id is None or author_id != user_id:
            raise ForbiddenError("You do not have permission to add versions to this chapter")
        _validate_content(raw_content)

        try:
            version = await self.engine.create_version(chapter_id, raw_content)
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("Another version was created at the same time, please retry")

        logger.info(f"Version {version.version_number} created for chapter {chapter_id}")
        return ServiceResult.ok(
            "Version created successfully",
            ChapterVersionResponse.model_validate(version),
            created=True,
        )

    @service_operation
    async def get_version_by_id(self, version_id: str) -> ServiceResult[ChapterVersionResponse]:
        version = await self.versions.get_by_id(version_id)
        if version is None:
            raise VersionNotFoundError(version_id)
        return ServiceResult.ok("Version retrieved successfully", ChapterVersionResponse.model_validate(version))

    @service_operation
    async def get_versions_by_chapter(self, chapter_id: str) -> ServiceResult[List[ChapterVersionResponse]]:
        if await self.chapters.get_by_id(chapter_id) is None:
            raise ChapterNotFoundError(chapter_id)
        versions = await self.versions.get_by_chapter(chapter_id)
        return ServiceResult.ok(
            "Versions retrieved successfully",
            [ChapterVersionResponse.model_validate(v) for v in versions],
        )

    @service_operation
    async def get_active_version(self, chapter_id: str) -> ServiceResult[ChapterVersionResponse]:
        if await self.chapters.get_by_id(chapter_id) is None:
            raise ChapterNotFoundError(chapter_id)
        version = await self.versions.get_active(chapter_id)
        if version is None:
            return ServiceResult.fail("This chapter has no active version", ErrorCode.NOT_FOUND)
        return ServiceResult.ok("Active version retrieved successfully", ChapterVersionResponse.model_validate(version))

    @service_operation
    async def update_version(
        self,
        user_id: str,
        version_id: str,
        raw_content: str,
    ) -> ServiceResult[ChapterVersionResponse]:
        version = await self._require_owned_version(version_id, user_id)
        _validate_content(raw_content)

        await self.engine.update_content(version, raw_content)
        await self.db.commit()
        return ServiceResult.ok("Version updated successfully", ChapterVersionResponse.model_validate(version))

    @service_operation
    async def delete_version(self, user_id: str, version_id: str) -> ServiceResult[None]:
        version = await self._require_owned_version(version_id, user_id)
        await self.engine.delete(version)
        await self.db.commit()

        logger.info(f"Version {version.version_number} of chapter {version.chapter_id} deleted")
        return ServiceResult.ok("Version deleted successfully")

    @service_operation
    async def set_active_version(self, user_id: str, version_id: str) -> ServiceResult[ChapterVersionResponse]:
        version = await self._require_owned_version(version_id, user_id)
        await self.engine.set_active(version)
        await self.db.commit()

        return ServiceResult.ok(
            f"Version {version.version_number} is now the active version",
            ChapterVersionResponse.model_validate(version),
        )
