"""
Unit Tests for the versioning engine and ChapterVersionService
Tests for: numbering, single active version, delete guard, ownership
"""
import pytest

from storyai.core.result import ErrorCode
from storyai.repositories.chapter_version_repository import ChapterVersionRepository
from storyai.services.chapter_service import ChapterService
from storyai.services.chapter_version_service import ChapterVersionService
from storyai.services.project_service import ProjectService
from storyai.services.versioning import count_words


@pytest.fixture
async def chapter(db_session, author):
    project = await ProjectService(db_session).create_project(author.id, "Novel")
    result = await ChapterService(db_session).create_chapter(author.id, project.data.id, 1, "One")
    return result.data


async def _active_count(db_session, chapter_id: str) -> int:
    return await ChapterVersionRepository(db_session).count_active(chapter_id)


class TestCountWords:

    @pytest.mark.parametrize("content, expected", [
        ("one two three", 3),
        ("  leading and trailing  ", 3),
        ("tabs\tand\nnew\r\nlines", 4),
        ("", 0),
        ("   \n\t ", 0),
        (None, 0),
    ])
    def test_count_words(self, content, expected):
        assert count_words(content) == expected


class TestCreateVersion:

    @pytest.mark.asyncio
    async def test_first_version_active_later_inactive(self, db_session, author, chapter):
        service = ChapterVersionService(db_session)

        v1 = await service.create_version(author.id, chapter.id, "first draft here")
        v2 = await service.create_version(author.id, chapter.id, "second draft")

        assert v1.status_code == 201
        assert (v1.data.version_number, v1.data.is_active, v1.data.word_count) == (1, True, 3)
        assert (v2.data.version_number, v2.data.is_active) == (2, False)
        assert await _active_count(db_session, chapter.id) == 1

    @pytest.mark.asyncio
    async def test_middle_delete_leaves_gap(self, db_session, author, chapter):
        service = ChapterVersionService(db_session)
        await service.create_version(author.id, chapter.id, "v1")
        v2 = await service.create_version(author.id, chapter.id, "v2")
        await service.create_version(author.id, chapter.id, "v3")

        await service.delete_version(author.id, v2.data.id)
        v4 = await service.create_version(author.id, chapter.id, "v4")

        assert v4.data.version_number == 4

    @pytest.mark.asyncio
    async def test_deleted_highest_number_is_handed_out_again(self, db_session, author, chapter):
        service = ChapterVersionService(db_session)
        await service.create_version(author.id, chapter.id, "v1")
        v2 = await service.create_version(author.id, chapter.id, "v2")

        await service.delete_version(author.id, v2.data.id)
        again = await service.create_version(author.id, chapter.id, "v2 rewritten")

        assert again.data.version_number == 2
        assert again.data.is_active is False

    @pytest.mark.asyncio
    async def test_blank_content_rejected(self, db_session, author, chapter):
        result = await ChapterVersionService(db_session).create_version(author.id, chapter.id, "  \n ")
        assert result.error_code == ErrorCode.VALIDATION_ERROR

    @pytest.mark.asyncio
    async def test_non_owner_is_forbidden(self, db_session, other_author, chapter):
        result = await ChapterVersionService(db_session).create_version(other_author.id, chapter.id, "text")
        assert result.error_code == ErrorCode.FORBIDDEN

    @pytest.mark.asyncio
    async def test_missing_chapter_is_forbidden(self, db_session, author):
        result = await ChapterVersionService(db_session).create_version(author.id, "missing", "text")
        assert result.error_code == ErrorCode.FORBIDDEN


class TestSetActive:

    @pytest.mark.asyncio
    async def test_set_active_flips_siblings(self, db_session, author, chapter):
        service = ChapterVersionService(db_session)
        v1 = await service.create_version(author.id, chapter.id, "v1")
        v2 = await service.create_version(author.id, chapter.id, "v2")
        v3 = await service.create_version(author.id, chapter.id, "v3")

        result = await service.set_active_version(author.id, v3.data.id)

        assert result.success is True
        assert result.data.is_active is True
        assert "3" in result.message
        assert (await service.get_version_by_id(v1.data.id)).data.is_active is False
        assert (await service.get_version_by_id(v2.data.id)).data.is_active is False
        assert (await service.get_active_version(chapter.id)).data.id == v3.data.id
        assert await _active_count(db_session, chapter.id) == 1

    @pytest.mark.asyncio
    async def test_set_active_is_idempotent(self, db_session, author, chapter):
        service = ChapterVersionService(db_session)
        v1 = await service.create_version(author.id, chapter.id, "v1")

        await service.set_active_version(author.id, v1.data.id)
        result = await service.set_active_version(author.id, v1.data.id)

        assert result.data.is_active is True
        assert await _active_count(db_session, chapter.id) == 1

    @pytest.mark.asyncio
    async def test_only_own_chapter_is_touched(self, db_session, author, chapter):
        project = await ProjectService(db_session).get_my_projects(author.id)
        other_chapter = await ChapterService(db_session).create_chapter(
            author.id, project.data.projects[0].id, 2, "Two"
        )
        service = ChapterVersionService(db_session)
        await service.create_version(author.id, chapter.id, "a1")
        a2 = await service.create_version(author.id, chapter.id, "a2")
        b1 = await service.create_version(author.id, other_chapter.data.id, "b1")

        await service.set_active_version(author.id, a2.data.id)

        assert (await service.get_version_by_id(b1.data.id)).data.is_active is True

    @pytest.mark.asyncio
    async def test_non_owner_is_forbidden(self, db_session, author, other_author, chapter):
        service = ChapterVersionService(db_session)
        await service.create_version(author.id, chapter.id, "v1")
        v2 = await service.create_version(author.id, chapter.id, "v2")

        result = await service.set_active_version(other_author.id, v2.data.id)

        assert result.error_code == ErrorCode.FORBIDDEN
        assert (await service.get_version_by_id(v2.data.id)).data.is_active is False

    @pytest.mark.asyncio
    async def test_missing_version_is_forbidden(self, db_session, author):
        result = await ChapterVersionService(db_session).set_active_version(author.id, "missing")
        assert result.error_code == ErrorCode.FORBIDDEN


class TestDeleteVersion:

    @pytest.mark.asyncio
    async def test_active_version_cannot_be_deleted(self, db_session, author, chapter):
        service = ChapterVersionService(db_session)
        v1 = await service.create_version(author.id, chapter.id, "v1")

        result = await service.delete_version(author.id, v1.data.id)

        assert result.success is False
        assert result.error_code == ErrorCode.CANNOT_DELETE_ACTIVE_VERSION
        assert result.status_code == 400
        assert (await service.get_version_by_id(v1.data.id)).success is True

    @pytest.mark.asyncio
    async def test_inactive_version_is_deleted(self, db_session, author, chapter):
        service = ChapterVersionService(db_session)
        await service.create_version(author.id, chapter.id, "v1")
        v2 = await service.create_version(author.id, chapter.id, "v2")

        result = await service.delete_version(author.id, v2.data.id)

        assert result.success is True
        assert (await service.get_version_by_id(v2.data.id)).error_code == ErrorCode.NOT_FOUND

    @pytest.mark.asyncio
    async def test_non_owner_is_forbidden(self, db_session, author, other_author, chapter):
        service = ChapterVersionService(db_session)
        await service.create_version(author.id, chapter.id, "v1")
        v2 = await service.create_version(author.id, chapter.id, "v2")

        result = await service.delete_version(other_author.id, v2.data.id)

        assert result.error_code == ErrorCode.FORBIDDEN


class TestReadAndUpdate:

    @pytest.mark.asyncio
    async def test_versions_newest_first(self, db_session, author, chapter):
        service = ChapterVersionService(db_session)
        for text in ["v1", "v2", "v3"]:
            await service.create_version(author.id, chapter.id, text)

        result = await service.get_versions_by_chapter(chapter.id)

        assert [v.version_number for v in result.data] == [3, 2, 1]

    @pytest.mark.asyncio
    async def test_versions_of_missing_chapter(self, db_session):
        result = await ChapterVersionService(db_session).get_versions_by_chapter("missing")
        assert result.error_code == ErrorCode.NOT_FOUND

    @pytest.mark.asyncio
    async def test_no_active_version_yet(self, db_session, chapter):
        result = await ChapterVersionService(db_session).get_active_version(chapter.id)
        assert result.error_code == ErrorCode.NOT_FOUND

    @pytest.mark.asyncio
    async def test_update_recounts_words(self, db_session, author, chapter):
        service = ChapterVersionService(db_session)
        v1 = await service.create_version(author.id, chapter.id, "two words")

        result = await service.update_version(author.id, v1.data.id, "now there are five words")

        assert result.data.word_count == 5
        assert result.data.raw_content == "now there are five words"
        assert result.data.version_number == 1
        assert result.data.is_active is True

    @pytest.mark.asyncio
    async def test_update_by_non_owner_is_forbidden(self, db_session, author, other_author, chapter):
        service = ChapterVersionService(db_session)
        v1 = await service.create_version(author.id, chapter.id, "original")

        result = await service.update_version(other_author.id, v1.data.id, "vandalised")

        assert result.error_code == ErrorCode.FORBIDDEN
        assert (await service.get_version_by_id(v1.data.id)).data.raw_content == "original"

    @pytest.mark.asyncio
    async def test_versions_of_deleted_project_are_hidden(self, db_session, author, chapter):
        service = ChapterVersionService(db_session)
        v1 = await service.create_version(author.id, chapter.id, "secret text")

        await ProjectService(db_session).delete_project(chapter.project_id, author.id)

        by_id = await service.get_version_by_id(v1.data.id)
        assert by_id.success is False
        assert by_id.error_code == ErrorCode.NOT_FOUND
        assert by_id.data is None
        assert (await service.get_versions_by_chapter(chapter.id)).error_code == ErrorCode.NOT_FOUND
        assert (await service.get_active_version(chapter.id)).error_code == ErrorCode.NOT_FOUND
        assert (await ChapterVersionRepository(db_session).get_active(chapter.id)) is None
