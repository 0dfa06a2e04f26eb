"""
Unit Tests for ServiceResult and the service_operation decorator
"""
import json
import pytest
from sqlalchemy import select

from storyai.core.exceptions import (
    ForbiddenError,
    ProjectNotFoundError,
    ValidationError,
    DuplicateChapterNumberError,
    CannotDeleteActiveVersionError,
    EncryptionKeyUnavailableError,
    error_response,
)
from storyai.core.result import ErrorCode, ServiceResult, service_operation
from storyai.models.user import User


class TestStatusCodes:
    """Failures map onto HTTP statuses"""

    @pytest.mark.parametrize("error, expected", [
        (ValidationError("bad", field="title"), 400),
        (DuplicateChapterNumberError(1), 400),
        (CannotDeleteActiveVersionError(2), 400),
        (ForbiddenError(), 403),
        (ProjectNotFoundError("p-1"), 404),
        (EncryptionKeyUnavailableError("u-1"), 500),
    ])
    def test_error_status(self, error, expected):
        assert ServiceResult.from_error(error).status_code == expected

    def test_ok_is_200(self):
        assert ServiceResult.ok("fine").status_code == 200

    def test_created_is_201(self):
        assert ServiceResult.ok("made", {"id": 1}, created=True).status_code == 201


class TestSerialization:
    def test_to_dict_success(self):
        body = ServiceResult.ok("done", {"id": "x"}).to_dict()
        assert body == {"success": True, "message": "done", "data": {"id": "x"}}

    def test_to_dict_failure_carries_code(self):
        body = ServiceResult.from_error(ForbiddenError()).to_dict()

        assert body["success"] is False
        assert body["data"] is None
        assert body["error_code"] == "FORBIDDEN"

    def test_to_response(self):
        response = ServiceResult.from_error(ProjectNotFoundError("p-1")).to_response()

        assert response.status_code == 404
        assert json.loads(response.body)["message"] == "Project not found"

    def test_key_error_hides_internal_reason(self):
        error = EncryptionKeyUnavailableError("u-1", reason="author has no data encryption key")

        assert "no data encryption key" not in ServiceResult.from_error(error).message
        assert "no data encryption key" not in json.dumps(error_response(error))


class TestServiceOperation:
    """Domain errors become failed results; anything else propagates"""

    @pytest.mark.asyncio
    async def test_passes_success_through(self):
        @service_operation
        async def op():
            return ServiceResult.ok("ok", 42)

        result = await op()
        assert result.success is True
        assert result.data == 42

    @pytest.mark.asyncio
    async def test_converts_domain_error(self):
        @service_operation
        async def op():
            raise DuplicateChapterNumberError(3)

        result = await op()

        assert result.success is False
        assert result.error_code == ErrorCode.CONFLICT
        assert "3" in result.message

    @pytest.mark.asyncio
    async def test_logs_key_unavailable(self, caplog):
        @service_operation
        async def op():
            raise EncryptionKeyUnavailableError("u-9", reason="author not found or inactive")

        with caplog.at_level("ERROR", logger="storyai"):
            result = await op()

        assert result.error_code == ErrorCode.ENCRYPTION_KEY_UNAVAILABLE
        assert any("u-9" in r.getMessage() for r in caplog.records)

    @pytest.mark.asyncio
    async def test_unexpected_error_propagates(self):
        @service_operation
        async def op():
            raise RuntimeError("database unreachable")

        with pytest.raises(RuntimeError):
            await op()

    @pytest.mark.asyncio
    async def test_failure_discards_pending_changes(self, db_session, author):
        user_id, original_name = author.id, author.full_name

        class _RenamingService:
            def __init__(self, db):
                self.db = db

            @service_operation
            async def rename(self, user):
                user.full_name = "Half Applied"
                raise ValidationError("rejected after the change", field="full_name")

        result = await _RenamingService(db_session).rename(author)

        assert result.error_code == ErrorCode.VALIDATION_ERROR
        assert not db_session.dirty
        await db_session.commit()
        stored = await db_session.scalar(select(User.full_name).where(User.id == user_id))
        assert stored == original_name
