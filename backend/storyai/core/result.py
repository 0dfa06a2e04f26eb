"""
Service results - the ``{success, message, data}`` contract every service
method returns to its caller.

Domain errors raised inside a service are converted here, so the API layer
only ever sees a ServiceResult or an unexpected exception (-> 500).
"""

import enum
import functools
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from storyai.core.exceptions import (
    StoryAIError,
    EncryptionKeyUnavailableError,
)
from storyai.core.logging_config import logger

T = TypeVar("T")


class ErrorCode(str, enum.Enum):
    VALIDATION_ERROR = "VALIDATION_ERROR"
    AUTH_FAILED = "AUTH_FAILED"
    FORBIDDEN = "FORBIDDEN"
    NOT_FOUND = "NOT_FOUND"
    CONFLICT = "CONFLICT"
    CANNOT_DELETE_ACTIVE_VERSION = "CANNOT_DELETE_ACTIVE_VERSION"
    ENCRYPTION_KEY_UNAVAILABLE = "ENCRYPTION_KEY_UNAVAILABLE"
    INTERNAL_ERROR = "INTERNAL_ERROR"


# Business conflicts are reported as plain bad requests
HTTP_STATUS_BY_CODE = {
    ErrorCode.VALIDATION_ERROR: 400,
    ErrorCode.CONFLICT: 400,
    ErrorCode.CANNOT_DELETE_ACTIVE_VERSION: 400,
    ErrorCode.AUTH_FAILED: 401,
    ErrorCode.FORBIDDEN: 403,
    ErrorCode.NOT_FOUND: 404,
    ErrorCode.ENCRYPTION_KEY_UNAVAILABLE: 500,
    ErrorCode.INTERNAL_ERROR: 500,
}


@dataclass
class ServiceResult(Generic[T]):
    success: bool
    message: str
    data: Optional[T] = None
    error_code: Optional[ErrorCode] = None
    created: bool = False

    @classmethod
    def ok(cls, message: str, data: Optional[T] = None, created: bool = False) -> "ServiceResult[T]":
        return cls(success=True, message=message, data=data, created=created)

    @classmethod
    def fail(cls, message: str, error_code: ErrorCode) -> "ServiceResult[T]":
        return cls(success=False, message=message, error_code=error_code)

    @classmethod
    def from_error(cls, error: StoryAIError) -> "ServiceResult[T]":
        try:
            code = ErrorCode(error.code)
        except ValueError:
            code = ErrorCode.INTERNAL_ERROR
        return cls.fail(error.message, code)

    @property
    def status_code(self) -> int:
        if self.success:
            return 201 if self.created else 200
        return HTTP_STATUS_BY_CODE.get(self.error_code, 500)

    def to_dict(self) -> dict:
        body = {"success": self.success, "message": self.message, "data": self.data}
        if self.error_code is not None:
            body["error_code"] = self.error_code.value
        return jsonable_encoder(body)

    def to_response(self) -> JSONResponse:
        return JSONResponse(status_code=self.status_code, content=self.to_dict())


async def _discard_pending(args: tuple) -> None:
    """
    Roll back unflushed changes a failed operation left on its service's
    session, so a later commit on the same session cannot write them.
    """
    db = getattr(args[0], "db", None) if args else None
    if isinstance(db, AsyncSession) and (db.new or db.dirty or db.deleted):
        await db.rollback()


def service_operation(func: Callable[..., Awaitable[ServiceResult]]) -> Callable[..., Awaitable[ServiceResult]]:
    """
    Wrap a public service method so StoryAIError subclasses come back as a
    failed ServiceResult. Anything else (database unreachable, bugs)
    propagates unchanged.
    """

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> ServiceResult:
        try:
            return await func(*args, **kwargs)
        except EncryptionKeyUnavailableError as e:
            await _discard_pending(args)
            logger.log_encryption_event(
                "key unavailable",
                e.details.get("user_id", "?"),
                reason=f"{e.details.get('reason')} ({func.__qualname__})",
            )
            return ServiceResult.from_error(e)
        except StoryAIError as e:
            await _discard_pending(args)
            logger.debug(f"{func.__qualname__} rejected: {e.code} - {e.message}")
            return ServiceResult.from_error(e)

    return wrapper
