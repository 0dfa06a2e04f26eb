"""
Custom Exceptions for StoryAI
=============================

Domain failures raised inside services and repositories. They never leave
the service layer as exceptions: ``storyai.core.result.service_operation``
turns them into a failed ``ServiceResult`` carrying ``code`` and ``message``.

Usage:
    from storyai.core.exceptions import ChapterNotFoundError, ForbiddenError

    chapter = await self.chapters.get_by_id(chapter_id)
    if not chapter:
        raise ChapterNotFoundError(chapter_id)
"""

from typing import Optional, Any, Dict


class StoryAIError(Exception):
    """Base exception for all StoryAI errors"""

    def __init__(
        self,
        message: str,
        code: str = "INTERNAL_ERROR",
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }


# ============================================
# Authentication & Authorization Errors
# ============================================

class AuthenticationError(StoryAIError):
    """Credentials or token rejected"""

    def __init__(self, message: str = "Authentication failed"):
        super().__init__(message, code="AUTH_FAILED")


class ForbiddenError(StoryAIError):
    """Caller is not allowed to act on the resource.

    The message never names the real owner.
    """

    def __init__(self, message: str = "You do not have permission to perform this action"):
        super().__init__(message, code="FORBIDDEN")


# ============================================
# Resource Errors (404-type)
# ============================================

class ResourceNotFoundError(StoryAIError):
    """Base class for not found errors"""

    def __init__(self, resource_type: str, resource_id: Any):
        super().__init__(
            f"{resource_type} not found",
            code="NOT_FOUND",
            details={"resource_type": resource_type, "resource_id": str(resource_id)}
        )


class UserNotFoundError(ResourceNotFoundError):
    def __init__(self, user_id: Any):
        super().__init__("User", user_id)


class ProjectNotFoundError(ResourceNotFoundError):
    def __init__(self, project_id: Any):
        super().__init__("Project", project_id)


class ChapterNotFoundError(ResourceNotFoundError):
    def __init__(self, chapter_id: Any):
        super().__init__("Chapter", chapter_id)


class VersionNotFoundError(ResourceNotFoundError):
    def __init__(self, version_id: Any):
        super().__init__("Chapter version", version_id)


class ContactNotFoundError(ResourceNotFoundError):
    def __init__(self, contact_id: Any):
        super().__init__("Contact", contact_id)


# ============================================
# Validation Errors (400-type)
# ============================================

class ValidationError(StoryAIError):
    """Input validation failed"""

    def __init__(self, message: str, field: Optional[str] = None):
        details = {"field": field} if field else {}
        super().__init__(message, code="VALIDATION_ERROR", details=details)


# ============================================
# Conflict Errors
# ============================================

class ConflictError(StoryAIError):
    """Request clashes with the current state of the data"""

    def __init__(self, message: str, code: str = "CONFLICT"):
        super().__init__(message, code=code)


class DuplicateChapterNumberError(ConflictError):
    def __init__(self, chapter_no: int):
        super().__init__(f"Chapter number {chapter_no} already exists in this project")
        self.details["chapter_no"] = chapter_no


class CannotDeleteActiveVersionError(ConflictError):
    def __init__(self, version_number: int):
        super().__init__(
            "Cannot delete the active version. Activate another version first",
            code="CANNOT_DELETE_ACTIVE_VERSION",
        )
        self.details["version_number"] = version_number


# ============================================
# Encryption Errors
# ============================================

class EncryptionKeyUnavailableError(StoryAIError):
    """Author's data encryption key could not be resolved.

    ``reason`` is internal detail for the logs; callers only ever see the
    generic message.
    """

    def __init__(self, user_id: Any, reason: str = "missing key"):
        super().__init__(
            "Content encryption is unavailable for this account",
            code="ENCRYPTION_KEY_UNAVAILABLE",
            details={"user_id": str(user_id), "reason": reason}
        )


# ============================================
# Helper function for API responses
# ============================================

def error_response(error: StoryAIError) -> Dict[str, Any]:
    """Convert exception to API error response format"""
    return {
        "success": False,
        "message": error.message,
        "error": {"code": error.code, "message": error.message}
    }
