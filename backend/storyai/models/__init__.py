# Re-export all models for convenient imports
from storyai.models.user import User, UserRole
from storyai.models.project import Project, ProjectStatus
from storyai.models.chapter import Chapter
from storyai.models.chapter_version import ChapterVersion
from storyai.models.staff_chat import StaffAuthorContact, StaffAuthorMessage, ContactStatus, SenderType

__all__ = [
    # User
    "User",
    "UserRole",
    # Content
    "Project",
    "ProjectStatus",
    "Chapter",
    "ChapterVersion",
    # Chat
    "StaffAuthorContact",
    "StaffAuthorMessage",
    "ContactStatus",
    "SenderType",
]
