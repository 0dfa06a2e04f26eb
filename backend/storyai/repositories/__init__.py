from storyai.repositories.user_repository import UserRepository
from storyai.repositories.project_repository import ProjectRepository
from storyai.repositories.chapter_repository import ChapterRepository
from storyai.repositories.chapter_version_repository import ChapterVersionRepository
from storyai.repositories.staff_chat_repository import StaffAuthorContactRepository, StaffAuthorMessageRepository

__all__ = [
    "UserRepository",
    "ProjectRepository",
    "ChapterRepository",
    "ChapterVersionRepository",
    "StaffAuthorContactRepository",
    "StaffAuthorMessageRepository",
]
