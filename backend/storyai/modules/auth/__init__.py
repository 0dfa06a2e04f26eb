# Authentication module

from storyai.modules.auth.dependencies import (
    get_current_caller,
    get_current_staff,
)

__all__ = [
    "get_current_caller",
    "get_current_staff",
]
