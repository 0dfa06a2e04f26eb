"""
Key Provider - resolves an author's data encryption key.

Keys are minted once at registration and never rotated or escrowed: a lost
or corrupted key makes that author's encrypted fields unrecoverable.
"""

import secrets
from typing import Dict

from sqlalchemy.ext.asyncio import AsyncSession

from storyai.core.exceptions import EncryptionKeyUnavailableError
from storyai.repositories.user_repository import UserRepository


def generate_data_encryption_key() -> str:
    """128 random bits as 32 lowercase hex characters"""
    return secrets.token_hex(16)


class KeyProvider:
    """
    Per-request key lookup with a small cache, since list reads resolve the
    same author once per row. Keys are immutable so the cache never goes stale.
    """

    def __init__(self, db: AsyncSession):
        self.users = UserRepository(db)
        self._cache: Dict[str, str] = {}

    async def get_key(self, user_id: str) -> str:
        if user_id in self._cache:
            return self._cache[user_id]

        user = await self.users.get_by_id(user_id)
        if user is None:
            raise EncryptionKeyUnavailableError(user_id, reason="author not found or inactive")
        if not user.data_encryption_key:
            raise EncryptionKeyUnavailableError(user_id, reason="author has no data encryption key")

        self._cache[user_id] = user.data_encryption_key
        return user.data_encryption_key
