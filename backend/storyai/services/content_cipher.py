"""
Author-scoped field encryption used by the project and chapter services.

Every field is encrypted/decrypted with the key of the author who owns the
record, which is not necessarily the caller.
"""

import logging
from typing import Dict, Optional

from storyai.core import encryption
from storyai.core.config import settings
from storyai.core.logging_config import logger
from storyai.services.key_provider import KeyProvider


def clean_text(value: Optional[str]) -> Optional[str]:
    """Trim user input; None stays None"""
    return value.strip() if value is not None else None


class AuthorContentCipher:
    def __init__(self, key_provider: KeyProvider):
        self.keys = key_provider

    async def encrypt_fields(self, author_id: str, **fields: Optional[str]) -> Dict[str, Optional[str]]:
        key = await self.keys.get_key(author_id)
        return {name: encryption.encrypt(value, key) for name, value in fields.items()}

    async def decrypt_fields(
        self,
        author_id: str,
        record: str,
        **fields: Optional[str]
    ) -> Dict[str, Optional[str]]:
        """
        Decrypt stored columns. A column that fails to decrypt comes back as
        the configured placeholder and is logged; the read still succeeds.
        """
        key = await self.keys.get_key(author_id)
        plain: Dict[str, Optional[str]] = {}
        for name, value in fields.items():
            decrypted = encryption.decrypt(value, key)
            if encryption.is_decrypt_error(decrypted):
                logger.log_encryption_event(
                    "decrypt failed",
                    author_id,
                    reason=f"{record}.{name} is corrupt or was written under another key",
                    level=logging.WARNING,
                )
                decrypted = settings.DECRYPT_PLACEHOLDER
            plain[name] = decrypted
        return plain
