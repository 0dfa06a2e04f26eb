from typing import Optional
from datetime import datetime
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from storyai.models.user import User


class UserRepository:
    """Data access for users. Never commits; the calling service owns the transaction."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, user_id: str, include_inactive: bool = False) -> Optional[User]:
        query = select(User).where(User.id == user_id)
        if not include_inactive:
            query = query.where(User.is_active.is_(True))
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.email == email.strip().lower())
        )
        return result.scalar_one_or_none()

    async def email_exists(self, email: str) -> bool:
        result = await self.db.execute(
            select(func.count()).select_from(User).where(User.email == email.strip().lower())
        )
        return result.scalar_one() > 0

    async def get_by_refresh_token_hash(self, token_hash: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.refresh_token_hash == token_hash, User.is_active.is_(True))
        )
        return result.scalar_one_or_none()

    async def get_by_reset_token_hash(self, token_hash: str) -> Optional[User]:
        result = await self.db.execute(
            select(User).where(User.reset_token_hash == token_hash, User.is_active.is_(True))
        )
        return result.scalar_one_or_none()

    async def create(self, user: User) -> User:
        self.db.add(user)
        await self.db.flush()
        return user

    async def touch(self, user: User) -> User:
        user.updated_at = datetime.utcnow()
        await self.db.flush()
        return user
