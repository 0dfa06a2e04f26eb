from typing import Optional, List
from sqlalchemy import select, func, update, or_
from sqlalchemy.ext.asyncio import AsyncSession

from storyai.models.staff_chat import StaffAuthorContact, StaffAuthorMessage, SenderType


class StaffAuthorContactRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_by_id(self, contact_id: str) -> Optional[StaffAuthorContact]:
        result = await self.db.execute(
            select(StaffAuthorContact).where(StaffAuthorContact.id == contact_id)
        )
        return result.scalar_one_or_none()

    async def get_existing(self, staff_id: str, author_id: str) -> Optional[StaffAuthorContact]:
        result = await self.db.execute(
            select(StaffAuthorContact).where(
                StaffAuthorContact.staff_id == staff_id,
                StaffAuthorContact.author_id == author_id,
            )
        )
        return result.scalar_one_or_none()

    async def get_for_user(self, user_id: str) -> List[StaffAuthorContact]:
        result = await self.db.execute(
            select(StaffAuthorContact)
            .where(or_(StaffAuthorContact.staff_id == user_id, StaffAuthorContact.author_id == user_id))
            .order_by(StaffAuthorContact.contact_date.desc())
        )
        return list(result.scalars().all())

    async def create(self, contact: StaffAuthorContact) -> StaffAuthorContact:
        self.db.add(contact)
        await self.db.flush()
        return contact

    async def update(self, contact: StaffAuthorContact) -> StaffAuthorContact:
        await self.db.flush()
        return contact


class StaffAuthorMessageRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(self, message: StaffAuthorMessage) -> StaffAuthorMessage:
        self.db.add(message)
        await self.db.flush()
        return message

    async def get_by_contact(self, contact_id: str) -> List[StaffAuthorMessage]:
        """Conversation in chronological order"""
        result = await self.db.execute(
            select(StaffAuthorMessage)
            .where(StaffAuthorMessage.contact_id == contact_id)
            .order_by(StaffAuthorMessage.sent_at)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    async def mark_read(self, contact_id: str, reader: SenderType) -> int:
        """Mark everything the other party sent as read; returns rows changed"""
        result = await self.db.execute(
            update(StaffAuthorMessage)
            .where(
                StaffAuthorMessage.contact_id == contact_id,
                StaffAuthorMessage.sender_type == reader.opposite,
                StaffAuthorMessage.is_read.is_(False),
            )
            .values(is_read=True)
            .execution_options(synchronize_session=False)
        )
        return result.rowcount

    async def count_unread_for_user(self, user_id: str, reader: SenderType) -> int:
        contact_column = StaffAuthorContact.staff_id if reader is SenderType.STAFF else StaffAuthorContact.author_id
        result = await self.db.execute(
            select(func.count())
            .select_from(StaffAuthorMessage)
            .join(StaffAuthorContact, StaffAuthorContact.id == StaffAuthorMessage.contact_id)
            .where(
                contact_column == user_id,
                StaffAuthorMessage.sender_type == reader.opposite,
                StaffAuthorMessage.is_read.is_(False),
            )
        )
        return result.scalar_one()
