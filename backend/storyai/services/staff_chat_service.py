"""
Staff Chat Service - support conversations between staff and authors.

Only the two participants of a contact may read or post to it. The sender
type of a message follows from the caller's role: staff and admins speak as
staff, everyone else as the author.
"""

from typing import Optional, List
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from storyai.core.config import settings
from storyai.core.exceptions import (
    ValidationError,
    ForbiddenError,
    ContactNotFoundError,
    UserNotFoundError,
)
from storyai.core.logging_config import logger
from storyai.core.result import ServiceResult, service_operation
from storyai.models.staff_chat import (
    ContactStatus,
    SenderType,
    StaffAuthorContact,
    StaffAuthorMessage,
)
from storyai.repositories.staff_chat_repository import (
    StaffAuthorContactRepository,
    StaffAuthorMessageRepository,
)
from storyai.repositories.user_repository import UserRepository
from storyai.schemas.auth import Caller
from storyai.schemas.chat import ContactResponse, MessageResponse, UnreadCount


def sender_type_for(caller: Caller) -> SenderType:
    return SenderType.STAFF if caller.is_staff else SenderType.AUTHOR


def _is_participant(contact: StaffAuthorContact, user_id: str) -> bool:
    return user_id in (contact.staff_id, contact.author_id)


class StaffChatService:
    def __init__(
        self,
        db: AsyncSession,
        contacts: Optional[StaffAuthorContactRepository] = None,
        messages: Optional[StaffAuthorMessageRepository] = None,
        users: Optional[UserRepository] = None,
    ):
        self.db = db
        self.contacts = contacts or StaffAuthorContactRepository(db)
        self.messages = messages or StaffAuthorMessageRepository(db)
        self.users = users or UserRepository(db)

    async def _require_participant(self, contact_id: str, caller: Caller) -> StaffAuthorContact:
        contact = await self.contacts.get_by_id(contact_id)
        if contact is None:
            raise ContactNotFoundError(contact_id)
        if not _is_participant(contact, caller.user_id):
            raise ForbiddenError("You are not a participant of this conversation")
        return contact

    @service_operation
    async def create_or_get_contact(self, staff_id: str, author_id: str) -> ServiceResult[ContactResponse]:
        staff = await self.users.get_by_id(staff_id)
        if staff is None:
            raise UserNotFoundError(staff_id)
        if not staff.role.is_staff:
            raise ValidationError("Contacts can only be opened by staff members", field="staff_id")
        if await self.users.get_by_id(author_id) is None:
            raise UserNotFoundError(author_id)

        existing = await self.contacts.get_existing(staff_id, author_id)
        if existing is not None:
            return ServiceResult.ok("Contact retrieved successfully", ContactResponse.model_validate(existing))

        try:
            contact = await self.contacts.create(StaffAuthorContact(
                staff_id=staff_id,
                author_id=author_id,
                status=ContactStatus.ACTIVE,
            ))
            await self.db.commit()
        except IntegrityError:
            # Opened concurrently by the same pair
            await self.db.rollback()
            contact = await self.contacts.get_existing(staff_id, author_id)
            return ServiceResult.ok("Contact retrieved successfully", ContactResponse.model_validate(contact))

        logger.info(f"Contact {contact.id} opened between staff {staff_id} and author {author_id}")
        return ServiceResult.ok("Contact created successfully", ContactResponse.model_validate(contact), created=True)

    @service_operation
    async def get_contacts_for_user(self, user_id: str) -> ServiceResult[List[ContactResponse]]:
        contacts = await self.contacts.get_for_user(user_id)
        return ServiceResult.ok(
            "Contacts retrieved successfully",
            [ContactResponse.model_validate(c) for c in contacts],
        )

    @service_operation
    async def update_contact_status(
        self,
        contact_id: str,
        caller: Caller,
        status: str,
    ) -> ServiceResult[ContactResponse]:
        contact = await self._require_participant(contact_id, caller)
        try:
            new_status = ContactStatus((status or "").strip().lower())
        except ValueError:
            allowed = ", ".join(s.value for s in ContactStatus)
            raise ValidationError(f"Status must be one of: {allowed}", field="status")

        contact.status = new_status
        await self.contacts.update(contact)
        await self.db.commit()
        return ServiceResult.ok("Contact status updated", ContactResponse.model_validate(contact))

    @service_operation
    async def validate_contact_access(self, contact_id: str, caller: Caller) -> ServiceResult[bool]:
        contact = await self.contacts.get_by_id(contact_id)
        allowed = contact is not None and _is_participant(contact, caller.user_id)
        return ServiceResult.ok("Access checked", allowed)

    @service_operation
    async def create_message(
        self,
        contact_id: str,
        caller: Caller,
        message_text: str,
    ) -> ServiceResult[MessageResponse]:
        contact = await self._require_participant(contact_id, caller)
        if contact.status == ContactStatus.CLOSED:
            raise ValidationError("This conversation is closed", field="contact_id")

        text = (message_text or "").strip()
        if not text:
            raise ValidationError("Message text is required", field="message_text")
        if len(text) > settings.CHAT_MESSAGE_MAX_LENGTH:
            raise ValidationError(
                f"Message must not exceed {settings.CHAT_MESSAGE_MAX_LENGTH} characters",
                field="message_text",
            )

        message = await self.messages.create(StaffAuthorMessage(
            contact_id=contact.id,
            sender_id=caller.user_id,
            sender_type=sender_type_for(caller),
            message_text=text,
            is_read=False,
        ))
        await self.db.commit()
        return ServiceResult.ok("Message sent", MessageResponse.model_validate(message), created=True)

    @service_operation
    async def get_messages(self, contact_id: str, caller: Caller) -> ServiceResult[List[MessageResponse]]:
        await self._require_participant(contact_id, caller)
        messages = await self.messages.get_by_contact(contact_id)
        return ServiceResult.ok(
            "Messages retrieved successfully",
            [MessageResponse.model_validate(m) for m in messages],
        )

    @service_operation
    async def mark_read(self, contact_id: str, caller: Caller) -> ServiceResult[int]:
        await self._require_participant(contact_id, caller)
        updated = await self.messages.mark_read(contact_id, sender_type_for(caller))
        await self.db.commit()
        return ServiceResult.ok(f"{updated} message(s) marked as read", updated)

    @service_operation
    async def get_unread_count(self, caller: Caller) -> ServiceResult[UnreadCount]:
        count = await self.messages.count_unread_for_user(caller.user_id, sender_type_for(caller))
        return ServiceResult.ok("Unread count retrieved", UnreadCount(unread_count=count))
