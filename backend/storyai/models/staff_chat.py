"""
Staff <-> author support chat.

A contact pairs one staff member with one author; messages hang off the
contact. Message text is stored in clear.
"""

from sqlalchemy import Column, DateTime, Text, ForeignKey, Boolean, Enum as SQLEnum, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime
import enum

from storyai.core.database import Base
from storyai.core.types import GUID, generate_uuid


class ContactStatus(str, enum.Enum):
    ACTIVE = "active"
    CLOSED = "closed"


class SenderType(str, enum.Enum):
    STAFF = "staff"
    AUTHOR = "author"

    @property
    def opposite(self) -> "SenderType":
        return SenderType.AUTHOR if self is SenderType.STAFF else SenderType.STAFF


class StaffAuthorContact(Base):
    __tablename__ = "staff_author_contacts"

    __table_args__ = (
        UniqueConstraint('staff_id', 'author_id', name='uq_staff_author_contact'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    staff_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    author_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(SQLEnum(ContactStatus), default=ContactStatus.ACTIVE, nullable=False)
    contact_date = Column(DateTime, default=datetime.utcnow, nullable=False)

    messages = relationship("StaffAuthorMessage", back_populates="contact", cascade="all, delete-orphan", passive_deletes=True)


class StaffAuthorMessage(Base):
    __tablename__ = "staff_author_messages"

    __table_args__ = (
        Index('ix_staff_author_messages_unread', 'contact_id', 'sender_type', 'is_read'),
    )

    id = Column(GUID, primary_key=True, default=generate_uuid)
    contact_id = Column(GUID, ForeignKey("staff_author_contacts.id", ondelete="CASCADE"), nullable=False, index=True)
    sender_id = Column(GUID, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    sender_type = Column(SQLEnum(SenderType), nullable=False)
    message_text = Column(Text, nullable=False)
    sent_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    is_read = Column(Boolean, default=False, nullable=False)

    contact = relationship("StaffAuthorContact", back_populates="messages")
