from pydantic import BaseModel, ConfigDict
from datetime import datetime

from storyai.models.staff_chat import ContactStatus, SenderType


class ContactResponse(BaseModel):
    id: str
    staff_id: str
    author_id: str
    status: ContactStatus
    contact_date: datetime

    model_config = ConfigDict(from_attributes=True)


class MessageResponse(BaseModel):
    id: str
    contact_id: str
    sender_id: str
    sender_type: SenderType
    message_text: str
    sent_at: datetime
    is_read: bool

    model_config = ConfigDict(from_attributes=True)


class UnreadCount(BaseModel):
    unread_count: int
