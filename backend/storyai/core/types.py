"""Column types shared by every StoryAI model"""
from sqlalchemy import TypeDecorator, String
import uuid


def generate_uuid() -> str:
    """New primary key value as a 36-char UUID string"""
    return str(uuid.uuid4())


class GUID(TypeDecorator):
    """
    UUID primary/foreign keys stored as VARCHAR(36) on every backend.

    Values are always handed back as plain strings so ids compare equal
    whether they came from a token claim, a request or a row.
    """
    impl = String(36)
    cache_ok = True

    def load_dialect_impl(self, dialect):
        return dialect.type_descriptor(String(36))

    def process_bind_param(self, value, dialect):
        if value is not None:
            return str(value)
        return value

    def process_result_value(self, value, dialect):
        if value is not None:
            return str(value)
        return value
