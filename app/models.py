"""
SQLAlchemy ORM models for database tables.

This module contains database table definitions using SQLAlchemy.
For Pydantic request/response schemas, see schemas.py.
"""

import uuid

from sqlalchemy import Boolean, Column, DateTime, Index, String, Text
from sqlalchemy.orm import validates

from app.storage import Base
from app.utils import fold_title


class Message(Base):
    """
    SQLAlchemy model for organization-scoped messages.

    Table: messages
    Primary Key: id (UUID string, assigned on insert)
    Unique: (organization_id, title_key)
    """
    __tablename__ = "messages"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    organization_id = Column(String(36), nullable=False, index=True)
    title = Column(String(100), nullable=False)
    # Case-folded title; folding can lengthen text (e.g. "ß" -> "ss")
    title_key = Column(String(300), nullable=False)
    content = Column(Text, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    # SQLite returns these naive; values are always UTC
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=True)

    @validates("title")
    def _sync_title_key(self, key, value):
        self.title_key = fold_title(value) if value is not None else None
        return value

    def __repr__(self) -> str:
        return f"<Message id={self.id} organization_id={self.organization_id}>"


# Case-insensitive title uniqueness per organization, enforced by the database
Index(
    "uq_messages_organization_title_key",
    Message.organization_id,
    Message.title_key,
    unique=True,
)
