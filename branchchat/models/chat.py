"""
Chat Model - Conversation container
Owns the flat, append-only message history of one conversation
"""

from sqlalchemy import Column, String, DateTime, Uuid
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
import uuid

from branchchat.database import Base


def utcnow() -> datetime:
    """Timezone-aware current time (microsecond resolution keeps message order stable)"""
    return datetime.now(timezone.utc)


class Chat(Base):
    """
    Chat model - conversation container

    Attributes:
        id: Chat UUID
        user_id: Opaque owner id supplied by the auth layer
        title: Chat title (placeholder until generated from the first message)
        created_at: Chat creation time
        updated_at: Bumped on every message append

    Relationships:
        messages: All messages on every branch (one-to-many)

    Cascade Delete:
        - Deleting chat deletes all messages
    """

    __tablename__ = "chats"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(String(255), nullable=False, index=True)

    title = Column(String(255), nullable=False, default="New Chat")

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    # Relationships
    messages = relationship(
        "Message",
        back_populates="chat",
        cascade="all, delete-orphan",
        order_by="Message.created_at"
    )

    def __repr__(self):
        return f"<Chat(id={self.id}, user_id={self.user_id}, title={self.title})>"
