"""
Message Model - Individual messages in a branching conversation
Messages are immutable; editing creates a new row on a new branch
"""

from sqlalchemy import Column, String, Text, Integer, ForeignKey, JSON, DateTime, Uuid, UniqueConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.ext.mutable import MutableDict
import uuid

from branchchat.database import Base
from branchchat.models.chat import utcnow

MAIN_BRANCH = 1


class Message(Base):
    """
    Message model - one node of the conversation tree

    Attributes:
        id: Message UUID
        chat_id: Owning chat
        role: 'user' or 'assistant'
        content: Message text
        reply_to: Message this one responds to (reply chain pointer)
        parent_message_id: Original message this one replaces (set only by edits)
        branch_index: 1 for the main branch, >1 for successive edit-forks
        metadata: Pass-through tags (related_events, trigger, trigger_source, notify)
        created_at: Ordering timestamp

    Relationships:
        chat: Parent chat (many-to-one)

    Constraints:
        - (parent_message_id, branch_index, role) is unique, so two edits of
          the same message can never be given the same branch index
    """

    __tablename__ = "messages"
    __table_args__ = (
        UniqueConstraint("parent_message_id", "branch_index", "role", name="uq_messages_parent_branch_role"),
    )

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    chat_id = Column(Uuid, ForeignKey("chats.id", ondelete="CASCADE"), nullable=False, index=True)

    role = Column(String(20), nullable=False)  # user, assistant
    content = Column(Text, nullable=False)

    reply_to = Column(Uuid, ForeignKey("messages.id"), nullable=True)
    parent_message_id = Column(Uuid, ForeignKey("messages.id"), nullable=True, index=True)
    branch_index = Column(Integer, nullable=False, default=MAIN_BRANCH)

    metadata_ = Column("metadata", MutableDict.as_mutable(JSON), default=dict)  # metadata is reserved by SQLAlchemy

    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False, index=True)

    # Relationships
    chat = relationship("Chat", back_populates="messages")

    @property
    def is_edit(self) -> bool:
        return self.parent_message_id is not None

    @property
    def related_events(self) -> list:
        return (self.metadata_ or {}).get("related_events", [])

    @property
    def notify(self) -> list:
        return (self.metadata_ or {}).get("notify", [])

    @property
    def trigger(self):
        return (self.metadata_ or {}).get("trigger")

    @property
    def trigger_source(self):
        return (self.metadata_ or {}).get("trigger_source")

    def __repr__(self):
        return (
            f"<Message(id={self.id}, role={self.role}, chat_id={self.chat_id}, "
            f"branch_index={self.branch_index})>"
        )
