"""
SQLAlchemy Database Models

All models use UUID as primary key.
Timestamps are set application-side so message order has microsecond resolution.

Models:
    - Chat: Conversation container owned by one user
    - Message: Immutable message on one branch of a chat

Relationships:
    Chat 1:N Message
    Message 1:N Message (reply_to: reply chain)
    Message 1:N Message (parent_message_id: edits of an original message)

Cascade Deletes:
    - Delete Chat → Delete all Messages
"""

from branchchat.models.chat import Chat
from branchchat.models.message import Message, MAIN_BRANCH

__all__ = ["Chat", "Message", "MAIN_BRANCH"]
