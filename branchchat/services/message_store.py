"""
Message Store - SQL persistence for chats and messages

The only storage primitives the branching engine needs:
insert message, select all messages of a chat, and
select/insert/update chats. Every SQLAlchemy failure is rolled
back and surfaced as StorageError.
"""

import logging
from contextlib import contextmanager
from typing import Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy import func, or_
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from branchchat.core.exceptions import (
    BranchChatException,
    BranchConflictError,
    NotFoundError,
    StorageError,
)
from branchchat.models.chat import Chat, utcnow
from branchchat.models.message import Message, MAIN_BRANCH

logger = logging.getLogger(__name__)


class MessageStore:
    """
    Repository over the chats/messages tables

    One instance wraps one request-scoped SQLAlchemy session.
    Rows are committed as soon as they are written (step-wise
    persistence), so a later failure never rolls back an earlier write.
    """

    def __init__(self, db: Session):
        """
        Initialize message store

        Args:
            db: Database session
        """
        self.db = db

    @contextmanager
    def _storage_errors(self, action: str):
        try:
            yield
        except BranchChatException:
            raise
        except SQLAlchemyError as e:
            self.db.rollback()
            logger.error(f"Storage error while trying to {action}: {e}")
            raise StorageError(f"Failed to {action}") from e

    # ------------------------------------------------------------------
    # Chats
    # ------------------------------------------------------------------

    def get_chat(self, chat_id: UUID) -> Optional[Chat]:
        with self._storage_errors("load chat"):
            return self.db.query(Chat).filter(Chat.id == chat_id).first()

    def get_owned_chat(self, chat_id: UUID, user_id: str) -> Chat:
        """
        Load a chat that belongs to the caller

        Raises:
            NotFoundError: chat is absent or owned by another user
        """
        chat = self.get_chat(chat_id)
        if chat is None or chat.user_id != user_id:
            raise NotFoundError("Chat not found")
        return chat

    def create_chat(self, user_id: str, title: str, chat_id: Optional[UUID] = None) -> Chat:
        with self._storage_errors("create chat"):
            chat = Chat(user_id=user_id, title=title)
            if chat_id is not None:
                chat.id = chat_id
            self.db.add(chat)
            self.db.commit()
            self.db.refresh(chat)
        logger.info(f"Created chat {chat.id} for user {user_id}")
        return chat

    def update_chat_title(self, chat: Chat, title: str) -> Chat:
        with self._storage_errors("update chat title"):
            chat.title = title
            self.db.commit()
        return chat

    def touch_chat(self, chat: Chat) -> Chat:
        """Bump updated_at after a message append"""
        with self._storage_errors("update chat"):
            chat.updated_at = utcnow()
            self.db.commit()
        return chat

    def list_chats(self, user_id: str) -> List[Tuple[Chat, int]]:
        """Chats of a user, most recently updated first, with their message counts"""
        with self._storage_errors("list chats"):
            counts = (
                self.db.query(Message.chat_id, func.count(Message.id).label("message_count"))
                .group_by(Message.chat_id)
                .subquery()
            )
            rows = (
                self.db.query(Chat, func.coalesce(counts.c.message_count, 0))
                .outerjoin(counts, counts.c.chat_id == Chat.id)
                .filter(Chat.user_id == user_id)
                .order_by(Chat.updated_at.desc())
                .all()
            )
        return [(chat, int(count)) for chat, count in rows]

    # ------------------------------------------------------------------
    # Messages
    # ------------------------------------------------------------------

    def get_message(self, message_id: UUID) -> Optional[Message]:
        with self._storage_errors("load message"):
            return self.db.query(Message).filter(Message.id == message_id).first()

    def messages_for_chat(self, chat_id: UUID) -> List[Message]:
        """All messages of a chat on every branch, ascending by timestamp"""
        with self._storage_errors("load messages"):
            return (
                self.db.query(Message)
                .filter(Message.chat_id == chat_id)
                .order_by(Message.created_at.asc())
                .all()
            )

    def count_messages(self, chat_id: UUID, role: Optional[str] = None) -> int:
        with self._storage_errors("count messages"):
            query = self.db.query(func.count(Message.id)).filter(Message.chat_id == chat_id)
            if role:
                query = query.filter(Message.role == role)
            return int(query.scalar() or 0)

    def latest_main_message(self, chat_id: UUID) -> Optional[Message]:
        """Newest message that is not part of an edit-fork"""
        with self._storage_errors("load latest message"):
            return (
                self.db.query(Message)
                .filter(Message.chat_id == chat_id, Message.parent_message_id.is_(None))
                .order_by(Message.created_at.desc())
                .first()
            )

    def first_assistant_reply(self, message_id: UUID) -> Optional[Message]:
        """The assistant message that originally answered a message, if any"""
        with self._storage_errors("load reply"):
            return (
                self.db.query(Message)
                .filter(Message.reply_to == message_id, Message.role == "assistant")
                .order_by(Message.created_at.asc())
                .first()
            )

    def max_branch_index(self, message_id: UUID) -> int:
        """
        Highest branch index among a message and its direct edits

        An untouched original counts as branch 1.
        """
        with self._storage_errors("read branch index"):
            value = (
                self.db.query(func.max(Message.branch_index))
                .filter(or_(Message.id == message_id, Message.parent_message_id == message_id))
                .scalar()
            )
        return int(value or 0)

    def insert_message(
        self,
        chat_id: UUID,
        role: str,
        content: str,
        reply_to: Optional[UUID] = None,
        parent_message_id: Optional[UUID] = None,
        branch_index: int = MAIN_BRANCH,
        metadata: Optional[Dict] = None,
    ) -> Message:
        """
        Append a message

        Raises:
            BranchConflictError: (parent_message_id, branch_index, role) already taken
            StorageError: any other persistence failure
        """
        msg = Message(
            chat_id=chat_id,
            role=role,
            content=content,
            reply_to=reply_to,
            parent_message_id=parent_message_id,
            branch_index=branch_index,
            metadata_=metadata or {},
        )
        with self._storage_errors("save message"):
            self.db.add(msg)
            try:
                self.db.commit()
            except IntegrityError as e:
                self.db.rollback()
                if parent_message_id is None:
                    logger.error(f"Integrity error while saving message: {e}")
                    raise StorageError("Failed to save message") from e
                logger.warning(
                    f"Branch {branch_index} of message {parent_message_id} already taken ({role})"
                )
                raise BranchConflictError(
                    f"Branch {branch_index} already exists for message {parent_message_id}"
                ) from e
            self.db.refresh(msg)
        return msg
