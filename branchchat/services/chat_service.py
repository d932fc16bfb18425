"""
Chat Service - conversation orchestration on the main branch
Creates chats lazily, titles them, persists each user/assistant exchange
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional
from uuid import UUID

from branchchat.config import settings
from branchchat.core.exceptions import NotFoundError, UpstreamGenerationError, ValidationError
from branchchat.models.chat import Chat
from branchchat.models.message import Message, MAIN_BRANCH
from branchchat.services.branch_info_service import BranchInfo, BranchInfoResolver
from branchchat.services.chain_service import ChainReconstructor, to_history
from branchchat.services.llm_service import LLMService
from branchchat.services.message_store import MessageStore

logger = logging.getLogger(__name__)


@dataclass
class SendResult:
    """Result of an ordinary send"""
    chat: Chat
    user_message: Message
    assistant_message: Message


@dataclass
class ChatSummary:
    """Chat listing entry"""
    chat: Chat
    message_count: int


@dataclass
class Conversation:
    """Transcript of one branch plus branch navigation data"""
    chat: Chat
    branch_index: int
    messages: List[Message]
    branch_info: Dict[str, BranchInfo] = field(default_factory=dict)


class ChatService:
    """
    Chat session orchestrator

    Key features:
    - Lazy chat creation on first send, titled from the first message
    - Placeholder titles replaced on the first user message
    - Context built from the main-branch transcript
    - Step-wise persistence: a failed generation leaves the user message stored
    """

    def __init__(
        self,
        store: MessageStore,
        llm: LLMService,
        chains: Optional[ChainReconstructor] = None,
        branches: Optional[BranchInfoResolver] = None,
    ):
        """
        Initialize chat service

        Args:
            store: Message store for this request
            llm: Text and title generation client
            chains: Chain reconstructor (built from the store when omitted)
            branches: Branch info resolver (built from the store when omitted)
        """
        self.store = store
        self.llm = llm
        self.chains = chains or ChainReconstructor(store)
        self.branches = branches or BranchInfoResolver(store)

    async def _generate_title(self, text: str) -> str:
        """Title from the first message, falling back to its first characters"""
        try:
            return await self.llm.title_for(text)
        except UpstreamGenerationError as e:
            fallback = text[:settings.TITLE_FALLBACK_LENGTH]
            logger.warning(f"Using fallback title after generation failure: {e}")
            return fallback

    def _needs_title(self, chat: Chat) -> bool:
        title = (chat.title or "").strip()
        if title and title != settings.DEFAULT_CHAT_TITLE:
            return False
        return self.store.count_messages(chat.id, role="user") == 0

    async def _resolve_chat(self, chat_id: Optional[UUID], user_id: str, text: str) -> Chat:
        """Existing chat of the caller, or a new one titled from text"""
        chat = self.store.get_chat(chat_id) if chat_id is not None else None

        if chat is None:
            title = await self._generate_title(text)
            return self.store.create_chat(user_id, title, chat_id=chat_id)

        if chat.user_id != user_id:
            raise NotFoundError("Chat not found")

        if self._needs_title(chat):
            title = await self._generate_title(text)
            self.store.update_chat_title(chat, title)
            logger.info(f"Titled chat {chat.id} from its first message")

        return chat

    async def send(
        self,
        user_id: str,
        text: str,
        chat_id: Optional[UUID] = None,
        reply_to: Optional[UUID] = None,
        related_events: Optional[list] = None,
        trigger: Optional[str] = None,
        trigger_source: Optional[str] = None,
    ) -> SendResult:
        """
        Send a message on the main branch and persist the reply

        Args:
            user_id: Caller id
            text: Message text
            chat_id: Target chat; absent or unknown ids create a chat
            reply_to: Message being answered (defaults to the latest main-branch message)
            related_events: Pass-through metadata
            trigger: Pass-through metadata
            trigger_source: Pass-through metadata

        Returns:
            SendResult with the chat and both persisted messages

        Raises:
            ValidationError: text is empty or not a string
            NotFoundError: chat_id belongs to another user
            UpstreamGenerationError: reply generation failed (user message stays persisted)
        """
        if not isinstance(text, str) or not text.strip():
            raise ValidationError("Message is required")

        if reply_to is not None:
            target = self.store.get_message(reply_to)
            if target is None or chat_id is None or target.chat_id != chat_id:
                raise ValidationError("reply_to must reference a message in the same chat")

        chat = await self._resolve_chat(chat_id, user_id, text)

        if reply_to is None:
            latest = self.store.latest_main_message(chat.id)
            reply_to = latest.id if latest else None

        metadata = {
            "related_events": related_events or [],
            "trigger": trigger,
            "trigger_source": trigger_source,
        }
        user_message = self.store.insert_message(
            chat_id=chat.id,
            role="user",
            content=text,
            reply_to=reply_to,
            branch_index=MAIN_BRANCH,
            metadata=metadata,
        )

        context = [
            m for m in self.chains.reconstruct(chat.id)
            if m.id != user_message.id
        ]

        try:
            reply_text = await self.llm.generate(text, to_history(context))
        except UpstreamGenerationError:
            logger.error(f"Generation failed in chat {chat.id}; user message {user_message.id} left unanswered")
            raise

        assistant_message = self.store.insert_message(
            chat_id=chat.id,
            role="assistant",
            content=reply_text,
            reply_to=user_message.id,
            branch_index=MAIN_BRANCH,
        )

        self.store.touch_chat(chat)

        return SendResult(chat=chat, user_message=user_message, assistant_message=assistant_message)

    def create_chat(self, user_id: str, title: Optional[str] = None, chat_id: Optional[UUID] = None) -> Chat:
        """Explicitly create an (empty) chat"""
        return self.store.create_chat(user_id, title or settings.DEFAULT_CHAT_TITLE, chat_id=chat_id)

    def list_chats(self, user_id: str) -> List[ChatSummary]:
        """Chats of the caller, most recently updated first"""
        return [
            ChatSummary(chat=chat, message_count=count)
            for chat, count in self.store.list_chats(user_id)
        ]

    def get_conversation(
        self,
        chat_id: UUID,
        user_id: str,
        branch_index: Optional[int] = None,
    ) -> Conversation:
        """
        Transcript of one branch with branch metadata

        Raises:
            NotFoundError: chat missing or not owned by the caller
        """
        chat = self.store.get_owned_chat(chat_id, user_id)
        messages = self.chains.reconstruct(chat.id, branch_index)

        return Conversation(
            chat=chat,
            branch_index=branch_index or MAIN_BRANCH,
            messages=messages,
            branch_info=self.branches.branch_info(chat.id),
        )
