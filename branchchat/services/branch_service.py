"""
Branch Service - edits a user message by forking a new branch

The original message is never touched: the edit is persisted as a new
user message on a freshly allocated branch, followed by a newly
generated assistant reply on the same branch.
"""

import logging
from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from branchchat.core.exceptions import NotFoundError, UpstreamGenerationError, ValidationError
from branchchat.models.message import Message
from branchchat.services.chain_service import ChainReconstructor, to_history
from branchchat.services.llm_service import LLMService
from branchchat.services.message_store import MessageStore
from branchchat.utils.retry import retry_on_branch_conflict

logger = logging.getLogger(__name__)


@dataclass
class EditResult:
    """Result of an edit: the new user message, its reply and their branch"""
    edited_message: Message
    assistant_message: Message
    branch_index: int


class BranchService:
    """
    Edit handler

    Allocation of the next branch index is protected by the
    (parent_message_id, branch_index, role) uniqueness constraint and
    retried on conflict, so concurrent edits of one message never share
    a branch index.
    """

    def __init__(
        self,
        store: MessageStore,
        llm: LLMService,
        chains: Optional[ChainReconstructor] = None,
    ):
        self.store = store
        self.llm = llm
        self.chains = chains or ChainReconstructor(store)

    async def edit(
        self,
        chat_id: UUID,
        original_message_id: UUID,
        new_text: str,
        user_id: str,
    ) -> EditResult:
        """
        Edit a user message into a new branch

        Args:
            chat_id: Chat UUID
            original_message_id: User message being edited
            new_text: Replacement text
            user_id: Caller id

        Returns:
            EditResult with the edited message, the reply and the branch index

        Raises:
            NotFoundError: chat or message missing or not owned by the caller
            ValidationError: message is not a user message, or new_text is empty
            UpstreamGenerationError: reply generation failed (edited message stays persisted)
        """
        chat = self.store.get_owned_chat(chat_id, user_id)

        original = self.store.get_message(original_message_id)
        if original is None or original.chat_id != chat.id:
            raise NotFoundError("Message not found")

        if original.role != "user":
            raise ValidationError("Only user messages can be edited")

        if not isinstance(new_text, str) or not new_text.strip():
            raise ValidationError("New message text is required")

        edited = await self._create_branch(original, new_text)
        branch_index = edited.branch_index

        context = [
            m for m in self.chains.reconstruct(chat.id, branch_index)
            if m.id != edited.id
        ]

        try:
            reply_text = await self.llm.generate(new_text, to_history(context))
        except UpstreamGenerationError:
            logger.error(
                f"Generation failed for edit of {original.id}; "
                f"branch {branch_index} left without a reply"
            )
            raise

        # The reply replaces whatever assistant message answered the original
        predecessor = self.store.first_assistant_reply(original.id)
        assistant = self.store.insert_message(
            chat_id=chat.id,
            role="assistant",
            content=reply_text,
            reply_to=edited.id,
            parent_message_id=predecessor.id if predecessor else original.id,
            branch_index=branch_index,
        )

        self.store.touch_chat(chat)

        return EditResult(
            edited_message=edited,
            assistant_message=assistant,
            branch_index=branch_index,
        )

    @retry_on_branch_conflict()
    async def _create_branch(self, original: Message, new_text: str) -> Message:
        """Allocate the next branch index and persist the edited message"""
        next_index = self.store.max_branch_index(original.id) + 1
        logger.info(f"Allocating branch {next_index} for message {original.id}")

        return self.store.insert_message(
            chat_id=original.chat_id,
            role="user",
            content=new_text,
            reply_to=original.reply_to,
            parent_message_id=original.id,
            branch_index=next_index,
        )
