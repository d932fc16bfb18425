"""
Chain Reconstructor - materializes the transcript visible on one branch

Messages live in one flat, append-only table. Branch membership is
re-derived on every call from reply_to / parent_message_id / branch_index;
no tree is ever persisted.
"""

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Optional, Set
from uuid import UUID

from branchchat.core.exceptions import ValidationError
from branchchat.models.message import Message, MAIN_BRANCH
from branchchat.services.message_store import MessageStore

logger = logging.getLogger(__name__)


def to_history(messages: Iterable[Message]) -> List[Dict[str, str]]:
    """Convert a transcript to the [{role, content}] list used for generation"""
    return [{"role": m.role, "content": m.content} for m in messages]


class ChainReconstructor:
    """
    Builds the ordered transcript of a chat for a requested branch

    Branch 1 (main) is every message that was never created by an edit.
    Branch k > 1 is every shared message plus every message allocated to
    branch k, minus the part of the shared timeline that branch k edited away.
    """

    def __init__(self, store: MessageStore):
        self.store = store

    def reconstruct(self, chat_id: UUID, branch_index: Optional[int] = None) -> List[Message]:
        """
        Ordered transcript of one branch

        Args:
            chat_id: Chat UUID
            branch_index: Branch number; None means the main branch

        Returns:
            Messages ascending by timestamp (empty for a chat with no messages)

        Raises:
            ValidationError: branch_index is not a positive integer
        """
        branch = MAIN_BRANCH if branch_index is None else branch_index
        if not isinstance(branch, int) or isinstance(branch, bool) or branch < MAIN_BRANCH:
            raise ValidationError(f"Invalid branch index: {branch_index}")

        messages = self.store.messages_for_chat(chat_id)

        if branch == MAIN_BRANCH:
            included = [m for m in messages if m.parent_message_id is None]
        else:
            included = self._branch_members(messages, branch)

        logger.debug(f"Reconstructed chat {chat_id} branch {branch}: {len(included)}/{len(messages)} messages")
        return sorted(included, key=lambda m: m.created_at)

    def _branch_members(self, messages: List[Message], branch: int) -> List[Message]:
        """
        Messages visible on an edit-fork

        A message is on the branch if it was never created by an edit or if it
        was allocated to this branch. Following reply_to from that set only
        reaches messages satisfying the same test, so it is already closed
        under the reply chain. Messages superseded on this branch are removed.
        """
        by_id: Dict[UUID, Message] = {m.id: m for m in messages}
        replies: Dict[UUID, List[Message]] = defaultdict(list)
        for m in messages:
            if m.reply_to is not None:
                replies[m.reply_to].append(m)

        superseded = self._superseded(messages, branch, by_id, replies)

        return [
            m for m in messages
            if (m.parent_message_id is None or m.branch_index == branch)
            and m.id not in superseded
        ]

    @staticmethod
    def _superseded(
        messages: List[Message],
        branch: int,
        by_id: Dict[UUID, Message],
        replies: Dict[UUID, List[Message]],
    ) -> Set[UUID]:
        """
        Ids edited away on this branch

        The originals replaced by branch messages (and, for an edit of an
        edit, the whole lineage), plus every shared message that continues
        the conversation from one of them.
        """
        superseded: Set[UUID] = set()
        stack = [
            m.parent_message_id for m in messages
            if m.branch_index == branch and m.parent_message_id is not None
        ]

        while stack:
            current = stack.pop()
            if current in superseded:
                continue
            superseded.add(current)

            node = by_id.get(current)
            if node is not None and node.parent_message_id is not None:
                stack.append(node.parent_message_id)

            for child in replies.get(current, ()):
                if child.parent_message_id is None:
                    stack.append(child.id)

        return superseded
