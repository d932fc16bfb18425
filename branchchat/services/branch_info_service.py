"""
Branch Info Resolver - per-message branch navigation metadata
"""

import logging
from dataclasses import dataclass
from typing import Dict, Set
from uuid import UUID

from branchchat.services.message_store import MessageStore

logger = logging.getLogger(__name__)


@dataclass
class BranchInfo:
    """Branch navigation data for one edited message ("branch 2 of 3")"""
    branch_count: int
    current_branch: int


class BranchInfoResolver:
    """
    Computes branch counts for edited user messages

    Always recomputed from store state; nothing is cached between calls.
    """

    def __init__(self, store: MessageStore):
        self.store = store

    def branch_info(self, chat_id: UUID) -> Dict[str, BranchInfo]:
        """
        Branch metadata keyed by original message id

        Only original (never-edited-away) user messages that have at least
        one edit appear in the result.

        Args:
            chat_id: Chat UUID

        Returns:
            Mapping of message id (string) to BranchInfo
        """
        messages = self.store.messages_for_chat(chat_id)

        originals = {
            m.id for m in messages
            if m.parent_message_id is None and m.role == "user"
        }

        edit_branches: Dict[UUID, Set[int]] = {}
        for m in messages:
            if m.parent_message_id in originals:
                edit_branches.setdefault(m.parent_message_id, set()).add(m.branch_index)

        info = {
            str(message_id): BranchInfo(
                branch_count=1 + len(branches),  # the original is branch 1
                current_branch=max(branches),
            )
            for message_id, branches in edit_branches.items()
        }
        logger.debug(f"Chat {chat_id} has {len(info)} edited messages")
        return info
