"""
FastAPI dependencies
Caller identity, message store and service wiring
"""

from functools import lru_cache

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from branchchat.database import get_db
from branchchat.core.exceptions import http_401_unauthorized
from branchchat.services.branch_service import BranchService
from branchchat.services.chat_service import ChatService
from branchchat.services.llm_service import LLMService
from branchchat.services.message_store import MessageStore


async def get_current_user_id(
    x_user_id: str = Header(None, description="Authenticated caller id")
) -> str:
    """
    Get the caller id set by the upstream auth layer

    Args:
        x_user_id: X-User-Id header

    Returns:
        Caller id

    Raises:
        HTTPException: 401 if the header is missing or blank
    """
    if not x_user_id or not x_user_id.strip():
        raise http_401_unauthorized("User id missing")

    return x_user_id.strip()


@lru_cache()
def get_llm_service() -> LLMService:
    """Process-wide LLM client (built on first use)"""
    return LLMService()


def get_message_store(db: Session = Depends(get_db)) -> MessageStore:
    return MessageStore(db)


def get_chat_service(
    store: MessageStore = Depends(get_message_store),
    llm: LLMService = Depends(get_llm_service),
) -> ChatService:
    return ChatService(store, llm)


def get_branch_service(
    store: MessageStore = Depends(get_message_store),
    llm: LLMService = Depends(get_llm_service),
) -> BranchService:
    return BranchService(store, llm)
