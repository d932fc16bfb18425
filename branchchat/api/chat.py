"""
Chat API endpoints
Conversation fetch per branch, send on the main branch, edit into a new branch
"""

import logging
from fastapi import APIRouter, Depends, Query, status
from typing import List, Optional
from uuid import UUID

from branchchat.api.deps import (
    get_branch_service,
    get_chat_service,
    get_current_user_id,
)
from branchchat.schemas.chat import (
    BranchInfoResponse,
    ChatResponse,
    ConversationResponse,
    CreateChatRequest,
    EditMessageRequest,
    EditMessageResponse,
    MessageResponse,
    SendMessageRequest,
    SendMessageResponse,
)
from branchchat.services.branch_service import BranchService
from branchchat.services.chat_service import ChatService, SendResult

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/chats", tags=["chats"])


def _chat_response(chat, message_count: int = 0) -> ChatResponse:
    return ChatResponse(
        chat_id=chat.id,
        title=chat.title,
        created_at=chat.created_at,
        updated_at=chat.updated_at,
        message_count=message_count,
    )


def _send_response(result: SendResult) -> SendMessageResponse:
    return SendMessageResponse(
        chat_id=result.chat.id,
        title=result.chat.title,
        user_message=MessageResponse.model_validate(result.user_message),
        assistant_message=MessageResponse.model_validate(result.assistant_message),
    )


@router.get("", response_model=List[ChatResponse])
async def list_chats(
    user_id: str = Depends(get_current_user_id),
    chat_service: ChatService = Depends(get_chat_service),
):
    """
    List chats of the caller

    Returns:
        Chats ordered by last activity (most recent first)
    """
    return [
        _chat_response(summary.chat, summary.message_count)
        for summary in chat_service.list_chats(user_id)
    ]


@router.post("", response_model=ChatResponse, status_code=status.HTTP_201_CREATED)
async def create_chat(
    request: CreateChatRequest,
    user_id: str = Depends(get_current_user_id),
    chat_service: ChatService = Depends(get_chat_service),
):
    """
    Create an empty chat

    The placeholder title is replaced by a generated one when the first
    message is sent.
    """
    chat = chat_service.create_chat(user_id, title=request.title, chat_id=request.chat_id)
    logger.info(f"Created chat {chat.id} for user {user_id}")
    return _chat_response(chat)


@router.get("/{chat_id}", response_model=ConversationResponse)
async def get_conversation(
    chat_id: UUID,
    branch_index: Optional[int] = Query(None, description="Branch to load (1 = main)"),
    user_id: str = Depends(get_current_user_id),
    chat_service: ChatService = Depends(get_chat_service),
):
    """
    Load the transcript of one branch

    Args:
        chat_id: Chat UUID
        branch_index: Branch to load; omitted means the main branch

    Returns:
        Ordered messages plus branch navigation info keyed by edited message id

    Raises:
        404 if the chat is missing or not owned by the caller
        400 if branch_index is not a positive integer
    """
    conversation = chat_service.get_conversation(chat_id, user_id, branch_index)

    return ConversationResponse(
        chat_id=conversation.chat.id,
        title=conversation.chat.title,
        branch_index=conversation.branch_index,
        messages=[MessageResponse.model_validate(m) for m in conversation.messages],
        branch_info={
            message_id: BranchInfoResponse(
                branch_count=info.branch_count,
                current_branch=info.current_branch,
            )
            for message_id, info in conversation.branch_info.items()
        },
    )


@router.post("/messages", response_model=SendMessageResponse)
async def send_to_new_chat(
    request: SendMessageRequest,
    user_id: str = Depends(get_current_user_id),
    chat_service: ChatService = Depends(get_chat_service),
):
    """Send the first message of a new chat"""
    result = await chat_service.send(
        user_id=user_id,
        text=request.message,
        related_events=request.related_events,
        trigger=request.trigger,
        trigger_source=request.trigger_source,
    )
    return _send_response(result)


@router.post("/{chat_id}/messages", response_model=SendMessageResponse)
async def send_message(
    chat_id: UUID,
    request: SendMessageRequest,
    user_id: str = Depends(get_current_user_id),
    chat_service: ChatService = Depends(get_chat_service),
):
    """
    Send a message on the main branch

    An unknown chat_id creates the chat under that id. If generation
    fails the user message stays stored and the endpoint returns 502.
    """
    result = await chat_service.send(
        user_id=user_id,
        text=request.message,
        chat_id=chat_id,
        reply_to=request.reply_to,
        related_events=request.related_events,
        trigger=request.trigger,
        trigger_source=request.trigger_source,
    )
    return _send_response(result)


@router.post("/{chat_id}/messages/{message_id}/edit", response_model=EditMessageResponse)
async def edit_message(
    chat_id: UUID,
    message_id: UUID,
    request: EditMessageRequest,
    user_id: str = Depends(get_current_user_id),
    branch_service: BranchService = Depends(get_branch_service),
):
    """
    Edit a user message into a new branch

    Returns:
        The edited message, its new assistant reply and the allocated branch index

    Raises:
        404 if chat or message is missing
        400 if the message is not a user message or the new text is empty
        409 if branch allocation kept conflicting with concurrent edits
        502 if generation fails (the edited message stays stored)
    """
    result = await branch_service.edit(chat_id, message_id, request.new_message, user_id)

    return EditMessageResponse(
        edited_message=MessageResponse.model_validate(result.edited_message),
        assistant_message=MessageResponse.model_validate(result.assistant_message),
        branch_index=result.branch_index,
    )
