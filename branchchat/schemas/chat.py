"""
Pydantic Schemas for Chat endpoints
Conversations, branch navigation, send and edit
"""

from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional
from uuid import UUID
from datetime import datetime
from enum import Enum


class MessageRole(str, Enum):
    """Message roles"""
    USER = "user"
    ASSISTANT = "assistant"


class MessageResponse(BaseModel):
    """One persisted message"""
    id: UUID
    chat_id: UUID
    role: MessageRole
    content: str
    created_at: datetime
    reply_to: Optional[UUID] = None
    parent_message_id: Optional[UUID] = None
    branch_index: int = 1
    related_events: List[Any] = Field(default_factory=list)
    trigger: Optional[str] = None
    trigger_source: Optional[str] = None
    notify: List[Any] = Field(default_factory=list)

    class Config:
        from_attributes = True


class BranchInfoResponse(BaseModel):
    """Branch navigation for one edited message ("branch 2 of 3")"""
    branch_count: int = Field(..., description="Number of branches including the original")
    current_branch: int = Field(..., description="Highest branch index allocated for this message")

    class Config:
        from_attributes = True


class ConversationResponse(BaseModel):
    """Transcript of one branch"""
    chat_id: UUID
    title: str
    branch_index: int = Field(1, description="Branch the transcript belongs to")
    messages: List[MessageResponse]
    branch_info: Dict[str, BranchInfoResponse] = Field(
        default_factory=dict,
        description="Keyed by id of each edited user message"
    )


class SendMessageRequest(BaseModel):
    """Send a message on the main branch"""
    message: str = Field(..., description="Message text")
    reply_to: Optional[UUID] = Field(
        None,
        description="Message being answered (defaults to the latest message)"
    )
    related_events: List[Any] = Field(default_factory=list)
    trigger: Optional[str] = None
    trigger_source: Optional[str] = None


class SendMessageResponse(BaseModel):
    """Persisted user/assistant pair"""
    chat_id: UUID
    title: str
    user_message: MessageResponse
    assistant_message: MessageResponse


class EditMessageRequest(BaseModel):
    """Edit a user message into a new branch"""
    new_message: str = Field(..., description="Replacement text")


class EditMessageResponse(BaseModel):
    """Edited user message, its new reply and their branch"""
    edited_message: MessageResponse
    assistant_message: MessageResponse
    branch_index: int


class CreateChatRequest(BaseModel):
    """Explicit chat creation"""
    title: Optional[str] = Field(None, max_length=255)
    chat_id: Optional[UUID] = None


class ChatResponse(BaseModel):
    """Chat metadata"""
    chat_id: UUID
    title: str
    created_at: datetime
    updated_at: datetime
    message_count: int = 0
