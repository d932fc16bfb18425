"""
Pydantic Schemas for Request/Response Validation

Chat Schemas:
    - MessageResponse: One persisted message
    - BranchInfoResponse: Branch navigation for an edited message
    - ConversationResponse: GET /chats/{id}
    - SendMessageRequest / SendMessageResponse: POST /chats/{id}/messages
    - EditMessageRequest / EditMessageResponse: POST /chats/{id}/messages/{id}/edit
    - CreateChatRequest / ChatResponse: POST /chats, GET /chats
"""

from branchchat.schemas.chat import (
    MessageRole,
    MessageResponse,
    BranchInfoResponse,
    ConversationResponse,
    SendMessageRequest,
    SendMessageResponse,
    EditMessageRequest,
    EditMessageResponse,
    CreateChatRequest,
    ChatResponse,
)

__all__ = [
    "MessageRole",
    "MessageResponse",
    "BranchInfoResponse",
    "ConversationResponse",
    "SendMessageRequest",
    "SendMessageResponse",
    "EditMessageRequest",
    "EditMessageResponse",
    "CreateChatRequest",
    "ChatResponse",
]
