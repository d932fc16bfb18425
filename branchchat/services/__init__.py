"""
Business Logic Services

Includes:
- MessageStore: SQL persistence for chats and messages
- ChainReconstructor: Transcript of one branch
- BranchInfoResolver: Branch navigation metadata
- BranchService: Edit a message into a new branch
- ChatService: Send messages, manage chats
- LLMService: Text and title generation
"""

# Lazy imports to avoid circular dependencies
# Import services directly from their modules instead

__all__ = [
    "MessageStore",
    "ChainReconstructor",
    "BranchInfoResolver",
    "BranchService",
    "ChatService",
    "LLMService"
]
