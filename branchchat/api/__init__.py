"""
API Routes and Endpoints

Routers:
    - chat: Conversations, send, and edit-as-branch
"""

from branchchat.api import chat

__all__ = ["chat"]
