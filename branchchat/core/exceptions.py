"""
Custom exceptions for BranchChat API
"""

from fastapi import HTTPException, status


class BranchChatException(Exception):
    """Base exception for BranchChat"""
    pass


class ValidationError(BranchChatException):
    """Bad or missing input (empty text, editing a non-user message)"""
    pass


class NotFoundError(BranchChatException):
    """Chat or message absent, or not owned by the caller"""
    pass


class UpstreamGenerationError(BranchChatException):
    """Text or title generation failed"""
    pass


class StorageError(BranchChatException):
    """Persistence operation failed"""
    pass


class BranchConflictError(StorageError):
    """Branch index already taken by a concurrent edit of the same message"""
    pass


# HTTP exception helpers
def http_401_unauthorized(detail: str = "Invalid authentication credentials"):
    """Raise 401 Unauthorized"""
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
    )
