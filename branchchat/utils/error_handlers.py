"""
Centralized Error Handling

Maps domain exceptions to consistent JSON error responses and logs them.
"""

from fastapi import Request, status
from fastapi.responses import JSONResponse
from typing import Dict, Any
import logging
import traceback

from branchchat.core.exceptions import (
    BranchConflictError,
    NotFoundError,
    StorageError,
    UpstreamGenerationError,
    ValidationError,
)

logger = logging.getLogger(__name__)


class ErrorHandler:
    """Centralized error handling"""

    @staticmethod
    def handle_validation_error(error: ValidationError) -> Dict[str, Any]:
        logger.warning(f"Validation error: {error}")
        return {
            "error": "validation_error",
            "message": str(error) or "Request validation failed."
        }

    @staticmethod
    def handle_not_found_error(error: NotFoundError) -> Dict[str, Any]:
        logger.warning(f"Not found: {error}")
        return {
            "error": "not_found",
            "message": str(error) or "Resource not found."
        }

    @staticmethod
    def handle_generation_error(error: UpstreamGenerationError) -> Dict[str, Any]:
        """
        Handle text/title generation failures

        Messages persisted before the failure stay in place; the client
        sees them as unanswered when it reloads the conversation.
        """
        logger.error(f"Upstream generation error: {error}")
        return {
            "error": "generation_error",
            "message": "Failed to get AI response. Please try again.",
            "details": str(error)
        }

    @staticmethod
    def handle_storage_error(error: StorageError) -> Dict[str, Any]:
        if isinstance(error, BranchConflictError):
            logger.warning(f"Branch allocation conflict: {error}")
            return {
                "error": "branch_conflict",
                "message": "The message was edited concurrently. Please try again."
            }

        logger.error(f"Storage error: {error}")
        return {
            "error": "database_error",
            "message": "Database error occurred."
        }

    @staticmethod
    def handle_generic_error(error: Exception) -> Dict[str, Any]:
        """
        Handle generic/unknown errors

        Args:
            error: Exception

        Returns:
            Error dictionary
        """
        logger.error(f"Unexpected error: {error}\n{traceback.format_exc()}")
        return {
            "error": "internal_error",
            "message": "An unexpected error occurred. Please try again.",
            "type": type(error).__name__
        }


# Global exception handlers for FastAPI

async def validation_error_handler(request: Request, exc: ValidationError):
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content=ErrorHandler.handle_validation_error(exc)
    )


async def not_found_error_handler(request: Request, exc: NotFoundError):
    return JSONResponse(
        status_code=status.HTTP_404_NOT_FOUND,
        content=ErrorHandler.handle_not_found_error(exc)
    )


async def generation_error_handler(request: Request, exc: UpstreamGenerationError):
    return JSONResponse(
        status_code=status.HTTP_502_BAD_GATEWAY,
        content=ErrorHandler.handle_generation_error(exc)
    )


async def storage_error_handler(request: Request, exc: StorageError):
    status_code = (
        status.HTTP_409_CONFLICT if isinstance(exc, BranchConflictError)
        else status.HTTP_500_INTERNAL_SERVER_ERROR
    )
    return JSONResponse(
        status_code=status_code,
        content=ErrorHandler.handle_storage_error(exc)
    )


async def generic_error_handler(request: Request, exc: Exception):
    """FastAPI exception handler for generic errors"""
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content=ErrorHandler.handle_generic_error(exc)
    )


# Setup function for FastAPI app
def setup_error_handlers(app):
    """
    Setup global error handlers for FastAPI app

    Args:
        app: FastAPI application instance
    """
    app.add_exception_handler(ValidationError, validation_error_handler)
    app.add_exception_handler(NotFoundError, not_found_error_handler)
    app.add_exception_handler(UpstreamGenerationError, generation_error_handler)
    app.add_exception_handler(StorageError, storage_error_handler)
    app.add_exception_handler(Exception, generic_error_handler)

    logger.info("Error handlers registered")
