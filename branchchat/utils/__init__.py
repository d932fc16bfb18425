"""
Utility Functions and Classes

Provides retry logic and error handling.
"""

from branchchat.utils.retry import retry_on_branch_conflict
from branchchat.utils.error_handlers import (
    ErrorHandler,
    setup_error_handlers
)

__all__ = [
    "retry_on_branch_conflict",
    "ErrorHandler",
    "setup_error_handlers"
]
