"""
Retry Logic Utilities

Retry-on-conflict for branch index allocation. The read-max-then-insert
sequence is guarded by a uniqueness constraint; a concurrent edit that
takes the same index makes the insert fail, and the whole allocation is
retried with a fresh read.
"""

from tenacity import (
    retry,
    stop_after_attempt,
    wait_random_exponential,
    retry_if_exception_type,
    before_sleep_log,
    after_log
)
from branchchat.config import settings
from branchchat.core.exceptions import BranchConflictError
import logging

logger = logging.getLogger(__name__)


def retry_on_branch_conflict(max_attempts: int = None):
    """
    Decorator for retrying branch allocation on uniqueness conflicts

    Jittered backoff keeps two racing edits from colliding again.
    The last BranchConflictError is re-raised once attempts run out.

    Args:
        max_attempts: Maximum attempts (default: settings.BRANCH_ALLOCATION_MAX_ATTEMPTS)

    Returns:
        Tenacity retry decorator
    """
    max_attempts = max_attempts or settings.BRANCH_ALLOCATION_MAX_ATTEMPTS

    return retry(
        stop=stop_after_attempt(max_attempts),
        wait=wait_random_exponential(multiplier=0.05, max=1),
        retry=retry_if_exception_type(BranchConflictError),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        after=after_log(logger, logging.DEBUG),
        reraise=True
    )
