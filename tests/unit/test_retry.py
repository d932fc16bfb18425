"""
Unit tests for branch allocation retry
"""

import pytest

from branchchat.core.exceptions import BranchConflictError, StorageError
from branchchat.utils.retry import retry_on_branch_conflict


@pytest.mark.unit
class TestRetryOnBranchConflict:
    """Test suite for retry_on_branch_conflict"""

    @pytest.mark.asyncio
    async def test_retries_until_success(self):
        calls = []

        @retry_on_branch_conflict(max_attempts=3)
        async def allocate():
            calls.append(1)
            if len(calls) < 3:
                raise BranchConflictError("taken")
            return len(calls)

        assert await allocate() == 3

    @pytest.mark.asyncio
    async def test_reraises_last_conflict(self):
        calls = []

        @retry_on_branch_conflict(max_attempts=2)
        async def allocate():
            calls.append(1)
            raise BranchConflictError("taken")

        with pytest.raises(BranchConflictError):
            await allocate()

        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_other_storage_errors_not_retried(self):
        calls = []

        @retry_on_branch_conflict(max_attempts=5)
        async def allocate():
            calls.append(1)
            raise StorageError("database gone")

        with pytest.raises(StorageError):
            await allocate()

        assert len(calls) == 1
