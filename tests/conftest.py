"""
Pytest configuration and shared fixtures for BranchChat tests

Provides:
- In-memory SQLite database per test
- Message store over the test session
- Mock LLM service (reply and title generation)
- Builders for chats and messages with controlled timestamps
"""

import pytest
from typing import Generator, Optional
from unittest.mock import MagicMock, AsyncMock
from datetime import datetime, timedelta, timezone
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool

from branchchat.database import Base
from branchchat.models.chat import Chat
from branchchat.models.message import Message, MAIN_BRANCH
from branchchat.services.message_store import MessageStore

TEST_USER_ID = "user-1"


@pytest.fixture
def test_db_engine():
    """Create in-memory SQLite database (fast, isolated per test)"""
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture
def db_session(test_db_engine) -> Generator[Session, None, None]:
    """Database session bound to the per-test engine"""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_db_engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def store(db_session) -> MessageStore:
    return MessageStore(db_session)


@pytest.fixture
def mock_llm():
    """Mock LLMService: fixed reply and title"""
    llm = MagicMock()
    llm.generate = AsyncMock(return_value="Assistant reply")
    llm.title_for = AsyncMock(return_value="Generated Title")
    return llm


@pytest.fixture
def test_chat(db_session) -> Chat:
    """Create a titled chat owned by TEST_USER_ID"""
    chat = Chat(user_id=TEST_USER_ID, title="Test Chat")
    db_session.add(chat)
    db_session.commit()
    db_session.refresh(chat)
    return chat


@pytest.fixture
def add_message(db_session):
    """
    Builder for messages with strictly increasing timestamps

    Usage:
        q = add_message(chat, "user", "Hi")
        a = add_message(chat, "assistant", "Hello", reply_to=q)
    """
    clock = {"now": datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)}

    def _add(
        chat: Chat,
        role: str,
        content: str,
        reply_to: Optional[Message] = None,
        parent: Optional[Message] = None,
        branch_index: int = MAIN_BRANCH,
        metadata: Optional[dict] = None,
    ) -> Message:
        clock["now"] += timedelta(seconds=1)
        message = Message(
            chat_id=chat.id,
            role=role,
            content=content,
            reply_to=reply_to.id if reply_to else None,
            parent_message_id=parent.id if parent else None,
            branch_index=branch_index,
            metadata_=metadata or {},
            created_at=clock["now"],
        )
        db_session.add(message)
        db_session.commit()
        db_session.refresh(message)
        return message

    return _add


# Pytest configuration
def pytest_configure(config):
    """Configure pytest with custom markers"""
    config.addinivalue_line(
        "markers", "unit: Unit tests for individual components"
    )
    config.addinivalue_line(
        "markers", "integration: Integration tests for API endpoints"
    )
    config.addinivalue_line(
        "markers", "asyncio: Async tests requiring asyncio event loop"
    )
