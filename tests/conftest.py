"""
Pytest configuration and fixtures for Dr's Lab tests.

This module provides shared fixtures for testing database models, repositories,
the Studio layer and the API.
"""

import uuid
from datetime import UTC, datetime, timedelta
from typing import Generator
from unittest.mock import MagicMock

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from drslab.ai.service import AIService
from drslab.models.db import Base, Conversation, Message, MessageRole, ModelSelector
from drslab.studio.project import GeneratedProject

TEST_USER = "test-user"


@pytest.fixture(scope="session")
def test_engine():
    """Create a test database engine using SQLite in-memory."""
    engine = create_engine(
        "sqlite://",
        echo=False,
        connect_args={
            "check_same_thread": False
        },  # Allow cross-thread access for TestClient
        poolclass=StaticPool,
    )
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(test_engine) -> Generator[Session, None, None]:
    """
    Create a new database session for a test.

    Each test gets a fresh session with a transaction that is rolled back
    after the test completes, ensuring test isolation.
    """
    connection = test_engine.connect()
    transaction = connection.begin()
    session = sessionmaker(bind=connection)()

    yield session

    session.close()
    transaction.rollback()
    connection.close()


@pytest.fixture
def fake_ai() -> MagicMock:
    """AI service double with plain-text defaults for every call."""
    ai = MagicMock()
    ai.respond.return_value = "Assistant reply"
    ai.stream_response.return_value = iter(["Assistant ", "reply"])
    ai.generate_dev_response.return_value = "Dev reply"
    ai.generate_code.return_value = "print('hello')"
    ai.analyze_code.return_value = "Looks fine."
    ai.simulate_command.return_value = "simulated output"
    ai.fallback_reply.side_effect = AIService.fallback_reply
    ai.generate_project.return_value = GeneratedProject(
        project_name="demo-app",
        files=[],
        explanation="Nothing generated",
        next_steps=[],
    )
    return ai


@pytest.fixture
def api_client(db_session: Session, fake_ai: MagicMock):
    """Create a test client for FastAPI with database and AI overrides."""
    from fastapi.testclient import TestClient

    from drslab.ai.service import get_ai_service
    from drslab.api.app import app
    from drslab.db.connection import get_db

    # Override the get_db dependency to use test database
    def override_get_db():
        yield db_session
        db_session.flush()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_ai_service] = lambda: fake_ai

    client = TestClient(app, headers={"X-User-Id": TEST_USER})
    yield client

    # Clean up
    app.dependency_overrides.clear()


@pytest.fixture
def sample_conversation(db_session: Session) -> Conversation:
    """Create a sample therapy conversation for testing."""
    conversation = Conversation(
        id=uuid.uuid4(),
        user_id=TEST_USER,
        title="Feeling stuck",
        model=ModelSelector.GEMINI,
    )
    db_session.add(conversation)
    db_session.commit()
    db_session.refresh(conversation)
    return conversation


@pytest.fixture
def dev_conversation(db_session: Session) -> Conversation:
    """Create a sample MilesAI conversation for testing."""
    conversation = Conversation(
        id=uuid.uuid4(),
        user_id=TEST_USER,
        title="Refactor the parser",
        model=ModelSelector.MILESAI,
    )
    db_session.add(conversation)
    db_session.commit()
    db_session.refresh(conversation)
    return conversation


@pytest.fixture
def sample_messages(db_session: Session, sample_conversation: Conversation) -> list[Message]:
    """Two messages in the sample conversation."""
    base_time = datetime.now(UTC) - timedelta(minutes=5)
    messages = [
        Message(
            conversation_id=sample_conversation.id,
            role=MessageRole.USER,
            content="I can't focus at work.",
            sequence=0,
            created_at=base_time,
        ),
        Message(
            conversation_id=sample_conversation.id,
            role=MessageRole.ASSISTANT,
            content="That sounds frustrating. What happens when you try?",
            sequence=1,
            created_at=base_time + timedelta(seconds=10),
        ),
    ]
    db_session.add_all(messages)
    db_session.commit()
    return messages


@pytest.fixture
def workspace(db_session: Session):
    """An empty Studio workspace for the test user."""
    from drslab.studio.workspace import Workspace

    return Workspace(db_session, TEST_USER)


@pytest.fixture
def project_files(workspace):
    """A small project in the workspace, committed as the git base."""
    from drslab.studio.git import GitSimulator

    workspace.write("index.html", "<h1>Hello</h1>\n")
    workspace.write("src/App.tsx", "export const App = () => null;\n")
    workspace.write("src/components/Button.tsx", "export const Button = () => null;\n")
    GitSimulator(workspace).init()
    return workspace
