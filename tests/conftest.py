"""Pytest configuration and fixtures."""

import os
from uuid import uuid4

import pytest

from prd_tool.core.chat_stream import ChatTurnOrchestrator
from prd_tool.core.document_store import DocumentStore
from prd_tool.core.versioning import VersionManager
from tests.fakes.fake_db import (
    FakeCompletionClient,
    FakeDocumentRepository,
    FakeTurnRepository,
    FakeVersionRepository,
)


@pytest.fixture(scope="session", autouse=True)
def setup_test_env():
    """Set up test environment variables."""
    os.environ["SUPABASE_URL"] = "https://test.supabase.co"
    os.environ["SUPABASE_SERVICE_ROLE_KEY"] = "test-key"
    os.environ["ANTHROPIC_API_KEY"] = "test-anthropic-key"
    os.environ["PRD_TOOL_ENV"] = "test"


@pytest.fixture
def store(tmp_path) -> DocumentStore:
    return DocumentStore(tmp_path / "prds")


@pytest.fixture
def documents() -> FakeDocumentRepository:
    return FakeDocumentRepository()


@pytest.fixture
def document(documents):
    """A PRD titled 'Checkout Revamp' owned by a fresh user."""
    return documents.add(prd_id=uuid4(), user_id=uuid4(), title="Checkout Revamp")


@pytest.fixture
def turns() -> FakeTurnRepository:
    return FakeTurnRepository()


@pytest.fixture
def versions() -> FakeVersionRepository:
    return FakeVersionRepository()


@pytest.fixture
def completion() -> FakeCompletionClient:
    return FakeCompletionClient()


@pytest.fixture
def orchestrator(turns, documents, store, completion) -> ChatTurnOrchestrator:
    return ChatTurnOrchestrator(
        turns=turns,
        documents=documents,
        store=store,
        completion=completion,
    )


@pytest.fixture
def version_manager(versions, documents, store) -> VersionManager:
    return VersionManager(versions=versions, documents=documents, store=store)
