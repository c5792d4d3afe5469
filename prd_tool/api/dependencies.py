"""FastAPI dependencies wiring repositories and services per request."""

from functools import lru_cache
from typing import Optional
from uuid import UUID

from fastapi import Depends, Header, Path

from prd_tool.core.chat_stream import ChatTurnOrchestrator
from prd_tool.core.config import get_settings
from prd_tool.core.document_store import DocumentStore
from prd_tool.core.errors import NotFoundError
from prd_tool.core.llm import CompletionClient, get_completion_client
from prd_tool.core.schemas_chat import PrdDocument
from prd_tool.core.versioning import VersionManager
from prd_tool.db.messages import TurnRepository
from prd_tool.db.prd_versions import VersionRepository
from prd_tool.db.prds import DocumentRepository
from prd_tool.db.supabase_client import get_supabase


@lru_cache(maxsize=1)
def get_document_store() -> DocumentStore:
    return DocumentStore(get_settings().DOCUMENT_STORAGE_PATH)


def get_document_repository() -> DocumentRepository:
    return DocumentRepository(get_supabase())


def get_turn_repository() -> TurnRepository:
    return TurnRepository(get_supabase())


def get_version_repository() -> VersionRepository:
    return VersionRepository(get_supabase())


def get_chat_orchestrator(
    turns: TurnRepository = Depends(get_turn_repository),
    documents: DocumentRepository = Depends(get_document_repository),
    store: DocumentStore = Depends(get_document_store),
    completion: CompletionClient = Depends(get_completion_client),
) -> ChatTurnOrchestrator:
    return ChatTurnOrchestrator(
        turns=turns,
        documents=documents,
        store=store,
        completion=completion,
        history_limit=get_settings().CHAT_HISTORY_LIMIT,
    )


def get_version_manager(
    versions: VersionRepository = Depends(get_version_repository),
    documents: DocumentRepository = Depends(get_document_repository),
    store: DocumentStore = Depends(get_document_store),
) -> VersionManager:
    return VersionManager(versions=versions, documents=documents, store=store)


def get_document(
    prd_id: UUID = Path(..., description="PRD UUID"),
    documents: DocumentRepository = Depends(get_document_repository),
) -> PrdDocument:
    """
    Resolve the PRD addressed by the path.

    Access control has already been applied upstream; this only turns an
    unknown id into a 404.
    """
    document = documents.get(prd_id)
    if document is None:
        raise NotFoundError("PRD not found")
    return document


def get_actor_id(
    x_user_id: Optional[UUID] = Header(None, alias="X-User-Id"),
) -> Optional[UUID]:
    """Acting user, recorded as created_by on versions. Absent for system calls."""
    return x_user_id
