"""PRD version API endpoints."""

from typing import Any, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path

from prd_tool.api.dependencies import get_actor_id, get_document, get_version_manager
from prd_tool.core.schemas_chat import PrdDocument
from prd_tool.core.schemas_versions import CompareVersionsRequest, CreateVersionRequest
from prd_tool.core.versioning import VersionManager

router = APIRouter()


@router.get("/prds/{prd_id}/versions")
async def list_versions(
    document: PrdDocument = Depends(get_document),
    manager: VersionManager = Depends(get_version_manager),
) -> dict[str, Any]:
    """List versions, newest first."""
    versions = manager.list_versions(document)
    return {"data": [v.to_api_response() for v in versions]}


@router.post("/prds/{prd_id}/versions", status_code=201)
async def create_version(
    request: Optional[CreateVersionRequest] = None,
    document: PrdDocument = Depends(get_document),
    manager: VersionManager = Depends(get_version_manager),
    actor_id: Optional[UUID] = Depends(get_actor_id),
) -> dict[str, Any]:
    """Save the current PRD body as a manual version (400 NO_CHANGES if unchanged)."""
    summary = request.summary if request else None
    version = manager.snapshot(document, summary=summary, actor_id=actor_id)
    return version.to_api_response()


@router.post("/prds/{prd_id}/versions/compare")
async def compare_versions(
    request: CompareVersionsRequest,
    document: PrdDocument = Depends(get_document),
    manager: VersionManager = Depends(get_version_manager),
) -> dict[str, Any]:
    """Return two versions with full content; the client renders the diff."""
    comparison = manager.compare(document, request.from_version, request.to_version)
    return comparison.to_api_response()


@router.get("/prds/{prd_id}/versions/{version_id}")
async def get_version(
    version_id: UUID = Path(..., description="Version UUID"),
    document: PrdDocument = Depends(get_document),
    manager: VersionManager = Depends(get_version_manager),
) -> dict[str, Any]:
    """Get a version including its content."""
    version = manager.get_version(document, version_id)
    return version.to_api_response(include_content=True)


@router.post("/prds/{prd_id}/versions/{version_id}/restore")
async def restore_version(
    version_id: UUID = Path(..., description="Version UUID"),
    document: PrdDocument = Depends(get_document),
    manager: VersionManager = Depends(get_version_manager),
    actor_id: Optional[UUID] = Depends(get_actor_id),
) -> dict[str, Any]:
    """Restore a version, backing up the live body first."""
    version = manager.restore(document, version_id, actor_id=actor_id)
    return {"message": "Version restored", "version": version.to_api_response()}
