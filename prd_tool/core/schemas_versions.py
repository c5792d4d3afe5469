"""Pydantic schemas for PRD versions."""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ChangeSource(str, Enum):
    """What produced a version."""
    MANUAL = "manual"
    AUTO = "auto"
    AI = "ai"


class PrdVersion(BaseModel):
    """Immutable numbered snapshot of a PRD body."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: UUID
    prd_id: UUID
    version_number: int
    title: str
    content: str
    content_hash: str
    content_size: int
    change_summary: Optional[str] = None
    change_source: ChangeSource = ChangeSource.MANUAL
    created_by: Optional[UUID] = None
    created_at: Optional[datetime] = None

    def to_api_response(self, include_content: bool = False) -> dict[str, Any]:
        data: dict[str, Any] = {
            "id": str(self.id),
            "version_number": self.version_number,
            "title": self.title,
            "content_size": self.content_size,
            "change_summary": self.change_summary,
            "change_source": self.change_source.value,
            "created_by": str(self.created_by) if self.created_by else None,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }
        if include_content:
            data["content"] = self.content
        return data

    def to_compare_entry(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "version_number": self.version_number,
            "content": self.content,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class VersionComparison(BaseModel):
    """Two versions of the same PRD, side by side. Diffing is left to the client."""

    model_config = ConfigDict(frozen=True)

    from_version: PrdVersion
    to_version: PrdVersion

    def to_api_response(self) -> dict[str, Any]:
        return {
            "from": self.from_version.to_compare_entry(),
            "to": self.to_version.to_compare_entry(),
        }


class CreateVersionRequest(BaseModel):
    """Request body for a manual snapshot."""

    summary: Optional[str] = Field(default=None, max_length=255)


class CompareVersionsRequest(BaseModel):
    """Request body for comparing two versions."""

    from_version: UUID
    to_version: UUID
