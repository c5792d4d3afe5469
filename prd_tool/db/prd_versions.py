"""PRD version database operations."""

from typing import Any
from uuid import UUID

from supabase import Client

from prd_tool.core.logging import get_logger
from prd_tool.core.schemas_versions import ChangeSource, PrdVersion
from prd_tool.db.supabase_client import get_supabase

logger = get_logger(__name__)

TABLE = "prd_versions"


class VersionRepository:
    """Append-only access to the prd_versions table."""

    def __init__(self, supabase: Client | None = None):
        self.supabase = supabase or get_supabase()

    def get_latest(self, prd_id: UUID) -> PrdVersion | None:
        """Get the highest-numbered version of a PRD, if any."""
        response = (
            self.supabase.table(TABLE)
            .select("*")
            .eq("prd_id", str(prd_id))
            .order("version_number", desc=True)
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return PrdVersion(**response.data[0])

    def get(self, prd_id: UUID, version_id: UUID) -> PrdVersion | None:
        """Get a version only if it belongs to the given PRD."""
        response = (
            self.supabase.table(TABLE)
            .select("*")
            .eq("id", str(version_id))
            .eq("prd_id", str(prd_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return PrdVersion(**response.data[0])

    def list_for_prd(self, prd_id: UUID) -> list[PrdVersion]:
        """List versions of a PRD, newest first."""
        response = (
            self.supabase.table(TABLE)
            .select("*")
            .eq("prd_id", str(prd_id))
            .order("version_number", desc=True)
            .execute()
        )
        return [PrdVersion(**row) for row in response.data or []]

    def create(
        self,
        prd_id: UUID,
        version_number: int,
        title: str,
        content: str,
        content_hash: str,
        content_size: int,
        change_source: ChangeSource = ChangeSource.MANUAL,
        change_summary: str | None = None,
        created_by: UUID | None = None,
    ) -> PrdVersion:
        """
        Insert a new version row.

        The (prd_id, version_number) unique constraint rejects a concurrent
        duplicate number.

        Raises:
            ValueError: If insert returns no data
            Exception: If database operation fails
        """
        data: dict[str, Any] = {
            "prd_id": str(prd_id),
            "version_number": version_number,
            "title": title,
            "content": content,
            "content_hash": content_hash,
            "content_size": content_size,
            "change_summary": change_summary,
            "change_source": change_source.value,
            "created_by": str(created_by) if created_by else None,
        }

        try:
            response = self.supabase.table(TABLE).insert(data).execute()

            if not response.data:
                raise ValueError("No data returned from version insert")

            return PrdVersion(**response.data[0])

        except Exception as e:
            logger.error(
                f"Failed to insert version {version_number}: {e}",
                extra={"prd_id": str(prd_id), "version_number": version_number},
            )
            raise
