"""PRD metadata database operations.

The prds table is owned by the document CRUD layer; only the columns the
chat and versioning core needs are read or written here.
"""

from datetime import datetime, timezone
from uuid import UUID

from supabase import Client

from prd_tool.core.logging import get_logger
from prd_tool.core.schemas_chat import PrdDocument
from prd_tool.db.supabase_client import get_supabase

logger = get_logger(__name__)

TABLE = "prds"


class DocumentRepository:
    """Title and token-estimate access to the prds table."""

    def __init__(self, supabase: Client | None = None):
        self.supabase = supabase or get_supabase()

    def get(self, prd_id: UUID) -> PrdDocument | None:
        """Get PRD metadata by id."""
        response = (
            self.supabase.table(TABLE)
            .select("id, user_id, title, estimated_tokens, updated_at")
            .eq("id", str(prd_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return PrdDocument(**response.data[0])

    def update_title(self, prd_id: UUID, title: str) -> PrdDocument:
        """
        Set the display title of a PRD.

        Raises:
            ValueError: If the PRD is not found
        """
        return self._update(prd_id, {"title": title})

    def update_estimated_tokens(self, prd_id: UUID, estimated_tokens: int) -> PrdDocument:
        """
        Store the token estimate of the PRD body and touch updated_at.

        Raises:
            ValueError: If the PRD is not found
        """
        return self._update(prd_id, {"estimated_tokens": estimated_tokens})

    def _update(self, prd_id: UUID, changes: dict) -> PrdDocument:
        payload = {**changes, "updated_at": datetime.now(timezone.utc).isoformat()}
        response = (
            self.supabase.table(TABLE)
            .update(payload)
            .eq("id", str(prd_id))
            .execute()
        )
        if not response.data:
            raise ValueError(f"PRD not found: {prd_id}")

        logger.debug(
            f"Updated PRD {prd_id}: {', '.join(changes)}",
            extra={"prd_id": str(prd_id)},
        )
        return PrdDocument(**response.data[0])
