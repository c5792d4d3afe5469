"""Chat message (conversation turn) database operations."""

from typing import Any
from uuid import UUID

from supabase import Client

from prd_tool.core.logging import get_logger
from prd_tool.core.schemas_chat import ConversationTurn, MessageRole
from prd_tool.db.supabase_client import get_supabase

logger = get_logger(__name__)

TABLE = "messages"


class TurnRepository:
    """Reads and writes rows of the messages table as ConversationTurn records."""

    def __init__(self, supabase: Client | None = None):
        self.supabase = supabase or get_supabase()

    def create(
        self,
        prd_id: UUID,
        role: MessageRole,
        content: str,
        token_count: int,
        prd_update_suggestion: str | None = None,
    ) -> ConversationTurn:
        """
        Insert a new chat turn.

        Args:
            prd_id: PRD UUID
            role: user or assistant
            content: Message text
            token_count: Estimated tokens of content
            prd_update_suggestion: Parsed update block (assistant turns only)

        Returns:
            The persisted ConversationTurn

        Raises:
            ValueError: If a user turn carries a suggestion or insert returns nothing
            Exception: If database operation fails
        """
        if role != MessageRole.ASSISTANT and prd_update_suggestion is not None:
            raise ValueError("Only assistant turns may carry a PRD update suggestion")

        data: dict[str, Any] = {
            "prd_id": str(prd_id),
            "role": role.value,
            "content": content,
            "prd_update_suggestion": prd_update_suggestion,
            "update_applied": False,
            "token_count": token_count,
        }

        try:
            response = self.supabase.table(TABLE).insert(data).execute()

            if not response.data:
                raise ValueError("No data returned from message insert")

            turn = ConversationTurn(**response.data[0])
            logger.debug(
                f"Inserted {role.value} message {turn.id}",
                extra={"prd_id": str(prd_id), "message_id": str(turn.id)},
            )
            return turn

        except Exception as e:
            logger.error(
                f"Failed to insert {role.value} message: {e}",
                extra={"prd_id": str(prd_id)},
            )
            raise

    def get(self, prd_id: UUID, message_id: UUID) -> ConversationTurn | None:
        """Get a message only if it belongs to the given PRD."""
        response = (
            self.supabase.table(TABLE)
            .select("*")
            .eq("id", str(message_id))
            .eq("prd_id", str(prd_id))
            .limit(1)
            .execute()
        )
        if not response.data:
            return None
        return ConversationTurn(**response.data[0])

    def list_for_prd(self, prd_id: UUID) -> list[ConversationTurn]:
        """List all messages of a PRD, oldest first."""
        response = (
            self.supabase.table(TABLE)
            .select("*")
            .eq("prd_id", str(prd_id))
            .order("created_at")
            .execute()
        )
        return [ConversationTurn(**row) for row in response.data or []]

    def list_recent(self, prd_id: UUID, limit: int = 20) -> list[ConversationTurn]:
        """
        Get the most recent messages of a PRD.

        Args:
            prd_id: PRD UUID
            limit: Maximum number of messages (default 20)

        Returns:
            Up to ``limit`` newest messages, ordered oldest first
        """
        response = (
            self.supabase.table(TABLE)
            .select("*")
            .eq("prd_id", str(prd_id))
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
        turns = [ConversationTurn(**row) for row in response.data or []]
        turns.reverse()
        return turns

    def mark_update_applied(self, message_id: UUID) -> ConversationTurn:
        """
        Flag a message's PRD update suggestion as applied.

        Raises:
            ValueError: If the message is not found
        """
        response = (
            self.supabase.table(TABLE)
            .update({"update_applied": True})
            .eq("id", str(message_id))
            .execute()
        )
        if not response.data:
            raise ValueError(f"Message not found: {message_id}")
        return ConversationTurn(**response.data[0])
