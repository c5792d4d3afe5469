"""Pydantic schemas for PRD documents and chat turns."""

from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# ============================================================================
# Enums
# ============================================================================


class MessageRole(str, Enum):
    """Author of a chat turn."""
    USER = "user"
    ASSISTANT = "assistant"


# ============================================================================
# Records
# ============================================================================


class PrdDocument(BaseModel):
    """Metadata of a PRD as read from the prds table."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: UUID
    user_id: UUID
    title: str = ""
    estimated_tokens: int = 0
    updated_at: Optional[datetime] = None


class ConversationTurn(BaseModel):
    """One persisted chat message on a PRD."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: UUID
    prd_id: UUID
    role: MessageRole
    content: str
    prd_update_suggestion: Optional[str] = None
    update_applied: bool = False
    token_count: int = 0
    created_at: Optional[datetime] = None

    @model_validator(mode="after")
    def _only_assistant_suggests(self) -> "ConversationTurn":
        if self.role != MessageRole.ASSISTANT and self.prd_update_suggestion is not None:
            raise ValueError("Only assistant turns may carry a PRD update suggestion")
        if self.update_applied and not self.prd_update_suggestion:
            raise ValueError("update_applied requires a PRD update suggestion")
        return self

    def to_api_response(self) -> dict[str, Any]:
        return {
            "id": str(self.id),
            "role": self.role.value,
            "content": self.content,
            "prd_update_suggestion": self.prd_update_suggestion,
            "update_applied": self.update_applied,
            "token_count": self.token_count,
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }


class TurnResult(BaseModel):
    """Outcome of a non-streaming chat turn."""

    model_config = ConfigDict(frozen=True)

    message: ConversationTurn
    has_update: bool


class ApplyResult(BaseModel):
    """Outcome of applying a PRD update suggestion."""

    model_config = ConfigDict(frozen=True)

    message: ConversationTurn
    content: str
    estimated_tokens: int


# ============================================================================
# API models
# ============================================================================


class SendMessageRequest(BaseModel):
    """Request body for posting a chat message."""

    content: str = Field(..., min_length=1, description="User message text")

    @field_validator("content")
    @classmethod
    def _strip_content(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Message content must not be blank")
        return value


class ConversationSummaryResponse(BaseModel):
    """Summary of a PRD conversation."""

    summary: str
    messages_summarized: int
    last_message_id: Optional[UUID] = None
