"""Chat turn engine: user turn → context → Claude (streamed or batch) → PRD update."""

import json
from collections.abc import AsyncGenerator, AsyncIterator
from contextlib import aclosing
from dataclasses import dataclass
from uuid import UUID

from prd_tool.core.chat_prompts import build_prd_system_prompt
from prd_tool.core.document_store import DocumentStore
from prd_tool.core.errors import CompletionError, NoDirectiveError, NotFoundError
from prd_tool.core.llm import CompletionClient
from prd_tool.core.logging import get_logger
from prd_tool.core.prd_update import extract_prd_update
from prd_tool.core.schemas_chat import (
    ApplyResult,
    ConversationSummaryResponse,
    ConversationTurn,
    MessageRole,
    PrdDocument,
    TurnResult,
)
from prd_tool.db.messages import TurnRepository
from prd_tool.db.prds import DocumentRepository

logger = get_logger(__name__)

STREAM_ERROR_MESSAGE = "An error occurred"


def _sse_event(data: dict) -> str:
    """Format a dict as an SSE data line."""
    return f"data: {json.dumps(data)}\n\n"


@dataclass
class PreparedTurn:
    """A turn whose user message is persisted and whose context is built."""

    document: PrdDocument
    user_message: ConversationTurn
    system_prompt: str
    history: list[dict[str, str]]


class ChatTurnOrchestrator:
    """
    Drives PRD chat turns.

    The user message is always persisted before Claude is called, so a failed
    generation never loses it. No assistant message is stored unless the
    completion finishes.
    """

    def __init__(
        self,
        turns: TurnRepository,
        documents: DocumentRepository,
        store: DocumentStore,
        completion: CompletionClient,
        history_limit: int = 20,
    ):
        self.turns = turns
        self.documents = documents
        self.store = store
        self.completion = completion
        self.history_limit = history_limit

    def list_turns(self, document: PrdDocument) -> list[ConversationTurn]:
        return self.turns.list_for_prd(document.id)

    async def prepare_turn(self, document: PrdDocument, user_text: str) -> PreparedTurn:
        """
        Persist the user message and assemble the context window.

        Raises:
            StorageError: If the PRD body cannot be read
        """
        user_message = self.turns.create(
            prd_id=document.id,
            role=MessageRole.USER,
            content=user_text,
            token_count=self.completion.estimate_tokens(user_text),
        )

        prd_content = self.store.read(str(document.user_id), str(document.id))

        # The window includes the message persisted above as its last entry
        recent = self.turns.list_recent(document.id, limit=self.history_limit)
        history = [
            {"role": turn.role.value, "content": turn.content}
            for turn in recent
            if turn.content.strip()
        ]
        # Claude expects the conversation to open with a user turn
        while history and history[0]["role"] != MessageRole.USER.value:
            history.pop(0)

        logger.info(
            f"Chat context built: history_msgs={len(history)}, prd_chars={len(prd_content)}",
            extra={"prd_id": str(document.id), "message_id": str(user_message.id)},
        )

        return PreparedTurn(
            document=document,
            user_message=user_message,
            system_prompt=build_prd_system_prompt(prd_content),
            history=history,
        )

    async def submit_turn(self, document: PrdDocument, user_text: str) -> TurnResult:
        """
        Run a non-streaming chat turn.

        Raises:
            CompletionError: If Claude fails or its reply cannot be saved (the user
                message stays persisted)
        """
        prepared = await self.prepare_turn(document, user_text)
        return await self.complete_turn(prepared)

    async def submit_turn_streaming(
        self, document: PrdDocument, user_text: str
    ) -> AsyncIterator[str]:
        """
        Persist the user message, then return the SSE frame stream for the reply.

        Failures before the stream starts (storage, persistence) raise here;
        failures while generating become a terminal error frame.
        """
        prepared = await self.prepare_turn(document, user_text)
        return self.stream_turn(prepared)

    async def complete_turn(self, prepared: PreparedTurn) -> TurnResult:
        document = prepared.document
        try:
            response = await self.completion.chat(prepared.system_prompt, prepared.history)
        except Exception as e:
            logger.error(f"Chat error: {e}", extra={"prd_id": str(document.id)})
            raise

        try:
            assistant_message = self._persist_assistant(document, response)
        except Exception as e:
            logger.error(
                f"Failed to save assistant message: {e}", extra={"prd_id": str(document.id)}
            )
            raise CompletionError("Failed to save assistant response") from e

        return TurnResult(
            message=assistant_message,
            has_update=assistant_message.prd_update_suggestion is not None,
        )

    async def stream_turn(self, prepared: PreparedTurn) -> AsyncGenerator[str, None]:
        """
        Generate SSE frames for the assistant reply.

        Yields ``{"text": ...}`` per fragment, then ``{"done": true,
        "has_update": bool}``; any failure yields ``{"error": ...}`` instead
        of done and nothing is persisted for the assistant.
        """
        document = prepared.document
        full_response = ""

        try:
            async with aclosing(
                self.completion.stream_chat(prepared.system_prompt, prepared.history)
            ) as fragments:
                async for chunk in fragments:
                    full_response += chunk
                    yield _sse_event({"text": chunk})

            assistant_message = self._persist_assistant(document, full_response)

            yield _sse_event(
                {
                    "done": True,
                    "has_update": assistant_message.prd_update_suggestion is not None,
                }
            )

        except Exception as e:
            logger.error(
                f"Chat stream error: {e}",
                extra={"prd_id": str(document.id), "streamed_chars": len(full_response)},
            )
            yield _sse_event({"error": STREAM_ERROR_MESSAGE})

    def _persist_assistant(self, document: PrdDocument, response: str) -> ConversationTurn:
        prd_update = extract_prd_update(response)
        return self.turns.create(
            prd_id=document.id,
            role=MessageRole.ASSISTANT,
            content=response,
            token_count=self.completion.estimate_tokens(response),
            prd_update_suggestion=prd_update,
        )

    async def apply_directive(self, document: PrdDocument, message_id: UUID) -> ApplyResult:
        """
        Append a message's PRD update suggestion to the PRD body.

        The suggestion is appended after a blank line; there is no structural
        merge. Applying the same message twice appends twice.

        Raises:
            NotFoundError: If the message is not on this PRD, or the message or
                PRD row is gone when the update is recorded
            NoDirectiveError: If the message has no suggestion
            StorageError: If the body cannot be read or written
        """
        message = self.turns.get(document.id, message_id)
        if message is None:
            raise NotFoundError("Message not found")

        if not message.prd_update_suggestion:
            raise NoDirectiveError()

        owner_id, prd_id = str(document.user_id), str(document.id)
        current_content = self.store.read(owner_id, prd_id)
        new_content = f"{current_content}\n\n{message.prd_update_suggestion}"
        self.store.write(owner_id, prd_id, new_content)

        # The body is already written; a row vanishing now is reported as missing
        try:
            applied = self.turns.mark_update_applied(message.id)
        except ValueError as e:
            raise NotFoundError("Message not found") from e

        estimated_tokens = self.completion.estimate_tokens(new_content)
        try:
            self.documents.update_estimated_tokens(document.id, estimated_tokens)
        except ValueError as e:
            raise NotFoundError("PRD not found") from e

        logger.info(
            "PRD update applied",
            extra={
                "prd_id": prd_id,
                "message_id": str(message.id),
                "estimated_tokens": estimated_tokens,
            },
        )

        return ApplyResult(
            message=applied,
            content=new_content,
            estimated_tokens=estimated_tokens,
        )

    async def summarize_conversation(self, document: PrdDocument) -> ConversationSummaryResponse:
        """
        Summarize the PRD's conversation with the summarize model.

        Raises:
            CompletionError: If Claude fails
        """
        turns = self.turns.list_for_prd(document.id)
        if not turns:
            return ConversationSummaryResponse(summary="", messages_summarized=0)

        summary = await self.completion.summarize(
            [{"role": turn.role.value, "content": turn.content} for turn in turns]
        )
        return ConversationSummaryResponse(
            summary=summary,
            messages_summarized=len(turns),
            last_message_id=turns[-1].id,
        )
