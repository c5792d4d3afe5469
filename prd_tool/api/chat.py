"""PRD chat API endpoints."""

from typing import Any
from uuid import UUID

from fastapi import APIRouter, Depends, Header, HTTPException, Path
from fastapi.responses import JSONResponse, StreamingResponse

from prd_tool.api.dependencies import get_chat_orchestrator, get_document
from prd_tool.core.chat_stream import ChatTurnOrchestrator
from prd_tool.core.config import get_settings
from prd_tool.core.errors import CompletionError
from prd_tool.core.logging import get_logger
from prd_tool.core.schemas_chat import (
    ConversationSummaryResponse,
    PrdDocument,
    SendMessageRequest,
)

logger = get_logger(__name__)

router = APIRouter()

SSE_HEADERS = {
    # Set explicitly so no charset parameter is appended
    "Content-Type": "text/event-stream",
    "Cache-Control": "no-cache",
    "X-Accel-Buffering": "no",
}


@router.get("/prds/{prd_id}/messages")
async def list_messages(
    document: PrdDocument = Depends(get_document),
    orchestrator: ChatTurnOrchestrator = Depends(get_chat_orchestrator),
) -> dict[str, Any]:
    """List the PRD's chat messages, oldest first."""
    messages = orchestrator.list_turns(document)
    return {"data": [m.to_api_response() for m in messages]}


@router.post("/prds/{prd_id}/messages", response_model=None)
async def send_message(
    request: SendMessageRequest,
    document: PrdDocument = Depends(get_document),
    orchestrator: ChatTurnOrchestrator = Depends(get_chat_orchestrator),
    accept: str | None = Header(None),
) -> StreamingResponse | JSONResponse:
    """
    Send a user message and get Claude's reply.

    This endpoint:
    1. Persists the user message
    2. Builds the context window (PRD body + last messages)
    3. Calls Claude, streaming when the client accepts text/event-stream
    4. Extracts any <prd_update> suggestion
    5. Persists the assistant message

    Returns:
        StreamingResponse with Server-Sent Events, or the assistant message as JSON
    """
    max_chars = get_settings().MAX_MESSAGE_CHARS
    if len(request.content) > max_chars:
        raise HTTPException(
            status_code=422,
            detail=f"Message content must be at most {max_chars} characters",
        )

    if accept and "text/event-stream" in accept:
        frames = await orchestrator.submit_turn_streaming(document, request.content)
        return StreamingResponse(frames, media_type="text/event-stream", headers=SSE_HEADERS)

    try:
        result = await orchestrator.submit_turn(document, request.content)
    except CompletionError:
        return JSONResponse(
            status_code=500,
            content={"message": "Failed to get AI response", "code": "AI_ERROR"},
        )

    return JSONResponse(
        content={
            "message": result.message.to_api_response(),
            "has_update": result.has_update,
        }
    )


@router.post("/prds/{prd_id}/messages/{message_id}/apply")
async def apply_update(
    message_id: UUID = Path(..., description="Message UUID"),
    document: PrdDocument = Depends(get_document),
    orchestrator: ChatTurnOrchestrator = Depends(get_chat_orchestrator),
) -> dict[str, Any]:
    """Append a message's PRD update suggestion to the PRD."""
    result = await orchestrator.apply_directive(document, message_id)
    return {
        "message": "Update applied successfully",
        "estimated_tokens": result.estimated_tokens,
    }


@router.post(
    "/prds/{prd_id}/messages/summary",
    response_model=ConversationSummaryResponse,
)
async def summarize_messages(
    document: PrdDocument = Depends(get_document),
    orchestrator: ChatTurnOrchestrator = Depends(get_chat_orchestrator),
) -> ConversationSummaryResponse:
    """Summarize the PRD conversation for context compression."""
    return await orchestrator.summarize_conversation(document)
