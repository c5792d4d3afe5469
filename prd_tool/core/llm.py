"""Anthropic completion client for PRD chat turns."""

import math
from collections.abc import AsyncIterator
from functools import lru_cache
from typing import Any

import anthropic
import httpx
from anthropic import AsyncAnthropic

from prd_tool.core.config import get_settings
from prd_tool.core.errors import CompletionError
from prd_tool.core.logging import get_logger

logger = get_logger(__name__)

SUMMARIZE_SYSTEM_PROMPT = (
    "You are a summarizer. Summarize the following PRD creation conversation, "
    "preserving key decisions, requirements, and context. Be concise but complete."
)
SUMMARIZE_MAX_TOKENS = 1024
SUMMARIZE_TIMEOUT_SECONDS = 60.0

# Transport failures that can surface while a stream is being read
_PROVIDER_ERRORS = (anthropic.APIError, httpx.HTTPError)


def estimate_tokens(text: str) -> int:
    """Rough token estimate: Claude averages about 4 characters per token."""
    return math.ceil(len(text) / 4)


def _format_turns(turns: list[dict[str, str]]) -> list[dict[str, str]]:
    return [{"role": turn["role"], "content": turn["content"]} for turn in turns]


class CompletionClient:
    """
    Thin wrapper over the Anthropic Messages API.

    Every call fails fast with CompletionError when no API key is configured.
    Retries are disabled: a failed generation is resubmitted by the caller.
    """

    def __init__(
        self,
        api_key: str | None,
        model: str,
        summarize_model: str | None = None,
        max_tokens: int = 4096,
        timeout: float = 120.0,
    ):
        self.model = model
        self.summarize_model = summarize_model or model
        self.max_tokens = max_tokens
        self.timeout = timeout
        self._client: AsyncAnthropic | None = None
        if api_key:
            self._client = AsyncAnthropic(api_key=api_key, timeout=timeout, max_retries=0)

    def estimate_tokens(self, text: str) -> int:
        return estimate_tokens(text)

    def _require_client(self) -> AsyncAnthropic:
        if self._client is None:
            raise CompletionError("ANTHROPIC_API_KEY not configured")
        return self._client

    async def chat(self, system_prompt: str, turns: list[dict[str, str]]) -> str:
        """
        Non-streaming chat completion.

        Args:
            system_prompt: System prompt embedding the PRD body
            turns: Ordered {role, content} dicts, oldest first

        Returns:
            Text of the first content block

        Raises:
            CompletionError: On missing key, provider failure or unexpected shape
        """
        client = self._require_client()

        try:
            response = await client.messages.create(
                model=self.model,
                max_tokens=self.max_tokens,
                system=system_prompt,
                messages=_format_turns(turns),
            )
        except anthropic.APIStatusError as e:
            logger.error(
                "Anthropic API error",
                extra={"status": e.status_code, "body": str(e.body)},
            )
            raise CompletionError(
                "Failed to get response from Claude", e.status_code, str(e.body)
            ) from e
        except _PROVIDER_ERRORS as e:
            logger.error(f"Anthropic request failed: {e}")
            raise CompletionError("Failed to get response from Claude") from e

        return self._first_text(response)

    async def stream_chat(
        self, system_prompt: str, turns: list[dict[str, str]]
    ) -> AsyncIterator[str]:
        """
        Stream a chat completion, yielding text deltas as they arrive.

        Only ``content_block_delta`` text is yielded; lifecycle events
        (message_start, content_block_start, message_delta, ping...) are
        consumed and dropped. Fragments already yielded stay delivered if
        the stream later fails.

        Raises:
            CompletionError: On missing key, open failure or mid-stream failure
        """
        client = self._require_client()

        try:
            async with client.messages.stream(
                model=self.model,
                max_tokens=self.max_tokens,
                system=system_prompt,
                messages=_format_turns(turns),
            ) as stream:
                async for event in stream:
                    if getattr(event, "type", None) != "content_block_delta":
                        continue
                    text = getattr(event.delta, "text", None)
                    if text is not None:
                        yield text
        except anthropic.APIStatusError as e:
            logger.error(
                "Anthropic API error",
                extra={"status": e.status_code, "body": str(e.body)},
            )
            raise CompletionError(
                "Failed to get response from Claude", e.status_code, str(e.body)
            ) from e
        except _PROVIDER_ERRORS as e:
            logger.error(f"Anthropic stream failed: {e}")
            raise CompletionError("Failed to get response from Claude") from e

    async def summarize(self, turns: list[dict[str, str]]) -> str:
        """
        Summarize a PRD conversation for context compression.

        Raises:
            CompletionError: On missing key or provider failure
        """
        client = self._require_client()

        conversation_text = "".join(
            f"{turn['role'].capitalize()}: {turn['content']}\n\n" for turn in turns
        )

        try:
            response = await client.messages.create(
                model=self.summarize_model,
                max_tokens=SUMMARIZE_MAX_TOKENS,
                system=SUMMARIZE_SYSTEM_PROMPT,
                messages=[
                    {
                        "role": "user",
                        "content": f"Summarize this conversation:\n\n{conversation_text}",
                    }
                ],
                timeout=SUMMARIZE_TIMEOUT_SECONDS,
            )
        except _PROVIDER_ERRORS as e:
            logger.error(f"Anthropic summarize error: {e}")
            raise CompletionError("Failed to summarize conversation") from e

        content = getattr(response, "content", None)
        if not content:
            return ""
        return getattr(content[0], "text", None) or ""

    @staticmethod
    def _first_text(response: Any) -> str:
        content = getattr(response, "content", None)
        if not content:
            raise CompletionError("Invalid response format from Claude")

        text = getattr(content[0], "text", None)
        if not isinstance(text, str):
            raise CompletionError("Invalid response format from Claude")
        return text


@lru_cache(maxsize=1)
def get_completion_client() -> CompletionClient:
    """Get the completion client configured from settings (cached singleton)."""
    settings = get_settings()
    return CompletionClient(
        api_key=settings.ANTHROPIC_API_KEY,
        model=settings.ANTHROPIC_MODEL_CHAT,
        summarize_model=settings.ANTHROPIC_MODEL_SUMMARIZE,
        max_tokens=settings.CHAT_MAX_TOKENS,
        timeout=settings.CHAT_TIMEOUT_SECONDS,
    )
