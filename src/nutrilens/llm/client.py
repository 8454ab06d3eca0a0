"""Async OpenAI-compatible chat client with bounded retries."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Literal, Protocol, Sequence

from openai import AsyncOpenAI

from nutrilens.config import Settings
from nutrilens.logging import get_logger

logger = get_logger(__name__)

Role = Literal["system", "user", "assistant"]


@dataclass(frozen=True)
class ChatMessage:
    """A chat message."""

    role: Role
    content: str


class LLMError(RuntimeError):
    """Raised when a completion could not be obtained."""


class ChatCompleter(Protocol):
    """Text-generation capability used by the synthesis stage."""

    async def complete(
        self,
        messages: Sequence[ChatMessage],
        *,
        temperature: float = 0.2,
        max_tokens: int | None = None,
    ) -> str: ...


class LLMClient:
    """LLM client using the OpenAI-compatible Chat Completions API."""

    def __init__(
        self,
        settings: Settings,
        *,
        max_retries: int | None = None,
        retry_backoff: float = 1.0,
        client: AsyncOpenAI | None = None,
    ) -> None:
        """Initialize client.

        Args:
            settings: Application settings.
            max_retries: Retry attempts after the first call (defaults to settings).
            retry_backoff: Backoff multiplier for retries.
            client: Pre-built SDK client.
        """
        self._settings = settings
        if client is None:
            if not settings.openai_api_key:
                raise ValueError(
                    "Missing NUTRILENS_OPENAI_API_KEY. "
                    "Set it in environment variables or a .env file."
                )
            # Retries are handled here so they are logged with our context.
            client = AsyncOpenAI(
                api_key=settings.openai_api_key,
                base_url=settings.openai_base_url,
                max_retries=0,
            )
        self._client = client
        self._max_retries = settings.llm_max_retries if max_retries is None else max_retries
        self._retry_backoff = retry_backoff

    async def complete(
        self,
        messages: Sequence[ChatMessage],
        *,
        temperature: float = 0.2,
        max_tokens: int | None = None,
    ) -> str:
        """Generate a completion.

        Args:
            messages: Chat messages.
            temperature: Sampling temperature.
            max_tokens: Maximum tokens to generate.

        Returns:
            Assistant message content.

        Raises:
            LLMError: If every attempt failed.
        """

        payload: list[dict[str, str]] = [{"role": m.role, "content": m.content} for m in messages]

        last_error: Exception | None = None
        for attempt in range(self._max_retries + 1):
            try:
                start_time = time.monotonic()
                resp = await self._client.chat.completions.create(
                    model=self._settings.openai_model,
                    messages=payload,
                    temperature=temperature,
                    max_tokens=max_tokens,
                    timeout=self._settings.openai_timeout_s,
                )

                logger.debug(
                    "LLM completion successful",
                    extra={
                        "model": self._settings.openai_model,
                        "latency_ms": int((time.monotonic() - start_time) * 1000),
                        "tokens": resp.usage.total_tokens if resp.usage else None,
                    },
                )

                choice = resp.choices[0]
                if not choice.message or choice.message.content is None:
                    return ""
                return choice.message.content

            except Exception as e:
                last_error = e

                if attempt < self._max_retries:
                    wait_time = self._retry_backoff * (2**attempt)
                    logger.warning(
                        "LLM request failed, retrying",
                        extra={
                            "attempt": attempt + 1,
                            "max_retries": self._max_retries,
                            "wait_time": wait_time,
                            "error": str(e),
                        },
                    )
                    await asyncio.sleep(wait_time)

        raise LLMError(f"LLM request failed after {self._max_retries} retries: {last_error}") from last_error
