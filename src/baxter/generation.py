"""Streamed text generation from a local Ollama server."""

from __future__ import annotations

import json
import logging
from typing import AsyncIterator, Protocol

import httpx

from baxter.config import DEFAULT_SYSTEM_PROMPT
from baxter.errors import GenerationError


class GenerationStream(Protocol):
    """Produces a lazy, finite sequence of text fragments for a prompt."""

    def generate(self, prompt: str) -> AsyncIterator[str]:
        """Yield reply fragments in generation order; raise on failure."""


class OllamaGenerationStream:
    """Chat session against Ollama's ``/api/chat`` endpoint.

    The system prompt and every completed exchange are sent with each request,
    so the model sees the whole conversation. A failed turn leaves the history
    untouched.
    """

    def __init__(
        self,
        *,
        url: str,
        model: str,
        system_prompt: str = DEFAULT_SYSTEM_PROMPT,
        timeout_seconds: float = 120.0,
        client: httpx.AsyncClient | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self._url = url
        self._model = model
        self._system_prompt = system_prompt
        self._timeout_seconds = timeout_seconds
        self._client = client or httpx.AsyncClient()
        self._owns_client = client is None
        self._logger = logger or logging.getLogger("baxter.generation")
        self._history: list[dict[str, str]] = []

    @property
    def history(self) -> list[dict[str, str]]:
        return list(self._history)

    def reset(self) -> None:
        self._history.clear()

    def build_messages(self, prompt: str) -> list[dict[str, str]]:
        messages: list[dict[str, str]] = []
        if self._system_prompt:
            messages.append({"role": "system", "content": self._system_prompt})
        messages.extend(self._history)
        messages.append({"role": "user", "content": prompt})
        return messages

    async def generate(self, prompt: str) -> AsyncIterator[str]:
        payload = {"model": self._model, "messages": self.build_messages(prompt), "stream": True}
        reply: list[str] = []
        self._logger.info("generation_started", extra={"model": self._model, "prompt_chars": len(prompt)})

        try:
            async with self._client.stream("POST", self._url, json=payload, timeout=self._timeout_seconds) as response:
                response.raise_for_status()
                async for line in response.aiter_lines():
                    if not line.strip():
                        continue
                    chunk = _decode_chunk(line)
                    if chunk.get("error"):
                        raise GenerationError(f"Ollama reported an error: {chunk['error']}")
                    token = (chunk.get("message") or {}).get("content", "")
                    if token:
                        reply.append(token)
                        yield token
                    if chunk.get("done"):
                        break
        except httpx.ConnectError as exc:
            raise GenerationError(f"Cannot connect to Ollama at {self._url}. Is it running?") from exc
        except httpx.HTTPStatusError as exc:
            raise GenerationError(f"Ollama returned HTTP {exc.response.status_code}") from exc
        except httpx.HTTPError as exc:
            raise GenerationError(f"Ollama request failed: {type(exc).__name__}: {exc}") from exc

        self._history.append({"role": "user", "content": prompt})
        self._history.append({"role": "assistant", "content": "".join(reply)})
        self._logger.info("generation_finished", extra={"reply_chars": sum(len(token) for token in reply)})

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()


def _decode_chunk(line: str) -> dict:
    try:
        chunk = json.loads(line)
    except json.JSONDecodeError as exc:
        raise GenerationError(f"Malformed stream line from Ollama: {line[:80]!r}") from exc
    if not isinstance(chunk, dict):
        raise GenerationError(f"Unexpected stream payload from Ollama: {line[:80]!r}")
    return chunk
