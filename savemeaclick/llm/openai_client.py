"""OpenAI Chat Completions client.

Sends a system + user prompt pair and returns the completion text, either
from a single JSON response or by accumulating an SSE token stream.

Resilience:
  - Fixed per-request timeout
  - Bounded retries with exponential backoff on timeouts, connection errors,
    429 and 5xx
  - Other 4xx responses fail immediately
"""

from __future__ import annotations

import asyncio
import json
import logging
import time
from dataclasses import dataclass

import httpx

from savemeaclick.core.exceptions import GenerationError
from savemeaclick.core.metrics import LLM_DURATION

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "gpt-4o"
DEFAULT_BASE_URL = "https://api.openai.com/v1"

_RETRYABLE_STATUS = frozenset({429, 500, 502, 503, 504, 529})
_MAX_RETRY_DELAY = 30.0
_SSE_PREFIX = "data:"
_SSE_DONE = "[DONE]"


@dataclass
class Completion:
    """Completion text plus the bits of metadata callers report on."""

    text: str
    model: str
    chunks: int = 0  # SSE chunks received; 0 for non-streamed calls
    retry_count: int = 0
    latency_ms: int = 0


class _RetryableError(Exception):
    """Transient failure; the request may succeed if sent again."""


class OpenAIClient:
    """Minimal async client for the OpenAI Chat Completions API."""

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 90.0,
        max_retries: int = 3,
        base_retry_delay: float = 1.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        """
        Args:
            api_key: OpenAI API key
            model: Chat model name
            base_url: API root, without the trailing ``/chat/completions``
            timeout: Per-attempt request timeout in seconds
            max_retries: Retries after the first attempt on transient failures
            base_retry_delay: Backoff base; attempt N waits base * 2**N seconds
            transport: Custom httpx transport (tests)
        """
        self.api_key = api_key
        self.model = model
        self.api_url = f"{base_url.rstrip('/')}/chat/completions"
        self.timeout = timeout
        self.max_retries = max_retries
        self.base_retry_delay = base_retry_delay
        self._transport = transport

    async def complete(
        self,
        system_prompt: str,
        user_prompt: str,
        *,
        stream: bool = False,
        max_tokens: int | None = None,
    ) -> Completion:
        """Return the completion for a prompt pair.

        Raises:
            GenerationError: on a non-retryable error, after the retry budget
                is exhausted, or when the model returns no text.
        """
        payload: dict = {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt},
            ],
        }
        if max_tokens:
            payload["max_tokens"] = max_tokens
        if stream:
            payload["stream"] = True

        start = time.monotonic()
        last_error = ""

        for attempt in range(self.max_retries + 1):
            try:
                async with httpx.AsyncClient(timeout=self.timeout, transport=self._transport) as client:
                    if stream:
                        completion = await self._send_streaming(client, payload)
                    else:
                        completion = await self._send(client, payload)
            except _RetryableError as e:
                last_error = str(e)
            except httpx.TimeoutException:
                last_error = f"Timeout after {self.timeout}s"
            except httpx.TransportError as e:
                last_error = f"Connection error: {e}"
            else:
                completion.retry_count = attempt
                completion.latency_ms = int((time.monotonic() - start) * 1000)
                LLM_DURATION.labels(model=self.model, streamed=str(stream).lower()).observe(
                    completion.latency_ms / 1000
                )
                if not completion.text.strip():
                    logger.error("OpenAI returned an empty completion (model=%s)", completion.model)
                    raise GenerationError("Failed to get response from OpenAI: empty completion")
                return completion

            if attempt >= self.max_retries:
                break

            delay = min(self.base_retry_delay * 2**attempt, _MAX_RETRY_DELAY)
            logger.warning(
                "OpenAI: retryable error (attempt %d/%d), retrying in %.1fs: %s",
                attempt + 1,
                self.max_retries,
                delay,
                last_error,
            )
            await asyncio.sleep(delay)

        logger.error("OpenAI: giving up after %d attempts: %s", self.max_retries + 1, last_error)
        raise GenerationError(f"Failed to get response from OpenAI: {last_error}")

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.api_key}",
            "Content-Type": "application/json",
        }

    async def _send(self, client: httpx.AsyncClient, payload: dict) -> Completion:
        resp = await client.post(self.api_url, json=payload, headers=self._headers())
        self._check_status(resp.status_code, resp.text)
        try:
            data = resp.json()
            text = data["choices"][0]["message"]["content"] or ""
        except (ValueError, KeyError, IndexError, TypeError):
            raise GenerationError("Malformed completion payload from OpenAI")

        return Completion(text=text, model=data.get("model", self.model))

    async def _send_streaming(self, client: httpx.AsyncClient, payload: dict) -> Completion:
        parts: list[str] = []
        chunks = 0
        model = self.model

        async with client.stream("POST", self.api_url, json=payload, headers=self._headers()) as resp:
            if resp.status_code >= 400:
                body = (await resp.aread()).decode("utf-8", errors="replace")
                self._check_status(resp.status_code, body)

            async for line in resp.aiter_lines():
                line = line.strip()
                if not line.startswith(_SSE_PREFIX):
                    continue
                data = line[len(_SSE_PREFIX) :].strip()
                if data == _SSE_DONE:
                    break
                try:
                    event = json.loads(data)
                except json.JSONDecodeError:
                    logger.debug("Skipping undecodable SSE chunk: %r", data[:200])
                    continue

                chunks += 1
                model = event.get("model", model)
                choices = event.get("choices") or []
                if choices:
                    delta = choices[0].get("delta") or {}
                    parts.append(delta.get("content") or "")
                logger.debug("Received chunk %d from OpenAI", chunks)

        return Completion(text="".join(parts), model=model, chunks=chunks)

    def _check_status(self, status_code: int, body: str) -> None:
        """Raise for an error status: retryable or fatal."""
        if status_code < 400:
            return

        try:
            error_msg = json.loads(body).get("error", {}).get("message", body[:500])
        except (ValueError, AttributeError):
            error_msg = body[:500]

        if status_code in _RETRYABLE_STATUS:
            raise _RetryableError(f"OpenAI API {status_code}: {error_msg}")

        logger.error("OpenAI API %d for model=%s: %s", status_code, self.model, error_msg)
        raise GenerationError(f"OpenAI API {status_code}: {error_msg}")
