"""Minimal Anthropic Messages API client used to turn the summary prompt into prose."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from gh_report.config import (
    AI_REQUEST_TIMEOUT,
    ANTHROPIC_DEFAULT_BASE_URL,
    ANTHROPIC_VERSION,
    DEFAULT_MODEL,
    MAX_TOKENS,
)
from gh_report.exceptions import SummaryGenerationError

logger = logging.getLogger(__name__)


class AnthropicClient:
    """Sends a single-turn prompt and returns the concatenated text reply."""

    def __init__(
        self,
        api_key: str,
        model: str = DEFAULT_MODEL,
        base_url: str | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        if not api_key:
            raise ValueError("An Anthropic API key is required.")
        self.model = model or DEFAULT_MODEL
        self._client = httpx.Client(
            base_url=(base_url or ANTHROPIC_DEFAULT_BASE_URL).rstrip("/"),
            headers={
                "x-api-key": api_key,
                "anthropic-version": ANTHROPIC_VERSION,
                "content-type": "application/json",
            },
            timeout=AI_REQUEST_TIMEOUT,
            transport=transport,
        )

    def create_message(self, prompt: str, max_tokens: int = MAX_TOKENS) -> str:
        """Send *prompt* as one user message and return the reply text.

        Raises:
            SummaryGenerationError: On transport failure, a non-200 status or
                an ``error`` object in the response body.
        """
        payload: dict[str, Any] = {
            "model": self.model,
            "max_tokens": max_tokens,
            "messages": [{"role": "user", "content": prompt}],
        }
        logger.info("Requesting summary from %s (%d prompt chars)", self.model, len(prompt))

        try:
            resp = self._client.post("/v1/messages", json=payload)
        except httpx.HTTPError as exc:
            raise SummaryGenerationError(f"sending request: {exc}") from exc

        if resp.status_code != 200:
            raise SummaryGenerationError(
                f"API returned status {resp.status_code}: {resp.text}"
            )

        try:
            body = resp.json()
        except ValueError as exc:
            raise SummaryGenerationError(f"parsing response: {exc}") from exc

        error = body.get("error")
        if error:
            raise SummaryGenerationError(
                f"API error ({error.get('type', 'unknown')}): {error.get('message', '')}"
            )

        return "".join(
            block.get("text", "")
            for block in body.get("content") or []
            if block.get("type") == "text"
        )

    # ── Context manager ─────────────────────────────────────────────────

    def close(self) -> None:
        """Close the underlying HTTP client."""
        self._client.close()

    def __enter__(self) -> AnthropicClient:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
