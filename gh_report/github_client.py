"""Async GitHub client supporting both REST and GraphQL with rate-limit handling."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from datetime import datetime
from typing import Any

import httpx

from gh_report.config import (
    GITHUB_API_BASE,
    GITHUB_TOKEN,
    GRAPHQL_URL,
    RATE_LIMIT_BUFFER,
    REQUEST_TIMEOUT,
    RETRY_BACKOFF,
    RETRY_MAX,
)
from gh_report.exceptions import GitHubAPIError

logger = logging.getLogger(__name__)


class GitHubClient:
    """Unified async GitHub client for REST and GraphQL with automatic retries.

    One instance is shared by every concurrent task of a collection run;
    ``httpx.AsyncClient`` pools connections across them.
    """

    def __init__(
        self,
        token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._token = token or GITHUB_TOKEN
        if not self._token:
            raise ValueError(
                "GITHUB_TOKEN is required. Set it as an environment variable."
            )
        self._client = httpx.AsyncClient(
            headers={
                "Authorization": f"Bearer {self._token}",
                "Accept": "application/vnd.github+json",
            },
            timeout=REQUEST_TIMEOUT,
            transport=transport,
        )
        self._remaining: int = 5000
        self._reset_at: float = 0.0

    # ── GraphQL ─────────────────────────────────────────────────────────

    async def graphql(
        self,
        query: str,
        variables: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Execute a GraphQL query.

        Returns the ``data`` dict from the response.
        """
        payload: dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        resp = await self._send("POST", GRAPHQL_URL, json=payload)
        body = resp.json()

        if body.get("errors"):
            error_msg = "; ".join(
                e.get("message", str(e)) for e in body["errors"]
            )
            raise GitHubAPIError(f"GraphQL errors: {error_msg}")

        return body.get("data") or {}

    # ── REST ────────────────────────────────────────────────────────────

    async def rest_get(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
    ) -> Any:
        """Send a GET request to the GitHub REST API and return parsed JSON."""
        resp = await self._send("GET", f"{GITHUB_API_BASE}{endpoint}", params=params)
        return resp.json()

    async def paginate(
        self,
        endpoint: str,
        params: dict[str, Any] | None = None,
    ) -> AsyncIterator[list[dict[str, Any]]]:
        """Yield each page of a list endpoint, following ``Link: rel="next"``.

        Callers may stop iterating early; no further pages are requested.
        """
        url: str | None = f"{GITHUB_API_BASE}{endpoint}"
        page_params = params
        page = 1
        while url is not None:
            resp = await self._send("GET", url, params=page_params)
            items = resp.json()
            logger.debug("GET %s page %d: %d items", endpoint, page, len(items))
            yield items

            next_link = resp.links.get("next")
            url = next_link["url"] if next_link else None
            # The next URL already carries the query string.
            page_params = None
            page += 1

    # ── Transport ───────────────────────────────────────────────────────

    async def _send(self, method: str, url: str, **kwargs: Any) -> httpx.Response:
        """Send one request, retrying transport errors and rate-limit responses."""
        for attempt in range(1, RETRY_MAX + 1):
            await self._wait_if_rate_limited()

            try:
                resp = await self._client.request(method, url, **kwargs)
            except httpx.TransportError as exc:
                logger.warning(
                    "Transport error (attempt %d/%d): %s", attempt, RETRY_MAX, exc
                )
                if attempt == RETRY_MAX:
                    raise GitHubAPIError(
                        f"All {RETRY_MAX} retries exhausted: {exc}"
                    ) from exc
                await asyncio.sleep(RETRY_BACKOFF ** attempt)
                continue

            self._track_rate_limit(resp)

            if resp.status_code == 429 or (
                resp.status_code == 403 and self._remaining == 0
            ):
                if attempt == RETRY_MAX:
                    break
                await self._handle_rate_limit_response(resp, attempt)
                continue

            if resp.is_error:
                raise GitHubAPIError(
                    f"GitHub API error: {resp.status_code} {resp.reason_phrase} "
                    f"for {method} {url}: {resp.text[:200]}",
                    status_code=resp.status_code,
                )
            return resp

        raise GitHubAPIError(f"All {RETRY_MAX} retries exhausted for {method} {url}")

    # ── Rate-limit helpers ──────────────────────────────────────────────

    def _track_rate_limit(self, resp: httpx.Response) -> None:
        """Update rate-limit state from REST headers."""
        remaining = resp.headers.get("X-RateLimit-Remaining")
        reset_ts = resp.headers.get("X-RateLimit-Reset")
        if remaining is not None:
            self._remaining = int(remaining)
        if reset_ts is not None:
            self._reset_at = float(reset_ts)

    async def _wait_if_rate_limited(self) -> None:
        """Sleep if remaining API points are below the safety buffer."""
        if self._remaining < RATE_LIMIT_BUFFER:
            wait = max(0, self._reset_at - time.time()) + 5
            logger.info(
                "Rate limit low (%d remaining). Sleeping %.0fs until %s.",
                self._remaining,
                wait,
                datetime.fromtimestamp(self._reset_at).isoformat(timespec="seconds"),
            )
            await asyncio.sleep(wait)
            # Only one sleep per reset window; the next response refreshes this.
            self._remaining = RATE_LIMIT_BUFFER

    async def _handle_rate_limit_response(
        self, resp: httpx.Response, attempt: int
    ) -> None:
        """Handle an HTTP 403/429 rate-limit response."""
        retry_after = int(resp.headers.get("Retry-After", "60"))
        logger.warning(
            "Rate limited (HTTP %d). Sleeping %ds (attempt %d/%d).",
            resp.status_code,
            retry_after,
            attempt,
            RETRY_MAX,
        )
        await asyncio.sleep(retry_after)

    # ── Context manager ─────────────────────────────────────────────────

    async def close(self) -> None:
        """Close the underlying HTTP client."""
        await self._client.aclose()

    async def __aenter__(self) -> GitHubClient:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.close()
