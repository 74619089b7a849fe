"""
Async GitHub REST API client.

Features:
- httpx.AsyncClient with configurable per-call timeouts.
- Retries with exponential backoff on 5xx / network errors.
- 403/429 rate-limit detection (reads X-RateLimit-Reset header).
- Per-path content lookups that report found / not found / error
  explicitly instead of raising.
"""

from __future__ import annotations

import asyncio
import base64
import datetime as _dt
import enum
import logging
from dataclasses import dataclass
from typing import Any

import httpx

from readmegen.errors import NotFound, ProviderError, RateLimitError
from readmegen.settings import Settings
from readmegen.url_parser import RepositoryReference

logger = logging.getLogger("readmegen.github_client")


class FetchStatus(str, enum.Enum):
    FOUND = "found"
    NOT_FOUND = "not_found"
    ERROR = "error"


@dataclass
class FileFetchResult:
    """Outcome of looking up one candidate path."""

    path: str
    status: FetchStatus
    content: str | None = None
    error: str | None = None


def decode_content(encoded: str) -> str:
    """Decode the base64 ``content`` field of a contents-API response.

    GitHub wraps the payload at 60 columns; the line breaks are dropped.
    Bytes that are not valid UTF-8 are replaced rather than rejected.
    """
    raw = base64.b64decode("".join(encoded.split()))
    return raw.decode("utf-8", errors="replace")


# ── Helpers ─────────────────────────────────────────────────────
def _rate_limit_reset(response: httpx.Response) -> int | None:
    """Extract X-RateLimit-Reset header (unix timestamp) if present."""
    val = response.headers.get("x-ratelimit-reset")
    if val:
        try:
            return int(val)
        except ValueError:
            pass
    return None


def _is_rate_limited(response: httpx.Response) -> bool:
    if response.status_code == 429:
        return True
    # GitHub returns 403 with remaining=0 when rate-limited
    return (
        response.status_code == 403
        and response.headers.get("x-ratelimit-remaining") == "0"
    )


# ── Client ──────────────────────────────────────────────────────
class GitHubClient:
    """Async GitHub REST API wrapper."""

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None) -> None:
        self._settings = settings
        headers: dict[str, str] = {
            "Accept": "application/vnd.github+json",
            "User-Agent": "readmegen/1.0",
        }
        if settings.github_token:
            headers["Authorization"] = f"Bearer {settings.github_token}"

        self._client = client or httpx.AsyncClient(
            base_url=settings.github_api_base,
            headers=headers,
            timeout=httpx.Timeout(
                connect=settings.http_connect_timeout,
                read=settings.http_read_timeout,
                write=settings.http_read_timeout,
                pool=settings.http_read_timeout,
            ),
        )

    def _rate_limit_error(self, response: httpx.Response) -> RateLimitError:
        reset_ts = _rate_limit_reset(response)
        hint = " Try again later."
        if reset_ts:
            reset_dt = _dt.datetime.fromtimestamp(reset_ts, tz=_dt.timezone.utc)
            hint = f" Try again after {reset_dt.strftime('%Y-%m-%d %H:%M:%S UTC')}."

        token_hint = ""
        if not self._settings.github_token:
            token_hint = " Set GITHUB_TOKEN for higher limits."

        return RateLimitError(
            f"GitHub rate limit hit.{hint}{token_hint}",
            reset_timestamp=reset_ts,
            body=response.text,
        )

    # ── Low-level request with retries ─────────────────────────
    async def _request(self, method: str, path: str) -> httpx.Response:
        """Fire an HTTP request with retry + backoff on transient failures.

        Returns the response for any status below 500 except rate limiting;
        callers decide what a 404 means for them.
        """
        max_retries = self._settings.http_max_retries
        last_exc: Exception | None = None
        for attempt in range(1, max_retries + 1):
            try:
                resp = await self._client.request(method, path)
            except httpx.TransportError as exc:
                last_exc = exc
                logger.warning(
                    "GitHub request %s failed (attempt %d/%d): %s",
                    path, attempt, max_retries, exc,
                )
            else:
                if _is_rate_limited(resp):
                    raise self._rate_limit_error(resp)
                if resp.status_code < 500:
                    return resp
                last_exc = ProviderError(
                    f"GitHub returned {resp.status_code} for {path}", body=resp.text,
                )
                logger.warning(
                    "GitHub returned %d for %s (attempt %d/%d)",
                    resp.status_code, path, attempt, max_retries,
                )

            if attempt < max_retries:
                await self._backoff(attempt)

        if isinstance(last_exc, ProviderError):
            raise last_exc
        raise ProviderError(
            f"GitHub request failed after {max_retries} attempts: {last_exc}"
        ) from last_exc

    async def _backoff(self, attempt: int) -> None:
        await asyncio.sleep(self._settings.http_backoff_base * (2 ** (attempt - 1)))

    # ── High-level fetch methods ───────────────────────────────
    async def fetch_repo(self, ref: RepositoryReference) -> dict[str, Any]:
        """Fetch repository metadata, passed through unmodified."""
        resp = await self._request("GET", f"/repos/{ref.owner}/{ref.name}")
        if resp.status_code == 404:
            raise NotFound(f"GitHub repo not found: {ref.full_name}")
        if not resp.is_success:
            raise ProviderError(
                f"GitHub error {resp.status_code} for {ref.full_name}: {resp.text}",
                body=resp.text,
            )
        return resp.json()

    async def fetch_file(self, ref: RepositoryReference, path: str) -> FileFetchResult:
        """Look up one path via the contents API. Never raises."""
        try:
            resp = await self._request(
                "GET", f"/repos/{ref.owner}/{ref.name}/contents/{path}"
            )
        except (ProviderError, httpx.HTTPError) as exc:
            return FileFetchResult(path, FetchStatus.ERROR, error=str(exc))

        if resp.status_code == 404:
            return FileFetchResult(path, FetchStatus.NOT_FOUND)
        if not resp.is_success:
            return FileFetchResult(
                path, FetchStatus.ERROR,
                error=f"GitHub returned {resp.status_code}",
            )

        try:
            data = resp.json()
        except ValueError as exc:
            return FileFetchResult(path, FetchStatus.ERROR, error=f"invalid JSON: {exc}")

        # A directory yields a listing; submodules and symlinks carry no content
        encoded = data.get("content") if isinstance(data, dict) else None
        if not isinstance(encoded, str) or not encoded:
            return FileFetchResult(path, FetchStatus.NOT_FOUND)

        try:
            content = decode_content(encoded)
        except ValueError as exc:
            return FileFetchResult(path, FetchStatus.ERROR, error=f"bad base64: {exc}")
        return FileFetchResult(path, FetchStatus.FOUND, content=content)

    async def aclose(self) -> None:
        await self._client.aclose()
