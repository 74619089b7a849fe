"""
Gemini REST API client.

Talks to the Generative Language API directly over httpx:
- ``GET  /models``                     → model listing (all pages)
- ``POST /{model}:generateContent``    → single-prompt generation

The API key travels in the ``x-goog-api-key`` header so it never shows
up in URLs or logs.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from readmegen.errors import ProviderError
from readmegen.settings import Settings

logger = logging.getLogger("readmegen.gemini_client")


class GeminiClient:
    """Async wrapper around the Gemini model-listing and generation endpoints."""

    def __init__(self, settings: Settings, client: httpx.AsyncClient | None = None) -> None:
        self._settings = settings
        headers = {"Content-Type": "application/json"}
        if settings.gemini_api_key:
            headers["x-goog-api-key"] = settings.gemini_api_key

        self._client = client or httpx.AsyncClient(
            base_url=settings.gemini_api_base,
            headers=headers,
            timeout=httpx.Timeout(
                connect=settings.http_connect_timeout,
                read=settings.llm_read_timeout,
                write=settings.http_read_timeout,
                pool=settings.http_read_timeout,
            ),
        )

    @property
    def configured(self) -> bool:
        return bool(self._settings.gemini_api_key)

    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        try:
            return await self._client.request(method, path, **kwargs)
        except httpx.TransportError as exc:
            raise ProviderError(f"Gemini request to {path} failed: {exc}") from exc

    async def list_models(self) -> list[dict[str, Any]]:
        """Return every listed model in the order the API reports them."""
        models: list[dict[str, Any]] = []
        params: dict[str, str] = {}
        while True:
            resp = await self._send("GET", "/models", params=params)
            if not resp.is_success:
                raise ProviderError("Gemini ListModels error: " + resp.text, body=resp.text)

            data = resp.json()
            page = data.get("models")
            if isinstance(page, list):
                models.extend(page)

            token = data.get("nextPageToken")
            if not token:
                return models
            params = {"pageToken": token}

    async def generate_content(self, model: str, prompt: str) -> dict[str, Any]:
        """Run one generation request and return the raw response body.

        ``model`` is the resource name from the listing, e.g.
        ``models/gemini-1.5-flash``.
        """
        payload: dict[str, Any] = {"contents": [{"parts": [{"text": prompt}]}]}
        generation_config: dict[str, Any] = {}
        if self._settings.gemini_temperature is not None:
            generation_config["temperature"] = self._settings.gemini_temperature
        if self._settings.gemini_max_output_tokens is not None:
            generation_config["maxOutputTokens"] = self._settings.gemini_max_output_tokens
        if generation_config:
            payload["generationConfig"] = generation_config

        resp = await self._send("POST", f"/{model}:generateContent", json=payload)
        if not resp.is_success:
            logger.error("Gemini API error (%d): %s", resp.status_code, resp.text[:500])
            raise ProviderError("Gemini API error: " + resp.text, body=resp.text)
        return resp.json()

    async def aclose(self) -> None:
        await self._client.aclose()
