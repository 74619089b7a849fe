"""
FastAPI application — GitHub README generator.

Endpoints:
    GET  /health            → {"status": "ok"}
    POST /generate-readme   → GenerateReadmeResponse
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

from fastapi import Body, FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from readmegen.collector import collect
from readmegen.errors import InvalidInput, ReadmeGenError
from readmegen.gemini_client import GeminiClient
from readmegen.github_client import GitHubClient
from readmegen.logging_config import (
    new_request_id,
    request_id_ctx,
    setup_logging,
)
from readmegen.models import ErrorResponse, GenerateReadmeRequest, GenerateReadmeResponse
from readmegen.settings import Settings, get_settings
from readmegen.synthesizer import synthesize

logger = logging.getLogger("readmegen.main")

GITHUB_URL_REQUIRED = "githubUrl required"


# ── Error helper ───────────────────────────────────────────────
def _error_response(status: int, message: str) -> JSONResponse:
    body = ErrorResponse(error=message)
    return JSONResponse(status_code=status, content=body.model_dump())


def create_app(settings: Settings | None = None) -> FastAPI:
    """Build the application around one explicit ``Settings`` value."""
    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Manage client lifetime."""
        setup_logging(settings.log_level)

        app.state.github_client = GitHubClient(settings)
        app.state.gemini_client = GeminiClient(settings)

        logger.info(
            "Application started (github_token=%s)", bool(settings.github_token),
        )
        if not settings.gemini_api_key:
            logger.warning(
                "GEMINI_API_KEY is not set — README generation will fail. "
                "Set the env var or add it to .env before sending requests."
            )
        yield

        await app.state.github_client.aclose()
        await app.state.gemini_client.aclose()
        logger.info("Application shutdown")

    app = FastAPI(
        title="GitHub README Generator",
        version="1.0.0",
        lifespan=lifespan,
    )
    app.state.settings = settings

    # ── CORS ───────────────────────────────────────────────────
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Middleware: request_id + timing ────────────────────────
    @app.middleware("http")
    async def request_context_middleware(request: Request, call_next):
        rid = new_request_id()
        request_id_ctx.set(rid)
        t0 = time.perf_counter()
        response = await call_next(request)
        elapsed = round((time.perf_counter() - t0) * 1000, 1)
        response.headers["X-Request-Id"] = rid
        logger.info(
            "%s %s → %s (%.1f ms)",
            request.method, request.url.path, response.status_code, elapsed,
        )
        return response

    # Malformed JSON or a non-object body means the field is missing
    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return _error_response(400, GITHUB_URL_REQUIRED)

    # ── Endpoints ──────────────────────────────────────────────
    @app.get("/health")
    async def health():
        return {"status": "ok"}

    @app.post(
        "/generate-readme",
        response_model=GenerateReadmeResponse,
        responses={400: {"model": ErrorResponse}, 500: {"model": ErrorResponse}},
    )
    async def generate_readme(
        request: Request,
        body: GenerateReadmeRequest | None = Body(default=None),
    ):
        try:
            if body is None or not body.github_url:
                raise InvalidInput(GITHUB_URL_REQUIRED)

            collected = await collect(request.app.state.github_client, body.github_url)

            readme = await synthesize(
                request.app.state.gemini_client, collected.metadata, collected.files,
            )
        except ReadmeGenError as exc:
            if exc.status_code >= 500:
                logger.warning("README generation failed: %s", exc)
            return _error_response(exc.status_code, str(exc))
        except Exception as exc:
            logger.exception("Unexpected error generating README")
            return _error_response(500, str(exc))

        return GenerateReadmeResponse(readme=readme)

    return app


app = create_app()
