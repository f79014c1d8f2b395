"""FastAPI gateway in front of the Gemini text-generation API.

Endpoints:
- GET /health
- POST /generate  { "prompt": "..." }
"""
from __future__ import annotations
import json
import logging
import time
from contextlib import asynccontextmanager
from typing import AsyncIterator, Protocol

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from gemini_gateway.common.config import Settings
from gemini_gateway.common.schema import ErrorBody, GenerationResult, HealthStatus, now_iso
from gemini_gateway.common.validation import trim_prompt, validate_prompt
from gemini_gateway.serve.middleware import (
    BodySizeLimitMiddleware,
    RequestLogMiddleware,
    UnhandledErrorMiddleware,
    unexpected_error,
)
from gemini_gateway.serve.provider import GenerationClient, ProviderError, ProviderErrorKind

LOGGER = logging.getLogger("gemini_gateway.serve.app")

# status, error label, caller-facing message
PROVIDER_ERROR_RESPONSES: dict[ProviderErrorKind, tuple[int, str, str]] = {
    ProviderErrorKind.AUTH: (401, "Authentication failed", "Invalid or expired API key"),
    ProviderErrorKind.QUOTA_EXCEEDED: (
        429,
        "Quota exceeded",
        "API quota has been exceeded. Please try again later.",
    ),
    ProviderErrorKind.CONTENT_FILTERED: (
        400,
        "Content filtered",
        "The prompt was blocked due to safety concerns. Please modify your request.",
    ),
    ProviderErrorKind.UNKNOWN: (
        500,
        "Internal server error",
        "Failed to generate content. Please try again later.",
    ),
}


class TextGenerator(Protocol):
    async def generate(self, sanitized_prompt: str) -> str: ...


class RequestBodyError(Exception):
    """The body is too large or is not a JSON object/array."""


def _error(status_code: int, error: str, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorBody.build(error, message).model_dump())


def _is_json(request: Request) -> bool:
    media_type = request.headers.get("content-type", "").split(";")[0].strip().lower()
    return media_type == "application/json"


async def _read_body(request: Request, max_bytes: int) -> bytes:
    """Read the body, giving up as soon as more than ``max_bytes`` arrived."""
    chunks: list[bytes] = []
    received = 0
    async for chunk in request.stream():
        received += len(chunk)
        if received > max_bytes:
            raise RequestBodyError(f"request body exceeds the limit of {max_bytes} bytes")
        chunks.append(chunk)
    return b"".join(chunks)


async def _read_prompt(request: Request, max_bytes: int) -> object:
    """Return the raw ``prompt`` value, ``None`` when the body or field is absent.

    Only ``application/json`` bodies are parsed, and only objects and arrays are
    accepted at the top level.
    """
    if not _is_json(request):
        return None
    raw = await _read_body(request, max_bytes)
    if not raw:
        return None
    try:
        payload = json.loads(raw)
    except ValueError as e:
        raise RequestBodyError(f"malformed JSON body: {e}") from e
    if isinstance(payload, dict):
        return payload.get("prompt")
    if isinstance(payload, list):
        return None
    raise RequestBodyError(f"JSON body must be an object or array, got {type(payload).__name__}")


def create_app(settings: Settings, client: TextGenerator | None = None) -> FastAPI:
    """
    Build the gateway application.

    Args:
        settings: Startup configuration; the credential is assumed validated.
        client: Generation backend; a GenerationClient for ``settings`` when omitted.
    """
    generator: TextGenerator = client or GenerationClient(settings.api_key, settings.model_id)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        LOGGER.info("Gateway ready (model=%s, version=%s)", settings.model_id, settings.version)
        yield
        LOGGER.info("Gateway stopped")

    app = FastAPI(title="Gemini Gateway", version=settings.version, lifespan=lifespan)
    app.state.settings = settings
    app.state.started_at = time.monotonic()

    # Last added is outermost: CORS, request log, catch-all, then the size cap.
    app.add_middleware(BodySizeLimitMiddleware, max_bytes=settings.max_body_bytes)
    app.add_middleware(UnhandledErrorMiddleware)
    app.add_middleware(RequestLogMiddleware)
    app.add_middleware(CORSMiddleware, allow_origins=["*"], allow_methods=["*"], allow_headers=["*"])

    @app.get("/health", response_model=HealthStatus)
    def health() -> HealthStatus:
        return HealthStatus(
            timestamp=now_iso(),
            uptime=time.monotonic() - app.state.started_at,
            version=settings.version,
        )

    @app.post("/generate", response_model=GenerationResult)
    async def generate(request: Request) -> GenerationResult | JSONResponse:
        try:
            prompt = await _read_prompt(request, settings.max_body_bytes)
        except RequestBodyError as e:
            LOGGER.error("Rejected request body: %s", e)
            return unexpected_error()

        validation = validate_prompt(prompt)
        if not validation.valid:
            return _error(400, "Invalid input", validation.message or "Invalid prompt")

        sanitized = trim_prompt(prompt)  # type: ignore[arg-type]
        LOGGER.info("Processing request with prompt length: %d", len(sanitized))

        try:
            text = await generator.generate(sanitized)
        except ProviderError as e:
            status, label, message = PROVIDER_ERROR_RESPONSES[e.kind]
            LOGGER.error("Provider call failed (%s): %s", e.kind.value, e.detail)
            return _error(status, label, message)

        return GenerationResult(
            generated_text=text,
            prompt_length=len(sanitized),
            timestamp=now_iso(),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
        # Unsupported methods on known paths are reported like unknown routes.
        if exc.status_code in (404, 405):
            target = request.url.path
            if request.url.query:
                target = f"{target}?{request.url.query}"
            return _error(404, "Not found", f"Route {request.method} {target} not found")
        return _error(exc.status_code, "Request failed", str(exc.detail))

    return app
