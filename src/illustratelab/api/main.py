"""IllustrateLab — FastAPI Application.

This module is the single entry point for the web application.  It defines
the FastAPI ``app`` instance, all REST API routes, and the ``main()`` CLI
function that launches the uvicorn server.

Architecture
------------
The application follows a stateless REST pattern:

- **Configuration** comes from :data:`illustratelab.core.config.config` and
  is served to the frontend (option sets, defaults, provider availability)
  via ``GET /api/config``.
- **Image generation** tries the remote provider chain for PNG requests and
  falls back to the deterministic placeholder SVG otherwise.
- **History** lives only in the browser; the server keeps no per-request
  state.
- **Static assets** (CSS, JS) are served by FastAPI's ``StaticFiles``.
- **The HTML page** is served as a raw ``HTMLResponse``.

Endpoints
---------
========  ============================  ====================================
Method    Path                          Purpose
========  ============================  ====================================
GET       ``/``                         Serve the main HTML page
GET       ``/api/config``               Options, defaults, provider status
POST      ``/api/generate``             Generate an illustration
POST      ``/api/prompt/compile``       Preview the provider prompt
========  ============================  ====================================

Error Responses
---------------
Every failure uses the ``{"ok": false, "error": "..."}`` envelope:

- malformed JSON → 400 ``Invalid JSON body.``
- schema or constraint violation → 400 with a fixed explanatory message
- unexpected exception during generation → 500
  ``Generation failed: <message>``

Usage
-----
CLI (installed entry point)::

    illustratelab

Direct invocation::

    python -m illustratelab.api.main
"""

from __future__ import annotations

import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import HTMLResponse, JSONResponse
from fastapi.staticfiles import StaticFiles
from pydantic import ValidationError

from illustratelab import __version__
from illustratelab.api.models import (
    COMPLEXITY_OPTIONS,
    DEFAULT_REQUEST,
    ILLUSTRATION_TYPES,
    INVALID_BODY_MESSAGE,
    INVALID_JSON_MESSAGE,
    OUTPUT_OPTIONS,
    STYLE_OPTIONS,
    GenerateFailure,
    GenerateRequest,
    GenerateSuccess,
)
from illustratelab.api.placeholder import create_placeholder_svg, svg_to_data_url
from illustratelab.api.prompt_builder import build_provider_prompt
from illustratelab.api.providers import ProviderChain, build_provider_chain
from illustratelab.core.config import config

logger = logging.getLogger(__name__)


class GenerationError(Exception):
    """Unexpected failure while producing an illustration."""


# ---------------------------------------------------------------------------
# Application lifecycle — shared HTTP client and provider chain.
# ---------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Manage application startup and shutdown lifecycle.

    On startup:
        Opens one ``httpx.AsyncClient`` for all outbound provider calls and
        builds the provider chain from the global configuration.

    On shutdown:
        Closes the HTTP client.

    Args:
        app: The FastAPI application instance.

    Yields:
        Control back to the application for the duration of its lifetime.
    """
    # --- Startup -----------------------------------------------------------
    app.state.http_client = httpx.AsyncClient(timeout=config.provider_timeout)
    app.state.provider_chain = build_provider_chain(config, app.state.http_client)
    logger.info("HTTP client opened for provider calls.")

    yield  # Application runs here.

    # --- Shutdown ----------------------------------------------------------
    await app.state.http_client.aclose()
    logger.info("HTTP client closed on shutdown.")


# ---------------------------------------------------------------------------
# FastAPI application instance.
# ---------------------------------------------------------------------------
app = FastAPI(
    title="IllustrateLab",
    description="Illustration generation API with remote providers and a local placeholder.",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.mount("/static", StaticFiles(directory=str(config.static_dir)), name="static")


# ---------------------------------------------------------------------------
# Error envelopes.
# ---------------------------------------------------------------------------


def _failure(error: str, status_code: int) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=GenerateFailure(error=error).model_dump(by_alias=True),
    )


@app.exception_handler(RequestValidationError)
async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Map request validation failures to the fixed 400 messages.

    Undecodable JSON gets its own message; every other schema or constraint
    violation shares one, so clients never see partial field diagnostics.
    """
    errors = exc.errors()
    if any(error.get("type") == "json_invalid" for error in errors):
        message = INVALID_JSON_MESSAGE
    else:
        message = INVALID_BODY_MESSAGE
    logger.info(f"Rejected {request.url.path}: {len(errors)} validation error(s)")
    return _failure(message, 400)


@app.exception_handler(GenerationError)
async def generation_error_handler(request: Request, exc: GenerationError) -> JSONResponse:
    """Return 500 with the underlying message embedded."""
    return _failure(f"Generation failed: {exc}", 500)


# ---------------------------------------------------------------------------
# Generation helpers.
# ---------------------------------------------------------------------------


async def _read_generate_request(request: Request) -> GenerateRequest:
    """Decode the body as JSON whatever its Content-Type, then validate it.

    Raises:
        RequestValidationError: ``json_invalid`` when the body is empty or
            not JSON, otherwise pydantic's errors for schema violations.
    """
    body = await request.body()
    try:
        payload = json.loads(body)
    except ValueError as e:
        raise RequestValidationError(
            [{"type": "json_invalid", "loc": ("body",), "msg": "JSON decode error", "input": {}}]
        ) from e

    try:
        return GenerateRequest.model_validate(payload)
    except ValidationError as e:
        raise RequestValidationError(e.errors(), body=payload) from e


def _provider_prompt(req: GenerateRequest) -> str:
    """Return the text sent to remote providers for *req*."""
    if config.compose_provider_prompt:
        return build_provider_prompt(req)
    return req.prompt


def _placeholder_response(req: GenerateRequest) -> GenerateSuccess:
    svg = create_placeholder_svg(req)
    return GenerateSuccess(mode="mock", svg=svg, png_data_url=svg_to_data_url(svg))


async def _generate(req: GenerateRequest, chain: ProviderChain) -> GenerateSuccess:
    """Run the provider chain when requested, else render the placeholder."""
    if req.output == "png" and not req.force_mock:
        result = await chain.run(_provider_prompt(req))
        if result is not None:
            return GenerateSuccess(mode=result.mode, png_data_url=result.png_data_url)
        logger.info("No provider produced an image; serving placeholder.")

    return _placeholder_response(req)


# ---------------------------------------------------------------------------
# Routes.
# ---------------------------------------------------------------------------


@app.get("/", response_class=HTMLResponse)
async def index() -> HTMLResponse:
    """Serve the main application HTML page.

    All dynamic data is fetched by the frontend JavaScript via
    ``GET /api/config`` on page load.

    Raises:
        HTTPException: 404 if ``index.html`` is not found.
    """
    index_path = config.templates_dir / "index.html"
    if index_path.exists():
        return HTMLResponse(content=index_path.read_text(encoding="utf-8"))
    raise HTTPException(status_code=404, detail="index.html not found")


@app.get("/api/config")
async def get_config() -> dict:
    """Return the configuration the frontend needs to render the form.

    Returns:
        Dictionary with ``version``, the four option lists, ``defaults``
        (initial form values in wire format) and ``providers`` (which remote
        providers have credentials).
    """
    return {
        "version": __version__,
        "illustration_types": list(ILLUSTRATION_TYPES),
        "style_options": list(STYLE_OPTIONS),
        "complexity_options": list(COMPLEXITY_OPTIONS),
        "output_options": list(OUTPUT_OPTIONS),
        "defaults": DEFAULT_REQUEST.model_dump(by_alias=True),
        "providers": {
            "cloudflare": config.cloudflare_enabled,
            "huggingFace": config.huggingface_enabled,
        },
    }


@app.post(
    "/api/generate",
    response_model=GenerateSuccess,
    response_model_exclude_none=True,
)
async def generate_illustration(request: Request) -> GenerateSuccess:
    """Generate an illustration for the JSON request body.

    PNG requests without ``forceMock`` try Cloudflare, then Hugging Face.
    Everything else, and any request no provider could serve, returns the
    deterministic placeholder SVG together with its data URL.

    The body is decoded as JSON regardless of its Content-Type header, so
    plain ``fetch`` and ``curl -d`` callers are accepted.

    Args:
        request: Incoming request whose body holds a
            :class:`GenerateRequest` payload.

    Returns:
        :class:`GenerateSuccess` with ``mode`` set to the image source.

    Raises:
        RequestValidationError: On undecodable or invalid bodies; rendered
            as HTTP 400.
        GenerationError: On any unexpected exception; rendered as HTTP 500.
    """
    req = await _read_generate_request(request)

    try:
        result = await _generate(req, app.state.provider_chain)
    except Exception as e:
        logger.error(f"Generation failed: {e}", exc_info=True)
        raise GenerationError(str(e) or e.__class__.__name__) from e

    logger.info(f"Served {req.output} request in {result.mode} mode")
    return result


@app.post("/api/prompt/compile")
async def compile_prompt(request: Request) -> dict:
    """Preview the prompt that remote providers would receive.

    Args:
        request: Incoming request whose body holds a
            :class:`GenerateRequest` payload.

    Returns:
        Dictionary with a single ``compiled_prompt`` key.
    """
    req = await _read_generate_request(request)
    return {"compiled_prompt": _provider_prompt(req)}


# ---------------------------------------------------------------------------
# CLI entry point.
# ---------------------------------------------------------------------------


def main() -> None:
    """Launch the uvicorn ASGI server.

    Reads host, port and log level from :data:`~illustratelab.core.config.config`
    (``ILLUSTRATELAB_SERVER_HOST``, ``ILLUSTRATELAB_SERVER_PORT``,
    ``ILLUSTRATELAB_LOG_LEVEL``).  Defaults to ``0.0.0.0:7860``.

    This function is registered as the ``illustratelab`` console script in
    ``pyproject.toml``.
    """
    import uvicorn

    logging.basicConfig(
        level=config.log_level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    uvicorn.run(
        "illustratelab.api.main:app",
        host=config.server_host,
        port=config.server_port,
        reload=False,
    )


if __name__ == "__main__":
    main()
