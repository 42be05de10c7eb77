"""FastAPI application exposing the converter over HTTP.

WHY: Other services (webhooks, n8n flows, bots in other languages) want
Telegram-safe HTML without embedding this package. A tiny HTTP API makes
the converter reusable from anywhere.

HOW: A single FastAPI app with three endpoints. /convert runs the
converter on one text, /render slices and converts for multi-message
replies, /health reports liveness.

RULES:
- The converter never fails, so only validation errors (422) are possible
- Endpoints are synchronous functions; FastAPI runs them in a threadpool
- Runnable as: python -m tgrelay serve
"""

from __future__ import annotations

import logging

from fastapi import FastAPI

from tgrelay import __version__
from tgrelay.core.converter import convert
from tgrelay.core.slicing import render_reply
from tgrelay.server.models import (
    ConvertRequest,
    ConvertResponse,
    HealthResponse,
    RenderRequest,
    RenderResponse,
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="tgrelay Converter API",
    description=(
        "Converts a small Markdown dialect (bold, italic, inline code, "
        "fenced code, links, backslash escapes) into the HTML subset "
        "accepted by the Telegram Bot API."
    ),
    version=__version__,
    docs_url="/docs",
    redoc_url="/redoc",
)


# ---------------------------------------------------------------------------
# Endpoints: Conversion
# ---------------------------------------------------------------------------


@app.post(
    "/convert",
    response_model=ConvertResponse,
    tags=["convert"],
    summary="Convert text to Telegram HTML",
    description=(
        "Returns a tag-balanced HTML fragment. Malformed markup is rendered "
        "literally; unterminated emphasis or code is closed at the end."
    ),
)
def convert_text(request: ConvertRequest) -> ConvertResponse:
    logger.debug("Converting %d characters", len(request.text))
    return ConvertResponse(html=convert(request.text))


@app.post(
    "/render",
    response_model=RenderResponse,
    tags=["convert"],
    summary="Slice and convert a long reply",
    description=(
        "Splits the text into evenly sized parts of at most max_len "
        "characters and converts each part on its own."
    ),
)
def render_text(request: RenderRequest) -> RenderResponse:
    return RenderResponse(chunks=render_reply(request.text, request.max_len))


# ---------------------------------------------------------------------------
# Endpoints: Health
# ---------------------------------------------------------------------------


@app.get(
    "/health",
    response_model=HealthResponse,
    tags=["health"],
    summary="Health check",
)
async def health_check() -> HealthResponse:
    return HealthResponse(status="ok", version=__version__)


def run_api(host: str = "127.0.0.1", port: int = 8000) -> None:
    """Serve the API with uvicorn (blocks)."""
    import uvicorn
    uvicorn.run(app, host=host, port=port)
