"""Pydantic request/response models for the conversion HTTP API.

WHY: The FastAPI endpoints need typed schemas for request validation,
response serialization, and OpenAPI documentation.

HOW: One request and one response model per endpoint. All fields carry
Field descriptions so /docs is self-explanatory.

RULES:
- All models use Field(description=...) for OpenAPI documentation
- max_len is validated (>= 1) before it reaches the slicer
"""

from __future__ import annotations

from typing import List

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class ConvertRequest(BaseModel):
    """Text to convert to Telegram HTML."""

    text: str = Field(description="Markdown-ish source text. Any string is accepted.")

    model_config = {"json_schema_extra": {
        "examples": [
            {"text": "**Note:** see [docs](https://example.com) for `convert()`"}
        ]
    }}


class RenderRequest(BaseModel):
    """Text to slice into Telegram-sized messages and convert."""

    text: str = Field(description="Markdown-ish source text.")
    max_len: int = Field(
        default=4096,
        ge=1,
        description="Maximum characters per message before conversion.",
    )


# ---------------------------------------------------------------------------
# Response models
# ---------------------------------------------------------------------------


class ConvertResponse(BaseModel):
    """Converted HTML fragment.

    RULES:
    - html is always tag-balanced
    """

    html: str = Field(description="HTML fragment using only b, i, code, pre and a.")

    model_config = {"json_schema_extra": {
        "examples": [
            {
                "html": '<b>Note:</b> see <a href="https://example.com">docs</a> '
                        "for <code>convert()</code>"
            }
        ]
    }}


class RenderResponse(BaseModel):
    """One converted HTML fragment per outgoing message."""

    chunks: List[str] = Field(description="Independently balanced HTML fragments, in order.")


class HealthResponse(BaseModel):
    """Health check response."""

    status: str = Field(description="Service health status.", json_schema_extra={"example": "ok"})
    version: str = Field(description="API version string.", json_schema_extra={"example": "0.1.0"})
