"""Async HTTP client for the Anthropic Messages API.

WHY: The relay sends either a single question or a whole dialog history
to Claude and needs the reply back as typed data. Wrapping the HTTP call
keeps auth headers, proxy setup and error mapping in one place so the bot
only deals with messages.

HOW: AnthropicClient is an async context manager around httpx.AsyncClient.
Enter it to get an authenticated client (optionally behind a proxy), exit
to close the connection pool. create_message() posts to /v1/messages and
parses the response into an AssistantMessage.

RULES:
- Always use the async context manager (async with AnthropicClient(...) as client:)
- Auth is the x-api-key header plus a pinned anthropic-version
- Non-2xx responses raise AnthropicAPIError with the status and body
- The system prompt is only sent when non-empty
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from tgrelay.api.models import AssistantMessage
from tgrelay.config import ANTHROPIC_BASE_URL, ANTHROPIC_MODEL, ANTHROPIC_VERSION

logger = logging.getLogger(__name__)

_REQUEST_TIMEOUT_S = 600.0
_CONNECT_TIMEOUT_S = 30.0


class AnthropicAPIError(Exception):
    """Raised when the Anthropic API returns an error response.

    RULES:
    - Always carries status_code and message
    - message is the response body text
    """

    def __init__(self, status_code: int, message: str) -> None:
        self.status_code = status_code
        self.message = message
        super().__init__(f"Anthropic API error {status_code}: {message}")


class AnthropicClient:
    """Async client for POST /v1/messages.

    WHY: One object per bot run holds the connection pool, key and model,
    so handlers only pass messages.

    HOW: Wraps httpx.AsyncClient. ``transport`` lets tests plug in an
    httpx.MockTransport instead of the network.

    RULES:
    - Use as: async with AnthropicClient(api_key) as client: ...
    - proxy_url routes every request through the given HTTP proxy
    """

    def __init__(
        self,
        api_key: str,
        model: Optional[str] = None,
        base_url: Optional[str] = None,
        proxy_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_key = api_key
        self._model = model or ANTHROPIC_MODEL
        self._base_url = (base_url or ANTHROPIC_BASE_URL).rstrip("/")
        self._proxy_url = proxy_url
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> AnthropicClient:
        kwargs: Dict[str, Any] = {}
        if self._transport is not None:
            kwargs["transport"] = self._transport
        elif self._proxy_url:
            kwargs["proxy"] = self._proxy_url
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            headers={
                "x-api-key": self._api_key,
                "anthropic-version": ANTHROPIC_VERSION,
                "content-type": "application/json",
            },
            timeout=httpx.Timeout(_REQUEST_TIMEOUT_S, connect=_CONNECT_TIMEOUT_S),
            **kwargs,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        """Return the active httpx client, raising if not in context manager."""
        if self._client is None:
            raise RuntimeError(
                "AnthropicClient must be used as an async context manager: "
                "async with AnthropicClient(api_key) as client: ..."
            )
        return self._client

    async def create_message(
        self,
        messages: List[Dict[str, Any]],
        max_tokens: int,
        system: Optional[str] = None,
    ) -> AssistantMessage:
        """Send ``messages`` to Claude and return the assistant reply.

        Args:
            messages: Message params, oldest first, ending with a user turn.
            max_tokens: Upper bound on the reply length.
            system: Optional system prompt.

        Returns:
            The parsed assistant message.
        """
        client = self._ensure_client()

        body: Dict[str, Any] = {
            "model": self._model,
            "max_tokens": max_tokens,
            "messages": messages,
        }
        if system:
            body["system"] = system

        logger.debug("POST /v1/messages model=%s turns=%d", self._model, len(messages))
        resp = await client.post("/v1/messages", json=body)

        if resp.status_code != 200:
            raise AnthropicAPIError(resp.status_code, resp.text)

        return AssistantMessage.from_dict(resp.json())
