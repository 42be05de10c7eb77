"""Async HTTP client for the Telegram Bot API.

WHY: The relay needs three Bot API calls — long-poll for updates, send an
HTML message, and show the "typing" indicator. A small client over httpx
keeps the token, URL layout and error envelope out of the bot logic.

HOW: TelegramClient is an async context manager around httpx.AsyncClient
rooted at ``{api_url}/bot{token}/``. Every call POSTs JSON and unwraps the
``{"ok": ..., "result": ...}`` envelope.

RULES:
- Always use the async context manager
- Non-2xx responses, non-object bodies and ``"ok": false`` raise TelegramAPIError
- Long-poll requests get a read timeout longer than the poll timeout
- Messages are sent with parse_mode=HTML by default
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx

from tgrelay.config import TELEGRAM_API_URL, TELEGRAM_POLL_TIMEOUT
from tgrelay.telegram.models import Message, Update

logger = logging.getLogger(__name__)

_REQUEST_TIMEOUT_S = 30.0
_POLL_TIMEOUT_MARGIN_S = 10.0


class TelegramAPIError(Exception):
    """Raised when the Bot API rejects a request.

    RULES:
    - status_code is the HTTP status (200 for ``"ok": false`` envelopes)
    - description is Telegram's error description or the raw body
    """

    def __init__(self, status_code: int, description: str) -> None:
        self.status_code = status_code
        self.description = description
        super().__init__(f"Telegram API error {status_code}: {description}")


class TelegramClient:
    """Async client for the handful of Bot API methods the relay uses."""

    def __init__(
        self,
        token: str,
        api_url: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._token = token
        self._api_url = (api_url or TELEGRAM_API_URL).rstrip("/")
        self._transport = transport
        self._client: Optional[httpx.AsyncClient] = None

    async def __aenter__(self) -> TelegramClient:
        kwargs: Dict[str, Any] = {}
        if self._transport is not None:
            kwargs["transport"] = self._transport
        self._client = httpx.AsyncClient(
            base_url="{}/bot{}/".format(self._api_url, self._token),
            timeout=httpx.Timeout(_REQUEST_TIMEOUT_S),
            **kwargs,
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:  # noqa: ANN001
        if self._client:
            await self._client.aclose()
            self._client = None

    def _ensure_client(self) -> httpx.AsyncClient:
        if self._client is None:
            raise RuntimeError(
                "TelegramClient must be used as an async context manager: "
                "async with TelegramClient(token) as client: ..."
            )
        return self._client

    async def _call(
        self,
        method: str,
        payload: Dict[str, Any],
        timeout: Optional[float] = None,
    ) -> Any:
        client = self._ensure_client()
        kwargs: Dict[str, Any] = {"json": payload}
        if timeout is not None:
            kwargs["timeout"] = httpx.Timeout(timeout, connect=_REQUEST_TIMEOUT_S)

        resp = await client.post(method, **kwargs)

        try:
            data = resp.json()
        except ValueError:
            raise TelegramAPIError(resp.status_code, resp.text)

        if not isinstance(data, dict):
            raise TelegramAPIError(resp.status_code, resp.text)

        if resp.status_code != 200 or not data.get("ok"):
            raise TelegramAPIError(
                resp.status_code, data.get("description") or resp.text
            )
        return data["result"]

    async def get_updates(
        self,
        offset: Optional[int] = None,
        timeout: int = TELEGRAM_POLL_TIMEOUT,
    ) -> List[Update]:
        """Long-poll for new updates.

        Args:
            offset: Id of the first update to return (last seen + 1).
            timeout: Seconds Telegram may hold the request open.

        Returns:
            Parsed updates, possibly empty.
        """
        payload: Dict[str, Any] = {"timeout": timeout, "allowed_updates": ["message"]}
        if offset is not None:
            payload["offset"] = offset
        result = await self._call(
            "getUpdates", payload, timeout=timeout + _POLL_TIMEOUT_MARGIN_S
        )
        return [Update.from_dict(item) for item in result]

    async def send_message(
        self,
        chat_id: int,
        text: str,
        reply_to_message_id: Optional[int] = None,
        parse_mode: Optional[str] = "HTML",
    ) -> Message:
        """Send ``text`` to ``chat_id``, optionally as a reply."""
        payload: Dict[str, Any] = {"chat_id": chat_id, "text": text}
        if parse_mode:
            payload["parse_mode"] = parse_mode
        if reply_to_message_id is not None:
            payload["reply_parameters"] = {
                "message_id": reply_to_message_id,
                "allow_sending_without_reply": True,
            }
        result = await self._call("sendMessage", payload)
        return Message.from_dict(result)

    async def send_chat_action(self, chat_id: int, action: str = "typing") -> None:
        await self._call("sendChatAction", {"chat_id": chat_id, "action": action})
