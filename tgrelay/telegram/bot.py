"""Telegram relay bot: long-polling loop, commands, and Claude forwarding.

WHY: Whitelisted users chat with Claude from Telegram. Each message is
either a one-shot question or, after /startdialog, a turn in a dialog whose
history is replayed to the API. Replies come back as Markdown, so they are
rendered to Telegram HTML before sending.

HOW: RelayBot long-polls getUpdates and spawns one asyncio task per
incoming message. A handler shows the typing indicator, checks the
whitelist, routes commands, forwards text to Anthropic and replies with
the converted answer, split into Telegram-sized messages that thread as
replies to each other.

RULES:
- Unauthorised users get a refusal and are logged; nothing is forwarded
- /startdialog opens a dialog, /enddialog closes it and clears history
- Dialog turns use 4096 max tokens, one-shot questions 2048
- Every reply chunk is sent with parse_mode=HTML and is balanced HTML
- Send failures are logged, never raised; the reply chain continues
- One failing message never stops the polling loop
- Runnable as: python -m tgrelay run
"""

from __future__ import annotations

import asyncio
import logging
from typing import Dict, Optional, Set

import httpx

from tgrelay.api.client import AnthropicAPIError, AnthropicClient
from tgrelay.api.models import AssistantMessage, user_message
from tgrelay.config import (
    DIALOG_MAX_TOKENS,
    SINGLE_SHOT_MAX_TOKENS,
    TELEGRAM_POLL_TIMEOUT,
    Settings,
    load_settings,
)
from tgrelay.conversation import ConversationStore
from tgrelay.core.slicing import render_reply
from tgrelay.telegram.client import TelegramAPIError, TelegramClient
from tgrelay.telegram.messages import (
    COMMAND_END_DIALOG,
    COMMAND_START_DIALOG,
    TEXT_DIALOG_ALREADY_STARTED,
    TEXT_DIALOG_CLOSED,
    TEXT_DIALOG_STARTED,
    TEXT_NO_RESPONSE,
    TEXT_UNAUTHORIZED,
    format_api_error,
    format_unknown_command,
)
from tgrelay.telegram.models import Message

logger = logging.getLogger(__name__)

# Back-off after a failed getUpdates call
_POLL_ERROR_INITIAL_S = 1.0
_POLL_ERROR_MAX_S = 30.0


class ConversationNotStartedError(Exception):
    """Raised when a dialog turn is forwarded for a chat with no dialog."""


class RelayBot:
    """Routes Telegram messages to Claude and replies with HTML.

    WHY: Groups the clients, settings and dialog store a handler needs,
    so tests can drive handle() directly with mocked clients.

    HOW: handle() is the per-message entry point; run() is the polling
    loop that feeds it.

    RULES:
    - Clients must already be entered (inside their async context managers)
    - The store may be shared with other bots or threads
    """

    def __init__(
        self,
        settings: Settings,
        telegram: TelegramClient,
        anthropic: AnthropicClient,
        store: Optional[ConversationStore] = None,
        poll_timeout: int = TELEGRAM_POLL_TIMEOUT,
    ) -> None:
        self._settings = settings
        self._telegram = telegram
        self._anthropic = anthropic
        self._store = store if store is not None else ConversationStore()
        self._poll_timeout = poll_timeout
        self._tasks: Set[asyncio.Task] = set()
        self._dialog_locks: Dict[int, asyncio.Lock] = {}

    @property
    def store(self) -> ConversationStore:
        return self._store

    # ------------------------------------------------------------------
    # Message handling
    # ------------------------------------------------------------------

    async def handle(self, message: Message) -> None:
        """Handle one incoming message end to end."""
        if message.text is None:
            return

        await self._set_typing(message.chat_id)

        if message.user_id is None or not self._settings.is_authorized(message.user_id):
            logger.warning("Unauthorized access attempt from user ID: %s", message.user_id)
            await self.reply(message, TEXT_UNAUTHORIZED)
            return

        if message.is_command():
            await self.handle_command(message)
        else:
            await self.handle_text(message)

    async def handle_command(self, message: Message) -> None:
        name = message.command() or ""
        if name == COMMAND_START_DIALOG:
            _, created = self._store.start(message.chat_id)
            await self.reply(
                message,
                TEXT_DIALOG_STARTED if created else TEXT_DIALOG_ALREADY_STARTED,
            )
        elif name == COMMAND_END_DIALOG:
            self._store.close(message.chat_id)
            await self.reply(message, TEXT_DIALOG_CLOSED)
        else:
            await self.reply(message, format_unknown_command(name))

    async def handle_text(self, message: Message) -> None:
        """Forward the text to Claude and reply with the answer.

        RULES:
        - Uses the dialog history when the chat has an open dialog
        - API and transport failures are reported back to the user
        - An empty answer is reported rather than sent as an empty message
        """
        try:
            if self._store.exists(message.chat_id):
                response = await self.conversation_forward(message)
            else:
                response = await self.forward(message)
        except (AnthropicAPIError, ConversationNotStartedError, httpx.HTTPError) as exc:
            logger.warning("Forward failed for chat %s: %s", message.chat_id, exc)
            await self.reply(message, format_api_error(exc))
            return

        text = response.text()
        if not text:
            logger.warning("Empty response %s for chat %s", response.id, message.chat_id)
            await self.reply(message, TEXT_NO_RESPONSE)
            return

        await self.reply(message, text)

    async def forward(self, message: Message) -> AssistantMessage:
        """Send a single question with no history."""
        return await self._anthropic.create_message(
            [user_message(message.text or "")],
            max_tokens=SINGLE_SHOT_MAX_TOKENS,
            system=self._settings.system_prompt,
        )

    async def conversation_forward(self, message: Message) -> AssistantMessage:
        """Append the question to the dialog, send the history, store the answer.

        RULES:
        - Turns of one chat run one at a time, so history stays in order
        - If the request fails, the question is removed from the history
        """
        chat_id = message.chat_id
        async with self._dialog_lock(chat_id):
            if not self._store.exists(chat_id):
                raise ConversationNotStartedError("conversation is not started")

            question = user_message(message.text or "")
            self._store.add_message(chat_id, question)
            try:
                response = await self._anthropic.create_message(
                    self._store.history(chat_id),
                    max_tokens=DIALOG_MAX_TOKENS,
                    system=self._settings.system_prompt,
                )
            except BaseException:
                self._store.discard_last(chat_id, question)
                raise
            self._store.add_message(chat_id, response.to_param())
            return response

    def _dialog_lock(self, chat_id: int) -> asyncio.Lock:
        lock = self._dialog_locks.get(chat_id)
        if lock is None:
            lock = self._dialog_locks[chat_id] = asyncio.Lock()
        return lock

    # ------------------------------------------------------------------
    # Sending
    # ------------------------------------------------------------------

    async def reply(self, message: Message, content: str) -> None:
        """Send ``content`` as HTML replies, each chunk replying to the last."""
        reply_to = message.message_id
        for chunk in render_reply(content, self._settings.max_content_len):
            sent = await self._send(message.chat_id, chunk, reply_to)
            if sent is not None:
                reply_to = sent.message_id

    async def _send(self, chat_id: int, text: str, reply_to: int) -> Optional[Message]:
        try:
            return await self._telegram.send_message(
                chat_id, text, reply_to_message_id=reply_to
            )
        except (TelegramAPIError, httpx.HTTPError) as exc:
            logger.error("Telegram API is unavailable: %s", exc)
            return None

    async def _set_typing(self, chat_id: int) -> None:
        try:
            await self._telegram.send_chat_action(chat_id, "typing")
        except (TelegramAPIError, httpx.HTTPError) as exc:
            logger.debug("Failed to send typing action to %s: %s", chat_id, exc)

    # ------------------------------------------------------------------
    # Polling loop
    # ------------------------------------------------------------------

    async def run(self, stop: Optional[asyncio.Event] = None) -> None:
        """Long-poll for updates until ``stop`` is set (forever if None).

        WHY: getUpdates needs no public URL, so the bot runs anywhere.

        HOW: Each batch advances the offset past the last update id, and
        each message is handled in its own task so one slow answer does
        not block other chats. Poll failures back off exponentially.

        RULES:
        - Updates without a message are acknowledged and skipped
        - Pending handler tasks are awaited before returning
        """
        offset: Optional[int] = None
        backoff = _POLL_ERROR_INITIAL_S

        while stop is None or not stop.is_set():
            try:
                updates = await self._telegram.get_updates(
                    offset=offset, timeout=self._poll_timeout
                )
            except (TelegramAPIError, httpx.HTTPError):
                logger.exception("Failed to fetch updates, retrying in %.0fs", backoff)
                await asyncio.sleep(backoff)
                backoff = min(backoff * 2, _POLL_ERROR_MAX_S)
                continue

            backoff = _POLL_ERROR_INITIAL_S
            for update in updates:
                offset = update.update_id + 1
                if update.message is not None:
                    self._spawn(update.message)

        await self.drain()

    def _spawn(self, message: Message) -> None:
        task = asyncio.create_task(self._handle_safely(message))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _handle_safely(self, message: Message) -> None:
        try:
            await self.handle(message)
        except Exception:
            logger.exception("Failed to handle message %s", message.message_id)

    async def drain(self) -> None:
        """Wait for all in-flight handler tasks."""
        if self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)


# ---------------------------------------------------------------------------
# Entry point
# ---------------------------------------------------------------------------


async def run_bot(settings: Settings) -> None:
    """Open both clients and run the relay until cancelled."""
    telegram_client = TelegramClient(settings.bot_token, api_url=settings.telegram_api_url)
    anthropic_client = AnthropicClient(
        settings.anthropic_key,
        model=settings.model,
        base_url=settings.anthropic_base_url,
        proxy_url=settings.proxy_url,
    )
    async with telegram_client as telegram:
        async with anthropic_client as anthropic:
            bot = RelayBot(settings, telegram, anthropic)
            logger.info("Starting Telegram relay (model %s)", settings.model)
            logger.debug("Authorized users: %s", sorted(settings.whitelist))
            await bot.run()


def main() -> None:
    """Load settings, configure logging and run the relay (blocks).

    RULES:
    - Raises ValueError when required settings are missing
    - Debug logging when TGRELAY_DEBUG is true
    """
    settings = load_settings()
    logging.basicConfig(
        level=logging.DEBUG if settings.debug else logging.INFO,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )
    asyncio.run(run_bot(settings))


if __name__ == "__main__":
    main()
