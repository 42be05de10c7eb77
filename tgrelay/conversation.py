"""In-memory conversation store for multi-turn dialogs.

WHY: By default every Telegram message is a one-shot question. After
/startdialog the bot keeps the chat's history and sends all of it with
each request, so Claude sees the whole dialog. Messages from one chat can
be handled concurrently, and the HTTP API runs in worker threads, so the
store must be safe to share.

HOW: A dict keyed by chat id holds Conversation objects. Every access
takes a threading.Lock. History entries are Anthropic message params
(``{"role": ..., "content": ...}``) so they can be posted as-is.

RULES:
- start() never replaces an existing conversation
- close() on an unknown chat is a no-op
- add_message() on an unknown chat is ignored
- discard_last() only removes the exact message it is given, and only from the end
- get() returns None for unknown chats (no exceptions)
- Nothing is persisted; a restart clears all dialogs
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

MessageParam = Dict[str, Any]


@dataclass
class Conversation:
    """History of one chat's dialog, oldest message first."""

    chat_id: int
    history: List[MessageParam] = field(default_factory=list)


class ConversationStore:
    """Thread-safe map of chat id to open Conversation."""

    def __init__(self) -> None:
        self._sessions: Dict[int, Conversation] = {}
        self._lock = threading.Lock()

    def start(self, chat_id: int) -> Tuple[Conversation, bool]:
        """Open a conversation for ``chat_id``.

        Returns:
            The conversation and True if it was created, or the existing
            conversation and False if one was already open.
        """
        with self._lock:
            existing = self._sessions.get(chat_id)
            if existing is not None:
                return existing, False
            conversation = Conversation(chat_id=chat_id)
            self._sessions[chat_id] = conversation
            return conversation, True

    def close(self, chat_id: int) -> None:
        with self._lock:
            self._sessions.pop(chat_id, None)

    def get(self, chat_id: int) -> Optional[Conversation]:
        with self._lock:
            return self._sessions.get(chat_id)

    def exists(self, chat_id: int) -> bool:
        with self._lock:
            return chat_id in self._sessions

    def add_message(self, chat_id: int, message: MessageParam) -> None:
        with self._lock:
            conversation = self._sessions.get(chat_id)
            if conversation is not None:
                conversation.history.append(message)

    def discard_last(self, chat_id: int, message: MessageParam) -> bool:
        """Remove ``message`` if it is the newest entry of the chat's history.

        Returns True when it was removed.
        """
        with self._lock:
            conversation = self._sessions.get(chat_id)
            if conversation and conversation.history and conversation.history[-1] is message:
                conversation.history.pop()
                return True
            return False

    def history(self, chat_id: int) -> List[MessageParam]:
        """Return a copy of the chat's history (empty if no conversation)."""
        with self._lock:
            conversation = self._sessions.get(chat_id)
            return list(conversation.history) if conversation else []
