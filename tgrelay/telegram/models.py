"""Telegram Bot API update and message dataclasses.

WHY: getUpdates returns deeply nested JSON of which the relay needs a
handful of fields: who wrote, in which chat, what text, and whether it
is a command. Flattening them into dataclasses keeps bot.py readable.

HOW: from_dict factories pick the fields the relay uses and ignore the
rest. Optional fields (sender, text) are None when absent, e.g. for
channel posts or stickers.

RULES:
- A message is a command only if a bot_command entity starts at offset 0
- command() strips the leading ``/`` and any ``@botname`` suffix
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class MessageEntity:
    type: str
    offset: int
    length: int

    @classmethod
    def from_dict(cls, data: dict) -> MessageEntity:
        return cls(type=data["type"], offset=data["offset"], length=data["length"])


@dataclass
class Message:
    """A Telegram message, reduced to the fields the relay reads."""

    message_id: int
    chat_id: int
    user_id: Optional[int] = None
    text: Optional[str] = None
    entities: List[MessageEntity] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: dict) -> Message:
        sender = data.get("from") or {}
        return cls(
            message_id=data["message_id"],
            chat_id=data["chat"]["id"],
            user_id=sender.get("id"),
            text=data.get("text"),
            entities=[MessageEntity.from_dict(e) for e in data.get("entities", [])],
        )

    def is_command(self) -> bool:
        return any(e.type == "bot_command" and e.offset == 0 for e in self.entities)

    def command(self) -> Optional[str]:
        """Return the command name (``/start@bot`` → ``start``), or None."""
        if not self.text or not self.is_command():
            return None
        entity = next(e for e in self.entities if e.type == "bot_command" and e.offset == 0)
        name = self.text[1:entity.length]
        return name.split("@", 1)[0]


@dataclass
class Update:
    """One entry from getUpdates; ``message`` is None for other update kinds."""

    update_id: int
    message: Optional[Message] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> Update:
        raw = data.get("message")
        return cls(
            update_id=data["update_id"],
            message=Message.from_dict(raw) if raw else None,
        )
