"""Shared test fixtures for the tgrelay test suite.

WHY: The bot, client and config tests need the same settings object and
the same sample Bot API / Messages API payloads. Centralizing them keeps
the payload shapes consistent across modules.

HOW: Pytest fixtures return fresh copies so tests can mutate them freely.

RULES:
- No fixture touches the network
- Whitelisted user id is 1001; 2002 is never whitelisted
- ANTHROPIC_*, TELEGRAM_* and TGRELAY_* variables are cleared for every test
"""

import os
from typing import Any, Dict

import pytest

from tgrelay.config import Settings

AUTHORIZED_USER_ID = 1001
UNAUTHORIZED_USER_ID = 2002
CHAT_ID = 5005

_ENV_PREFIXES = ("ANTHROPIC_", "TELEGRAM_", "TGRELAY_")


def make_message_dict(
    text: str,
    message_id: int = 10,
    user_id: int = AUTHORIZED_USER_ID,
    chat_id: int = CHAT_ID,
) -> Dict[str, Any]:
    """Build a Bot API message object; ``/commands`` get a bot_command entity."""
    data: Dict[str, Any] = {
        "message_id": message_id,
        "from": {"id": user_id, "is_bot": False, "first_name": "Test"},
        "chat": {"id": chat_id, "type": "private"},
        "date": 1739959200,
        "text": text,
    }
    if text.startswith("/"):
        length = len(text.split(" ", 1)[0])
        data["entities"] = [{"type": "bot_command", "offset": 0, "length": length}]
    return data


def make_assistant_dict(text: str = "Hello **there**") -> Dict[str, Any]:
    """Build a Messages API response with a single text block."""
    return {
        "id": "msg_01XFDUDYJgAACzvnptvVoYEL",
        "type": "message",
        "role": "assistant",
        "model": "claude-3-5-sonnet-latest",
        "content": [{"type": "text", "text": text}],
        "stop_reason": "end_turn",
        "usage": {"input_tokens": 12, "output_tokens": 6},
    }


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    """Drop relay settings inherited from the host shell or a .env file."""
    for name in list(os.environ):
        if name.startswith(_ENV_PREFIXES):
            monkeypatch.delenv(name, raising=False)


@pytest.fixture
def settings():
    return Settings(
        bot_token="123:ABC",
        whitelist=frozenset({AUTHORIZED_USER_ID}),
        anthropic_key="sk-test",
        max_content_len=4096,
        system_prompt="Be brief.",
        model="claude-test",
        telegram_api_url="https://tg.test",
        anthropic_base_url="https://api.anthropic.com",
        debug=False,
    )


@pytest.fixture
def assistant_response():
    return make_assistant_dict()
