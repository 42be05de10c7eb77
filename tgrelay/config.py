"""Configuration constants, .env loading, and settings validation.

WHY: The relay needs a Telegram token, a whitelist of users allowed to
talk to the bot, an Anthropic API key and a handful of tunables. Keeping
them in one module makes them easy to find and override, and lets the
bot refuse to start with a clear message instead of failing on the first
request.

HOW: python-dotenv loads the .env file on import. Optional values are
module-level constants read from the environment with defaults. Required
values are read by load_settings(), which validates them and returns a
frozen Settings dataclass.

RULES:
- TELEGRAM_BOT_TOKEN, TELEGRAM_WHITELIST and ANTHROPIC_API_KEY are required
- Whitelist entries that are not integers are skipped with a warning
- ANTHROPIC_PROXY_URL, when set, must have a scheme and a host
- Secrets are loaded from the environment, never hardcoded
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import FrozenSet, Optional
from urllib.parse import urlparse

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Load .env from the working directory
load_dotenv()

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

_DEFAULT_TELEGRAM_API_URL = "https://api.telegram.org"
_DEFAULT_MAX_CONTENT_LEN = "4096"
_DEFAULT_ANTHROPIC_BASE_URL = "https://api.anthropic.com"
_DEFAULT_ANTHROPIC_MODEL = "claude-3-5-sonnet-latest"

TELEGRAM_API_URL = os.getenv("TELEGRAM_API_URL", _DEFAULT_TELEGRAM_API_URL)
TELEGRAM_MAX_CONTENT_LEN = int(os.getenv("TELEGRAM_MAX_CONTENT_LEN", _DEFAULT_MAX_CONTENT_LEN))
TELEGRAM_POLL_TIMEOUT = int(os.getenv("TELEGRAM_POLL_TIMEOUT", "60"))

ANTHROPIC_BASE_URL = os.getenv("ANTHROPIC_BASE_URL", _DEFAULT_ANTHROPIC_BASE_URL)
ANTHROPIC_MODEL = os.getenv("ANTHROPIC_MODEL", _DEFAULT_ANTHROPIC_MODEL)
ANTHROPIC_VERSION = "2023-06-01"
ANTHROPIC_SYSTEM_PROMPT = os.getenv("ANTHROPIC_SYSTEM_PROMPT", "")
ANTHROPIC_PROXY_URL = os.getenv("ANTHROPIC_PROXY_URL", "")

DEBUG = os.getenv("TGRELAY_DEBUG", "false").lower() == "true"

# max_tokens for one-shot questions and for dialog turns
SINGLE_SHOT_MAX_TOKENS = 2048
DIALOG_MAX_TOKENS = 4096


@dataclass(frozen=True)
class Settings:
    """Validated runtime settings for the relay bot.

    Attributes:
        bot_token: Telegram Bot API token.
        whitelist: Telegram user ids allowed to use the bot.
        anthropic_key: Anthropic API key.
        max_content_len: Max characters per outgoing Telegram message.
        system_prompt: System prompt sent with every request.
        proxy_url: Optional HTTP proxy for Anthropic calls.
        model: Anthropic model id.
        telegram_api_url: Bot API base URL (without the /bot<token> part).
        anthropic_base_url: Anthropic API host, without the /v1 suffix.
        debug: Verbose logging.
    """

    bot_token: str
    whitelist: FrozenSet[int]
    anthropic_key: str
    max_content_len: int = TELEGRAM_MAX_CONTENT_LEN
    system_prompt: str = ANTHROPIC_SYSTEM_PROMPT
    proxy_url: Optional[str] = None
    model: str = ANTHROPIC_MODEL
    telegram_api_url: str = TELEGRAM_API_URL
    anthropic_base_url: str = ANTHROPIC_BASE_URL
    debug: bool = DEBUG

    def is_authorized(self, user_id: int) -> bool:
        return user_id in self.whitelist


def parse_whitelist(raw: str) -> FrozenSet[int]:
    """Parse a comma-separated list of Telegram user ids.

    Blank entries are ignored; non-numeric entries are logged and skipped.
    """
    ids = set()
    for part in raw.split(","):
        part = part.strip()
        if not part:
            continue
        try:
            ids.add(int(part))
        except ValueError:
            logger.warning("Ignoring non-numeric whitelist entry %r", part)
    return frozenset(ids)


def validate_proxy_url(url: str) -> str:
    """Return ``url`` if it has a scheme and host, else raise ValueError."""
    parsed = urlparse(url)
    if not parsed.scheme or not parsed.netloc:
        raise ValueError("Invalid proxy URL: {!r}".format(url))
    return url


def load_settings() -> Settings:
    """Load and validate settings from the environment.

    WHY: A bot with no token, no whitelist or no API key cannot do
    anything useful; failing at startup is clearer than failing on the
    first message.

    HOW: Reads required values from os.environ (populated by
    python-dotenv), parses the whitelist and proxy, and builds Settings.

    RULES:
    - Raises ValueError if the Telegram token is missing or empty
    - Raises ValueError if the whitelist has no valid ids
    - Raises ValueError if the Anthropic key is missing or empty
    - Raises ValueError for a malformed proxy URL
    """
    bot_token = os.getenv("TELEGRAM_BOT_TOKEN", "").strip()
    if not bot_token:
        raise ValueError(
            "Telegram token is required. Add TELEGRAM_BOT_TOKEN to the .env file."
        )

    whitelist = parse_whitelist(os.getenv("TELEGRAM_WHITELIST", ""))
    if not whitelist:
        raise ValueError(
            "Whitelist is empty. Add comma-separated user ids to TELEGRAM_WHITELIST."
        )

    anthropic_key = os.getenv("ANTHROPIC_API_KEY", "").strip()
    if not anthropic_key:
        raise ValueError(
            "Anthropic API key is required. Add ANTHROPIC_API_KEY to the .env file."
        )

    proxy_url = os.getenv("ANTHROPIC_PROXY_URL", "").strip()

    return Settings(
        bot_token=bot_token,
        whitelist=whitelist,
        anthropic_key=anthropic_key,
        max_content_len=int(os.getenv("TELEGRAM_MAX_CONTENT_LEN", _DEFAULT_MAX_CONTENT_LEN)),
        system_prompt=os.getenv("ANTHROPIC_SYSTEM_PROMPT", ""),
        proxy_url=validate_proxy_url(proxy_url) if proxy_url else None,
        model=os.getenv("ANTHROPIC_MODEL", _DEFAULT_ANTHROPIC_MODEL),
        telegram_api_url=os.getenv("TELEGRAM_API_URL", _DEFAULT_TELEGRAM_API_URL),
        anthropic_base_url=os.getenv("ANTHROPIC_BASE_URL", _DEFAULT_ANTHROPIC_BASE_URL),
        debug=os.getenv("TGRELAY_DEBUG", "false").lower() == "true",
    )
