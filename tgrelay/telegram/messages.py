"""Reply texts and command names for the Telegram relay bot.

WHY: Keeping user-facing strings and command names in one place keeps
bot.py focused on control flow and lets tests assert on the exact text.

RULES:
- Command names match what users type, without the leading ``/``
- Texts are plain; they still go through the converter when sent
"""

from __future__ import annotations

# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

COMMAND_START_DIALOG = "startdialog"
COMMAND_END_DIALOG = "enddialog"

# ---------------------------------------------------------------------------
# Replies
# ---------------------------------------------------------------------------

TEXT_UNAUTHORIZED = "sorry, you are not authorized to use this bot."
TEXT_DIALOG_STARTED = "conversation started"
TEXT_DIALOG_ALREADY_STARTED = "you already in conversation context"
TEXT_DIALOG_CLOSED = "conversation closed and context cleared"
TEXT_NO_RESPONSE = "no errors and no anthropic response found =O"


def format_unknown_command(name: str) -> str:
    return "unknown command: {}".format(name)


def format_api_error(error: Exception) -> str:
    return "error response from anthropic: {}".format(error)
