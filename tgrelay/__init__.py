"""tgrelay — Telegram relay for Claude with a Markdown-to-HTML converter.

WHY: Claude answers in a light Markdown dialect (``**bold**``, ``*italic*``,
backtick code, fenced blocks, ``[text](url)`` links). Telegram only renders
a restricted HTML subset, and malformed HTML makes the Bot API reject the
whole message. This package converts the Markdown into balanced, escaped
HTML and relays conversations between Telegram and the Anthropic API.

HOW: Three layers — core (converter + slicing), clients (Anthropic and
Telegram over httpx), and surfaces (relay bot, HTTP API, CLI). The core is
pure and has no I/O, so every surface can reuse it.

RULES:
- convert() never raises; malformed markup degrades to literal text
- Every outgoing Telegram message is rendered through the converter
- Clients are the only place that talks HTTP
"""

__version__ = "0.1.0"
