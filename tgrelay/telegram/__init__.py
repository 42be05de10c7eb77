"""Telegram integration for the relay.

WHY: Users talk to Claude from Telegram. This package holds the Bot API
client, the reply texts and the relay bot that ties Telegram, the
converter and the Anthropic client together.

HOW: client.py wraps the Bot API over httpx, models.py parses updates,
bot.py runs the long-polling loop and message handlers.

RULES:
- All Bot API calls go through TelegramClient
- Outgoing text is always rendered through the converter first
"""
