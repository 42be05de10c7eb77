"""Anthropic API client package.

WHY: The relay forwards Telegram text to Claude. This package keeps all
Anthropic HTTP details behind one async client class.

HOW: client.py wraps httpx.AsyncClient; models.py parses responses into
dataclasses.

RULES:
- All Anthropic HTTP calls go through AnthropicClient
- Authentication is the x-api-key header from config
"""

from tgrelay.api.client import AnthropicAPIError, AnthropicClient
from tgrelay.api.models import AssistantMessage, ContentBlock, user_message

__all__ = [
    "AnthropicAPIError",
    "AnthropicClient",
    "AssistantMessage",
    "ContentBlock",
    "user_message",
]
