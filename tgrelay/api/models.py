"""Anthropic Messages API response dataclasses.

WHY: The relay only needs a few fields from a Messages API response —
the content blocks to show the user and enough to replay the reply into
dialog history. Typed dataclasses make those fields explicit and catch
shape mismatches at the parsing boundary.

HOW: from_dict factories parse the raw JSON. ContentBlock keeps the raw
dict so non-text blocks (tool use, thinking) survive a round-trip into
history unchanged.

RULES:
- text() joins text blocks; any other block renders as ``$<type>$``
- to_param() returns the reply as an assistant message param
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass
class ContentBlock:
    """One block of an assistant message."""

    type: str
    text: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> ContentBlock:
        return cls(type=data["type"], text=data.get("text"), raw=dict(data))

    def render(self) -> str:
        if self.type == "text":
            return self.text or ""
        return "${}$".format(self.type)


@dataclass
class AssistantMessage:
    """Response from POST /v1/messages.

    RULES:
    - id, role and content are always present
    - stop_reason is None while a message is still streaming (never here)
    """

    id: str
    role: str
    content: List[ContentBlock]
    model: Optional[str] = None
    stop_reason: Optional[str] = None

    @classmethod
    def from_dict(cls, data: dict) -> AssistantMessage:
        return cls(
            id=data["id"],
            role=data["role"],
            content=[ContentBlock.from_dict(block) for block in data["content"]],
            model=data.get("model"),
            stop_reason=data.get("stop_reason"),
        )

    def text(self) -> str:
        return "".join(block.render() for block in self.content)

    def to_param(self) -> Dict[str, Any]:
        return {
            "role": self.role,
            "content": [block.raw for block in self.content],
        }


def user_message(text: str) -> Dict[str, Any]:
    """Build a user message param with a single text block."""
    return {"role": "user", "content": [{"type": "text", "text": text}]}
