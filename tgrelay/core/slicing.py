"""Split long replies into Telegram-sized messages.

WHY: Telegram caps a message at 4096 characters, and model answers are
often longer. Cutting converted HTML would break tags mid-element, so the
plain text is sliced first and every slice is converted on its own.

HOW: The number of parts is ``ceil(len / max_len)``; the text is then cut
into parts of equal length ``ceil(len / parts)`` so the last message is
not a tiny remainder.

RULES:
- Lengths count code points, never bytes
- Text that fits is returned as a single slice
- Each rendered slice is independently balanced HTML
"""

from __future__ import annotations

import math
from typing import List

from tgrelay.core.converter import convert


def slice_content(content: str, max_len: int) -> List[str]:
    """Cut ``content`` into evenly sized slices of at most ``max_len``.

    Raises:
        ValueError: If ``max_len`` is smaller than 1.
    """
    if max_len < 1:
        raise ValueError("max_len must be at least 1, got {}".format(max_len))

    length = len(content)
    if length <= max_len:
        return [content]

    parts = math.ceil(length / max_len)
    average = math.ceil(length / parts)
    return [content[start:start + average] for start in range(0, length, average)]


def render_reply(content: str, max_len: int) -> List[str]:
    """Slice ``content`` and convert each slice to HTML."""
    return [convert(part) for part in slice_content(content, max_len)]
