"""Core conversion and message slicing modules.

WHY: The core package holds the pure transforms the relay is built on —
the Markdown-to-HTML converter and the content slicer. Neither touches
the network, so both are trivially testable and reusable from the CLI
and HTTP API.

HOW: converter.py is a single-pass scanner with an open-tag stack,
slicing.py splits long replies into Telegram-sized chunks and renders
each chunk through the converter.

RULES:
- No I/O and no shared state in this package
- convert() is total: it returns HTML for every input string
"""

from tgrelay.core.converter import Converter, Tag, convert
from tgrelay.core.slicing import render_reply, slice_content

__all__ = ["Converter", "Tag", "convert", "render_reply", "slice_content"]
