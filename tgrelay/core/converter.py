"""Single-pass Markdown-to-HTML converter for Telegram's HTML subset.

WHY: Model replies use a small Markdown dialect, but Telegram renders only
``<b>``, ``<i>``, ``<code>``, ``<pre>`` and ``<a>``, and rejects a message
outright if its HTML is unbalanced or contains a stray ``<``. A full
Markdown library would produce tags Telegram refuses (``<p>``, ``<ul>``,
``<h1>``) and would not guarantee balance on half-written markup.

HOW: A scanner walks the input one code point at a time and dispatches on
the character under the cursor. Emphasis and code delimiters are toggles
against an open-tag stack; ``[`` triggers a bounded link sub-scan; every
literal character is entity-escaped. At end of input the stack is drained
so the output is always balanced.

RULES:
- ``**`` toggles bold, ``*`` toggles italic (double wins over single)
- triple backtick toggles ``<pre>``, single backtick toggles ``<code>``
- A delimiter closes its tag only if that tag is on TOP of the stack;
  otherwise it opens a new one, even if the same tag is open deeper
- ``\\x`` emits ``x`` literally; a trailing lone backslash is emitted as-is
- ``[text](url)`` becomes an anchor only if the url contains one of
  ``: . / )`` or a space; otherwise ``[`` is literal and scanning resumes
  at the next character
- Literal ``<``, ``>``, ``&`` are always escaped
- Never raises; unterminated markup is closed at end of input
"""

from __future__ import annotations

import enum
import html
from typing import List, Optional

# Characters a captured URL must contain at least one of.
_URL_HINTS = frozenset(":./) ")

_ESCAPES = {
    "<": "&lt;",
    ">": "&gt;",
    "&": "&amp;",
}


class Tag(str, enum.Enum):
    """HTML elements the converter can open.

    The value is the element name, so the enum doubles as the emit table.
    """

    BOLD = "b"
    ITALIC = "i"
    CODE = "code"
    PRE = "pre"

    @property
    def opening(self) -> str:
        return "<{}>".format(self.value)

    @property
    def closing(self) -> str:
        return "</{}>".format(self.value)


def escape_char(char: str) -> str:
    """Escape a single character for HTML text content."""
    return _ESCAPES.get(char, char)


class Converter:
    """Scanner state for one conversion: input, cursor, tag stack, output.

    WHY: The scan threads a mutable cursor and stack through every
    dispatch. Holding them on one short-lived object keeps each
    conversion isolated, so concurrent conversions share nothing.

    HOW: ``convert()`` runs the dispatch loop, then closes whatever is
    still open. The result is cached, so a second call returns the same
    string instead of scanning again.

    RULES:
    - One instance per input string
    - The cursor only moves forward
    - The output buffer is append-only and joined once
    """

    def __init__(self, text: str) -> None:
        self._text = text
        self._pos = 0
        self._stack: List[Tag] = []
        self._out: List[str] = []
        self._result: Optional[str] = None

    def convert(self) -> str:
        """Convert the whole input and return the HTML fragment."""
        if self._result is not None:
            return self._result

        text = self._text
        while self._pos < len(text):
            char = text[self._pos]

            if char == "\\":
                self._escape_sequence()
            elif char == "*":
                if self._check_ahead("**"):
                    self._toggle(Tag.BOLD)
                    self._pos += 2
                else:
                    self._toggle(Tag.ITALIC)
                    self._pos += 1
            elif char == "`":
                if self._check_ahead("```"):
                    if self._toggle(Tag.PRE):
                        self._skip_lang()
                    self._pos += 3
                else:
                    self._toggle(Tag.CODE)
                    self._pos += 1
            elif char == "[":
                link = self._process_link()
                if link is None:
                    self._write(char)
                    self._pos += 1
                else:
                    self._out.append(link)
            else:
                self._write(char)
                self._pos += 1

        while self._stack:
            self._pop()

        self._result = "".join(self._out)
        return self._result

    # ------------------------------------------------------------------
    # Stack and output helpers
    # ------------------------------------------------------------------

    def _push(self, tag: Tag) -> None:
        self._stack.append(tag)
        self._out.append(tag.opening)

    def _pop(self) -> Tag:
        tag = self._stack.pop()
        self._out.append(tag.closing)
        return tag

    def _peek(self) -> Optional[Tag]:
        return self._stack[-1] if self._stack else None

    def _toggle(self, tag: Tag) -> bool:
        """Close ``tag`` if it is on top of the stack, else open it.

        Returns True when the tag was opened.
        """
        if self._peek() is tag:
            self._pop()
            return False
        self._push(tag)
        return True

    def _write(self, char: str) -> None:
        self._out.append(escape_char(char))

    # ------------------------------------------------------------------
    # Scanning helpers
    # ------------------------------------------------------------------

    def _check_ahead(self, pattern: str) -> bool:
        return self._text.startswith(pattern, self._pos)

    def _escape_sequence(self) -> None:
        if self._pos + 1 < len(self._text):
            self._write(self._text[self._pos + 1])
            self._pos += 2
        else:
            self._write(self._text[self._pos])
            self._pos += 1

    def _skip_lang(self) -> None:
        # The language tag after an opening fence is left in the output.
        # TODO: strip it once Telegram's <pre><code class="language-x"> form is emitted.
        pass

    def _process_link(self) -> Optional[str]:
        """Recognise ``[text](url)`` at the cursor.

        WHY: Links are the only construct that needs lookahead past the
        current delimiter. Bracketed prose like ``[sic]`` or array
        indexing ``a[i](x)`` must not turn into anchors.

        HOW: Finds the first ``]`` after the cursor, requires ``(`` right
        after it, then finds the first ``)``. The captured url must look
        like a url (contain ``:``, ``.``, ``/``, ``)`` or a space).

        RULES:
        - Returns the anchor markup and moves the cursor past ``)``
        - Returns None and leaves the cursor untouched on any failure
        - Text and url are escaped independently, quotes included
        """
        text = self._text
        text_end = text.find("]", self._pos + 1)
        if text_end == -1 or text_end + 2 >= len(text):
            return None

        if text[text_end + 1] != "(":
            return None

        url_start = text_end + 2
        url_end = text.find(")", url_start)
        if url_end == -1:
            return None

        url = text[url_start:url_end]
        if not any(char in _URL_HINTS for char in url):
            return None

        label = text[self._pos + 1:text_end]
        self._pos = url_end + 1
        return '<a href="{}">{}</a>'.format(html.escape(url), html.escape(label))


def convert(text: str) -> str:
    """Convert Markdown-ish ``text`` to a balanced Telegram HTML fragment.

    Args:
        text: Any string. Malformed markup is rendered literally.

    Returns:
        HTML with every tag closed and every literal ``<``, ``>``, ``&``
        escaped.
    """
    return Converter(text).convert()
