"""Unit tests for the Markdown-to-HTML converter.

WHY: Telegram rejects a whole message when its HTML is unbalanced or
contains a raw ``<``. Every delimiter rule, escape and degrade-to-literal
path must hold, including the top-of-stack-only toggle behaviour.

HOW: Table-style assertions on convert() output, grouped by construct,
plus property checks (tag balance, plain-text escaping) over a corpus of
awkward inputs.

RULES:
- Expected strings are exact; no normalisation
- Nesting and non-nesting toggle cases are both asserted
"""

import re

import pytest

from tgrelay.core.converter import Converter, Tag, convert, escape_char


AWKWARD_INPUTS = [
    "",
    "*",
    "**",
    "***",
    "`",
    "``",
    "```",
    "````",
    "\\",
    "[",
    "[]",
    "[](",
    "[a](b",
    "**a*b**",
    "*a**b**c*",
    "```py\nprint(1)\n```",
    "`a *b* c`",
    "<script>alert('x')</script>",
    "[x](javascript:alert(1))",
    "a & b < c > d",
    "**bold [link](http://x.y) `code`",
    "\\*\\*\\`\\[",
    "naïve café — 日本語 🎉 *emph*",
]


# ---------------------------------------------------------------------------
# Tests: escaping
# ---------------------------------------------------------------------------


class TestEscaping:
    """Literal characters are entity-escaped, everything else passes through."""

    def test_escape_char_table(self):
        assert escape_char("<") == "&lt;"
        assert escape_char(">") == "&gt;"
        assert escape_char("&") == "&amp;"
        assert escape_char("a") == "a"
        assert escape_char('"') == '"'

    def test_plain_text_unchanged(self):
        assert convert("hello world") == "hello world"

    def test_html_special_characters(self):
        assert convert("a < b && c > d") == "a &lt; b &amp;&amp; c &gt; d"

    def test_existing_entity_is_escaped_again(self):
        assert convert("&lt;") == "&amp;lt;"

    def test_unicode_passthrough(self):
        text = "naïve café — 日本語 🎉"
        assert convert(text) == text

    def test_control_characters_pass_through(self):
        assert convert("a\tb\nc\x00d") == "a\tb\nc\x00d"

    def test_empty_input(self):
        assert convert("") == ""

    @pytest.mark.parametrize("text", [
        "plain",
        "x < y",
        "Tom & Jerry > Itchy",
        "quotes \" and ' stay",
        "new\nlines\r\n",
        "ünïcödé <&>",
    ])
    def test_markup_free_input_only_gets_entities(self, text):
        expected = text.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")
        assert convert(text) == expected


# ---------------------------------------------------------------------------
# Tests: backslash escapes
# ---------------------------------------------------------------------------


class TestBackslash:
    """Backslash emits the next character literally."""

    def test_escaped_stars_produce_no_tags(self):
        assert convert("\\*text\\*") == "*text*"

    def test_escaped_backtick(self):
        assert convert("\\`code\\`") == "`code`"

    def test_escaped_bracket(self):
        assert convert("\\[a](http://x.y)") == "[a](http://x.y)"

    def test_escaped_special_char_is_still_entity_escaped(self):
        assert convert("\\<") == "&lt;"

    def test_double_backslash(self):
        assert convert("a\\\\b") == "a\\b"

    def test_trailing_backslash_is_literal(self):
        assert convert("end\\") == "end\\"

    def test_lone_backslash(self):
        assert convert("\\") == "\\"

    def test_escape_skips_exactly_one_character(self):
        # Only the first star is escaped; the second opens italic.
        assert convert("\\**x") == "*<i>x</i>"

    def test_escaped_multibyte_character(self):
        assert convert("\\é") == "é"


# ---------------------------------------------------------------------------
# Tests: emphasis toggles
# ---------------------------------------------------------------------------


class TestEmphasis:
    """``*`` toggles italic, ``**`` toggles bold."""

    def test_italic(self):
        assert convert("*hello*") == "<i>hello</i>"

    def test_bold(self):
        assert convert("**hello**") == "<b>hello</b>"

    def test_unterminated_italic_is_closed(self):
        assert convert("*hello") == "<i>hello</i>"

    def test_unterminated_bold_is_closed(self):
        assert convert("**hello") == "<b>hello</b>"

    def test_bold_nested_in_italic(self):
        assert convert("*a**b**c*") == "<i>a<b>b</b>c</i>"

    def test_italic_nested_in_bold(self):
        assert convert("**a*b*c**") == "<b>a<i>b</i>c</b>"

    def test_bold_buried_under_italic_opens_again(self):
        # ``**`` only closes bold when bold is on top; here italic is.
        assert convert("**a*b**") == "<b>a<i>b<b></b></i></b>"

    def test_italic_buried_under_bold_opens_again(self):
        assert convert("*a**b*") == "<i>a<b>b<i></i></b></i>"

    def test_triple_star_is_bold_then_italic(self):
        # Neither closing run finds its own tag on top, so both open again.
        assert convert("***x***") == "<b><i>x<b><i></i></b></i></b>"

    def test_empty_pairs(self):
        assert convert("**") == "<b></b>"
        assert convert("*") == "<i></i>"

    def test_consecutive_bold_runs(self):
        assert convert("**a** **b**") == "<b>a</b> <b>b</b>"


# ---------------------------------------------------------------------------
# Tests: code and fences
# ---------------------------------------------------------------------------


class TestCode:
    """Single backtick toggles code, triple backtick toggles pre."""

    def test_inline_code(self):
        assert convert("`x`") == "<code>x</code>"

    def test_fence(self):
        assert convert("```x```") == "<pre>x</pre>"

    def test_fence_with_newlines(self):
        assert convert("```\nprint(1)\n```") == "<pre>\nprint(1)\n</pre>"

    def test_fence_keeps_language_tag(self):
        assert convert("```python\nx = 1\n```") == "<pre>python\nx = 1\n</pre>"

    def test_code_content_is_escaped(self):
        assert convert("`a<b>&c`") == "<code>a&lt;b&gt;&amp;c</code>"

    def test_markup_inside_code_still_toggles(self):
        assert convert("`a *b* c`") == "<code>a <i>b</i> c</code>"

    def test_unterminated_code_is_closed(self):
        assert convert("`x") == "<code>x</code>"

    def test_unterminated_fence_is_closed(self):
        assert convert("```x") == "<pre>x</pre>"

    def test_double_backtick_is_two_code_toggles(self):
        assert convert("``") == "<code></code>"

    def test_four_backticks(self):
        assert convert("````") == "<pre><code></code></pre>"

    def test_code_inside_bold(self):
        assert convert("**`x`**") == "<b><code>x</code></b>"


# ---------------------------------------------------------------------------
# Tests: links
# ---------------------------------------------------------------------------


class TestLinks:
    """``[text](url)`` recognition and its failure paths."""

    def test_link(self):
        assert convert("[site](https://example.com)") == (
            '<a href="https://example.com">site</a>'
        )

    def test_link_in_sentence(self):
        assert convert("see [docs](a.b) now") == 'see <a href="a.b">docs</a> now'

    def test_bracket_without_parens_is_literal(self):
        assert convert("[nolink]") == "[nolink]"

    def test_unclosed_bracket_is_literal(self):
        assert convert("[abc") == "[abc"

    def test_space_between_bracket_and_paren_is_literal(self):
        assert convert("[a] (http://x.y)") == "[a] (http://x.y)"

    def test_unclosed_paren_is_literal(self):
        assert convert("[a](http://x.y") == "[a](http://x.y"

    def test_url_without_hint_characters_is_literal(self):
        assert convert("[a](b)") == "[a](b)"

    def test_empty_url_is_literal(self):
        assert convert("[a]()") == "[a]()"

    @pytest.mark.parametrize("url", ["a:b", "a.b", "a/b", "a b"])
    def test_each_hint_character_is_enough(self, url):
        assert convert("[t]({})".format(url)) == '<a href="{}">t</a>'.format(url)

    def test_text_and_url_are_escaped(self):
        assert convert('[<b>&](http://x.y/?a=1&b="2")') == (
            '<a href="http://x.y/?a=1&amp;b=&quot;2&quot;">&lt;b&gt;&amp;</a>'
        )

    def test_markup_in_link_text_is_not_interpreted(self):
        assert convert("[**x**](http://x.y)") == '<a href="http://x.y">**x**</a>'

    def test_failed_link_resumes_at_next_character(self):
        # The first ``[`` fails (space before ``(``), the second one is a link.
        assert convert("[b] [a](http://x.y)") == '[b] <a href="http://x.y">a</a>'

    def test_link_text_runs_to_first_closing_bracket(self):
        assert convert("[[a](http://x.y)") == '<a href="http://x.y">[a</a>'

    def test_url_stops_at_first_closing_paren(self):
        assert convert("[w](http://x.y/a_(b))") == '<a href="http://x.y/a_(b">w</a>)'

    def test_link_inside_bold(self):
        assert convert("**[a](http://x.y)**") == '<b><a href="http://x.y">a</a></b>'

    def test_link_with_unicode_text(self):
        assert convert("[café](https://é.fr)") == '<a href="https://é.fr">café</a>'


# ---------------------------------------------------------------------------
# Tests: Converter object and invariants
# ---------------------------------------------------------------------------


class TestConverterObject:
    """Converter state object and Tag table."""

    def test_tag_strings(self):
        assert Tag.BOLD.opening == "<b>"
        assert Tag.ITALIC.closing == "</i>"
        assert Tag.CODE.opening == "<code>"
        assert Tag.PRE.closing == "</pre>"

    def test_convert_is_cached(self):
        converter = Converter("*a*")
        assert converter.convert() == "<i>a</i>"
        assert converter.convert() == "<i>a</i>"

    def test_instances_are_independent(self):
        first = Converter("*open")
        second = Converter("plain")
        assert first.convert() == "<i>open</i>"
        assert second.convert() == "plain"


class TestInvariants:
    """Properties that must hold for every input."""

    @pytest.mark.parametrize("text", AWKWARD_INPUTS)
    def test_tags_are_balanced(self, text):
        html = convert(text)
        for name in ("b", "i", "code", "pre", "a"):
            opened = len(re.findall(r"<{}[ >]".format(name), html))
            closed = html.count("</{}>".format(name))
            assert opened == closed, (name, text, html)

    @pytest.mark.parametrize("text", AWKWARD_INPUTS)
    def test_tags_are_properly_nested(self, text):
        html = convert(text)
        stack = []
        for closing, name in re.findall(r"<(/?)(b|i|code|pre|a)\b[^>]*>", html):
            if closing:
                assert stack and stack[-1] == name, (text, html)
                stack.pop()
            else:
                stack.append(name)
        assert stack == []

    @pytest.mark.parametrize("text", AWKWARD_INPUTS)
    def test_no_raw_angle_brackets_outside_tags(self, text):
        html = convert(text)
        stripped = re.sub(r"</?(b|i|code|pre)>|<a href=\"[^\"]*\">|</a>", "", html)
        assert "<" not in stripped
        assert ">" not in stripped
