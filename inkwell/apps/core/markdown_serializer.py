"""Editor HTML to canonical Markdown.

A :class:`markdownify.MarkdownConverter` subclass that walks a sanitized
soup and emits the dialect :mod:`markdown_parser` reads back. Italic is
always written with underscores so it can never be confused with a ``*``
list marker, and nested inline formatting nests its markers
(``**_text_**``). Tables and ``<u>`` have no Markdown form and are written
as HTML.
"""

from __future__ import annotations

import re

from bs4 import BeautifulSoup
from markdownify import MarkdownConverter, abstract_inline_conversion, chomp

from inkwell.apps.core.html_tree import to_html

_MARKDOWN_SPECIAL_RE = re.compile(r"([\\`*_\[\]~])")
_TAG_START_RE = re.compile(r"<(?=[A-Za-z/!?])")
_ENTITY_START_RE = re.compile(r"&(?=#?\w+;)")
_LANGUAGE_CLASS_RE = re.compile(r"(?:^|\s)language-([\w+#.-]+)")
_BACKTICK_RUN_RE = re.compile(r"`{3,}")

# Text at the start of a line that the parser would otherwise read as block syntax
_LINE_START_ESCAPES = (
    (re.compile(r"^(\s*)(#{1,6})(?=\s|$)"), r"\1\\\2"),
    (re.compile(r"^(\s*)>"), r"\1\\>"),
    (re.compile(r"^(\s*)([-+])(?=\s|$)"), r"\1\\\2"),
    (re.compile(r"^(\s*)(\d{1,9})([.)])(?=\s|$)"), r"\1\2\\\3"),
    (re.compile(r"^(\s*)([-=]{3,})\s*$"), r"\1\\\2"),
)

# Elements after which text starts a new Markdown line
_LINE_BREAKING_TAGS = frozenset(
    ["br", "p", "pre", "hr", "ul", "ol", "li", "blockquote", "h1", "h2", "h3", "h4", "h5", "h6"]
)
# Parents whose first text node starts a line
_LINE_STARTING_PARENTS = frozenset(["[document]", "p", "li", "blockquote"])


def _tag_name(node) -> str | None:
    return getattr(node, "name", None)


def _starts_line(el) -> bool:
    previous = el.previous_sibling
    if previous is None:
        return _tag_name(el.parent) in _LINE_STARTING_PARENTS
    return _tag_name(previous) in _LINE_BREAKING_TAGS


def _escape_line_start(text: str) -> str:
    for pattern, replacement in _LINE_START_ESCAPES:
        text = pattern.sub(replacement, text, count=1)
    return text


def _markdown_url(url: str) -> str:
    return url.replace(" ", "%20").replace("(", "%28").replace(")", "%29")


def code_language(el) -> str:
    """Language of a ``<pre>`` block, from a ``language-*`` class on its ``<code>`` or on itself."""
    for candidate in (el.find("code"), el):
        if candidate is None:
            continue
        match = _LANGUAGE_CLASS_RE.search(candidate.get("class") or "")
        if match:
            return match.group(1)
    return ""


class EditorMarkdownConverter(MarkdownConverter):
    """Markdown converter for the rich-text editor's HTML.

    - ATX headings, ``-`` bullets, ``_`` italic, ``~~`` strikethrough.
    - ``<li data-type="taskItem">`` becomes ``- [x]`` / ``- [ ]``.
    - ``<br>`` is a bare newline, matching the parser's ``breaks`` mode.
    - Text is escaped only where the parser would otherwise read syntax.
    - ``<u>`` and tables are written as HTML.
    """

    def __init__(self, *args, **kwargs):
        kwargs["heading_style"] = "ATX"
        kwargs["bullets"] = "-"
        kwargs["autolinks"] = False
        # Collapse whitespace in text nodes without re-wrapping lines
        kwargs["wrap"] = True
        kwargs["wrap_width"] = None
        super().__init__(*args, **kwargs)
        self._item_numbers: dict[int, int] = {}

    convert_em = abstract_inline_conversion(lambda self: "_")
    convert_i = convert_em
    convert_del = abstract_inline_conversion(lambda self: "~~")
    convert_s = convert_del
    convert_strike = convert_del
    convert_u = abstract_inline_conversion(lambda self: "<u>")

    def escape(self, text, parent_tags):
        if not text:
            return ""
        text = _MARKDOWN_SPECIAL_RE.sub(r"\\\1", text)
        text = _TAG_START_RE.sub(r"\\<", text)
        return _ENTITY_START_RE.sub(r"\\&", text)

    def process_text(self, el, parent_tags=None):
        text = super().process_text(el, parent_tags=parent_tags)
        if not text or "_noformat" in (parent_tags or ()):
            return text
        # No stray spaces around the newline written for <br>
        if _tag_name(el.next_sibling) == "br":
            text = text.rstrip()
        if _tag_name(el.previous_sibling) == "br":
            text = text.lstrip()
        if _starts_line(el):
            text = _escape_line_start(text)
        return text

    def convert_a(self, el, text, parent_tags):
        href = el.get("href")
        if not href or "_noformat" in parent_tags:
            return text
        prefix, suffix, text = chomp(text)
        if not text:
            return ""
        return f"{prefix}[{text}]({_markdown_url(href)}){suffix}"

    def convert_img(self, el, text, parent_tags):
        src = el.get("src")
        if not src:
            return ""
        alt = (el.get("alt") or "").replace("[", "").replace("]", "")
        return f"![{alt}]({_markdown_url(src)})"

    def convert_br(self, el, text, parent_tags):
        if "_inline" in parent_tags:
            return " "
        return "\n"

    def convert_blockquote(self, el, text, parent_tags):
        text = (text or "").strip()
        if "_inline" in parent_tags:
            return f" {text} "
        if not text:
            return ""
        quoted = "\n".join(f"> {line}" if line else ">" for line in text.split("\n"))
        return f"\n\n{quoted}\n\n"

    def convert_list(self, el, text, parent_tags):
        text = text.strip("\n")
        if not text:
            return ""
        if "li" in parent_tags:
            return f"\n{text}"
        return f"\n\n{text}\n\n"

    convert_ul = convert_list
    convert_ol = convert_list

    def convert_li(self, el, text, parent_tags):
        text = (text or "").strip()
        if el.get("data-type") == "taskItem":
            marker = "[x]" if el.get("data-checked") == "true" else "[ ]"
            text = f"{marker} {text}".rstrip()
        parent = el.parent
        if parent is not None and parent.name == "ol":
            number = self._item_numbers.get(id(parent), 0) + 1
            self._item_numbers[id(parent)] = number
            bullet = f"{number}. "
        else:
            bullet = "- "
        if not text:
            return f"{bullet.rstrip()}\n"
        indent = " " * len(bullet)
        first, *rest = text.split("\n")
        lines = [f"{bullet}{first}"] + [f"{indent}{line}" if line else "" for line in rest]
        return "\n".join(lines) + "\n"

    def convert_pre(self, el, text, parent_tags):
        if text.endswith("\n"):
            text = text[:-1]
        if not text:
            return ""
        longest = max((len(run) for run in _BACKTICK_RUN_RE.findall(text)), default=2)
        fence = "`" * (longest + 1)
        return f"\n\n{fence}{code_language(el)}\n{text}\n{fence}\n\n"

    def convert_table(self, el, text, parent_tags):
        return f"\n\n{to_html(el)}\n\n"


def soup_to_markdown(soup: BeautifulSoup) -> str:
    """Render a sanitized soup as Markdown, blocks separated by blank lines."""
    return EditorMarkdownConverter().convert_soup(soup).strip("\n")
