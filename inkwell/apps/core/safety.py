"""Quick safety checks for user-supplied Markdown.

``is_safe`` is advisory: it gives editors fast feedback before submission
but is not a substitute for :func:`inkwell.apps.core.sanitizer.sanitize`,
which runs on every conversion regardless.
"""

from __future__ import annotations

import re

# Any match makes the text unsafe. Matching is case-insensitive.
UNSAFE_PATTERNS = (
    re.compile(r"<script", re.IGNORECASE),
    re.compile(r"javascript:", re.IGNORECASE),
    re.compile(r"on\w+\s*=", re.IGNORECASE),
    re.compile(r"<iframe", re.IGNORECASE),
    re.compile(r"eval\(", re.IGNORECASE),
    re.compile(r"expression\(", re.IGNORECASE),
)

# Raw or entity-encoded script blocks, removed with their content. The tag
# name must follow the "<" directly, so prose like "cat < script.sh" is kept
_SCRIPT_BLOCK_RE = re.compile(
    r"(?:<|&lt;)script(?=[\s/>]|&gt;).*?(?:<|&lt;)/script\s*(?:>|&gt;)",
    re.IGNORECASE | re.DOTALL,
)
# Leftover script openers/closers with no partner
_SCRIPT_TAG_RE = re.compile(
    r"(?:<|&lt;)/?script(?=[\s/>]|&gt;|$)[^<>]*?(?:>|&gt;|$)",
    re.IGNORECASE,
)
# Embedding tags, raw or entity-encoded
_EMBED_TAG_RE = re.compile(
    r"(?:<|&lt;)/?(?:iframe|object|embed)(?=[\s/>]|&gt;|$).*?(?:>|&gt;|$)",
    re.IGNORECASE | re.MULTILINE,
)
# Inline handlers with their value: onclick="..." / onclick='...' / onclick=bare
_HANDLER_ATTR_RE = re.compile(
    r"""\s*\bon\w+\s*=\s*(?:"[^"]*"|'[^']*'|[^\s>]+)""",
    re.IGNORECASE,
)
_PROTOCOL_RE = re.compile(r"(?:java|vb)script\s*:", re.IGNORECASE)


def is_safe(text: str | None) -> bool:
    """Return False if ``text`` matches any known script-injection pattern.

    Empty and ``None`` input is safe.
    """
    if not text or not isinstance(text, str):
        return True
    return not any(pattern.search(text) for pattern in UNSAFE_PATTERNS)


def sanitize_markdown(text: str | None) -> str:
    """Strip script-injection constructs from Markdown source.

    Removes script blocks and embedding tags (raw or entity-encoded),
    inline event handlers, and ``javascript:``/``vbscript:`` prefixes, then
    trims surrounding whitespace. Everything else, including harmless inline
    HTML, is left for the parser and sanitizer to handle.

    Args:
        text: Markdown source from an editor or import.

    Returns:
        Cleaned Markdown, or ``""`` for empty/non-string input.
    """
    if not text or not isinstance(text, str):
        return ""
    previous = None
    # Removing one construct can join the pieces of another
    while previous != text:
        previous = text
        text = _SCRIPT_BLOCK_RE.sub("", text)
        text = _SCRIPT_TAG_RE.sub("", text)
        text = _EMBED_TAG_RE.sub("", text)
        text = _HANDLER_ATTR_RE.sub("", text)
        text = _PROTOCOL_RE.sub("", text)
    return text.strip()
