"""URL and entity helpers shared by the sanitizer, parser, and serializer.

Every ``href``/``src`` that leaves this app goes through
:func:`is_allowed_url`. Only ``http://``, ``https://``, root-relative
(``/path``) and, for links, fragment (``#anchor``) references survive.
"""

from __future__ import annotations

import html
import re

# Schemes accepted as absolute URLs
ALLOWED_SCHEMES = ("http://", "https://")

# ASCII whitespace and control characters that browsers ignore inside a scheme
# (``java\tscript:`` is still ``javascript:`` to a browser)
_IGNORED_URL_CHARS_RE = re.compile(r"[\x00-\x20\x7f]+")

# Dangerous protocol prefixes; the colon is entity-encoded in serialized text
_PROTOCOL_RE = re.compile(r"((?:java|vb)script|data)(\s*):", re.IGNORECASE)

# A word followed by ``=``. Anchored at the word start so a long word is
# scanned once; the ``=`` is entity-encoded when the word holds ``on<char>``
# (``onclick=``, ``xonload =``, ``condition=``)
_ASSIGNMENT_RE = re.compile(r"\b(\w+\s*)=")
_HANDLER_NAME_RE = re.compile(r"on\w", re.IGNORECASE)


def escape_html(text: str, quote: bool = True) -> str:
    """Entity-escape ``&``, ``<``, ``>`` and, when ``quote`` is set, quotes."""
    return html.escape(text, quote=quote)


def is_allowed_url(url: str | None, *, allow_fragment: bool) -> bool:
    """Return True if ``url`` is an acceptable ``href``/``src`` value.

    The value is entity-decoded and stripped of whitespace/control
    characters before the check, so encoded or split schemes such as
    ``&#106;avascript:`` or ``java\\tscript:`` are rejected.

    Args:
        url: Raw attribute value or Markdown link destination.
        allow_fragment: Accept ``#anchor`` references (links only).
    """
    if not url:
        return False
    candidate = _IGNORED_URL_CHARS_RE.sub("", html.unescape(url)).lower()
    if not candidate:
        return False
    if candidate.startswith(ALLOWED_SCHEMES):
        return candidate not in ALLOWED_SCHEMES
    if candidate.startswith("//"):
        # Protocol-relative, not root-relative
        return False
    if candidate.startswith("/"):
        return True
    return allow_fragment and candidate.startswith("#")


def neutralize_text(text: str) -> str:
    """Break script-protocol and event-handler patterns in escaped text.

    Operates on text that is already HTML-escaped. The replacements are
    numeric entities, so a browser renders exactly the same characters
    while the serialized markup no longer contains ``javascript:`` or
    ``onclick=`` byte sequences.
    """
    text = _PROTOCOL_RE.sub(r"\1\2&#58;", text)
    return _ASSIGNMENT_RE.sub(_neutralize_assignment, text)


def _neutralize_assignment(match: re.Match) -> str:
    if _HANDLER_NAME_RE.search(match.group(1)):
        return f"{match.group(1)}&#61;"
    return match.group(0)
