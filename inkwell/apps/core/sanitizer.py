"""Allow-list HTML sanitizer.

Two stages:

1. ``nh3`` parses the input as HTML5 and drops everything outside the
   policy, including the content of inherently unsafe elements.
2. The cleaned markup is re-parsed with BeautifulSoup and filtered again:
   over-deep nesting is flattened, tags outside the policy are unwrapped,
   attributes are reduced to the policy, URLs are validated and
   entity-smuggled ``<script>``-style text is removed. The tree is then
   written out with :data:`html_tree.FRAGMENT_FORMATTER`.

If the second stage fails for any reason the caller still gets the text of
the first stage's output, never the raw input.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from html import unescape

import nh3
from bs4 import BeautifulSoup, NavigableString, Tag
from bs4.element import PreformattedString

from inkwell.apps.core.html_tree import flatten_deep_nesting, parse_fragment, to_html
from inkwell.apps.core.url_policy import escape_html, is_allowed_url, neutralize_text

logger = logging.getLogger(__name__)

# Allowed HTML tags for editor content
ALLOWED_TAGS = frozenset(
    [
        "p",
        "br",
        "strong",
        "em",
        "u",
        "del",
        "s",
        "strike",
        "code",
        "pre",
        "h1",
        "h2",
        "h3",
        "h4",
        "h5",
        "h6",
        "ul",
        "ol",
        "li",
        "blockquote",
        "a",
        "img",
        "hr",
        "table",
        "thead",
        "tbody",
        "tr",
        "th",
        "td",
    ]
)

# Allowed attributes per tag
ALLOWED_ATTRIBUTES = {
    "a": frozenset(["href"]),
    "img": frozenset(["src", "alt"]),
    "code": frozenset(["class"]),
    "pre": frozenset(["class"]),
    "ul": frozenset(["data-type"]),
    "li": frozenset(["data-type", "data-checked"]),
}

# Elements removed together with everything inside them
DROP_CONTENT_TAGS = frozenset(
    [
        "script",
        "style",
        "iframe",
        "object",
        "embed",
        "applet",
        "noscript",
        "template",
        "title",
        "textarea",
        "select",
        "xmp",
        "noembed",
        "noframes",
    ]
)

# Attributes holding a URL, and whether ``#fragment`` values are acceptable
URL_ATTRIBUTES = {"href": True, "src": False}

# Entity-encoded markup smuggled through as text (``&lt;script&gt;...``).
# A tag is ``<`` immediately followed by the name and closed by ``>``, so
# prose such as ``cat < script.sh`` or ``a < style guide`` is left alone.
# Paired blocks are removed with their content, then any leftover opener/closer.
_SMUGGLED_TAGS = "script|style|iframe|object|embed|applet|noscript|template"
_SMUGGLED_BLOCK_RE = re.compile(
    rf"<({_SMUGGLED_TAGS})(?=[\s/>])[^<>]*>.*?</\1\s*>",
    re.IGNORECASE | re.DOTALL,
)
_SMUGGLED_TAG_RE = re.compile(rf"</?(?:{_SMUGGLED_TAGS})(?=[\s/>])[^<>]*>", re.IGNORECASE)


@dataclass(frozen=True)
class AllowListPolicy:
    """Which tags and attributes survive sanitization.

    Attribute names starting with ``on`` are never kept, even if listed.
    """

    tags: frozenset[str] = ALLOWED_TAGS
    attributes: dict[str, frozenset[str]] = field(default_factory=lambda: dict(ALLOWED_ATTRIBUTES))
    drop_content_tags: frozenset[str] = DROP_CONTENT_TAGS
    url_attributes: dict[str, bool] = field(default_factory=lambda: dict(URL_ATTRIBUTES))

    def allowed_attributes(self, tag: str) -> frozenset[str]:
        return self.attributes.get(tag, frozenset())


DEFAULT_POLICY = AllowListPolicy()


# ---------------------------------------------------------------------------
# Stage 1: nh3
# ---------------------------------------------------------------------------


def _nh3_clean(markup: str, policy: AllowListPolicy) -> str:
    return nh3.clean(
        markup,
        tags=set(policy.tags),
        clean_content_tags=set(policy.drop_content_tags - policy.tags),
        attributes={tag: set(names) for tag, names in policy.attributes.items()},
        url_schemes={"http", "https"},
        link_rel=None,
        strip_comments=True,
    )


# ---------------------------------------------------------------------------
# Stage 2: BeautifulSoup filter
# ---------------------------------------------------------------------------


def _strip_smuggled_markup(data: str) -> str:
    # Repeat until stable: removing "<script>" from "<scr<script>ipt>" leaves a new one
    while True:
        stripped = _SMUGGLED_TAG_RE.sub("", _SMUGGLED_BLOCK_RE.sub("", data))
        if stripped == data:
            return data
        data = stripped


def _filter_attrs(tag: Tag, policy: AllowListPolicy) -> dict[str, str]:
    allowed = policy.allowed_attributes(tag.name)
    kept: dict[str, str] = {}
    for name, value in tag.attrs.items():
        if name.startswith("on") or name not in allowed:
            continue
        value = _strip_smuggled_markup(value or "")
        if name in policy.url_attributes:
            if not is_allowed_url(value, allow_fragment=policy.url_attributes[name]):
                continue
            value = value.strip()
        kept[name] = value
    return kept


def _filter_tree(cleaned: str, policy: AllowListPolicy) -> BeautifulSoup:
    soup = parse_fragment(cleaned)
    flatten_deep_nesting(soup)

    drop = policy.drop_content_tags - policy.tags
    # Extracting an outer element leaves inner ones attached to it, so
    # extracting them too is harmless
    for tag in [tag for tag in soup.find_all(True) if tag.name in drop]:
        tag.extract()

    for tag in soup.find_all(True):
        if tag.name not in policy.tags:
            # Unwrap: keep the content, drop the tag
            tag.unwrap()
        else:
            tag.attrs = _filter_attrs(tag, policy)
    soup.smooth()

    for node in list(soup.descendants):
        if not isinstance(node, NavigableString):
            continue
        if isinstance(node, PreformattedString):
            # Comments, CDATA, doctypes and processing instructions
            node.extract()
            continue
        data = _strip_smuggled_markup(str(node))
        if not data:
            node.extract()
        elif data != node:
            node.replace_with(data)
    return soup


def _text_only(cleaned: str) -> str:
    text = unescape(nh3.clean(cleaned, tags=set()))
    return neutralize_text(escape_html(_strip_smuggled_markup(text), quote=False))


def sanitize(html: str | None, policy: AllowListPolicy = DEFAULT_POLICY) -> str:
    """Return ``html`` reduced to the elements and attributes in ``policy``.

    Never raises. Disallowed elements are unwrapped (their text is kept)
    unless they are in ``policy.drop_content_tags``, in which case their
    content goes too. Elements nested deeper than
    :data:`html_tree.MAX_DEPTH` are flattened to text.
    ``sanitize(sanitize(x)) == sanitize(x)``.

    Args:
        html: Arbitrary, possibly malformed markup.
        policy: Allow-list to enforce.

    Returns:
        Sanitized markup, or ``""`` for empty/non-string input.
    """
    if not html or not isinstance(html, str):
        return ""
    cleaned = _nh3_clean(html, policy)
    try:
        return to_html(_filter_tree(cleaned, policy))
    except Exception:
        logger.exception(
            "HTML sanitization failed, returning text only",
            extra={"input_length": len(html)},
        )
        return _text_only(cleaned)


def sanitize_soup(html: str | None, policy: AllowListPolicy = DEFAULT_POLICY) -> BeautifulSoup:
    """Sanitize ``html`` and return the resulting tree instead of markup."""
    return parse_fragment(sanitize(html, policy))
