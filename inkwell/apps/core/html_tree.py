"""BeautifulSoup helpers shared by the sanitizer and the Markdown serializer.

Fragments are parsed with the stdlib-backed ``html.parser`` tree builder and
written back with :data:`FRAGMENT_FORMATTER`, which escapes text, keeps
attribute order, and entity-encodes script protocols and handler-like
``on<word>=`` sequences so they never appear as raw bytes in the output.
"""

from __future__ import annotations

from bs4 import BeautifulSoup, Tag
from bs4.formatter import HTMLFormatter

from inkwell.apps.core.url_policy import escape_html, neutralize_text

# Deeper elements are flattened to their text before anything walks the tree
MAX_DEPTH = 64


def _substitute_text(text: str) -> str:
    return neutralize_text(escape_html(text, quote=False))


class FragmentFormatter(HTMLFormatter):
    """Deterministic output: ``<br>`` not ``<br/>``, attributes in source order."""

    def __init__(self):
        super().__init__(
            entity_substitution=_substitute_text,
            void_element_close_prefix=None,
            cdata_containing_tags=frozenset(),
        )

    def attribute_value(self, value):
        # Quotes are escaped, so bs4 always wraps the value in double quotes
        return neutralize_text(escape_html(value))

    def attributes(self, tag):
        return list(tag.attrs.items())


FRAGMENT_FORMATTER = FragmentFormatter()


def parse_fragment(markup: str | None) -> BeautifulSoup:
    """Parse an HTML fragment. Attribute values are always plain strings."""
    return BeautifulSoup(markup or "", "html.parser", multi_valued_attributes=None)


def to_html(node: Tag) -> str:
    """Serialize a soup or a single tag with :data:`FRAGMENT_FORMATTER`."""
    return node.decode(formatter=FRAGMENT_FORMATTER)


def flatten_deep_nesting(soup: BeautifulSoup, max_depth: int = MAX_DEPTH) -> int:
    """Replace the content of elements nested ``max_depth`` deep with their text.

    Walks the tree in document order without recursion, so arbitrarily deep
    input is safe. Later passes (and markdownify, which recurses per level)
    then only ever see a bounded tree.

    Returns:
        The number of elements that were flattened.
    """
    depths = {id(soup): 0}
    too_deep: list[Tag] = []
    for tag in soup.find_all(True):
        depth = depths[id(tag.parent)] + 1
        depths[id(tag)] = depth
        if depth == max_depth and tag.find(True) is not None:
            too_deep.append(tag)
    # Tags at the same depth never contain each other
    for tag in too_deep:
        tag.string = tag.get_text()
    return len(too_deep)
