"""Markdown ⇄ editor HTML conversion.

Public API used by templates, forms, and the article save/load paths:

- ``parse_from_markdown()``: stored Markdown → sanitized editor HTML
- ``render_to_markdown()``: editor HTML → Markdown for storage
- ``is_safe()``: advisory check for pre-submission feedback
- ``sanitize_markdown()``: strip injection constructs from Markdown source

Conversion never raises. A failure inside a conversion is logged and the
caller gets a safe fallback, so one malformed document cannot break a save
or render.
"""

from __future__ import annotations

import logging

from inkwell.apps.core.markdown_parser import markdown_to_html
from inkwell.apps.core.markdown_serializer import soup_to_markdown
from inkwell.apps.core.safety import is_safe, sanitize_markdown
from inkwell.apps.core.sanitizer import sanitize, sanitize_soup

logger = logging.getLogger(__name__)

__all__ = [
    "is_safe",
    "parse_from_markdown",
    "render_to_markdown",
    "sanitize_markdown",
]


def parse_from_markdown(markdown: str | None) -> str:
    """Convert Markdown to sanitized HTML for the rich-text editor.

    Full pipeline: markdown-it render → task items → sanitize.

    Args:
        markdown: Markdown source as stored.

    Returns:
        Sanitized HTML, or ``""`` for empty input or on internal failure.
    """
    if not markdown or not isinstance(markdown, str):
        return ""
    try:
        return sanitize(markdown_to_html(markdown))
    except Exception:
        logger.exception(
            "Markdown to HTML conversion failed",
            extra={"input_length": len(markdown)},
        )
        return ""


def render_to_markdown(html: str | None) -> str:
    """Convert editor HTML to Markdown for storage.

    The HTML is sanitized before it is walked, so disallowed elements (and
    the content of scripts and styles) never reach the output.

    Args:
        html: HTML produced by the rich-text editor.

    Returns:
        Markdown text, ``""`` for empty input, or the sanitized HTML
        unchanged if walking it fails. The raw input is never returned.
    """
    if not html or not isinstance(html, str):
        return ""
    try:
        return soup_to_markdown(sanitize_soup(html))
    except Exception:
        logger.exception(
            "HTML to Markdown conversion failed",
            extra={"input_length": len(html)},
        )
        return sanitize(html)
