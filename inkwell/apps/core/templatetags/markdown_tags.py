"""Markdown pipeline: render_markdown, to_markdown."""

from django import template
from django.utils.safestring import mark_safe

register = template.Library()


@register.filter
def to_markdown(html):
    """Convert editor HTML to Markdown for a source-mode editor.

    Usage in templates::

        <textarea>{{ article.body_html|to_markdown }}</textarea>
    """
    from inkwell.apps.core.markdown import render_to_markdown

    return render_to_markdown(html)


@register.filter
def render_markdown(text):
    """Convert markdown text to sanitized HTML."""
    from inkwell.apps.core.markdown import parse_from_markdown

    return mark_safe(parse_from_markdown(text))  # noqa: S308 - HTML sanitized by the pipeline
