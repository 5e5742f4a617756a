"""Markdown to editor HTML.

CommonMark parsing is done by markdown-it-py. On top of the stock preset:

- single newlines become ``<br>`` (``breaks``) and ``~~x~~`` is enabled;
- every link and image destination is checked with
  :func:`inkwell.apps.core.url_policy.is_allowed_url` before a tag is
  emitted, so a rejected ``[x](javascript:...)`` stays literal text;
- an image whose source is only acceptable as a link (``#anchor``) is
  rendered back as its literal Markdown;
- ``- [ ]`` / ``- [x]`` items become the editor's task-list markup.

The result is *not* sanitized here; :func:`inkwell.apps.core.markdown.parse_from_markdown`
runs the sanitizer over it. Raw HTML in the source passes through to that
step untouched.
"""

from __future__ import annotations

import re

from markdown_it import MarkdownIt
from markdown_it.common.utils import escapeHtml

from inkwell.apps.core.url_policy import is_allowed_url

# CommonMark-compliant markdown parser.
# - breaks: single newlines become <br>
# - strikethrough: ~~x~~
# - fenced code blocks are built into the commonmark preset and already
#   emit class="language-{lang}"
_md = MarkdownIt("commonmark", {"breaks": True}).enable(["strikethrough"])
_md.validateLink = lambda url: is_allowed_url(url, allow_fragment=True)


def _render_image(self, tokens, idx, options, env):
    token = tokens[idx]
    src = token.attrGet("src") or ""
    if not is_allowed_url(src, allow_fragment=False):
        return escapeHtml(f"![{token.content}]({src})")
    return self.image(tokens, idx, options, env)


_md.add_render_rule("image", _render_image)

# Regex for task list items: matches <li> followed by optional <p>, then [ ], [  ], [], [x], or [X]
# Group 1: optional whitespace+<p> (for blank-line-separated list items)
# Group 2: the check character to determine checked state (spaces or empty = unchecked)
_TASK_LIST_RE = re.compile(r"<li>(\s*<p>)?\s*\[( *|[xX])\](?=\s|<)[ \t]*")
# A <ul> whose first item is a task item
_TASK_LIST_OPEN_RE = re.compile(r'<ul>(?=\s*<li data-type="taskItem")')


def _convert_task_list_items(html: str) -> str:
    """Convert task list markers in <li> tags to editor task items.

    ``<li>[x] done`` becomes ``<li data-type="taskItem" data-checked="true">done``
    and the enclosing ``<ul>`` is marked ``data-type="taskList"``.

    Args:
        html: Rendered HTML containing <li>[ ] or <li>[x] patterns

    Returns:
        HTML with task list markers replaced by data attributes
    """

    def _replace(match: re.Match) -> str:
        p_tag = match.group(1) or ""  # Preserve <p> if present (blank-line-separated items)
        checked = "true" if match.group(2) in ("x", "X") else "false"
        return f'<li data-type="taskItem" data-checked="{checked}">{p_tag}'

    html = _TASK_LIST_RE.sub(_replace, html)
    return _TASK_LIST_OPEN_RE.sub('<ul data-type="taskList">', html)


def markdown_to_html(markdown: str) -> str:
    """Render Markdown to unsanitized editor HTML."""
    return _convert_task_list_items(_md.render(markdown))
