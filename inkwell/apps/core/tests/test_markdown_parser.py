"""Tests for Markdown to editor HTML conversion."""

import re

from django.test import SimpleTestCase, tag

from inkwell.apps.core.html_tree import MAX_DEPTH
from inkwell.apps.core.markdown import is_safe, parse_from_markdown
from inkwell.apps.core.markdown_parser import markdown_to_html


@tag("markdown")
class ParseFromMarkdownTests(SimpleTestCase):
    """Tests for parse_from_markdown."""

    def test_empty_text_returns_empty_string(self):
        """Empty, None or non-string input returns empty string."""
        self.assertEqual(parse_from_markdown(""), "")
        self.assertEqual(parse_from_markdown(None), "")
        self.assertEqual(parse_from_markdown(42), "")

    def test_heading_bold_and_italic(self):
        """Headings, bold and italic are converted."""
        result = parse_from_markdown("# Title\n**bold** and *italic*")
        self.assertIn("<h1>Title</h1>", result)
        self.assertIn("<strong>bold</strong>", result)
        self.assertIn("<em>italic</em>", result)

    def test_all_heading_levels(self):
        """Heading level follows the number of hashes."""
        for level in range(1, 7):
            with self.subTest(level=level):
                result = parse_from_markdown(f"{'#' * level} Heading")
                self.assertEqual(result, f"<h{level}>Heading</h{level}>\n")

    def test_seven_hashes_is_not_a_heading(self):
        """More than six hashes is plain text."""
        self.assertEqual(parse_from_markdown("####### seven"), "<p>####### seven</p>\n")

    def test_heading_closing_hashes_removed(self):
        """Trailing hashes on a heading are not part of its text."""
        self.assertEqual(parse_from_markdown("## Title ##"), "<h2>Title</h2>\n")

    def test_underscore_emphasis(self):
        """Underscore emphasis is recognised."""
        self.assertIn("<em>italic</em>", parse_from_markdown("_italic_"))
        self.assertIn("<strong>bold</strong>", parse_from_markdown("__bold__"))

    def test_intraword_underscores_literal(self):
        """Underscores inside words are not emphasis."""
        self.assertEqual(parse_from_markdown("snake_case_name"), "<p>snake_case_name</p>\n")

    def test_bold_and_italic_combined(self):
        """Triple markers are italic wrapping bold."""
        self.assertIn("<em><strong>both</strong></em>", parse_from_markdown("***both***"))

    def test_nested_emphasis(self):
        """Bold can contain italic and vice versa."""
        self.assertIn(
            "<strong>bold with <em>italic</em> inside</strong>",
            parse_from_markdown("**bold with *italic* inside**"),
        )
        self.assertIn("<em>a <strong>b</strong></em>", parse_from_markdown("*a **b***"))
        self.assertIn("<strong>a <em>b</em></strong>", parse_from_markdown("**a *b***"))

    def test_strikethrough(self):
        """Double tildes become <s>."""
        self.assertIn("<s>strikethrough</s>", parse_from_markdown("~~strikethrough~~"))

    def test_inline_code(self):
        """Backticks become <code> and their content is not formatted."""
        self.assertIn("<code>code snippet</code>", parse_from_markdown("`code snippet`"))
        self.assertIn("<code>**not bold**</code>", parse_from_markdown("`**not bold**`"))

    def test_inline_code_escapes_html(self):
        """HTML inside a code span is shown, not interpreted."""
        result = parse_from_markdown("`<b>tag</b>`")
        self.assertIn("<code>&lt;b&gt;tag&lt;/b&gt;</code>", result)

    def test_backslash_escapes(self):
        """Escaped markers are literal characters."""
        self.assertEqual(parse_from_markdown(r"\*not italic\*"), "<p>*not italic*</p>\n")
        self.assertEqual(parse_from_markdown(r"\# not a heading"), "<p># not a heading</p>\n")

    def test_unmatched_markers_literal(self):
        """A lone marker stays as text."""
        self.assertEqual(parse_from_markdown("2 * 3 = 6"), "<p>2 * 3 = 6</p>\n")
        self.assertEqual(parse_from_markdown("**open"), "<p>**open</p>\n")


@tag("markdown")
class ParseLinksTests(SimpleTestCase):
    """Tests for links and images."""

    def test_link(self):
        """Links keep their href."""
        result = parse_from_markdown("[link text](https://example.com)")
        self.assertIn('<a href="https://example.com">link text</a>', result)

    def test_link_label_formatting(self):
        """Link labels may contain inline formatting."""
        result = parse_from_markdown("[**bold** link](https://example.com)")
        self.assertIn('<a href="https://example.com"><strong>bold</strong> link</a>', result)

    def test_relative_and_fragment_links(self):
        """Root-relative and #anchor links are allowed."""
        self.assertIn('<a href="/docs">docs</a>', parse_from_markdown("[docs](/docs)"))
        self.assertIn('<a href="#top">top</a>', parse_from_markdown("[top](#top)"))

    def test_link_title_dropped(self):
        """An optional link title is accepted and discarded."""
        result = parse_from_markdown('[x](https://example.com "Title")')
        self.assertIn('<a href="https://example.com">x</a>', result)
        self.assertNotIn("Title", result)

    def test_image(self):
        """Images keep src and alt."""
        result = parse_from_markdown("![alt text](https://example.com/image.jpg)")
        self.assertIn('<img src="https://example.com/image.jpg" alt="alt text">', result)

    def test_javascript_link_left_as_text(self):
        """A link with a javascript: URL is not converted."""
        result = parse_from_markdown("[x](javascript:alert(1))")
        self.assertNotIn('<a href="javascript:', result)
        self.assertNotIn("<a", result)
        self.assertNotIn("javascript:", result)

    def test_invalid_image_left_as_text(self):
        """Images with a disallowed source are not converted."""
        self.assertNotIn("<img", parse_from_markdown("![x](javascript:alert(1))"))
        self.assertNotIn("<img", parse_from_markdown("![x](#anchor)"))
        self.assertNotIn("<img", parse_from_markdown("![x](data:image/png;base64,AAAA)"))

    def test_link_with_parentheses_in_url(self):
        """Balanced parentheses are part of the destination."""
        result = parse_from_markdown("[wiki](https://en.wikipedia.org/wiki/Foo_(bar))")
        self.assertIn('href="https://en.wikipedia.org/wiki/Foo_(bar)"', result)

    def test_code_span_beats_link(self):
        """A code span containing link syntax stays code."""
        result = parse_from_markdown("`[x](https://example.com)`")
        self.assertIn("<code>[x](https://example.com)</code>", result)
        self.assertNotIn("<a", result)


@tag("markdown")
class ParseBlocksTests(SimpleTestCase):
    """Tests for block-level structure."""

    def test_bullet_list(self):
        """Dash items form a <ul>."""
        result = parse_from_markdown("- item 1\n- item 2")
        self.assertIn("<ul>", result)
        self.assertIn("<li>item 1</li>", result)
        self.assertIn("<li>item 2</li>", result)

    def test_ordered_list(self):
        """Numbered items form an <ol>."""
        result = parse_from_markdown("1. first\n2. second")
        self.assertEqual(result, "<ol>\n<li>first</li>\n<li>second</li>\n</ol>\n")

    def test_task_list(self):
        """Task items carry their checked state."""
        result = parse_from_markdown("- [x] done\n- [ ] todo")
        self.assertIn('data-checked="true"', result)
        self.assertIn('data-checked="false"', result)
        self.assertIn('<ul data-type="taskList">', result)
        self.assertIn('<li data-type="taskItem" data-checked="true">done</li>', result)

    def test_uppercase_task_marker(self):
        """[X] counts as checked."""
        self.assertIn('data-checked="true"', parse_from_markdown("- [X] done"))

    def test_list_item_continuation(self):
        """Indented lines continue the previous list item."""
        result = parse_from_markdown("- first line\n  continued")
        self.assertIn("<li>first line<br>\ncontinued</li>", result)

    def test_list_type_change_starts_new_list(self):
        """Switching between bullets and numbers starts a new list."""
        result = parse_from_markdown("- a\n1. b")
        self.assertIn("<ul>\n<li>a</li>\n</ul>", result)
        self.assertIn("<ol>\n<li>b</li>\n</ol>", result)

    def test_blockquote(self):
        """Quote lines form one blockquote."""
        self.assertEqual(
            parse_from_markdown("> quoted text"),
            "<blockquote>\n<p>quoted text</p>\n</blockquote>\n",
        )
        self.assertIn("<p>a<br>\nb</p>", parse_from_markdown("> a\n> b"))

    def test_blockquote_paragraphs(self):
        """Blank quote lines separate paragraphs inside the quote."""
        result = parse_from_markdown("> a\n>\n> b")
        self.assertEqual(result, "<blockquote>\n<p>a</p>\n<p>b</p>\n</blockquote>\n")

    def test_horizontal_rule(self):
        """--- alone on a line is a rule."""
        result = parse_from_markdown("before\n\n---\n\nafter")
        self.assertIn("<hr>", result)
        self.assertIn("<p>before</p>", result)
        self.assertIn("<p>after</p>", result)

    def test_paragraphs(self):
        """Blank lines separate paragraphs; single newlines become <br>."""
        result = parse_from_markdown("Paragraph 1\n\nParagraph 2")
        self.assertIn("<p>Paragraph 1</p>", result)
        self.assertIn("<p>Paragraph 2</p>", result)
        self.assertEqual(parse_from_markdown("line 1\nline 2"), "<p>line 1<br>\nline 2</p>\n")

    def test_crlf_line_endings(self):
        """Windows line endings are normalised."""
        result = parse_from_markdown("# Title\r\n\r\ntext")
        self.assertIn("<h1>Title</h1>", result)
        self.assertIn("<p>text</p>", result)


@tag("markdown")
class ParseCodeBlockTests(SimpleTestCase):
    """Tests for fenced code blocks."""

    def test_fenced_code_block(self):
        """Fences become pre/code."""
        result = parse_from_markdown("```\ncode block\n```")
        self.assertEqual(result, "<pre><code>code block\n</code></pre>\n")

    def test_language_class(self):
        """The fence language becomes a class."""
        result = parse_from_markdown("```python\nprint(1)\n```")
        self.assertIn('<pre><code class="language-python">print(1)\n</code></pre>', result)

    def test_code_block_mentioning_style_kept(self):
        """A "<" followed by a tag-like word inside a fence is ordinary code."""
        result = parse_from_markdown("```\nif a < style_limit:\n    pass\n```")
        self.assertEqual(
            result, "<pre><code>if a &lt; style_limit:\n    pass\n</code></pre>\n"
        )

    def test_code_block_html_escaped(self):
        """HTML in code blocks is escaped, not rendered."""
        result = parse_from_markdown("```html\n<div>test</div>\n```")
        self.assertIn("&lt;div&gt;test&lt;/div&gt;", result)
        self.assertNotIn("<div>", result)

    def test_code_block_not_formatted(self):
        """Markdown inside a code block is left alone."""
        result = parse_from_markdown("```\n# not a heading\n**not bold**\n- not a list\n```")
        self.assertNotIn("<h1>", result)
        self.assertNotIn("<strong>", result)
        self.assertNotIn("<li>", result)
        self.assertIn("**not bold**", result)

    def test_unterminated_fence_runs_to_end(self):
        """A fence with no closer takes the rest of the document."""
        result = parse_from_markdown("```py\nprint(1)\n\n# still code")
        self.assertIn('<code class="language-py">', result)
        self.assertIn("# still code", result)
        self.assertNotIn("<h1>", result)


@tag("markdown")
class ParseRawHtmlTests(SimpleTestCase):
    """Tests for HTML embedded in Markdown."""

    def test_table_passthrough(self):
        """A table written as HTML survives sanitization."""
        result = parse_from_markdown("<table><tr><td>cell</td></tr></table>")
        self.assertIn("<td>cell</td>", result)

    def test_inline_underline_paragraph(self):
        """A paragraph starting with inline HTML is still a paragraph."""
        result = parse_from_markdown("<u>under</u> and **bold**")
        self.assertIn("<p><u>under</u> and <strong>bold</strong></p>", result)

    def test_disallowed_html_unwrapped(self):
        """Disallowed tags are removed by the sanitizer."""
        result = parse_from_markdown("<div>kept text</div>")
        self.assertNotIn("<div>", result)
        self.assertIn("kept text", result)


# Inputs that try to get script into the rendered HTML
MALICIOUS_MARKDOWN = [
    '<script>alert("xss")</script>',
    "<ScRiPt>alert(1)</ScRiPt>",
    "text <script>alert(1)</script> more",
    "[a](JaVaScRiPt:alert(1))",
    "[a](javascript&#58;alert(1))",
    "[a](&#106;avascript:alert(1))",
    "![a](javascript:alert(1))",
    '<a href="javascript:alert(1)">x</a>',
    "<img src=x onerror=alert(1)>",
    '<p onclick="alert(1)">x</p>',
    "<svg onload=alert(1)>",
    "<iframe src=https://evil.example.com></iframe>",
    "&lt;script&gt;alert(1)&lt;/script&gt;",
    "`<script>alert(1)</script>`",
    "```\n<script>alert(1)</script>\n```",
    "onclick=alert(1) in plain text",
    "visit javascript:alert(1) now",
    "**<script>alert(1)</script>**",
]


@tag("security")
class ParseSafetyTests(SimpleTestCase):
    """parse_from_markdown never emits script."""

    def test_script_removed(self):
        """Script tags and their content do not survive."""
        result = parse_from_markdown('<script>alert("xss")</script>')
        self.assertNotIn("<script", result)
        self.assertNotIn("alert", result)

    def test_event_handler_removed(self):
        """Event handler attributes are stripped."""
        result = parse_from_markdown('<img src="x" onerror="alert(1)">')
        self.assertNotIn("onerror", result)

    def test_no_unsafe_output(self):
        """No script tags, script protocols or handler attributes in any output."""
        for markdown in MALICIOUS_MARKDOWN:
            with self.subTest(markdown=markdown):
                result = parse_from_markdown(markdown)
                self.assertNotIn("<script", result.lower())
                self.assertNotIn("javascript:", result.lower())
                self.assertIsNone(re.search(r"on\w+=", result, re.IGNORECASE))
                self.assertTrue(is_safe(result))


@tag("markdown")
class MarkdownToHtmlTests(SimpleTestCase):
    """Tests for the unsanitized markdown-it stage."""

    def test_blocks_separated_by_newlines(self):
        """Each block ends with a newline."""
        self.assertEqual(markdown_to_html("# H1\n## H2"), "<h1>H1</h1>\n<h2>H2</h2>\n")

    def test_inline_html_passes_through_unsanitized(self):
        """markdown_to_html leaves inline HTML for the sanitizer."""
        self.assertIn("<b>x</b>", markdown_to_html("<b>x</b>"))

    def test_task_items_converted(self):
        """Task markers become editor task items inside a task list."""
        self.assertEqual(
            markdown_to_html("- [ ] todo"),
            '<ul data-type="taskList">\n'
            '<li data-type="taskItem" data-checked="false">todo</li>\n'
            "</ul>\n",
        )

    def test_loose_task_items_keep_paragraph(self):
        """Blank-line-separated task items keep their <p>."""
        result = markdown_to_html("- [x] a\n\n- [ ] b")
        self.assertIn('<li data-type="taskItem" data-checked="true">\n<p>a</p>', result)
        self.assertIn('<li data-type="taskItem" data-checked="false">\n<p>b</p>', result)
        self.assertIn('<ul data-type="taskList">', result)

    def test_marker_without_space_is_text(self):
        """[x] glued to the following word is not a task marker."""
        result = markdown_to_html("- [x]y")
        self.assertIn("<li>[x]y</li>", result)
        self.assertNotIn("taskItem", result)

    def test_plain_list_not_marked(self):
        """Ordinary bullet lists are not task lists."""
        self.assertEqual(markdown_to_html("- a"), "<ul>\n<li>a</li>\n</ul>\n")


@tag("markdown")
class LiteralAngleBracketTests(SimpleTestCase):
    """A "<" in prose or code is text and survives conversion."""

    def test_comparison_in_prose(self):
        """a < b stays readable."""
        self.assertEqual(parse_from_markdown("a < b"), "<p>a &lt; b</p>\n")

    def test_redirect_in_code_span(self):
        """A shell redirect into a file named like a tag is kept."""
        result = parse_from_markdown("Run `cat < script.sh` now")
        self.assertEqual(result, "<p>Run <code>cat &lt; script.sh</code> now</p>\n")

    def test_tag_name_after_space_in_prose(self):
        """Prose mentioning a style guide after "<" is kept."""
        result = parse_from_markdown("x < style guide rules")
        self.assertEqual(result, "<p>x &lt; style guide rules</p>\n")


@tag("markdown")
class PathologicalMarkdownTests(SimpleTestCase):
    """parse_from_markdown never raises, whatever the shape of the input."""

    def test_deeply_nested_raw_html(self):
        """Thousands of nested inline tags are flattened."""
        result = parse_from_markdown("<em>" * 3000 + "x")
        self.assertIn("x", result)
        self.assertLessEqual(result.count("<em>"), MAX_DEPTH)

    def test_deeply_nested_quotes(self):
        """Deep blockquote nesting is bounded."""
        result = parse_from_markdown(">" * 3000 + " x")
        self.assertIsInstance(result, str)
        self.assertLessEqual(result.count("<blockquote>"), MAX_DEPTH)

    def test_large_document(self):
        """Large documents are converted in full."""
        result = parse_from_markdown("para **bold**\n\n" * 5000)
        self.assertEqual(result.count("<p>"), 5000)
        self.assertEqual(result.count("<strong>bold</strong>"), 5000)

    def test_many_unmatched_markers(self):
        """Long runs of unmatched emphasis markers stay literal."""
        result = parse_from_markdown("*a " * 20000)
        self.assertTrue(result.startswith("<p>*a *a"))
