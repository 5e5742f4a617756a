"""Form fields and widgets for rich-text content."""

from django import forms
from django.core.exceptions import ValidationError

from inkwell.apps.core.markdown import is_safe, render_to_markdown, sanitize_markdown


class MarkdownTextarea(forms.Textarea):
    """Textarea pre-configured for markdown editing.

    Provides the data attributes the editor scripts look for. Forms using
    this widget only need to specify per-field attrs like ``rows`` or
    ``placeholder``.
    """

    def __init__(self, attrs=None):
        defaults = {
            "data-text-textarea": "",
            "data-markdown-shortcuts": "",
            "data-safety-check": "",
        }
        if attrs:
            defaults.update(attrs)
        super().__init__(attrs=defaults)


class MarkdownField(forms.CharField):
    """CharField for Markdown source.

    Cleaned values have script-injection constructs stripped. With
    ``reject_unsafe=True`` the field refuses such input instead of cleaning
    it, so the author sees what was wrong.
    """

    widget = MarkdownTextarea
    default_error_messages = {
        "unsafe_markdown": "This content contains scripts or event handlers that are not allowed.",
    }

    def __init__(self, *, reject_unsafe=False, **kwargs):
        self.reject_unsafe = reject_unsafe
        kwargs.setdefault("strip", True)
        super().__init__(**kwargs)

    def validate(self, value):
        super().validate(value)
        if self.reject_unsafe and not is_safe(value):
            raise ValidationError(self.error_messages["unsafe_markdown"], code="unsafe_markdown")

    def clean(self, value):
        value = super().clean(value)
        return sanitize_markdown(value)


class RichTextField(forms.CharField):
    """CharField that accepts editor HTML and cleans it to Markdown for storage."""

    widget = forms.HiddenInput

    def clean(self, value):
        value = super().clean(value)
        return render_to_markdown(value)
