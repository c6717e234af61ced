"""Rendering of event title/body templates.

Templates use ``str.format`` placeholders over a fixed set of fields::

    "{service_name} degraded since {started_at}"

Timestamps are pre-formatted as ``YYYY-MM-DD HH:MM:SS TZ`` and render as an
empty string when absent.
"""

import string
from datetime import datetime, timedelta, timezone
from typing import Optional

from statuspage.api.events.errors import TemplateRenderError, TemplateSyntaxError
from statuspage.api.events.models import TemplateData

TEMPLATE_FIELDS = (
    "service_name",
    "service_group_name",
    "started_at",
    "resolved_at",
    "scheduled_start",
    "scheduled_end",
)

TIME_FORMAT = "%Y-%m-%d %H:%M:%S %Z"

CONVERSIONS = frozenset({"r", "s", "a"})


def format_time(value: Optional[datetime]) -> str:
    """Format a timestamp for display in rendered messages."""
    if value is None:
        return ""
    if value.utcoffset() == timedelta(0):
        value = value.astimezone(timezone.utc)
    return value.strftime(TIME_FORMAT).strip()


class TemplateRenderer:
    """Validates and renders event templates."""

    def __init__(self) -> None:
        self._formatter = string.Formatter()

    def validate(self, template: str) -> None:
        """Check template syntax without rendering it.

        Placeholders must be plain names. Positional fields, attribute and
        index lookups, and unknown conversions are not part of the template
        language.

        Raises:
            TemplateSyntaxError: If the template cannot be parsed
        """
        try:
            parsed = list(self._formatter.parse(template))
        except ValueError as e:
            raise TemplateSyntaxError(f"invalid template syntax: {e}") from e

        for _, field_name, format_spec, conversion in parsed:
            if field_name is None:
                continue
            if not field_name.isidentifier():
                raise TemplateSyntaxError(
                    f"invalid template syntax: unsupported placeholder {{{field_name}}}"
                )
            if format_spec and "{" in format_spec:
                raise TemplateSyntaxError(
                    "invalid template syntax: nested placeholders are not supported"
                )
            if conversion is not None and conversion not in CONVERSIONS:
                raise TemplateSyntaxError(
                    f"invalid template syntax: unknown conversion !{conversion}"
                )

    def render(self, template: str, data: TemplateData) -> str:
        """Render ``template`` with ``data``.

        Raises:
            TemplateSyntaxError: If the template cannot be parsed
            TemplateRenderError: If a placeholder is unknown or its format
                spec cannot be applied
        """
        self.validate(template)

        values = {}
        for name in TEMPLATE_FIELDS:
            value = getattr(data, name)
            values[name] = format_time(value) if isinstance(value, datetime) else value or ""

        try:
            return template.format_map(values)
        except KeyError as e:
            raise TemplateRenderError(f"unknown template field: {e.args[0]}") from e
        except (IndexError, ValueError) as e:
            raise TemplateRenderError(f"render template: {e}") from e
