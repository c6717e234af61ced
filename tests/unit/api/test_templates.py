"""Tests for template rendering."""

from datetime import datetime, timedelta, timezone

import pytest

from statuspage.api.events.errors import TemplateRenderError, TemplateSyntaxError
from statuspage.api.events.models import TemplateData
from statuspage.api.events.templates import TemplateRenderer, format_time


@pytest.fixture
def renderer() -> TemplateRenderer:
    return TemplateRenderer()


@pytest.fixture
def data() -> TemplateData:
    return TemplateData(
        service_name="Checkout",
        service_group_name="Payments",
        started_at=datetime(2024, 6, 1, 12, 0, 5, tzinfo=timezone.utc),
        scheduled_start=datetime(2024, 6, 2, 1, 0, tzinfo=timezone.utc),
        scheduled_end=datetime(2024, 6, 2, 3, 0, tzinfo=timezone.utc),
    )


class TestFormatTime:
    def test_utc(self):
        assert format_time(datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)) == (
            "2024-01-02 03:04:05 UTC"
        )

    def test_fixed_offset(self):
        tz = timezone(timedelta(hours=2), "CEST")
        assert format_time(datetime(2024, 1, 2, 3, 4, 5, tzinfo=tz)) == "2024-01-02 03:04:05 CEST"

    def test_none(self):
        assert format_time(None) == ""


class TestRender:
    def test_all_fields(self, renderer, data):
        rendered = renderer.render(
            "{service_name}/{service_group_name}: {started_at} "
            "[{scheduled_start} - {scheduled_end}] {resolved_at}",
            data,
        )
        assert rendered == (
            "Checkout/Payments: 2024-06-01 12:00:05 UTC "
            "[2024-06-02 01:00:00 UTC - 2024-06-02 03:00:00 UTC] "
        )

    def test_plain_text(self, renderer, data):
        assert renderer.render("All systems operational", data) == "All systems operational"

    def test_escaped_braces(self, renderer, data):
        assert renderer.render("{{literal}} {service_name}", data) == "{literal} Checkout"

    def test_format_spec(self, renderer, data):
        assert renderer.render("{service_name:>10}", data) == "  Checkout"

    def test_unknown_field(self, renderer, data):
        with pytest.raises(TemplateRenderError):
            renderer.render("{incident_id}", data)

    def test_bad_format_spec(self, renderer, data):
        with pytest.raises(TemplateRenderError):
            renderer.render("{service_name:d}", data)

    def test_positional_placeholder(self, renderer, data):
        with pytest.raises(TemplateSyntaxError):
            renderer.render("{} is down", data)

    def test_conversion(self, renderer, data):
        assert renderer.render("{service_name!r}", data) == "'Checkout'"


class TestValidate:
    @pytest.mark.parametrize(
        "template",
        [
            "{service_name",
            "service_name}",
            "{",
            "{service_name.upper}",
            "{service_name[0]}",
            "{service_name!x}",
            "{service_name!}",
            "{}",
            "{0}",
        ],
    )
    def test_syntax_errors(self, renderer, template):
        with pytest.raises(TemplateSyntaxError):
            renderer.validate(template)

    def test_valid(self, renderer):
        renderer.validate("{service_name} in {service_group_name} since {started_at}")

    def test_unknown_field_is_not_a_syntax_error(self, renderer):
        renderer.validate("{anything}")
