"""Errors raised by the events module."""

from statuspage.core.errors import StatusPageError


class EventNotFoundError(StatusPageError):
    kind = "event_not_found"
    status_code = 404
    default_message = "event not found"


class TemplateNotFoundError(StatusPageError):
    kind = "template_not_found"
    status_code = 404
    default_message = "template not found"


class TemplateExistsError(StatusPageError):
    kind = "template_exists"
    status_code = 409
    default_message = "template slug already exists"


class InvalidStatusError(StatusPageError):
    kind = "invalid_status"
    status_code = 400
    default_message = "invalid status for event type"


class InvalidSeverityError(StatusPageError):
    kind = "invalid_severity"
    status_code = 400
    default_message = "severity is required for incidents"


class InvalidEventTypeError(StatusPageError):
    kind = "invalid_event_type"
    status_code = 400
    default_message = "invalid event type"


class TemplateSyntaxError(StatusPageError):
    """Template string cannot be parsed."""

    kind = "invalid_template"
    status_code = 400
    default_message = "invalid template syntax"


class TemplateRenderError(StatusPageError):
    """Template parsed but could not be rendered with the given data."""

    kind = "template_render_failed"
    status_code = 422
    default_message = "template rendering failed"
