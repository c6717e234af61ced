"""Notification errors."""

from statuspage.core.errors import StatusPageError


class SubscriptionNotFoundError(StatusPageError):
    """The user has no subscription."""

    kind = "subscription_not_found"
    status_code = 404
    default_message = "subscription not found"
