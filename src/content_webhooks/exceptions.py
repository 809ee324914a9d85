"""
Module: exceptions.py
Description: Error taxonomy for the webhook dispatch engine.

Configuration errors are raised at subscription write time. Delivery
errors classify a failed attempt as transient or permanent. Queue errors
are raised by queue backends and swallowed by the trigger so content
saves never fail because of webhook infrastructure.
"""

from typing import Optional


class WebhookError(Exception):
    """Base exception for the webhook dispatch engine."""


class ConfigurationError(WebhookError):
    """A subscription is malformed (missing URL, no events, no entity types)."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field


class SubscriptionNotFound(WebhookError):
    """No subscription exists with the given id."""

    def __init__(self, subscription_id: str):
        super().__init__(f"Subscription not found: {subscription_id}")
        self.subscription_id = subscription_id


class DeliveryError(WebhookError):
    """A delivery attempt failed."""

    retryable = True

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class TransientDeliveryError(DeliveryError):
    """Timeout, connection failure, 5xx or 429."""


class PermanentDeliveryError(DeliveryError):
    """Any other non-2xx response."""

    retryable = False


class QueueUnavailable(WebhookError):
    """The delivery queue could not accept or return a job."""
