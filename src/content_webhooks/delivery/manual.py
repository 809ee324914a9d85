"""
Module: delivery/manual.py
Description: Synchronous test deliveries for operators.

A test delivery makes exactly one attempt with a synthetic payload. It
never goes through the queue and is never retried, but it is written
to the delivery log like any other attempt.
"""

from content_webhooks.delivery.push import WebhookSender
from content_webhooks.exceptions import SubscriptionNotFound
from content_webhooks.models.payload import TestPayload
from content_webhooks.models.subscription import Subscription
from content_webhooks.storage.subscriptions import SubscriptionStore
from content_webhooks.utils.logger import get_logger

logger = get_logger(__name__)


def send_test(sender: WebhookSender, subscription: Subscription) -> bool:
    """Send a test payload to one subscription; True on a 2xx response."""
    result = sender.send(subscription, TestPayload())

    logger.info(
        "Test webhook sent",
        subscription_id=subscription.id,
        url=subscription.url,
        success=result.success,
        status_code=result.status_code
    )
    return result.success


def send_test_by_id(store: SubscriptionStore, sender: WebhookSender, subscription_id: str) -> bool:
    """
    Look up a subscription and send it a test payload.

    Raises:
        SubscriptionNotFound: If no subscription has this id
    """
    subscription = store.get(subscription_id)
    if subscription is None:
        raise SubscriptionNotFound(subscription_id)
    return send_test(sender, subscription)
