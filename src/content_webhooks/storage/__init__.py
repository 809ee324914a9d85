"""
Module: storage
Description: Package initialization for data persistence layer.

This package contains storage implementations for the webhook engine:
- subscriptions: SubscriptionStore interface and in-memory store
- dynamodb: DynamoDB subscription store
- delivery_log: Bounded delivery attempt history
"""

from .delivery_log import DeliveryLog
from .subscriptions import InMemorySubscriptionStore, SubscriptionStore, validate_subscription

__all__ = [
    "DeliveryLog",
    "InMemorySubscriptionStore",
    "SubscriptionStore",
    "validate_subscription",
]
