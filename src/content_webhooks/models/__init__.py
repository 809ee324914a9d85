"""
Module: models
Description: Package initialization for Pydantic data models.

This package contains all data models used by the webhook engine:
- Subscription / EventKind: Webhook configuration
- EntityDescriptor / Payload / TestPayload: What gets delivered
- DeliveryJob / DeliveryResult / DeliveryOutcome / DeliveryLogEntry: Delivery lifecycle
- Request and response models for the HTTP API

All models are exported here for convenient importing.
"""

from .subscription import EventKind, Subscription, generate_subscription_id
from .payload import Author, EntityDescriptor, Payload, TestPayload, WebhookPayload
from .delivery import (
    DeliveryJob,
    DeliveryLogEntry,
    DeliveryOutcome,
    DeliveryResult,
    DeliveryState,
    LogOutcome,
)
from .request import ContentEventRequest, SubscriptionRequest
from .response import (
    ContentEventResponse,
    DeliveryLogResponse,
    SubscriptionResponse,
    TestDeliveryResponse,
)

__all__ = [
    "EventKind",
    "Subscription",
    "generate_subscription_id",
    "Author",
    "EntityDescriptor",
    "Payload",
    "TestPayload",
    "WebhookPayload",
    "DeliveryJob",
    "DeliveryLogEntry",
    "DeliveryOutcome",
    "DeliveryResult",
    "DeliveryState",
    "LogOutcome",
    "ContentEventRequest",
    "SubscriptionRequest",
    "ContentEventResponse",
    "DeliveryLogResponse",
    "SubscriptionResponse",
    "TestDeliveryResponse",
]
