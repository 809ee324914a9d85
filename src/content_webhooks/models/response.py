"""
Module: response.py
Description: API response models for the webhook API.

Key Components:
- SubscriptionResponse: Subscription as shown to operators (secret masked)
- DeliveryLogResponse: One row of the delivery log viewer
- TestDeliveryResponse: Result of the "send test" action
- ContentEventResponse: Acknowledgement of a published content change

Dependencies: pydantic, datetime, typing
Author: Content Webhooks Team
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from content_webhooks.models.delivery import DeliveryLogEntry
from content_webhooks.models.subscription import Subscription


class SubscriptionResponse(BaseModel):
    """
    Response model for subscription operations.

    The secret itself is never returned; has_secret tells operators
    whether deliveries are signed.
    """

    id: str = Field(..., description="Subscription identifier")
    label: str
    url: str
    has_secret: bool = Field(..., description="Whether deliveries are signed")
    events: List[str]
    entity_types: List[str]
    bundles: List[str]
    enabled: bool
    created_at: Optional[datetime] = None

    @classmethod
    def from_subscription(cls, subscription: Subscription) -> "SubscriptionResponse":
        return cls(
            id=subscription.id,
            label=subscription.label,
            url=subscription.url,
            has_secret=bool(subscription.secret),
            events=sorted(event.value for event in subscription.events),
            entity_types=sorted(subscription.entity_types),
            bundles=sorted(subscription.bundles),
            enabled=subscription.enabled,
            created_at=subscription.created_at,
        )


class DeliveryLogResponse(BaseModel):
    """One delivery attempt, newest first in listings."""

    time: datetime
    url: str
    payload_summary: str
    status_code: Optional[int] = None
    outcome: str
    error: Optional[str] = None

    @classmethod
    def from_entry(cls, entry: DeliveryLogEntry) -> "DeliveryLogResponse":
        return cls(**entry.to_read_model())


class TestDeliveryResponse(BaseModel):
    """Result of a manual test delivery."""

    __test__ = False

    success: bool


class ContentEventResponse(BaseModel):
    """Number of delivery jobs queued for a content change."""

    queued: int = Field(..., ge=0)
