"""
Module: subscription.py
Description: Webhook subscription model.

A subscription is a configured webhook endpoint plus its event and
entity filter. The delivery engine only ever reads subscriptions; jobs
carry a deep copy taken at enqueue time so later edits never change
in-flight deliveries.

Key Components:
- EventKind: Content change kinds a subscription can listen for
- Subscription: Endpoint, shared secret and filters
- generate_subscription_id(): Opaque never-reused identifier

Dependencies: pydantic, datetime, uuid, enum, typing
Author: Content Webhooks Team
"""

from datetime import datetime
from enum import Enum
from typing import Optional, Set
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator


class EventKind(str, Enum):
    """Content change kinds."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"


def generate_subscription_id() -> str:
    """Generate a subscription identifier (whk_ + 12 hex chars)."""
    return f"whk_{uuid4().hex[:12]}"


class Subscription(BaseModel):
    """
    Webhook subscription.

    Attributes:
        id: Unique subscription identifier, assigned by the store
        label: Human-readable name shown to operators
        url: Absolute http(s) endpoint receiving deliveries
        secret: Shared HMAC secret; empty means unsigned deliveries
        events: Event kinds that trigger this webhook
        entity_types: Entity types that trigger this webhook
        bundles: Bundle restriction; empty means every bundle
        enabled: Disabled subscriptions never match
        created_at: When the subscription was added
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    id: Optional[str] = Field(
        default=None,
        description="Unique subscription identifier"
    )
    label: str = Field(
        default="",
        max_length=255,
        description="Human-readable label"
    )
    url: str = Field(
        ...,
        description="Absolute HTTP(S) endpoint"
    )
    secret: str = Field(
        default="",
        description="Shared secret for HMAC-SHA256 signatures"
    )
    events: Set[EventKind] = Field(
        default_factory=lambda: {EventKind.CREATE, EventKind.UPDATE, EventKind.DELETE},
        description="Event kinds to subscribe to"
    )
    entity_types: Set[str] = Field(
        default_factory=lambda: {"node"},
        description="Entity types to subscribe to"
    )
    bundles: Set[str] = Field(
        default_factory=set,
        description="Bundles to restrict to (empty = all)"
    )
    enabled: bool = Field(
        default=True,
        description="Whether the subscription is active"
    )
    created_at: Optional[datetime] = Field(
        default=None,
        description="Creation timestamp"
    )

    @field_validator('entity_types', 'bundles', mode='before')
    @classmethod
    def drop_blank_identifiers(cls, v):
        """Ignore blank entries coming from unchecked form fields."""
        if isinstance(v, (list, tuple, set, frozenset)):
            return {str(item).strip() for item in v if item is not None and str(item).strip()}
        return v

    def matches(self, event: EventKind, entity_type: str, bundle: Optional[str]) -> bool:
        """
        Check whether a content change falls under this subscription's filters.

        Does not look at the enabled flag; callers filter on that first.
        """
        if event not in self.events:
            return False
        if entity_type not in self.entity_types:
            return False
        if self.bundles and bundle not in self.bundles:
            return False
        return True
