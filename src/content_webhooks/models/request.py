"""
Module: request.py
Description: API request models for the webhook API.

Defines request models for subscription management and for content
layers that publish change events over HTTP.

Key Components:
- SubscriptionRequest: Body of POST /webhooks and PUT /webhooks/{id}
- ContentEventRequest: Body of POST /content-events

Dependencies: pydantic, typing
Author: Content Webhooks Team
"""

from typing import List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from content_webhooks.models.payload import EntityDescriptor
from content_webhooks.models.subscription import EventKind, Subscription


class SubscriptionRequest(BaseModel):
    """
    Request model for creating or replacing a webhook subscription.

    Attributes:
        label: Human-readable name (required)
        url: Absolute http(s) endpoint (required)
        secret: Optional shared secret for HMAC signatures
        events: Event kinds to listen for (at least one)
        entity_types: Entity types to listen for (at least one)
        bundles: Optional bundle restriction
        enabled: Whether the webhook is active
        clear_secret: On update, remove the stored secret instead of keeping it
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    label: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Human-readable label"
    )
    url: str = Field(
        ...,
        min_length=1,
        max_length=2048,
        description="Endpoint receiving deliveries"
    )
    secret: str = Field(
        default="",
        max_length=255,
        description="Shared secret for HMAC-SHA256 signatures"
    )
    events: List[EventKind] = Field(
        default_factory=lambda: [EventKind.CREATE, EventKind.UPDATE, EventKind.DELETE],
        min_length=1,
        description="Event kinds to subscribe to"
    )
    entity_types: List[str] = Field(
        default_factory=lambda: ["node"],
        min_length=1,
        description="Entity types to subscribe to"
    )
    bundles: List[str] = Field(
        default_factory=list,
        description="Bundles to restrict to (empty = all)"
    )
    enabled: bool = Field(default=True, description="Whether the webhook is active")
    clear_secret: bool = Field(
        default=False,
        description="On update, remove the stored secret (an empty secret otherwise keeps it)"
    )

    @field_validator('url')
    @classmethod
    def validate_url(cls, v: str) -> str:
        """Validate the endpoint is an absolute HTTP(S) URL."""
        if not v.startswith(('http://', 'https://')):
            raise ValueError("url must be a valid HTTP/HTTPS URL")
        return v

    def to_subscription(self) -> Subscription:
        return Subscription(
            label=self.label,
            url=self.url,
            secret=self.secret,
            events=set(self.events),
            entity_types=set(self.entity_types),
            bundles=set(self.bundles),
            enabled=self.enabled,
        )


class ContentEventRequest(BaseModel):
    """
    Content change published by a content layer over HTTP.

    Example:
        {
            "event": "update",
            "entity": {"type": "node", "bundle": "article", "id": 42,
                       "uuid": "6f1c...", "label": "Hello world"}
        }
    """

    event: EventKind
    entity: EntityDescriptor
