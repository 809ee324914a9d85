"""
Module: payload.py
Description: Entity descriptors and webhook payload models.

The content layer describes a changed entity with an EntityDescriptor.
The trigger turns it into a Payload exactly once per content change;
the same immutable payload is shared by every matching delivery job.

Key Components:
- EntityDescriptor: What the content layer knows about a changed entity
- Payload: Wire body for content change notifications
- TestPayload: Wire body for operator "send test" deliveries

Dependencies: pydantic, time, typing
Author: Content Webhooks Team
"""

import time
from typing import Any, Dict, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from content_webhooks.models.subscription import EventKind

TEST_MESSAGE = "This is a test webhook from Content Webhooks"


def _now() -> int:
    return int(time.time())


class Author(BaseModel):
    """Author reference attached to content payloads."""

    model_config = ConfigDict(frozen=True)

    id: Union[int, str]
    name: str


class EntityDescriptor(BaseModel):
    """
    Description of a changed content entity.

    Only type, bundle, id and uuid are required. The optional attributes
    are copied into the payload when the entity exposes them.
    """

    type: str = Field(..., min_length=1, description="Entity type id, e.g. 'node'")
    bundle: str = Field(..., description="Bundle id, e.g. 'article'")
    id: Union[int, str] = Field(..., description="Entity id")
    uuid: str = Field(..., min_length=1, description="Entity UUID")
    label: Optional[str] = None
    url: Optional[str] = None
    published: Optional[bool] = None
    created: Optional[int] = None
    changed: Optional[int] = None
    author: Optional[Author] = None


class WebhookPayload(BaseModel):
    """Common base for everything sent to a webhook endpoint."""

    model_config = ConfigDict(frozen=True)

    def to_wire(self) -> Dict[str, Any]:
        """JSON-ready dict with absent optional fields omitted."""
        return self.model_dump(mode="json", exclude_none=True)

    def summary(self) -> str:
        raise NotImplementedError


class Payload(WebhookPayload):
    """
    Content change notification body.

    Attributes:
        event: create, update or delete
        entity_type: Entity type id
        entity_bundle: Bundle id
        entity_id: Entity id
        entity_uuid: Entity UUID; receivers deduplicate on uuid + event + timestamp
        timestamp: Unix seconds when the change was published
    """

    event: EventKind
    entity_type: str
    entity_bundle: str
    entity_id: Union[int, str]
    entity_uuid: str
    timestamp: int = Field(default_factory=_now)
    entity_label: Optional[str] = None
    entity_url: Optional[str] = None
    published: Optional[bool] = None
    created: Optional[int] = None
    changed: Optional[int] = None
    author: Optional[Author] = None

    @classmethod
    def from_entity(
        cls,
        entity: EntityDescriptor,
        event: EventKind,
        timestamp: Optional[int] = None
    ) -> "Payload":
        """Build the payload for one content change."""
        return cls(
            event=event,
            entity_type=entity.type,
            entity_bundle=entity.bundle,
            entity_id=entity.id,
            entity_uuid=entity.uuid,
            timestamp=timestamp if timestamp is not None else _now(),
            entity_label=entity.label,
            entity_url=entity.url,
            published=entity.published,
            created=entity.created,
            changed=entity.changed,
            author=entity.author,
        )

    def summary(self) -> str:
        return f"{self.event.value}: {self.entity_type} - {self.entity_label or ''}"


class TestPayload(WebhookPayload):
    """Synthetic payload used by the operator test action."""

    # Keep pytest from collecting this class.
    __test__ = False

    event: Literal["test"] = "test"
    message: str = TEST_MESSAGE
    timestamp: int = Field(default_factory=_now)

    def summary(self) -> str:
        return f"test: {self.message}"
