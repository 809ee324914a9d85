"""
Module: publisher.py
Description: The capability a content layer needs to announce changes.

Content save/delete hooks depend only on ContentEventPublisher, never on
the delivery engine itself.
"""

from typing import Protocol, runtime_checkable

from content_webhooks.models.payload import EntityDescriptor
from content_webhooks.models.subscription import EventKind


@runtime_checkable
class ContentEventPublisher(Protocol):
    """Announces content changes. Must never raise into the caller."""

    def publish(self, entity: EntityDescriptor, event: EventKind) -> None:
        ...


class NullPublisher:
    """Publisher that discards events, for content layers without webhooks."""

    def publish(self, entity: EntityDescriptor, event: EventKind) -> None:
        return None
