"""
Module: delivery/trigger.py
Description: Match content changes to subscriptions and queue deliveries.

Runs inside the content save/delete path, so it only ever enqueues and
never touches the network. Every error is logged and swallowed.
"""

from typing import List

from content_webhooks.exceptions import QueueUnavailable
from content_webhooks.models.delivery import DeliveryJob
from content_webhooks.models.payload import EntityDescriptor, Payload
from content_webhooks.models.subscription import EventKind, Subscription
from content_webhooks.queues.base import DeliveryQueue
from content_webhooks.storage.subscriptions import SubscriptionStore
from content_webhooks.utils.logger import get_logger

logger = get_logger(__name__)


def should_trigger(subscription: Subscription, entity: EntityDescriptor, event: EventKind) -> bool:
    """
    Check whether a subscription wants to hear about this change.

    The event kind must be subscribed, the entity type must be listed,
    and when bundles are listed the entity's bundle must be one of them.
    """
    if not subscription.enabled:
        return False
    return subscription.matches(event, entity.type, entity.bundle)


class WebhookTrigger:
    """
    Event matcher.

    Implements ContentEventPublisher through publish().
    """

    def __init__(self, store: SubscriptionStore, queue: DeliveryQueue):
        self.store = store
        self.queue = queue

    def trigger(self, entity: EntityDescriptor, event: EventKind) -> List[DeliveryJob]:
        """
        Queue one delivery job per matching subscription.

        The payload is built once and shared by all jobs.

        Args:
            entity: Changed entity
            event: create, update or delete

        Returns:
            Jobs that were enqueued (empty on no match or on error)
        """
        try:
            event = EventKind(event)
            subscriptions = self.store.list_enabled()
        except Exception:
            logger.exception(
                "Failed to load webhook subscriptions",
                entity_type=entity.type,
                entity_id=entity.id,
                event_kind=str(event)
            )
            return []

        matching = [s for s in subscriptions if should_trigger(s, entity, event)]
        if not matching:
            logger.debug(
                "No webhooks matched content change",
                entity_type=entity.type,
                entity_bundle=entity.bundle,
                event_kind=event.value
            )
            return []

        payload = Payload.from_entity(entity, event)
        queued = []

        for subscription in matching:
            job = DeliveryJob(subscription=subscription.model_copy(deep=True), payload=payload)
            try:
                self.queue.enqueue(job)
            except QueueUnavailable as e:
                logger.error(
                    "Failed to queue webhook delivery",
                    subscription_id=subscription.id,
                    entity_uuid=entity.uuid,
                    event_kind=event.value,
                    error=str(e)
                )
                continue
            except Exception:
                logger.exception(
                    "Unexpected error queueing webhook delivery",
                    subscription_id=subscription.id,
                    entity_uuid=entity.uuid
                )
                continue
            queued.append(job)

        logger.info(
            "Webhook deliveries queued",
            entity_type=entity.type,
            entity_uuid=entity.uuid,
            event_kind=event.value,
            matched=len(matching),
            queued=len(queued)
        )

        return queued

    def publish(self, entity: EntityDescriptor, event: EventKind) -> None:
        self.trigger(entity, event)
