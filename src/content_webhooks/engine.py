"""
Module: engine.py
Description: Wiring of the webhook dispatch engine.

Builds the subscription store, delivery queue, delivery log, sender,
trigger and worker from settings and hands them out as one explicitly
owned object. Components receive their collaborators through their
constructors; nothing inside the engine reaches for globals.
"""

import threading
from dataclasses import dataclass, field
from typing import List, Optional

from content_webhooks.config.settings import Settings, settings as default_settings
from content_webhooks.delivery.manual import send_test, send_test_by_id
from content_webhooks.delivery.push import WebhookSender
from content_webhooks.delivery.retry import RetryPolicy
from content_webhooks.delivery.trigger import WebhookTrigger
from content_webhooks.delivery.worker import DeliveryWorker, DeliveryWorkerPool
from content_webhooks.models.delivery import DeliveryJob, DeliveryLogEntry
from content_webhooks.models.payload import EntityDescriptor
from content_webhooks.models.subscription import EventKind, Subscription
from content_webhooks.queues.base import DeliveryQueue
from content_webhooks.queues.memory import InMemoryDeliveryQueue
from content_webhooks.storage.delivery_log import DeliveryLog
from content_webhooks.storage.subscriptions import InMemorySubscriptionStore, SubscriptionStore
from content_webhooks.utils.logger import configure_logging, get_logger
from content_webhooks.utils.metrics import MetricsClient

logger = get_logger(__name__)


@dataclass
class WebhookEngine:
    """All components of the dispatch engine, wired together."""

    store: SubscriptionStore
    queue: DeliveryQueue
    delivery_log: DeliveryLog
    sender: WebhookSender
    trigger_service: WebhookTrigger
    worker: DeliveryWorker
    worker_concurrency: int = 2
    _pool: Optional[DeliveryWorkerPool] = field(default=None, repr=False)

    def trigger(self, entity: EntityDescriptor, event: EventKind) -> List[DeliveryJob]:
        return self.trigger_service.trigger(entity, event)

    def publish(self, entity: EntityDescriptor, event: EventKind) -> None:
        self.trigger_service.publish(entity, event)

    def send_test(self, subscription: Subscription) -> bool:
        return send_test(self.sender, subscription)

    def send_test_by_id(self, subscription_id: str) -> bool:
        return send_test_by_id(self.store, self.sender, subscription_id)

    def recent_logs(self, limit: int = 50) -> List[DeliveryLogEntry]:
        return self.delivery_log.recent(limit)

    def start_workers(self) -> None:
        if self._pool is None:
            self._pool = DeliveryWorkerPool(self.worker, concurrency=self.worker_concurrency)
        self._pool.start()

    def stop_workers(self) -> None:
        if self._pool is not None:
            self._pool.stop()


def build_store(config: Settings) -> SubscriptionStore:
    if config.subscription_backend == 'dynamodb':
        from content_webhooks.storage.dynamodb import DynamoDBSubscriptionStore
        return DynamoDBSubscriptionStore(
            table_name=config.subscriptions_table_name,
            region_name=config.aws_region
        )
    return InMemorySubscriptionStore()


def build_queue(config: Settings) -> DeliveryQueue:
    if config.queue_backend == 'sqs':
        from content_webhooks.queues.sqs import SQSDeliveryQueue
        return SQSDeliveryQueue(
            queue_url=config.delivery_queue_url,
            region_name=config.aws_region
        )
    return InMemoryDeliveryQueue()


def build_engine(
    config: Optional[Settings] = None,
    store: Optional[SubscriptionStore] = None,
    queue: Optional[DeliveryQueue] = None,
    delivery_log: Optional[DeliveryLog] = None
) -> WebhookEngine:
    """
    Build an engine from settings.

    Any component passed in explicitly replaces the one settings would
    have chosen.
    """
    config = config or default_settings

    metrics = None
    if config.metrics_enabled:
        metrics = MetricsClient(
            namespace=config.metrics_namespace,
            region_name=config.aws_region,
            stage=config.stage
        )

    store = store if store is not None else build_store(config)
    queue = queue if queue is not None else build_queue(config)
    delivery_log = delivery_log if delivery_log is not None else DeliveryLog(config.webhook_log_capacity)

    sender = WebhookSender(
        delivery_log=delivery_log,
        timeout_seconds=config.webhook_timeout,
        user_agent=config.webhook_user_agent,
        metrics=metrics
    )
    policy = RetryPolicy(
        max_attempts=config.webhook_max_attempts,
        base_delay_seconds=config.webhook_backoff_base_seconds,
        fail_fast_on_client_error=config.webhook_fail_fast_on_client_error
    )

    engine = WebhookEngine(
        store=store,
        queue=queue,
        delivery_log=delivery_log,
        sender=sender,
        trigger_service=WebhookTrigger(store, queue),
        worker=DeliveryWorker(queue, sender, policy=policy, metrics=metrics),
        worker_concurrency=config.worker_concurrency,
    )

    logger.info(
        "Webhook engine built",
        subscription_backend=config.subscription_backend,
        queue_backend=config.queue_backend,
        max_attempts=policy.max_attempts,
        backoff_base_seconds=policy.base_delay_seconds
    )
    return engine


_engine: Optional[WebhookEngine] = None
_engine_lock = threading.Lock()


def get_engine() -> WebhookEngine:
    """Process-wide engine used by the HTTP API and the Lambda handler."""
    global _engine
    if _engine is None:
        with _engine_lock:
            if _engine is None:
                configure_logging(default_settings.log_level)
                _engine = build_engine(default_settings)
    return _engine


def set_engine(engine: Optional[WebhookEngine]) -> None:
    """Replace (or with None, reset) the process-wide engine."""
    global _engine
    with _engine_lock:
        _engine = engine
