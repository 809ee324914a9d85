"""
Module: subscriptions.py
Description: Subscription store interface and in-memory implementation.

Subscriptions are validated on every write; a malformed subscription
raises ConfigurationError and never reaches the delivery queue.

Key Components:
- validate_subscription(): Write-time checks
- SubscriptionStore: Interface used by the trigger and the API
- InMemorySubscriptionStore: Thread-safe dict-backed store

Dependencies: httpx, threading, datetime, typing
Author: Content Webhooks Team
"""

import threading
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, List, Optional
from urllib.parse import urlparse

import httpx

from content_webhooks.exceptions import ConfigurationError
from content_webhooks.models.subscription import Subscription, generate_subscription_id
from content_webhooks.utils.logger import get_logger

logger = get_logger(__name__)


def validate_subscription(subscription: Subscription) -> None:
    """
    Reject subscriptions the delivery engine cannot act on.

    Raises:
        ConfigurationError: Missing or non-HTTP URL, or an enabled
            subscription without events or entity types
    """
    if not subscription.url:
        raise ConfigurationError("url is required", field="url")

    # urlparse rejects unbalanced IPv6 brackets, httpx rejects control characters
    try:
        urlparse(subscription.url)
        parsed = httpx.URL(subscription.url)
    except (httpx.InvalidURL, ValueError) as e:
        raise ConfigurationError(f"url is not a valid URL: {e}", field="url") from e

    if parsed.scheme not in ("http", "https") or not parsed.host:
        raise ConfigurationError(
            "url must be an absolute HTTP/HTTPS URL", field="url"
        )

    if subscription.enabled and not subscription.events:
        raise ConfigurationError(
            "an enabled subscription needs at least one event", field="events"
        )

    if subscription.enabled and not subscription.entity_types:
        raise ConfigurationError(
            "an enabled subscription needs at least one entity type",
            field="entity_types"
        )


class SubscriptionStore(ABC):
    """Durable mapping from subscription id to webhook configuration."""

    @abstractmethod
    def list(self) -> List[Subscription]:
        """All subscriptions, enabled or not."""

    @abstractmethod
    def get(self, subscription_id: str) -> Optional[Subscription]:
        """One subscription, or None."""

    @abstractmethod
    def add(self, subscription: Subscription) -> str:
        """Store a new subscription and return its id."""

    @abstractmethod
    def update(self, subscription_id: str, subscription: Subscription) -> bool:
        """Replace an existing subscription. False if the id is unknown."""

    @abstractmethod
    def delete(self, subscription_id: str) -> bool:
        """Remove a subscription. False if the id is unknown."""

    def list_enabled(self) -> List[Subscription]:
        return [s for s in self.list() if s.enabled]

    @staticmethod
    def _prepare_new(subscription: Subscription) -> Subscription:
        validate_subscription(subscription)
        return subscription.model_copy(
            update={
                "id": generate_subscription_id(),
                "created_at": datetime.now(timezone.utc),
            },
            deep=True,
        )

    @staticmethod
    def _prepare_replacement(
        subscription_id: str,
        subscription: Subscription,
        existing: Subscription
    ) -> Subscription:
        validate_subscription(subscription)
        return subscription.model_copy(
            update={
                "id": subscription_id,
                "created_at": existing.created_at,
            },
            deep=True,
        )


class InMemorySubscriptionStore(SubscriptionStore):
    """
    Process-local subscription store.

    Used for local development and tests; returns copies so callers can
    never mutate stored subscriptions in place.
    """

    def __init__(self):
        self._subscriptions: Dict[str, Subscription] = {}
        self._lock = threading.Lock()

    def list(self) -> List[Subscription]:
        with self._lock:
            return [s.model_copy(deep=True) for s in self._subscriptions.values()]

    def get(self, subscription_id: str) -> Optional[Subscription]:
        with self._lock:
            subscription = self._subscriptions.get(subscription_id)
            return subscription.model_copy(deep=True) if subscription else None

    def add(self, subscription: Subscription) -> str:
        stored = self._prepare_new(subscription)
        with self._lock:
            self._subscriptions[stored.id] = stored

        logger.info("Webhook added", subscription_id=stored.id, url=stored.url)
        return stored.id

    def update(self, subscription_id: str, subscription: Subscription) -> bool:
        with self._lock:
            existing = self._subscriptions.get(subscription_id)
            if existing is None:
                return False
            self._subscriptions[subscription_id] = self._prepare_replacement(
                subscription_id, subscription, existing
            )

        logger.info("Webhook updated", subscription_id=subscription_id)
        return True

    def delete(self, subscription_id: str) -> bool:
        with self._lock:
            if self._subscriptions.pop(subscription_id, None) is None:
                return False

        logger.info("Webhook deleted", subscription_id=subscription_id)
        return True
