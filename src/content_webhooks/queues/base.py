"""
Module: base.py
Description: Delivery queue interface.

Queues are at-least-once: a dequeued message stays owned by the
consumer until it is acknowledged. No ordering or priority is promised.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional

from content_webhooks.models.delivery import DeliveryJob


@dataclass(frozen=True)
class QueueMessage:
    """A dequeued job plus whatever the backend needs to acknowledge it."""

    job: DeliveryJob
    message_id: str
    receipt_handle: Optional[str] = None


class DeliveryQueue(ABC):
    """Durable work queue of delivery jobs."""

    @abstractmethod
    def enqueue(self, job: DeliveryJob, delay_seconds: int = 0) -> str:
        """
        Add a job, invisible to consumers for delay_seconds.

        Returns:
            Backend message id

        Raises:
            QueueUnavailable: If the backend cannot accept the job
        """

    @abstractmethod
    def dequeue(self, timeout: float = 0) -> Optional[QueueMessage]:
        """
        Take the next visible job, waiting up to timeout seconds.

        Returns:
            QueueMessage, or None when nothing became visible in time
        """

    @abstractmethod
    def ack(self, message: QueueMessage) -> None:
        """Mark a dequeued message as processed."""
