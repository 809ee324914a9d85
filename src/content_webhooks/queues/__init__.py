"""
Package: queues
Description: Delivery job queues.

Provides the DeliveryQueue interface with an in-process delay queue and
an SQS-backed queue for durable, at-least-once delivery.
"""

from .base import DeliveryQueue, QueueMessage
from .memory import InMemoryDeliveryQueue

__all__ = [
    "DeliveryQueue",
    "QueueMessage",
    "InMemoryDeliveryQueue",
]
