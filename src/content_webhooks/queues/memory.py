"""
Module: memory.py
Description: In-process delay queue for delivery jobs.

Jobs are kept in a heap ordered by the time they become visible, so a
retry enqueued with a backoff delay is not handed to a worker before
its delay has elapsed. Consumers block on a condition variable.
"""

import heapq
import itertools
import threading
import time
from typing import Callable, List, Optional, Tuple

from content_webhooks.models.delivery import DeliveryJob
from content_webhooks.queues.base import DeliveryQueue, QueueMessage
from content_webhooks.utils.logger import get_logger

logger = get_logger(__name__)


class InMemoryDeliveryQueue(DeliveryQueue):
    """
    Heap-backed delay queue.

    Pending jobs do not survive a process restart; use the SQS queue
    where durability matters.

    Args:
        clock: Monotonic time source, injectable for tests
    """

    def __init__(self, clock: Callable[[], float] = time.monotonic):
        self._clock = clock
        self._heap: List[Tuple[float, int, DeliveryJob]] = []
        self._counter = itertools.count()
        self._condition = threading.Condition()

    def enqueue(self, job: DeliveryJob, delay_seconds: int = 0) -> str:
        visible_at = self._clock() + max(0, delay_seconds)
        with self._condition:
            heapq.heappush(self._heap, (visible_at, next(self._counter), job))
            self._condition.notify()

        logger.debug(
            "Job enqueued",
            job_id=job.job_id,
            subscription_id=job.subscription.id,
            attempt=job.attempt,
            delay_seconds=delay_seconds
        )
        return job.job_id

    def dequeue(self, timeout: float = 0) -> Optional[QueueMessage]:
        deadline = self._clock() + max(0.0, timeout)
        with self._condition:
            while True:
                now = self._clock()
                if self._heap and self._heap[0][0] <= now:
                    _, _, job = heapq.heappop(self._heap)
                    return QueueMessage(job=job, message_id=job.job_id)

                remaining = deadline - now
                if remaining <= 0:
                    return None
                if self._heap:
                    remaining = min(remaining, self._heap[0][0] - now)
                self._condition.wait(remaining)

    def ack(self, message: QueueMessage) -> None:
        # Dequeue already removed the job from the heap.
        return None

    def pending(self) -> List[Tuple[float, DeliveryJob]]:
        """Snapshot of (seconds until visible, job), soonest first."""
        now = self._clock()
        with self._condition:
            return [(max(0.0, visible_at - now), job) for visible_at, _, job in sorted(self._heap)]

    def __len__(self) -> int:
        with self._condition:
            return len(self._heap)
