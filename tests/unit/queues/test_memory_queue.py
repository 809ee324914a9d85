"""
Module: test_memory_queue.py
Description: Unit tests for the in-process delay queue.
"""

import threading

import pytest

from content_webhooks.models.delivery import DeliveryJob
from content_webhooks.models.payload import Payload
from content_webhooks.models.subscription import EventKind
from content_webhooks.queues.memory import InMemoryDeliveryQueue


@pytest.fixture
def job(subscription, article):
    return DeliveryJob(subscription=subscription, payload=Payload.from_entity(article, EventKind.CREATE))


class TestInMemoryDeliveryQueue:
    """Test cases for InMemoryDeliveryQueue."""

    def test_empty_queue(self, queue):
        assert queue.dequeue() is None

    def test_fifo_for_immediate_jobs(self, queue, job):
        first = job
        second = job.next_attempt()
        queue.enqueue(first)
        queue.enqueue(second)

        assert queue.dequeue().job is first
        assert queue.dequeue().job is second

    def test_delayed_job_hidden_until_due(self, queue, clock, job):
        """Test a delayed job is not returned before its delay elapses."""
        queue.enqueue(job, delay_seconds=60)

        assert queue.dequeue() is None
        clock.advance(59.5)
        assert queue.dequeue() is None
        clock.advance(0.5)

        message = queue.dequeue()
        assert message.job is job
        assert message.message_id == job.job_id

    def test_due_jobs_ordered_by_visibility(self, queue, clock, job):
        late = job.next_attempt()
        queue.enqueue(late, delay_seconds=120)
        queue.enqueue(job, delay_seconds=60)

        clock.advance(200)

        assert queue.dequeue().job is job
        assert queue.dequeue().job is late

    def test_pending_snapshot(self, queue, clock, job):
        queue.enqueue(job, delay_seconds=240)
        clock.advance(40)

        assert queue.pending() == [(200.0, job)]
        assert len(queue) == 1

    def test_ack_is_noop(self, queue, job):
        queue.enqueue(job)
        message = queue.dequeue()

        queue.ack(message)
        assert len(queue) == 0

    def test_blocking_dequeue_wakes_on_enqueue(self, job):
        """Test a waiting consumer receives a job enqueued by another thread."""
        queue = InMemoryDeliveryQueue()
        received = []

        consumer = threading.Thread(target=lambda: received.append(queue.dequeue(timeout=5)))
        consumer.start()
        queue.enqueue(job)
        consumer.join(timeout=5)

        assert received and received[0].job is job
