"""
Module: test_worker.py
Description: Unit tests for the delivery worker and the SQS Lambda handler.

Time is controlled through the queue's fake clock so backoff delays are
observable without sleeping.
"""

import threading
import time

import httpx
import pytest

from content_webhooks.delivery import worker as worker_module
from content_webhooks.delivery.retry import RetryPolicy
from content_webhooks.delivery.worker import DeliveryWorker, DeliveryWorkerPool
from content_webhooks.engine import set_engine
from content_webhooks.exceptions import QueueUnavailable
from content_webhooks.models.delivery import DeliveryJob, DeliveryState, LogOutcome
from content_webhooks.models.payload import Payload
from content_webhooks.models.subscription import EventKind
from content_webhooks.queues.memory import InMemoryDeliveryQueue


@pytest.fixture
def job(subscription, article):
    return DeliveryJob(
        subscription=subscription,
        payload=Payload.from_entity(article, EventKind.CREATE, timestamp=1700000600)
    )


class TestAttemptDelivery:
    """Test cases for a single delivery attempt."""

    def test_success_finishes_job(self, worker, queue, job, delivery_log, httpx_mock, subscription):
        """Test a 2xx delivery is not re-enqueued."""
        httpx_mock.add_response(method="POST", url=subscription.url, status_code=200)
        queue.enqueue(job)

        outcome = worker.process_next()

        assert outcome.state == DeliveryState.SUCCESS
        assert outcome.status_code == 200
        assert len(queue) == 0
        assert [e.outcome for e in delivery_log.recent()] == [LogOutcome.SUCCESS]

    def test_fails_then_succeeds(self, worker, queue, clock, job, delivery_log, httpx_mock, subscription):
        """Test a failed first attempt is retried after 60 seconds and then succeeds."""
        httpx_mock.add_response(method="POST", url=subscription.url, status_code=503)
        httpx_mock.add_response(method="POST", url=subscription.url, status_code=200)
        queue.enqueue(job)

        first = worker.process_next()
        assert first.state == DeliveryState.RETRY
        assert first.retry_delay_seconds == 60

        # Not visible before the backoff elapses
        clock.advance(59)
        assert worker.process_next() is None

        clock.advance(1)
        second = worker.process_next()
        assert second.state == DeliveryState.SUCCESS
        assert second.attempt == 1

        entries = delivery_log.recent()
        assert [e.outcome for e in entries] == [LogOutcome.SUCCESS, LogOutcome.FAILED]
        assert [e.attempt for e in entries] == [1, 0]
        assert len(queue) == 0

    def test_always_failing_endpoint_is_dropped(self, worker, queue, clock, job, delivery_log, httpx_mock, subscription):
        """
        Test backoff doubles and the job is dropped once the budget is spent.

        A job is re-enqueued while its attempt number is below the retry
        budget of 3, so an endpoint that never recovers sees attempts 0-3:
        four failed log entries, not the three a "three attempts" reading
        would give.
        """
        for _ in range(4):
            httpx_mock.add_response(method="POST", url=subscription.url, status_code=500)
        queue.enqueue(job)

        delays = []
        outcome = worker.process_next()
        while outcome.state == DeliveryState.RETRY:
            delays.append(outcome.retry_delay_seconds)
            clock.advance(outcome.retry_delay_seconds)
            outcome = worker.process_next()

        assert delays == [60, 120, 240]
        assert outcome.state == DeliveryState.FAILED_TERMINAL
        assert outcome.attempt == 3
        assert len(queue) == 0

        entries = delivery_log.recent()
        assert len(entries) == 4
        assert all(e.outcome == LogOutcome.FAILED for e in entries)
        assert all(e.status_code == 500 for e in entries)
        assert [e.attempt for e in entries] == [3, 2, 1, 0]

    def test_retry_keeps_payload_and_snapshot(self, worker, queue, job, httpx_mock, subscription):
        """Test the re-enqueued job carries the same payload and subscription."""
        httpx_mock.add_response(method="POST", url=subscription.url, status_code=500)
        queue.enqueue(job)

        worker.process_next()

        [(delay, retry_job)] = queue.pending()
        assert delay == 60
        assert retry_job.attempt == 1
        assert retry_job.job_id == job.job_id
        assert retry_job.payload == job.payload
        assert retry_job.subscription == job.subscription

    def test_client_error_retried_by_default(self, worker, queue, job, httpx_mock, subscription):
        """Test 4xx responses count against the same retry budget."""
        httpx_mock.add_response(method="POST", url=subscription.url, status_code=404)
        queue.enqueue(job)

        assert worker.process_next().state == DeliveryState.RETRY

    def test_fail_fast_on_client_error(self, queue, sender, job, httpx_mock, subscription):
        """Test the fail-fast policy drops permanent failures at once."""
        httpx_mock.add_response(method="POST", url=subscription.url, status_code=404)
        fail_fast = DeliveryWorker(queue, sender, policy=RetryPolicy(fail_fast_on_client_error=True))
        queue.enqueue(job)

        outcome = fail_fast.process_next()

        assert outcome.state == DeliveryState.FAILED_TERMINAL
        assert len(queue) == 0

    def test_fail_fast_still_retries_server_errors(self, queue, sender, job, httpx_mock, subscription):
        """Test fail-fast only affects non-retryable failures."""
        httpx_mock.add_response(method="POST", url=subscription.url, status_code=502)
        fail_fast = DeliveryWorker(queue, sender, policy=RetryPolicy(fail_fast_on_client_error=True))
        queue.enqueue(job)

        assert fail_fast.process_next().state == DeliveryState.RETRY

    def test_timeout_is_retried(self, worker, queue, job, delivery_log, httpx_mock):
        """Test network timeouts go through the retry path."""
        httpx_mock.add_exception(httpx.ReadTimeout("timed out"))
        queue.enqueue(job)

        outcome = worker.process_next()

        assert outcome.state == DeliveryState.RETRY
        assert outcome.status_code is None
        assert delivery_log.recent()[0].status_code is None

    def test_requeue_failure_leaves_message_unacked(self, sender, job, httpx_mock, subscription):
        """Test a job whose retry cannot be queued is not acknowledged."""
        httpx_mock.add_response(method="POST", url=subscription.url, status_code=500)

        class FlakyQueue(InMemoryDeliveryQueue):
            def __init__(self):
                super().__init__()
                self.acked = []

            def enqueue(self, job, delay_seconds=0):
                if job.attempt > 0:
                    raise QueueUnavailable("queue down")
                return super().enqueue(job, delay_seconds)

            def ack(self, message):
                self.acked.append(message)

        flaky = FlakyQueue()
        flaky.enqueue(job)

        outcome = DeliveryWorker(flaky, sender).process_next()

        assert outcome is None
        assert flaky.acked == []

    def test_unusable_url_is_logged_not_lost(self, worker, queue, job, delivery_log):
        """Test a job whose URL the HTTP client refuses still settles and logs."""
        broken = job.model_copy(update={
            "subscription": job.subscription.model_copy(update={"url": "http://ex\x00ample.com/hook"})
        })
        queue.enqueue(broken)

        outcome = worker.process_next()

        assert outcome.state == DeliveryState.RETRY
        [entry] = delivery_log.recent()
        assert entry.outcome == LogOutcome.FAILED
        assert entry.error.startswith("Invalid URL")


class TestDrain:
    """Test cases for DeliveryWorker.drain."""

    def test_drain_processes_visible_jobs_only(self, worker, queue, job, httpx_mock, subscription):
        """Test drain stops at jobs whose delay has not elapsed."""
        httpx_mock.add_response(method="POST", url=subscription.url, status_code=200)
        queue.enqueue(job)
        queue.enqueue(job.next_attempt(), delay_seconds=120)

        outcomes = worker.drain()

        assert [o.state for o in outcomes] == [DeliveryState.SUCCESS]
        assert len(queue) == 1


class TestDeliveryWorkerPool:
    """Test cases for the threaded worker pool."""

    def test_invalid_concurrency(self, worker):
        with pytest.raises(ValueError):
            DeliveryWorkerPool(worker, concurrency=0)

    def test_pool_delivers_and_stops(self, sender, delivery_log, job, httpx_mock, subscription):
        """Test pooled workers deliver queued jobs in the background."""
        httpx_mock.add_response(method="POST", url=subscription.url, status_code=200)
        queue = InMemoryDeliveryQueue()
        pool = DeliveryWorkerPool(DeliveryWorker(queue, sender), concurrency=2, poll_timeout=0.05)

        pool.start()
        try:
            assert pool.is_running
            queue.enqueue(job)

            deadline = time.monotonic() + 5
            while len(delivery_log) == 0 and time.monotonic() < deadline:
                time.sleep(0.01)
        finally:
            pool.stop(timeout=5)

        assert not pool.is_running
        assert delivery_log.recent()[0].outcome == LogOutcome.SUCCESS
        assert not any(t.name.startswith("webhook-worker-") for t in threading.enumerate())


class TestLambdaHandler:
    """Test cases for the SQS Lambda handler."""

    @pytest.fixture(autouse=True)
    def wired_engine(self, engine):
        set_engine(engine)
        yield engine
        set_engine(None)

    def test_success(self, job, delivery_log, httpx_mock, subscription, queue):
        """Test a delivered record is not reported as failed."""
        httpx_mock.add_response(method="POST", url=subscription.url, status_code=200)
        event = {'Records': [{'messageId': 'msg-1', 'body': job.model_dump_json()}]}

        response = worker_module.handler(event, None)

        assert response == {'batchItemFailures': []}
        assert delivery_log.recent()[0].outcome == LogOutcome.SUCCESS
        assert len(queue) == 0

    def test_failure_reenqueued_with_delay(self, job, httpx_mock, subscription, queue):
        """Test a failed record is re-enqueued rather than reported."""
        httpx_mock.add_response(method="POST", url=subscription.url, status_code=500)
        event = {'Records': [{'messageId': 'msg-1', 'body': job.model_dump_json()}]}

        response = worker_module.handler(event, None)

        assert response == {'batchItemFailures': []}
        [(delay, retry_job)] = queue.pending()
        assert delay == 60
        assert retry_job.attempt == 1

    def test_malformed_record_reported(self):
        """Test unparseable bodies are reported as batch item failures."""
        event = {'Records': [{'messageId': 'bad-1', 'body': '{"not": "a job"}'}]}

        response = worker_module.handler(event, None)

        assert response == {'batchItemFailures': [{'itemIdentifier': 'bad-1'}]}
