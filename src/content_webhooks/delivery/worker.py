"""
Module: delivery/worker.py
Description: Delivery worker, worker pool and SQS Lambda handler.

Workers pull delivery jobs from the queue, perform the signed HTTP call
and either finish the job or re-enqueue it with backoff. Workers keep
no state between jobs, so any number of them can run concurrently.
"""

import threading
from typing import Any, Dict, List, Optional

from pydantic import ValidationError

from content_webhooks.delivery.push import WebhookSender
from content_webhooks.delivery.retry import RetryPolicy
from content_webhooks.exceptions import QueueUnavailable
from content_webhooks.models.delivery import DeliveryJob, DeliveryOutcome, DeliveryState
from content_webhooks.queues.base import DeliveryQueue, QueueMessage
from content_webhooks.utils.logger import get_logger
from content_webhooks.utils.metrics import MetricsClient

logger = get_logger(__name__)


class DeliveryWorker:
    """
    Processes delivery jobs.

    Example:
        >>> worker = DeliveryWorker(queue, sender)
        >>> outcome = worker.process_next(timeout=5)
    """

    def __init__(
        self,
        queue: DeliveryQueue,
        sender: WebhookSender,
        policy: Optional[RetryPolicy] = None,
        metrics: Optional[MetricsClient] = None
    ):
        self.queue = queue
        self.sender = sender
        self.policy = policy or RetryPolicy()
        self.metrics = metrics

    def attempt_delivery(self, job: DeliveryJob) -> DeliveryOutcome:
        """
        Make one delivery attempt and settle the job.

        Success finishes the job. A failure is re-enqueued with attempt + 1
        after a backoff delay while the retry budget allows, otherwise the
        job is dropped. Either way exactly one log entry is written.

        Args:
            job: Job to deliver

        Returns:
            DeliveryOutcome describing what happened to the job

        Raises:
            QueueUnavailable: If a retry could not be re-enqueued
        """
        result = self.sender.send(job.subscription, job.payload, attempt=job.attempt)

        if result.success:
            return DeliveryOutcome(
                state=DeliveryState.SUCCESS,
                job_id=job.job_id,
                attempt=job.attempt,
                status_code=result.status_code
            )

        if self.policy.should_retry(job.attempt, result):
            delay = self.policy.backoff_delay(job.attempt)
            retry_job = job.next_attempt()
            self.queue.enqueue(retry_job, delay_seconds=delay)
            if self.metrics is not None:
                self.metrics.record_retried()

            logger.warning(
                "Webhook delivery failed, will retry",
                job_id=job.job_id,
                subscription_id=job.subscription.id,
                attempt=job.attempt,
                next_attempt=retry_job.attempt,
                delay_seconds=delay
            )
            return DeliveryOutcome(
                state=DeliveryState.RETRY,
                job_id=job.job_id,
                attempt=job.attempt,
                status_code=result.status_code,
                error=result.error,
                retry_delay_seconds=delay
            )

        logger.error(
            "Webhook delivery failed permanently, dropping job",
            job_id=job.job_id,
            subscription_id=job.subscription.id,
            attempt=job.attempt,
            status_code=result.status_code,
            error=result.error
        )
        if self.metrics is not None:
            self.metrics.record_dropped()

        return DeliveryOutcome(
            state=DeliveryState.FAILED_TERMINAL,
            job_id=job.job_id,
            attempt=job.attempt,
            status_code=result.status_code,
            error=result.error
        )

    def process_message(self, message: QueueMessage) -> Optional[DeliveryOutcome]:
        """
        Attempt a dequeued job and acknowledge it.

        When the retry cannot be re-enqueued the message is left
        unacknowledged so a durable queue hands it out again.
        """
        try:
            outcome = self.attempt_delivery(message.job)
        except QueueUnavailable as e:
            logger.error(
                "Could not re-enqueue failed job",
                job_id=message.job.job_id,
                error=str(e)
            )
            return None

        self.queue.ack(message)
        return outcome

    def process_next(self, timeout: float = 0) -> Optional[DeliveryOutcome]:
        """Dequeue and process at most one job."""
        message = self.queue.dequeue(timeout=timeout)
        if message is None:
            return None
        return self.process_message(message)

    def drain(self, max_jobs: int = 1000) -> List[DeliveryOutcome]:
        """Process every job visible right now (cron-style single run)."""
        outcomes = []
        for _ in range(max_jobs):
            message = self.queue.dequeue(timeout=0)
            if message is None:
                break
            outcome = self.process_message(message)
            if outcome is not None:
                outcomes.append(outcome)
        return outcomes

    def run(self, stop_event: threading.Event, poll_timeout: float = 1.0) -> None:
        """Consume jobs until stop_event is set."""
        logger.info("Delivery worker started", thread=threading.current_thread().name)

        while not stop_event.is_set():
            try:
                self.process_next(timeout=poll_timeout)
            except QueueUnavailable as e:
                logger.error("Delivery queue unavailable", error=str(e))
                stop_event.wait(poll_timeout)
            except Exception:
                logger.exception("Unexpected error in delivery worker")

        logger.info("Delivery worker stopped", thread=threading.current_thread().name)


class DeliveryWorkerPool:
    """Runs a DeliveryWorker in several daemon threads."""

    def __init__(self, worker: DeliveryWorker, concurrency: int = 2, poll_timeout: float = 1.0):
        if concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        self.worker = worker
        self.concurrency = concurrency
        self.poll_timeout = poll_timeout
        self._stop_event = threading.Event()
        self._threads: List[threading.Thread] = []

    @property
    def is_running(self) -> bool:
        return any(thread.is_alive() for thread in self._threads)

    def start(self) -> None:
        if self.is_running:
            return

        self._stop_event.clear()
        self._threads = [
            threading.Thread(
                target=self.worker.run,
                args=(self._stop_event, self.poll_timeout),
                name=f"webhook-worker-{i}",
                daemon=True
            )
            for i in range(self.concurrency)
        ]
        for thread in self._threads:
            thread.start()

        logger.info("Delivery worker pool started", concurrency=self.concurrency)

    def stop(self, timeout: float = 15.0) -> None:
        """Signal workers and wait for in-flight attempts to finish."""
        self._stop_event.set()
        for thread in self._threads:
            thread.join(timeout=timeout)
        self._threads = []

        logger.info("Delivery worker pool stopped")


def handler(event: Dict[str, Any], context: Any) -> Dict[str, Any]:
    """
    Lambda handler for SQS event processing.

    Each record holds one delivery job. Failed attempts are re-enqueued
    through the engine's queue with their backoff delay, so the record
    itself counts as processed. Records that cannot be parsed or whose
    retry could not be enqueued are reported back for redelivery.

    Args:
        event: SQS event with batch of messages
        context: Lambda context

    Returns:
        Response with batch item failures (if any)
    """
    from content_webhooks.engine import get_engine

    worker = get_engine().worker
    batch_failures = []

    for record in event['Records']:
        try:
            job = DeliveryJob.model_validate_json(record['body'])
        except ValidationError as e:
            logger.error(
                "Error parsing SQS message",
                message_id=record['messageId'],
                error=str(e)
            )
            batch_failures.append({'itemIdentifier': record['messageId']})
            continue

        logger.info("Processing job from SQS", job_id=job.job_id, attempt=job.attempt)

        try:
            worker.attempt_delivery(job)
        except QueueUnavailable as e:
            logger.error(
                "Error re-enqueueing job",
                message_id=record['messageId'],
                job_id=job.job_id,
                error=str(e)
            )
            batch_failures.append({'itemIdentifier': record['messageId']})

    return {'batchItemFailures': batch_failures}
