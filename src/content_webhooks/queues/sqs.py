"""
Module: sqs.py
Description: SQS-backed delivery queue.

Sends delivery jobs to an SQS queue, receives them for processing and
deletes them once handled. Retry backoff uses SQS DelaySeconds so a
failed job really stays invisible for its delay.
"""

import json
from typing import Any, Dict, Optional

import boto3
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import ValidationError

from content_webhooks.delivery.retry import queue_retry
from content_webhooks.exceptions import QueueUnavailable
from content_webhooks.models.delivery import DeliveryJob
from content_webhooks.queues.base import DeliveryQueue, QueueMessage
from content_webhooks.utils.logger import get_logger

logger = get_logger(__name__)

# SQS rejects DelaySeconds above 15 minutes.
MAX_DELAY_SECONDS = 900


def job_from_body(body: str) -> DeliveryJob:
    """Parse an SQS message body back into a DeliveryJob."""
    return DeliveryJob.model_validate_json(body)


class SQSDeliveryQueue(DeliveryQueue):
    """
    SQS client for delivery job operations.

    Provides methods for sending jobs to the delivery queue, receiving
    messages for processing, and managing message lifecycle.
    """

    def __init__(
        self,
        queue_url: str,
        region_name: Optional[str] = None,
        wait_time_seconds: int = 20,
        visibility_timeout: Optional[int] = None
    ):
        """
        Initialize SQS delivery queue.

        Args:
            queue_url: URL of the SQS queue
            region_name: AWS region; boto3 default resolution when omitted
            wait_time_seconds: Upper bound for long polling on receive
            visibility_timeout: Per-receive override of the queue's visibility timeout
        """
        if not queue_url or not isinstance(queue_url, str):
            raise ValueError("queue_url must be a non-empty string")

        self.queue_url = queue_url
        self.wait_time_seconds = wait_time_seconds
        self.visibility_timeout = visibility_timeout
        self.sqs = boto3.client('sqs', region_name=region_name)

        logger.info(
            "SQS delivery queue initialized",
            queue_url=queue_url
        )

    @queue_retry
    def _send(self, body: str, job: DeliveryJob, delay_seconds: int) -> Dict[str, Any]:
        return self.sqs.send_message(
            QueueUrl=self.queue_url,
            MessageBody=body,
            MessageAttributes={
                'JobId': {
                    'StringValue': job.job_id,
                    'DataType': 'String'
                },
                'SubscriptionId': {
                    'StringValue': job.subscription.id or 'unknown',
                    'DataType': 'String'
                }
            },
            DelaySeconds=delay_seconds
        )

    def enqueue(self, job: DeliveryJob, delay_seconds: int = 0) -> str:
        """
        Send a job to SQS.

        Raises:
            QueueUnavailable: If SQS still fails after retrying
        """
        delay = max(0, min(int(delay_seconds), MAX_DELAY_SECONDS))

        try:
            response = self._send(job.model_dump_json(), job, delay)

        except ClientError as e:
            logger.error(
                "Failed to send job to SQS",
                job_id=job.job_id,
                error_code=e.response['Error']['Code'],
                error_message=e.response['Error']['Message']
            )
            raise QueueUnavailable(str(e)) from e

        except BotoCoreError as e:
            logger.error(
                "Unexpected error sending job to SQS",
                job_id=job.job_id,
                error=str(e)
            )
            raise QueueUnavailable(str(e)) from e

        message_id = response['MessageId']
        logger.info(
            "Job sent to SQS",
            job_id=job.job_id,
            message_id=message_id,
            attempt=job.attempt,
            delay_seconds=delay
        )
        return message_id

    def dequeue(self, timeout: float = 0) -> Optional[QueueMessage]:
        """
        Receive one job, long polling for up to timeout seconds.

        Unparseable messages are deleted and skipped; there is no way to
        deliver them.

        Raises:
            QueueUnavailable: If SQS cannot be reached
        """
        kwargs: Dict[str, Any] = {
            'QueueUrl': self.queue_url,
            'MaxNumberOfMessages': 1,
            'WaitTimeSeconds': max(0, min(int(timeout), self.wait_time_seconds)),
        }
        if self.visibility_timeout is not None:
            kwargs['VisibilityTimeout'] = self.visibility_timeout

        try:
            response = self.sqs.receive_message(**kwargs)
        except (ClientError, BotoCoreError) as e:
            logger.error("Failed to receive from SQS", queue_url=self.queue_url, error=str(e))
            raise QueueUnavailable(str(e)) from e

        messages = response.get('Messages', [])
        if not messages:
            return None

        raw = messages[0]
        try:
            job = job_from_body(raw['Body'])
        except (ValidationError, json.JSONDecodeError) as e:
            logger.error(
                "Discarding malformed delivery job",
                message_id=raw.get('MessageId'),
                error=str(e)
            )
            self._delete(raw['ReceiptHandle'])
            return None

        return QueueMessage(
            job=job,
            message_id=raw['MessageId'],
            receipt_handle=raw['ReceiptHandle']
        )

    def ack(self, message: QueueMessage) -> None:
        """Delete a processed message from the queue."""
        if message.receipt_handle:
            self._delete(message.receipt_handle)

    def _delete(self, receipt_handle: str) -> None:
        try:
            self.sqs.delete_message(QueueUrl=self.queue_url, ReceiptHandle=receipt_handle)
        except ClientError as e:
            # The message reappears after its visibility timeout; receivers are idempotent.
            logger.warning(
                "Failed to delete message from SQS",
                error_code=e.response['Error']['Code'],
                error_message=e.response['Error']['Message']
            )
