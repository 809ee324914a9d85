"""
Module: delivery/retry.py
Description: Retry policy for webhook deliveries and queue operations.

Failed deliveries are re-enqueued with exponential backoff (60s, 120s,
240s by default) until the retry budget is spent. Queue sends get a
short in-process tenacity retry for throttling and transient AWS errors.
"""

import logging
from dataclasses import dataclass

from botocore.exceptions import BotoCoreError, ClientError
from tenacity import (
    after_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from content_webhooks.models.delivery import DeliveryResult
from content_webhooks.utils.logger import get_logger

logger = get_logger(__name__)

MAX_ATTEMPTS = 3
BACKOFF_BASE_SECONDS = 60

RETRYABLE_STATUS_CODES = frozenset({408, 425, 429})

_TRANSIENT_AWS_ERROR_CODES = frozenset({
    'Throttling',
    'ThrottlingException',
    'RequestThrottled',
    'ServiceUnavailable',
    'InternalError',
    'InternalFailure',
})


def is_retryable_status(status_code: int) -> bool:
    """5xx and a few throttling/timeout 4xx codes are transient."""
    return status_code >= 500 or status_code in RETRYABLE_STATUS_CODES


@dataclass(frozen=True)
class RetryPolicy:
    """
    Re-enqueue policy for failed deliveries.

    Attributes:
        max_attempts: A job failing at attempt n is re-enqueued while n < max_attempts
        base_delay_seconds: Retry after attempt n waits base * 2^n seconds
        fail_fast_on_client_error: Drop non-retryable failures immediately
    """

    max_attempts: int = MAX_ATTEMPTS
    base_delay_seconds: int = BACKOFF_BASE_SECONDS
    fail_fast_on_client_error: bool = False

    def backoff_delay(self, attempt: int) -> int:
        return self.base_delay_seconds * (2 ** attempt)

    def should_retry(self, attempt: int, result: DeliveryResult) -> bool:
        if result.success:
            return False
        if self.fail_fast_on_client_error and not result.retryable:
            return False
        return attempt < self.max_attempts


def _is_transient_aws_error(exc: BaseException) -> bool:
    if isinstance(exc, ClientError):
        return exc.response.get('Error', {}).get('Code') in _TRANSIENT_AWS_ERROR_CODES
    return isinstance(exc, BotoCoreError)


# Configure retry decorator for queue sends
queue_retry = retry(
    stop=stop_after_attempt(3),
    wait=wait_exponential(multiplier=0.2, min=0.2, max=2),
    retry=retry_if_exception(_is_transient_aws_error),
    after=after_log(logger, logging.WARNING),
    reraise=True
)
