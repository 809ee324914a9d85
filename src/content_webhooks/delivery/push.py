"""
Module: push.py
Description: Signed HTTP push of webhook payloads.

Implements the single send primitive shared by the queue worker and the
operator test action: POST the canonical JSON body, attach the HMAC
signature when a secret is configured, classify the outcome and record
one delivery log entry per attempt.
"""

from typing import Optional

import httpx

from content_webhooks.delivery.retry import is_retryable_status
from content_webhooks.delivery.signing import SIGNATURE_HEADER, canonical_json, sign_body
from content_webhooks.exceptions import DeliveryError, PermanentDeliveryError, TransientDeliveryError
from content_webhooks.models.delivery import DeliveryLogEntry, DeliveryResult, LogOutcome
from content_webhooks.models.payload import WebhookPayload
from content_webhooks.models.subscription import Subscription
from content_webhooks.storage.delivery_log import DeliveryLog
from content_webhooks.utils.logger import get_logger
from content_webhooks.utils.metrics import MetricsClient

logger = get_logger(__name__)

DEFAULT_USER_AGENT = "Content-Webhooks/1.0"


def _failed(error: DeliveryError) -> DeliveryResult:
    return DeliveryResult(
        success=False,
        status_code=error.status_code,
        error=error.message,
        retryable=error.retryable
    )


class WebhookSender:
    """
    HTTP client for pushing payloads to subscription endpoints.

    Handles delivery attempts with a bounded timeout and converts every
    network or HTTP problem into a failed DeliveryResult; nothing raises
    out of send().
    """

    def __init__(
        self,
        delivery_log: DeliveryLog,
        timeout_seconds: float = 10,
        user_agent: str = DEFAULT_USER_AGENT,
        metrics: Optional[MetricsClient] = None,
        transport: Optional[httpx.BaseTransport] = None
    ):
        """
        Initialize webhook sender.

        Args:
            delivery_log: Log receiving one entry per attempt
            timeout_seconds: HTTP timeout in seconds
            user_agent: User-Agent header value
            metrics: Optional metrics publisher
            transport: Optional httpx transport override
        """
        if timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be positive")

        self.delivery_log = delivery_log
        self.timeout = httpx.Timeout(timeout_seconds)
        self.user_agent = user_agent
        self.metrics = metrics
        self.transport = transport

    def build_headers(self, body: bytes, secret: str) -> dict:
        headers = {
            'Content-Type': 'application/json',
            'User-Agent': self.user_agent,
        }
        if secret:
            headers[SIGNATURE_HEADER] = sign_body(body, secret)
        return headers

    def send(
        self,
        subscription: Subscription,
        payload: WebhookPayload,
        attempt: int = 0
    ) -> DeliveryResult:
        """
        Deliver payload to the subscription endpoint via HTTP POST.

        Args:
            subscription: Target subscription (a job snapshot or a stored one)
            payload: Payload to deliver
            attempt: Zero-based attempt number, recorded in the log

        Returns:
            DeliveryResult; success only for 2xx responses
        """
        body = canonical_json(payload)
        headers = self.build_headers(body, subscription.secret)

        logger.debug(
            "Attempting webhook delivery",
            subscription_id=subscription.id,
            url=subscription.url,
            attempt=attempt,
            signed=SIGNATURE_HEADER in headers
        )

        result = self._post(subscription, body, headers)
        self._record(subscription, payload, attempt, result)
        return result

    def _post(self, subscription: Subscription, body: bytes, headers: dict) -> DeliveryResult:
        try:
            with httpx.Client(timeout=self.timeout, transport=self.transport) as client:
                response = client.post(subscription.url, content=body, headers=headers)

        except httpx.InvalidURL as e:
            logger.error(
                "Webhook URL rejected by HTTP client",
                subscription_id=subscription.id,
                url=subscription.url,
                error=str(e)
            )
            return _failed(PermanentDeliveryError(f"Invalid URL: {e}"))

        except httpx.TimeoutException as e:
            logger.warning(
                "Webhook delivery timeout",
                subscription_id=subscription.id,
                url=subscription.url
            )
            return _failed(TransientDeliveryError(f"Request timeout: {e}"))

        except httpx.RequestError as e:
            logger.warning(
                "Webhook delivery network error",
                subscription_id=subscription.id,
                url=subscription.url,
                error=str(e)
            )
            return _failed(TransientDeliveryError(f"{type(e).__name__}: {e}"))

        status_code = response.status_code
        if 200 <= status_code < 300:
            logger.info(
                "Webhook delivered successfully",
                subscription_id=subscription.id,
                status_code=status_code,
                response_time_ms=response.elapsed.total_seconds() * 1000
            )
            return DeliveryResult(success=True, status_code=status_code)

        logger.warning(
            "Webhook delivery HTTP error",
            subscription_id=subscription.id,
            url=subscription.url,
            status_code=status_code,
            response=response.text[:500]
        )
        error_class = TransientDeliveryError if is_retryable_status(status_code) else PermanentDeliveryError
        return _failed(error_class(f"HTTP {status_code}: {response.text[:200]}", status_code=status_code))

    def _record(
        self,
        subscription: Subscription,
        payload: WebhookPayload,
        attempt: int,
        result: DeliveryResult
    ) -> None:
        self.delivery_log.append(DeliveryLogEntry(
            subscription_id=subscription.id or 'unknown',
            url=subscription.url,
            payload_summary=payload.summary(),
            status_code=result.status_code,
            outcome=LogOutcome.SUCCESS if result.success else LogOutcome.FAILED,
            error=result.error,
            attempt=attempt,
        ))

        if self.metrics is not None:
            self.metrics.record_attempt(result.success)
