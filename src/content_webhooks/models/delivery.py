"""
Module: delivery.py
Description: Delivery job, delivery result and delivery log models.

Key Components:
- DeliveryJob: One queued notification of one subscription about one change
- DeliveryResult: Outcome of a single HTTP attempt
- DeliveryOutcome: What the worker decided after an attempt
- DeliveryLogEntry: Operator-facing record of an attempt

Dependencies: pydantic, datetime, uuid, enum, typing
Author: Content Webhooks Team
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from content_webhooks.models.payload import Payload
from content_webhooks.models.subscription import Subscription


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_job_id() -> str:
    """Generate a delivery job identifier (job_ + 12 hex chars)."""
    return f"job_{uuid4().hex[:12]}"


class DeliveryJob(BaseModel):
    """
    Delivery job.

    The subscription is captured by value when the job is created. The
    only change a job ever sees is an incremented attempt counter, made
    by copying it on re-enqueue.
    """

    model_config = ConfigDict(frozen=True)

    job_id: str = Field(default_factory=generate_job_id)
    subscription: Subscription
    payload: Payload
    attempt: int = Field(default=0, ge=0)
    created_at: datetime = Field(default_factory=_utcnow)

    def next_attempt(self) -> "DeliveryJob":
        """Copy of this job for the following attempt."""
        return self.model_copy(update={"attempt": self.attempt + 1})


class DeliveryResult(BaseModel):
    """Result of one HTTP delivery attempt."""

    success: bool
    status_code: Optional[int] = None
    error: Optional[str] = None
    retryable: bool = True


class DeliveryState(str, Enum):
    """Where a job ended up after an attempt."""

    SUCCESS = "success"
    RETRY = "retry"
    FAILED_TERMINAL = "failed_terminal"


class DeliveryOutcome(BaseModel):
    """Worker decision for one attempt."""

    state: DeliveryState
    job_id: str
    attempt: int
    status_code: Optional[int] = None
    error: Optional[str] = None
    retry_delay_seconds: Optional[int] = None


class LogOutcome(str, Enum):
    SUCCESS = "success"
    FAILED = "failed"


class DeliveryLogEntry(BaseModel):
    """
    Record of a delivery attempt.

    Attributes:
        subscription_id: Subscription that was notified
        url: Endpoint that was called
        payload_summary: "<event>: <entity_type> - <entity_label>"
        status_code: HTTP status, None when no response was received
        outcome: success or failed
        error: Error detail for failed attempts
        attempt: Zero-based attempt number
        timestamp: When the attempt finished
    """

    model_config = ConfigDict(frozen=True)

    subscription_id: str
    url: str
    payload_summary: str
    status_code: Optional[int] = None
    outcome: LogOutcome
    error: Optional[str] = None
    attempt: int = 0
    timestamp: datetime = Field(default_factory=_utcnow)

    def to_read_model(self) -> Dict[str, Any]:
        """Shape consumed by the operator log viewer."""
        return {
            "time": self.timestamp,
            "url": self.url,
            "payload_summary": self.payload_summary,
            "status_code": self.status_code,
            "outcome": self.outcome.value,
            "error": self.error,
        }
