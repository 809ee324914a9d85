"""
Module: conftest.py
Description: Shared pytest fixtures for webhook engine tests.

Provides reusable fixtures for subscriptions, entities, in-memory engine
components with a controllable clock, and moto-backed AWS resources for
the DynamoDB store and the SQS queue.
"""

import boto3
import pytest
from moto import mock_aws

from content_webhooks.config.settings import Settings
from content_webhooks.delivery.push import WebhookSender
from content_webhooks.delivery.retry import RetryPolicy
from content_webhooks.delivery.trigger import WebhookTrigger
from content_webhooks.delivery.worker import DeliveryWorker
from content_webhooks.engine import build_engine
from content_webhooks.models.payload import Author, EntityDescriptor
from content_webhooks.models.subscription import EventKind, Subscription
from content_webhooks.queues.memory import InMemoryDeliveryQueue
from content_webhooks.storage.delivery_log import DeliveryLog
from content_webhooks.storage.subscriptions import InMemorySubscriptionStore

WEBHOOK_URL = "https://frontend.example.com/api/revalidate"


class FakeClock:
    """Monotonic clock that only moves when told to."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def test_settings():
    """
    Provide test configuration settings.

    Disables .env loading so tests do not depend on the developer machine.
    """
    return Settings(
        _env_file=None,
        log_level="DEBUG",
        stage="test",
        queue_backend="memory",
        subscription_backend="memory",
    )


@pytest.fixture
def aws_credentials(monkeypatch):
    """Fake AWS credentials so boto3 never reaches a real account."""
    monkeypatch.setenv("AWS_ACCESS_KEY_ID", "testing")
    monkeypatch.setenv("AWS_SECRET_ACCESS_KEY", "testing")
    monkeypatch.setenv("AWS_SECURITY_TOKEN", "testing")
    monkeypatch.setenv("AWS_SESSION_TOKEN", "testing")
    monkeypatch.setenv("AWS_DEFAULT_REGION", "us-east-1")


@pytest.fixture
def subscription():
    """A stored, signed subscription for article nodes."""
    return Subscription(
        id="whk_0123456789ab",
        label="Frontend revalidation",
        url=WEBHOOK_URL,
        secret="s3cret",
        events={EventKind.CREATE, EventKind.UPDATE},
        entity_types={"node"},
        bundles=set(),
        enabled=True,
    )


@pytest.fixture
def article():
    """Entity descriptor for a published article node."""
    return EntityDescriptor(
        type="node",
        bundle="article",
        id=42,
        uuid="6f1c2b8e-3c0d-4a57-9b1e-0d2c5a7e9f10",
        label="Hello world",
        url="https://cms.example.com/node/42",
        published=True,
        created=1700000000,
        changed=1700000500,
        author=Author(id=1, name="admin"),
    )


@pytest.fixture
def page():
    """Entity descriptor for a basic page node."""
    return EntityDescriptor(
        type="node",
        bundle="page",
        id=7,
        uuid="0b6f8c3a-5f5e-4d1b-8f0a-2a4e7c9d1b33",
        label="About us",
    )


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def store():
    return InMemorySubscriptionStore()


@pytest.fixture
def queue(clock):
    return InMemoryDeliveryQueue(clock=clock)


@pytest.fixture
def delivery_log():
    return DeliveryLog(capacity=100)


@pytest.fixture
def sender(delivery_log):
    return WebhookSender(delivery_log=delivery_log, timeout_seconds=10)


@pytest.fixture
def worker(queue, sender):
    return DeliveryWorker(queue, sender, policy=RetryPolicy())


@pytest.fixture
def webhook_trigger(store, queue):
    return WebhookTrigger(store, queue)


@pytest.fixture
def engine(test_settings, store, queue, delivery_log):
    """Engine wired from in-memory components shared with the other fixtures."""
    return build_engine(test_settings, store=store, queue=queue, delivery_log=delivery_log)


@pytest.fixture
def aws(aws_credentials):
    """Single moto context shared by every AWS fixture in a test."""
    with mock_aws():
        yield


@pytest.fixture
def subscriptions_table(aws):
    """
    Create mock DynamoDB table for subscriptions.

    Uses moto to mock AWS DynamoDB with the production key schema.
    """
    dynamodb = boto3.resource('dynamodb', region_name='us-east-1')
    return dynamodb.create_table(
        TableName="test-subscriptions",
        KeySchema=[
            {
                'AttributeName': 'subscription_id',
                'KeyType': 'HASH'
            }
        ],
        AttributeDefinitions=[
            {
                'AttributeName': 'subscription_id',
                'AttributeType': 'S'
            }
        ],
        BillingMode='PAY_PER_REQUEST'
    )


@pytest.fixture
def sqs_queue_url(aws):
    """Create a mock SQS queue and return its URL."""
    sqs = boto3.client('sqs', region_name='us-east-1')
    response = sqs.create_queue(QueueName="test-webhook-deliveries")
    return response['QueueUrl']
