"""
Module: webhooks.py
Description: Webhook subscription, delivery log and test endpoints.

Implements the operator-facing webhook API:
- GET/POST /webhooks: List and register subscriptions
- GET/PUT/DELETE /webhooks/{id}: Read, replace and remove one subscription
- POST /webhooks/{id}/test: Synchronous test delivery
- GET /webhooks/logs: Recent delivery attempts, newest first

Key Components:
- get_webhook_engine(): Dependency injection for the dispatch engine
- ConfigurationError mapped to 400, unknown ids to 404

Dependencies: FastAPI, typing, models, engine, utils
Author: Content Webhooks Team
"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from fastapi import status as status_codes

from content_webhooks.engine import WebhookEngine, get_engine
from content_webhooks.exceptions import ConfigurationError, SubscriptionNotFound
from content_webhooks.models.request import SubscriptionRequest
from content_webhooks.models.response import (
    DeliveryLogResponse,
    SubscriptionResponse,
    TestDeliveryResponse,
)
from content_webhooks.utils.logger import get_logger

router = APIRouter(prefix="/webhooks", tags=["webhooks"])
logger = get_logger(__name__)


def get_webhook_engine() -> WebhookEngine:
    """Dependency to get the webhook dispatch engine."""
    return get_engine()


def _not_found(subscription_id: str) -> HTTPException:
    return HTTPException(
        status_code=status_codes.HTTP_404_NOT_FOUND,
        detail=f"Webhook {subscription_id} not found"
    )


@router.get("", response_model=List[SubscriptionResponse])
def list_webhooks(engine: WebhookEngine = Depends(get_webhook_engine)) -> List[SubscriptionResponse]:
    """List every configured webhook, enabled or not."""
    subscriptions = sorted(
        engine.store.list(),
        key=lambda s: (s.created_at is None, s.created_at, s.id)
    )
    return [SubscriptionResponse.from_subscription(s) for s in subscriptions]


@router.post("", status_code=status_codes.HTTP_201_CREATED, response_model=SubscriptionResponse)
def create_webhook(
    request: SubscriptionRequest,
    engine: WebhookEngine = Depends(get_webhook_engine)
) -> SubscriptionResponse:
    """
    Register a webhook.

    Example:
        POST /webhooks
        {
            "label": "Next.js revalidation",
            "url": "https://frontend.example.com/api/revalidate",
            "secret": "s3cret",
            "events": ["create", "update"],
            "entity_types": ["node"],
            "bundles": ["article"]
        }
    """
    try:
        subscription_id = engine.store.add(request.to_subscription())
    except ConfigurationError as e:
        logger.warning("Rejected webhook configuration", field=e.field, error=e.message)
        raise HTTPException(status_code=status_codes.HTTP_400_BAD_REQUEST, detail=e.message)

    return SubscriptionResponse.from_subscription(engine.store.get(subscription_id))


@router.get("/logs", response_model=List[DeliveryLogResponse])
def get_delivery_logs(
    limit: int = Query(default=50, ge=1, le=100),
    engine: WebhookEngine = Depends(get_webhook_engine)
) -> List[DeliveryLogResponse]:
    """Recent delivery attempts, newest first."""
    return [DeliveryLogResponse.from_entry(entry) for entry in engine.recent_logs(limit)]


@router.get("/{subscription_id}", response_model=SubscriptionResponse)
def get_webhook(
    subscription_id: str,
    engine: WebhookEngine = Depends(get_webhook_engine)
) -> SubscriptionResponse:
    subscription = engine.store.get(subscription_id)
    if subscription is None:
        raise _not_found(subscription_id)
    return SubscriptionResponse.from_subscription(subscription)


@router.put("/{subscription_id}", response_model=SubscriptionResponse)
def update_webhook(
    subscription_id: str,
    request: SubscriptionRequest,
    engine: WebhookEngine = Depends(get_webhook_engine)
) -> SubscriptionResponse:
    """
    Replace a webhook's configuration.

    An empty secret keeps the stored one, so operators can edit filters
    without re-entering it. Set clear_secret to stop signing deliveries.
    """
    existing = engine.store.get(subscription_id)
    if existing is None:
        raise _not_found(subscription_id)

    subscription = request.to_subscription()
    if request.clear_secret:
        subscription = subscription.model_copy(update={"secret": ""})
    elif not request.secret:
        subscription = subscription.model_copy(update={"secret": existing.secret})

    try:
        updated = engine.store.update(subscription_id, subscription)
    except ConfigurationError as e:
        logger.warning("Rejected webhook configuration", field=e.field, error=e.message)
        raise HTTPException(status_code=status_codes.HTTP_400_BAD_REQUEST, detail=e.message)

    if not updated:
        raise _not_found(subscription_id)
    return SubscriptionResponse.from_subscription(engine.store.get(subscription_id))


@router.delete("/{subscription_id}", status_code=status_codes.HTTP_204_NO_CONTENT)
def delete_webhook(
    subscription_id: str,
    engine: WebhookEngine = Depends(get_webhook_engine)
) -> Response:
    if not engine.store.delete(subscription_id):
        raise _not_found(subscription_id)
    return Response(status_code=status_codes.HTTP_204_NO_CONTENT)


@router.post("/{subscription_id}/test", response_model=TestDeliveryResponse)
def test_webhook(
    subscription_id: str,
    engine: WebhookEngine = Depends(get_webhook_engine)
) -> TestDeliveryResponse:
    """
    Send a test payload right now, bypassing the queue.

    Response (200):
        {"success": true}
    """
    try:
        success = engine.send_test_by_id(subscription_id)
    except SubscriptionNotFound:
        raise _not_found(subscription_id)

    return TestDeliveryResponse(success=success)
