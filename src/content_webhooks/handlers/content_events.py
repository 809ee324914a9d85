"""
Module: content_events.py
Description: Inbound content change endpoint.

Lets a content layer that lives in another process publish changes over
HTTP. The endpoint only matches and enqueues; delivery happens later in
the workers, so the response never waits on subscriber endpoints.
"""

from fastapi import APIRouter, Depends
from fastapi import status as status_codes

from content_webhooks.engine import WebhookEngine
from content_webhooks.handlers.webhooks import get_webhook_engine
from content_webhooks.models.request import ContentEventRequest
from content_webhooks.models.response import ContentEventResponse
from content_webhooks.utils.logger import get_logger

router = APIRouter(prefix="/content-events", tags=["content-events"])
logger = get_logger(__name__)


@router.post("", status_code=status_codes.HTTP_202_ACCEPTED, response_model=ContentEventResponse)
def publish_content_event(
    request: ContentEventRequest,
    engine: WebhookEngine = Depends(get_webhook_engine)
) -> ContentEventResponse:
    """
    Queue deliveries for a content change.

    Example:
        POST /content-events
        {"event": "create", "entity": {"type": "node", "bundle": "article",
                                        "id": 7, "uuid": "0b6f..."}}

        Response (202):
        {"queued": 1}
    """
    jobs = engine.trigger(request.entity, request.event)
    return ContentEventResponse(queued=len(jobs))
