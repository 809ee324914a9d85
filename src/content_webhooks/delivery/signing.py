"""
Module: signing.py
Description: Canonical payload encoding and HMAC-SHA256 signatures.

The request body is exactly the canonical encoding, so receivers can
verify the X-Webhook-Signature header against the raw bytes they got.
"""

import hashlib
import hmac
import json
from typing import Any, Dict, Optional, Union

from content_webhooks.models.payload import WebhookPayload

SIGNATURE_HEADER = "X-Webhook-Signature"
SIGNATURE_PREFIX = "sha256="


def canonical_json(payload: Union[WebhookPayload, Dict[str, Any]]) -> bytes:
    """
    Encode a payload deterministically.

    Keys are sorted, separators are compact and absent optional fields
    are omitted, so the same payload always yields the same bytes.

    Args:
        payload: Payload model or plain dict

    Returns:
        UTF-8 encoded JSON
    """
    data = payload.to_wire() if isinstance(payload, WebhookPayload) else payload
    return json.dumps(
        data,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    ).encode("utf-8")


def sign_body(body: bytes, secret: str) -> str:
    """HMAC-SHA256 over raw bytes, formatted as "sha256=<hex>"."""
    digest = hmac.new(
        key=secret.encode("utf-8"),
        msg=body,
        digestmod=hashlib.sha256,
    ).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def sign(payload: Union[WebhookPayload, Dict[str, Any]], secret: str) -> Optional[str]:
    """
    Sign a payload.

    Args:
        payload: Payload to sign
        secret: Shared secret; empty means unsigned

    Returns:
        "sha256=<hex>" signature, or None when no secret is configured
    """
    if not secret:
        return None
    return sign_body(canonical_json(payload), secret)


def verify(
    payload: Union[WebhookPayload, Dict[str, Any], bytes],
    signature: Optional[str],
    secret: str
) -> bool:
    """
    Verify a signature in constant time.

    Args:
        payload: Payload model, dict, or the raw request body
        signature: Value of the X-Webhook-Signature header
        secret: Shared secret

    Returns:
        True if the signature matches
    """
    if not secret or not signature:
        return False
    body = payload if isinstance(payload, bytes) else canonical_json(payload)
    return hmac.compare_digest(sign_body(body, secret).encode("utf-8"), signature.encode("utf-8"))
