"""
Webhook payload validation, signature checks, and event de-duplication.
"""

import hashlib
import hmac
from collections.abc import Iterable
from typing import Any

from talent_engine.integrations.errors import AtsProviderError
from talent_engine.shared.logging import get_logger

logger = get_logger(__name__)


class WebhookPayloadError(AtsProviderError):
    """Webhook body failed validation."""


class WebhookEventRegistry:
    """Remembers processed provider event ids for the lifetime of the process."""

    def __init__(self) -> None:
        self._processed: set[str] = set()

    def record(self, event_id: str) -> bool:
        """Register ``event_id``; returns False if it was already seen."""
        if event_id in self._processed:
            return False
        self._processed.add(event_id)
        return True

    def forget(self, event_ids: Iterable[str]) -> None:
        """Unregister ids whose processing failed so a redelivery is accepted."""
        self._processed.difference_update(event_ids)

    def reset(self) -> None:
        self._processed.clear()

    def __len__(self) -> int:
        return len(self._processed)


def _require_string(event: dict[str, Any], key: str) -> None:
    value = event.get(key)
    if not value or not isinstance(value, str):
        raise WebhookPayloadError(f"{key} is required for each event", error_code="INVALID_EVENT")


def validate_bullhorn_event(event: Any) -> None:
    if not isinstance(event, dict):
        raise WebhookPayloadError("Each event must be an object", error_code="INVALID_EVENT")
    _require_string(event, "eventId")
    _require_string(event, "entityName")
    if event.get("entityId") is None:
        raise WebhookPayloadError("entityId is required for each event", error_code="INVALID_EVENT")
    _require_string(event, "eventType")
    updated = event.get("updatedProperties")
    if updated is not None and not isinstance(updated, list):
        raise WebhookPayloadError(
            "updatedProperties must be an array when provided", error_code="INVALID_EVENT"
        )


def validate_bullhorn_payload(body: Any) -> None:
    """Validate a Bullhorn subscription delivery.

    Raises:
        WebhookPayloadError: Describing the first problem found.
    """
    if not isinstance(body, dict):
        raise WebhookPayloadError("Payload must be an object", error_code="INVALID_PAYLOAD")
    subscription_id = body.get("subscriptionId")
    if not subscription_id or not isinstance(subscription_id, str):
        raise WebhookPayloadError(
            "subscriptionId is required and must be a string", error_code="INVALID_PAYLOAD"
        )
    events = body.get("events")
    if not isinstance(events, list):
        raise WebhookPayloadError("events must be an array", error_code="INVALID_PAYLOAD")
    for event in events:
        validate_bullhorn_event(event)


def has_changes(event: dict[str, Any]) -> bool:
    updated = event.get("updatedProperties")
    return isinstance(updated, list) and len(updated) > 0


def verify_shared_secret(provided: str | None, expected: str) -> bool:
    """Constant-time comparison of a shared-secret header; an empty secret disables the check."""
    if not expected:
        return True
    return provided is not None and hmac.compare_digest(provided, expected)


def verify_hmac_signature(body: bytes, header: str | None, secret: str) -> bool:
    """Validate a ``Signature: sha256 <hex>`` header; an empty secret disables the check."""
    if not secret:
        return True
    if not header:
        return False
    _, _, provided = header.strip().partition(" ")
    expected = hmac.new(secret.encode("utf-8"), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(provided.strip(), expected)
