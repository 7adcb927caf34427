"""Tests for webhook validation, signatures, and de-duplication."""

import hashlib
import hmac

import pytest

from talent_engine.integrations.ats.webhooks.handler import (
    WebhookEventRegistry,
    WebhookPayloadError,
    has_changes,
    validate_bullhorn_payload,
    verify_hmac_signature,
    verify_shared_secret,
)

VALID_EVENT = {
    "eventId": "evt-1",
    "entityName": "JobSubmission",
    "entityId": 12,
    "eventType": "UPDATED",
    "updatedProperties": ["status"],
}


def payload(*events: object) -> dict:
    return {"subscriptionId": "sub-1", "events": list(events)}


class TestValidateBullhornPayload:
    def test_accepts_valid_payload(self) -> None:
        validate_bullhorn_payload(payload(VALID_EVENT))

    def test_accepts_empty_event_list(self) -> None:
        validate_bullhorn_payload(payload())

    @pytest.mark.parametrize(
        ("body", "message"),
        [
            ([], "Payload must be an object"),
            ({"events": []}, "subscriptionId is required and must be a string"),
            ({"subscriptionId": 5, "events": []}, "subscriptionId is required and must be a string"),
            ({"subscriptionId": "sub-1"}, "events must be an array"),
            (payload("oops"), "Each event must be an object"),
            (payload({**VALID_EVENT, "eventId": ""}), "eventId is required for each event"),
            (payload({**VALID_EVENT, "entityName": 3}), "entityName is required for each event"),
            (payload({**VALID_EVENT, "entityId": None}), "entityId is required for each event"),
            (payload({**VALID_EVENT, "eventType": None}), "eventType is required for each event"),
            (
                payload({**VALID_EVENT, "updatedProperties": "status"}),
                "updatedProperties must be an array when provided",
            ),
        ],
    )
    def test_rejects_invalid_payloads(self, body: object, message: str) -> None:
        with pytest.raises(WebhookPayloadError) as exc_info:
            validate_bullhorn_payload(body)

        assert str(exc_info.value) == message

    def test_entity_id_zero_is_present(self) -> None:
        validate_bullhorn_payload(payload({**VALID_EVENT, "entityId": 0}))


class TestHasChanges:
    def test_requires_non_empty_list(self) -> None:
        assert has_changes(VALID_EVENT) is True
        assert has_changes({**VALID_EVENT, "updatedProperties": []}) is False
        assert has_changes({"eventId": "x"}) is False


class TestWebhookEventRegistry:
    def test_records_each_id_once(self) -> None:
        registry = WebhookEventRegistry()

        assert registry.record("evt-1") is True
        assert registry.record("evt-1") is False
        assert len(registry) == 1

    def test_reset_forgets_ids(self) -> None:
        registry = WebhookEventRegistry()
        registry.record("evt-1")

        registry.reset()

        assert registry.record("evt-1") is True

    def test_forget_releases_only_given_ids(self) -> None:
        registry = WebhookEventRegistry()
        registry.record("evt-1")
        registry.record("evt-2")

        registry.forget(["evt-2", "evt-unknown"])

        assert registry.record("evt-1") is False
        assert registry.record("evt-2") is True


class TestSignatures:
    def test_shared_secret(self) -> None:
        assert verify_shared_secret(None, "") is True
        assert verify_shared_secret("secret", "secret") is True
        assert verify_shared_secret("other", "secret") is False
        assert verify_shared_secret(None, "secret") is False

    def test_hmac_signature(self) -> None:
        body = b'{"action": "hire"}'
        digest = hmac.new(b"gh-secret", body, hashlib.sha256).hexdigest()

        assert verify_hmac_signature(body, f"sha256 {digest}", "gh-secret") is True
        assert verify_hmac_signature(body, f"sha256 {digest}", "other") is False
        assert verify_hmac_signature(body, None, "gh-secret") is False
        assert verify_hmac_signature(body, None, "") is True
