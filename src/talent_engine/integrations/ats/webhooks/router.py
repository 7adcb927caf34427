"""
ATS webhook endpoints for Bullhorn and Greenhouse.
"""

from collections.abc import AsyncGenerator
from typing import Any

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from talent_engine.integrations.ats.bullhorn_adapter import (
    BullhornAtsAdapter,
    BullhornWebhookEvent,
    normalize_bullhorn_webhook_event,
)
from talent_engine.integrations.ats.config import AtsConfig, AtsProviderType, get_ats_config
from talent_engine.integrations.ats.factory import create_ats_adapter
from talent_engine.integrations.ats.greenhouse_adapter import (
    OUTCOME_ACTIONS,
    GreenhouseOutcomeWebhook,
    GreenhouseStageChangeWebhook,
    map_outcome,
    map_stage_change,
)
from talent_engine.integrations.ats.interface import (
    UNSUPPORTED_WEBHOOK_REASON,
    AtsAdapter,
    AtsEventStore,
)
from talent_engine.integrations.ats.store import SqlAlchemyAtsEventStore
from talent_engine.integrations.ats.webhooks.handler import (
    WebhookEventRegistry,
    WebhookPayloadError,
    has_changes,
    validate_bullhorn_payload,
    verify_hmac_signature,
    verify_shared_secret,
)
from talent_engine.shared.database import get_db_session
from talent_engine.shared.logging import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/webhooks/ats", tags=["ats-webhooks"])


def get_ats_event_store(session: AsyncSession = Depends(get_db_session)) -> AtsEventStore:
    return SqlAlchemyAtsEventStore(session)


def get_event_registry(request: Request) -> WebhookEventRegistry:
    registry = getattr(request.app.state, "webhook_registry", None)
    if registry is None:
        registry = WebhookEventRegistry()
        request.app.state.webhook_registry = registry
    return registry


async def get_bullhorn_adapter(
    store: AtsEventStore = Depends(get_ats_event_store),
    config: AtsConfig = Depends(get_ats_config),
) -> AsyncGenerator[AtsAdapter, None]:
    adapter = create_ats_adapter(AtsProviderType.BULLHORN, store, config)
    try:
        yield adapter
    finally:
        await adapter.aclose()


async def get_greenhouse_adapter(
    store: AtsEventStore = Depends(get_ats_event_store),
    config: AtsConfig = Depends(get_ats_config),
) -> AsyncGenerator[AtsAdapter, None]:
    adapter = create_ats_adapter(AtsProviderType.GREENHOUSE, store, config)
    try:
        yield adapter
    finally:
        await adapter.aclose()


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


@router.get("/bullhorn")
async def bullhorn_webhook_health() -> dict[str, str]:
    return {"status": "ok"}


@router.options("/bullhorn")
async def bullhorn_webhook_options() -> Response:
    return Response(status_code=status.HTTP_204_NO_CONTENT, headers={"Allow": "GET,POST,OPTIONS"})


@router.post("/bullhorn")
async def receive_bullhorn_webhook(
    request: Request,
    config: AtsConfig = Depends(get_ats_config),
    registry: WebhookEventRegistry = Depends(get_event_registry),
    adapter: AtsAdapter = Depends(get_bullhorn_adapter),
) -> JSONResponse:
    """Accept a Bullhorn subscription delivery.

    Duplicate event ids and events without updated properties are counted
    and skipped; the rest are normalized and recorded through the adapter.
    """
    if not verify_shared_secret(
        request.headers.get("x-bullhorn-signature"), config.bullhorn_webhook_secret
    ):
        logger.warning("Bullhorn webhook signature mismatch")
        return _error(status.HTTP_401_UNAUTHORIZED, "Invalid signature")

    try:
        body = await request.json()
    except ValueError:
        return _error(status.HTTP_400_BAD_REQUEST, "Payload must be an object")

    try:
        validate_bullhorn_payload(body)
        events = [BullhornWebhookEvent.model_validate(raw) for raw in body["events"]]
    except WebhookPayloadError as e:
        return _error(status.HTTP_400_BAD_REQUEST, str(e))
    except PydanticValidationError as e:
        return _error(status.HTTP_400_BAD_REQUEST, e.errors()[0]["msg"])

    duplicates = 0
    no_change = 0
    acknowledged = 0
    processed_events: list[dict[str, Any]] = []
    registered: list[str] = []
    lookup = adapter.lookup_placement if isinstance(adapter, BullhornAtsAdapter) else None

    try:
        for raw, event in zip(body["events"], events):
            if not registry.record(event.event_id):
                duplicates += 1
                continue
            registered.append(event.event_id)
            if not has_changes(raw):
                no_change += 1
                continue

            processed_events.append(raw)
            envelope = await normalize_bullhorn_webhook_event(event, lookup_placement=lookup)
            if envelope is None:
                continue
            receipt = await adapter.receive_outcome(envelope)
            if receipt.acknowledged:
                acknowledged += 1
    except Exception:
        # The batch rolls back with the request; let Bullhorn redeliver every event in it.
        registry.forget(registered)
        logger.warning(
            "Bullhorn webhook batch failed; event ids released",
            extra={"subscription_id": body["subscriptionId"], "released": len(registered)},
        )
        raise

    logger.info(
        "Bullhorn webhook received",
        extra={
            "subscription_id": body["subscriptionId"],
            "received": len(events),
            "processed": len(processed_events),
            "duplicates": duplicates,
            "acknowledged": acknowledged,
        },
    )
    return JSONResponse(
        status_code=status.HTTP_202_ACCEPTED,
        content={
            "subscriptionId": body["subscriptionId"],
            "received": len(events),
            "processed": len(processed_events),
            "duplicates": duplicates,
            "ignoredWithoutChanges": no_change,
            "acknowledged": acknowledged,
            "events": processed_events,
        },
    )


@router.post("/greenhouse")
async def receive_greenhouse_webhook(
    request: Request,
    config: AtsConfig = Depends(get_ats_config),
    adapter: AtsAdapter = Depends(get_greenhouse_adapter),
) -> JSONResponse:
    raw_body = await request.body()
    if not verify_hmac_signature(
        raw_body, request.headers.get("Signature"), config.greenhouse_webhook_secret
    ):
        logger.warning("Greenhouse webhook signature mismatch")
        return _error(status.HTTP_401_UNAUTHORIZED, "Invalid signature")

    try:
        body = await request.json()
    except ValueError:
        return _error(status.HTTP_400_BAD_REQUEST, "Payload must be an object")
    if not isinstance(body, dict):
        return _error(status.HTTP_400_BAD_REQUEST, "Payload must be an object")

    action = body.get("action")
    try:
        if action == "stage_change":
            envelope = map_stage_change(GreenhouseStageChangeWebhook.model_validate(body))
        elif action in OUTCOME_ACTIONS:
            envelope = map_outcome(GreenhouseOutcomeWebhook.model_validate(body))
        else:
            logger.info("Unsupported Greenhouse webhook action", extra={"action": action})
            return JSONResponse(
                content={"acknowledged": False, "reason": UNSUPPORTED_WEBHOOK_REASON}
            )
    except PydanticValidationError as e:
        return _error(status.HTTP_400_BAD_REQUEST, e.errors()[0]["msg"])

    receipt = await adapter.receive_outcome(envelope)
    return JSONResponse(content={"acknowledged": receipt.acknowledged, "reason": receipt.reason})
