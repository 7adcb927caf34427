"""
Bullhorn ATS adapter and webhook normalization.
"""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from datetime import datetime
from typing import Any, Protocol

from pydantic import BaseModel, ConfigDict, Field

from talent_engine.integrations.ats.interface import (
    AtsAdapter,
    AtsCandidateSummary,
    AtsEventStore,
    AtsJob,
    AtsWebhookEnvelope,
    CandidateIngestResult,
    OutcomeEnvelope,
    OutcomeEvent,
    ShortlistIngestResult,
    ShortlistPushPayload,
    ShortlistPushResult,
    StageChangeEnvelope,
    StageChangeEvent,
)
from talent_engine.integrations.bullhorn.mappings import (
    map_bullhorn_candidate,
    map_bullhorn_job,
    map_bullhorn_placement,
    parse_date,
)
from talent_engine.shared.clock import utcnow
from talent_engine.shared.logging import get_logger

logger = get_logger(__name__)

DEFAULT_JOB_STATUS = "open"
CLOSED_JOB_STATUS = "closed"
DEFAULT_PLACEMENT_OUTCOME = "Updated"

PlacementLookup = Callable[[str], Awaitable[dict[str, Any] | None]]


class BullhornAtsClient(Protocol):
    """Raw-payload Bullhorn client surface used by the adapter.

    ``fetch_placement``, ``fetch_shortlist_candidates`` and ``push_shortlist``
    are optional; the adapter falls back when a client lacks them.
    """

    async def fetch_job(self, job_id: str) -> dict[str, Any]: ...

    async def fetch_candidate(self, candidate_id: str) -> dict[str, Any]: ...


class BullhornWebhookEvent(BaseModel):
    """One event of a Bullhorn subscription delivery."""

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    event_id: str = Field(alias="eventId")
    entity_name: str = Field(alias="entityName")
    entity_id: str | int = Field(alias="entityId")
    event_type: str = Field(alias="eventType")
    updated_properties: list[str] | None = Field(default=None, alias="updatedProperties")
    timestamp: str | int | None = None
    job_id: str | int | None = Field(default=None, alias="jobId")
    candidate_id: str | int | None = Field(default=None, alias="candidateId")
    status: str | None = None
    from_stage: str | None = Field(default=None, alias="fromStage")
    placement: dict[str, Any] | None = None


def coerce_date(value: Any) -> datetime:
    """Parse a provider date, falling back to the current time."""
    return parse_date(value) or utcnow()


def to_ats_job(raw: dict[str, Any]) -> AtsJob:
    mapped = map_bullhorn_job(raw)
    return AtsJob(
        id=mapped.id,
        title=mapped.title,
        location=mapped.location,
        department=mapped.company,
        status=CLOSED_JOB_STATUS if raw.get("isOpen") is False else DEFAULT_JOB_STATUS,
        opened_at=mapped.posted_at,
        external_url=None,
    )


def to_ats_candidate(raw: dict[str, Any]) -> AtsCandidateSummary:
    mapped = map_bullhorn_candidate(raw)
    return AtsCandidateSummary(
        id=mapped.id,
        full_name=mapped.full_name,
        email=mapped.email,
        phone=mapped.phone,
        resume_url=None,
        applied_at=mapped.created_at,
        stage=None,
        source=mapped.source,
    )


def map_placement_outcome(placement: dict[str, Any], metadata: dict[str, Any]) -> OutcomeEvent:
    mapped = map_bullhorn_placement(placement)
    return OutcomeEvent(
        job_id=mapped.job_id or mapped.id,
        candidate_id=mapped.candidate_id or mapped.id,
        outcome=mapped.status or DEFAULT_PLACEMENT_OUTCOME,
        decided_at=coerce_date(placement.get("startDate") or placement.get("endDate")),
        metadata=metadata,
    )


async def normalize_bullhorn_webhook_event(
    event: BullhornWebhookEvent,
    lookup_placement: PlacementLookup | None = None,
) -> AtsWebhookEnvelope | None:
    """Convert a Bullhorn webhook event into a canonical envelope.

    Args:
        event: Validated Bullhorn event.
        lookup_placement: Resolves a placement by id when the event does
            not carry it inline.

    Returns:
        The envelope, or None for unsupported entities and placements that
        cannot be resolved.
    """
    metadata = {
        "entityName": event.entity_name,
        "eventType": event.event_type,
        "eventId": event.event_id,
    }
    entity = event.entity_name.lower()

    if entity == "placement":
        placement = event.placement
        if placement is None and lookup_placement is not None:
            placement = await lookup_placement(str(event.entity_id))
        if not placement:
            logger.info(
                "Placement not resolvable; event dropped",
                extra={"event_id": event.event_id, "entity_id": str(event.entity_id)},
            )
            return None
        return OutcomeEnvelope(payload=map_placement_outcome(placement, metadata))

    if entity in ("jobsubmission", "candidate"):
        job_id = event.job_id if event.job_id is not None else event.entity_id
        candidate_id = event.candidate_id if event.candidate_id is not None else event.entity_id
        return StageChangeEnvelope(
            payload=StageChangeEvent(
                job_id=str(job_id),
                candidate_id=str(candidate_id),
                from_stage=event.from_stage,
                to_stage=event.status or event.event_type,
                changed_at=coerce_date(event.timestamp),
                metadata=metadata,
            )
        )

    return None


class BullhornAtsAdapter(AtsAdapter):
    """ATS adapter backed by a Bullhorn client returning raw payloads."""

    provider = "bullhorn"

    def __init__(self, client: BullhornAtsClient, store: AtsEventStore) -> None:
        super().__init__(client, store)

    async def ingest_job(self, job_id: str) -> AtsJob:
        return to_ats_job(await self._client.fetch_job(job_id))

    async def ingest_candidate(self, job_id: str, candidate_id: str) -> CandidateIngestResult:
        job, raw_candidate = await asyncio.gather(
            self.ingest_job(job_id),
            self._client.fetch_candidate(candidate_id),
        )
        return CandidateIngestResult(
            job=job,
            candidate=to_ats_candidate(raw_candidate),
            received_at=utcnow(),
        )

    async def ingest_shortlist(self, job_id: str) -> ShortlistIngestResult:
        job = await self.ingest_job(job_id)

        fetch_shortlist = getattr(self._client, "fetch_shortlist_candidates", None)
        raw_candidates: Sequence[dict[str, Any]]
        if fetch_shortlist is not None:
            raw_candidates = await fetch_shortlist(job_id)
        else:
            # Clients without shortlist support resolve the job id as a single candidate;
            # any failure there means an empty shortlist.
            try:
                raw_candidates = [await self._client.fetch_candidate(job_id)]
            except Exception:
                logger.info("No shortlist available", extra={"job_id": job_id}, exc_info=True)
                raw_candidates = []

        return ShortlistIngestResult(
            job=job,
            candidates=[to_ats_candidate(raw) for raw in raw_candidates],
            received_at=utcnow(),
        )

    async def push_shortlist(self, payload: ShortlistPushPayload) -> ShortlistPushResult:
        requested_at = utcnow()
        client_push = getattr(self._client, "push_shortlist", None)
        if client_push is not None:
            external_ids = list(await client_push(payload.job_id, payload.candidates, payload.note))
        else:
            external_ids = [
                f"{payload.job_id}-{index}-{candidate.id}"
                for index, candidate in enumerate(payload.candidates, start=1)
            ]
        return await self._record_push(payload.job_id, external_ids, requested_at)

    async def lookup_placement(self, placement_id: str) -> dict[str, Any] | None:
        fetch_placement = getattr(self._client, "fetch_placement", None)
        if fetch_placement is None:
            return None
        return await fetch_placement(placement_id)
