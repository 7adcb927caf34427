"""
Greenhouse ATS adapter, payload mappers, and webhook payload models.
"""

import asyncio
from collections.abc import Sequence
from datetime import datetime
from typing import Any, Literal, Protocol

from pydantic import BaseModel, ConfigDict

from talent_engine.integrations.ats.interface import (
    AtsAdapter,
    AtsCandidateSummary,
    AtsEventStore,
    AtsJob,
    CandidateIngestResult,
    OutcomeEnvelope,
    OutcomeEvent,
    ShortlistIngestResult,
    ShortlistPushPayload,
    ShortlistPushResult,
    StageChangeEnvelope,
    StageChangeEvent,
)
from talent_engine.integrations.bullhorn.mappings import parse_date
from talent_engine.integrations.errors import AtsNotFoundError
from talent_engine.shared.clock import utcnow

OUTCOME_ACTIONS = ("hire", "reject", "offer", "advance")


class GreenhouseClient(Protocol):
    async def fetch_job(self, job_id: str) -> dict[str, Any]: ...

    async def fetch_applications(self, job_id: str) -> list[dict[str, Any]]: ...

    async def push_prospects(
        self,
        job_id: str,
        candidates: Sequence[AtsCandidateSummary],
        note: str | None = None,
    ) -> list[str]: ...


class GreenhouseStageChangeWebhook(BaseModel):
    model_config = ConfigDict(extra="allow")

    action: Literal["stage_change"]
    application_id: str | int
    job_id: str | int
    candidate_id: str | int
    from_stage: str | None = None
    to_stage: str
    happened_at: datetime


class GreenhouseOutcomeWebhook(BaseModel):
    model_config = ConfigDict(extra="allow")

    action: Literal["hire", "reject", "offer", "advance"]
    application_id: str | int
    job_id: str | int
    candidate_id: str | int
    outcome: str
    happened_at: datetime


def map_job(job: dict[str, Any]) -> AtsJob:
    location = job.get("location") or {}
    departments = job.get("departments") or []
    return AtsJob(
        id=str(job["id"]),
        title=job["title"],
        location=location.get("name"),
        department=departments[0].get("name") if departments else None,
        status=job.get("status", "open"),
        opened_at=parse_date(job.get("opened_at") or job.get("updated_at")),
        external_url=job.get("absolute_url"),
    )


def map_candidate(application: dict[str, Any]) -> AtsCandidateSummary:
    candidate = application["candidate"]
    stage = application.get("stage") or {}
    source = application.get("source") or {}
    full_name = f"{candidate.get('first_name') or ''} {candidate.get('last_name') or ''}".strip()
    return AtsCandidateSummary(
        id=str(candidate["id"]),
        full_name=full_name,
        email=candidate.get("email"),
        phone=candidate.get("phone"),
        resume_url=candidate.get("resume_url"),
        applied_at=parse_date(application.get("applied_at")),
        stage=stage.get("name"),
        source=source.get("public_name"),
    )


def map_stage_change(payload: GreenhouseStageChangeWebhook) -> StageChangeEnvelope:
    return StageChangeEnvelope(
        payload=StageChangeEvent(
            job_id=str(payload.job_id),
            candidate_id=str(payload.candidate_id),
            from_stage=payload.from_stage,
            to_stage=payload.to_stage,
            changed_at=payload.happened_at,
        )
    )


def map_outcome(payload: GreenhouseOutcomeWebhook) -> OutcomeEnvelope:
    return OutcomeEnvelope(
        payload=OutcomeEvent(
            job_id=str(payload.job_id),
            candidate_id=str(payload.candidate_id),
            outcome=payload.outcome,
            decided_at=payload.happened_at,
        )
    )


class GreenhouseAdapter(AtsAdapter):
    """ATS adapter backed by the Greenhouse Harvest API."""

    provider = "greenhouse"

    def __init__(self, client: GreenhouseClient, store: AtsEventStore) -> None:
        super().__init__(client, store)

    async def ingest_job(self, job_id: str) -> AtsJob:
        return map_job(await self._client.fetch_job(job_id))

    async def ingest_candidate(self, job_id: str, candidate_id: str) -> CandidateIngestResult:
        """Ingest one candidate, matched by candidate id or application id.

        Raises:
            AtsNotFoundError: If no application of the job matches.
        """
        job, applications = await asyncio.gather(
            self.ingest_job(job_id),
            self._client.fetch_applications(job_id),
        )
        application = next(
            (
                item
                for item in applications
                if str(item["candidate"]["id"]) == candidate_id or str(item["id"]) == candidate_id
            ),
            None,
        )
        if application is None:
            raise AtsNotFoundError(
                f"Candidate {candidate_id} not found for job {job_id}",
                error_code="CANDIDATE_NOT_FOUND",
            )
        return CandidateIngestResult(job=job, candidate=map_candidate(application), received_at=utcnow())

    async def ingest_shortlist(self, job_id: str) -> ShortlistIngestResult:
        job, applications = await asyncio.gather(
            self.ingest_job(job_id),
            self._client.fetch_applications(job_id),
        )
        return ShortlistIngestResult(
            job=job,
            candidates=[map_candidate(application) for application in applications],
            received_at=utcnow(),
        )

    async def push_shortlist(self, payload: ShortlistPushPayload) -> ShortlistPushResult:
        requested_at = utcnow()
        external_ids = await self._client.push_prospects(
            payload.job_id, payload.candidates, payload.note
        )
        return await self._record_push(payload.job_id, list(external_ids), requested_at)
