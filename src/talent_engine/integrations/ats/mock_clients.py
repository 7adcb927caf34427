"""
Deterministic in-memory ATS clients for tests and local development.
"""

from collections.abc import Sequence
from typing import Any

from talent_engine.integrations.ats.bullhorn_adapter import BullhornWebhookEvent
from talent_engine.integrations.ats.interface import AtsCandidateSummary
from talent_engine.integrations.errors import AtsNotFoundError


def _index(records: Sequence[dict[str, Any]]) -> dict[str, dict[str, Any]]:
    return {str(record["id"]): dict(record) for record in records}


class MockBullhornAtsClient:
    """Bullhorn client serving raw payloads from memory.

    The shortlist of every job is the full candidate list. Pushed ids embed
    the note so callers can assert it was forwarded.
    """

    def __init__(
        self,
        jobs: Sequence[dict[str, Any]] = (),
        candidates: Sequence[dict[str, Any]] = (),
        placements: Sequence[dict[str, Any]] = (),
    ) -> None:
        self._jobs = _index(jobs)
        self._candidates = _index(candidates)
        self._placements = _index(placements)
        self.pushes: list[dict[str, Any]] = []

    async def fetch_job(self, job_id: str) -> dict[str, Any]:
        if job_id not in self._jobs:
            raise AtsNotFoundError(f"Job {job_id} not found", error_code="JOB_NOT_FOUND")
        return self._jobs[job_id]

    async def fetch_candidate(self, candidate_id: str) -> dict[str, Any]:
        if candidate_id not in self._candidates:
            raise AtsNotFoundError(
                f"Candidate {candidate_id} not found", error_code="CANDIDATE_NOT_FOUND"
            )
        return self._candidates[candidate_id]

    async def fetch_placement(self, placement_id: str) -> dict[str, Any] | None:
        return self._placements.get(placement_id)

    async def fetch_shortlist_candidates(self, job_id: str) -> list[dict[str, Any]]:
        await self.fetch_job(job_id)
        return list(self._candidates.values())

    async def push_shortlist(
        self,
        job_id: str,
        candidates: Sequence[AtsCandidateSummary],
        note: str | None = None,
    ) -> list[str]:
        self.pushes.append({"job_id": job_id, "pushed": len(candidates), "note": note})
        return [f"{job_id}:{candidate.id}:{note or ''}" for candidate in candidates]


class MockGreenhouseClient:
    """Greenhouse client serving raw jobs and applications from memory."""

    def __init__(
        self,
        jobs: Sequence[dict[str, Any]] = (),
        applications: Sequence[dict[str, Any]] = (),
    ) -> None:
        self._jobs = _index(jobs)
        self._applications = [dict(application) for application in applications]

    async def fetch_job(self, job_id: str) -> dict[str, Any]:
        if job_id not in self._jobs:
            raise AtsNotFoundError(f"Job {job_id} not found", error_code="JOB_NOT_FOUND")
        return self._jobs[job_id]

    async def fetch_applications(self, job_id: str) -> list[dict[str, Any]]:
        return [app for app in self._applications if str(app["job_id"]) == job_id]

    async def push_prospects(
        self,
        job_id: str,
        candidates: Sequence[AtsCandidateSummary],
        note: str | None = None,
    ) -> list[str]:
        return [f"prospect-{job_id}-{candidate.id}" for candidate in candidates]


class RecordingGreenhouseClient(MockGreenhouseClient):
    """Mock Greenhouse client that remembers every prospect push."""

    def __init__(
        self,
        jobs: Sequence[dict[str, Any]] = (),
        applications: Sequence[dict[str, Any]] = (),
    ) -> None:
        super().__init__(jobs, applications)
        self.pushes: list[dict[str, Any]] = []

    async def push_prospects(
        self,
        job_id: str,
        candidates: Sequence[AtsCandidateSummary],
        note: str | None = None,
    ) -> list[str]:
        ids = await super().push_prospects(job_id, candidates, note)
        self.pushes.append({"job_id": job_id, "pushed": len(ids), "note": note})
        return ids


def build_submission_event(
    submission_id: str | int,
    job_id: str | int,
    candidate_id: str | int,
    status: str,
    from_stage: str | None = None,
    timestamp: str | int | None = None,
) -> BullhornWebhookEvent:
    return BullhornWebhookEvent(
        eventId=f"submission-{submission_id}",
        entityName="JobSubmission",
        entityId=submission_id,
        eventType="UPDATED",
        updatedProperties=["status"],
        jobId=job_id,
        candidateId=candidate_id,
        status=status,
        fromStage=from_stage,
        timestamp=timestamp,
    )


def build_placement_event(placement: dict[str, Any], inline: bool = False) -> BullhornWebhookEvent:
    return BullhornWebhookEvent(
        eventId=f"placement-{placement['id']}",
        entityName="Placement",
        entityId=placement["id"],
        eventType="UPDATED",
        updatedProperties=["status"],
        placement=placement if inline else None,
    )
