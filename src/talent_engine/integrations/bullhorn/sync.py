"""
Bullhorn sync orchestration.

Fetches jobs, candidates, and placements and upserts them into a sync store
keyed by Bullhorn id, so re-running a sync never duplicates records.
"""

import asyncio
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from typing import Protocol

from talent_engine.integrations.bullhorn.types import MappedCandidate, MappedJob, MappedPlacement
from talent_engine.shared.logging import get_logger

logger = get_logger(__name__)


class SyncStore(Protocol):
    async def upsert_job(self, job: MappedJob) -> None: ...

    async def upsert_candidate(self, candidate: MappedCandidate) -> None: ...

    async def upsert_placement(self, placement: MappedPlacement) -> None: ...


class InMemorySyncStore:
    """Sync store keeping the latest version of each record by id."""

    def __init__(self) -> None:
        self.jobs: dict[str, MappedJob] = {}
        self.candidates: dict[str, MappedCandidate] = {}
        self.placements: dict[str, MappedPlacement] = {}

    async def upsert_job(self, job: MappedJob) -> None:
        self.jobs[job.id] = job

    async def upsert_candidate(self, candidate: MappedCandidate) -> None:
        self.candidates[candidate.id] = candidate

    async def upsert_placement(self, placement: MappedPlacement) -> None:
        self.placements[placement.id] = placement


@dataclass(frozen=True)
class SyncSummary:
    jobs_synced: int
    candidates_synced: int
    placements_synced: int


async def sync_bullhorn(
    fetch_jobs: Callable[[], Awaitable[Sequence[MappedJob]]],
    fetch_candidates: Callable[[], Awaitable[Sequence[MappedCandidate]]],
    fetch_placements: Callable[[], Awaitable[Sequence[MappedPlacement]]],
    store: SyncStore,
) -> SyncSummary:
    """Fetch the three collections concurrently and upsert every record.

    Args:
        fetch_jobs: Returns mapped jobs, e.g. ``BullhornClient.get_jobs``.
        fetch_candidates: Returns mapped candidates.
        fetch_placements: Returns mapped placements.
        store: Destination store; upserts must be keyed by record id.

    Returns:
        Number of records synced per collection in this run.
    """
    jobs, candidates, placements = await asyncio.gather(
        fetch_jobs(), fetch_candidates(), fetch_placements()
    )

    for job in jobs:
        await store.upsert_job(job)
    for candidate in candidates:
        await store.upsert_candidate(candidate)
    for placement in placements:
        await store.upsert_placement(placement)

    summary = SyncSummary(
        jobs_synced=len(jobs),
        candidates_synced=len(candidates),
        placements_synced=len(placements),
    )
    logger.info(
        "Bullhorn sync completed",
        extra={
            "jobs_synced": summary.jobs_synced,
            "candidates_synced": summary.candidates_synced,
            "placements_synced": summary.placements_synced,
        },
    )
    return summary
