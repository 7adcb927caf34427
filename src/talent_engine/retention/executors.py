"""
Soft-delete and hard-delete executors.

Soft delete scrubs PII in place and keeps rows; hard delete removes rows in
two phases: candidate dependents first, then the selected records.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from talent_engine.retention.repository import (
    DB_NULL,
    JSON_NULL,
    RecordQuery,
    RetentionEntity,
    RetentionStore,
)
from talent_engine.retention.selector import ExpiredRecordSelection
from talent_engine.shared.clock import utcnow
from talent_engine.shared.concurrency import gather_settled

REMOVED_CANDIDATE_NAME = "Removed Candidate"
DELETED_CANDIDATE_STATUS = "deleted"

CANDIDATE_PII_FIELDS = (
    "email",
    "phone",
    "location",
    "current_title",
    "current_company",
    "total_experience_years",
    "seniority_level",
    "summary",
    "raw_resume_text",
    "source_type",
    "source_tag",
    "parsing_confidence",
)


@dataclass(frozen=True)
class DependentDeletionCounts:
    candidate_skills: int = 0
    job_candidates: int = 0
    outreach_interactions: int = 0
    dependent_matches: int = 0
    dependent_match_results: int = 0


@dataclass(frozen=True)
class DeletionSummary:
    """Counts of records affected by one retention or offboarding action.

    Dependent counts are only populated by hard deletes.
    """

    soft: bool
    agent_run_logs: int = 0
    matches: int = 0
    match_results: int = 0
    candidates: int = 0
    candidate_skills: int | None = None
    job_candidates: int | None = None
    outreach_interactions: int | None = None
    dependent_matches: int | None = None
    dependent_match_results: int | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "soft": self.soft,
            "agent_run_logs": self.agent_run_logs,
            "matches": self.matches,
            "match_results": self.match_results,
            "candidates": self.candidates,
        }
        if not self.soft:
            data.update(
                candidate_skills=self.candidate_skills or 0,
                job_candidates=self.job_candidates or 0,
                outreach_interactions=self.outreach_interactions or 0,
                dependent_matches=self.dependent_matches or 0,
                dependent_match_results=self.dependent_match_results or 0,
            )
        return data


async def _update_if_any(
    store: RetentionStore,
    entity: RetentionEntity,
    tenant_id: str,
    ids: Sequence[str],
    values: Mapping[str, Any],
) -> int:
    if not ids:
        return 0
    return await store.update_many(RecordQuery(entity, tenant_id=tenant_id, ids=ids), values)


async def _delete_if_any(
    store: RetentionStore,
    entity: RetentionEntity,
    tenant_id: str,
    ids: Sequence[str],
) -> int:
    if not ids:
        return 0
    return await store.delete_many(RecordQuery(entity, tenant_id=tenant_id, ids=ids))


async def soft_delete_expired_records(
    store: RetentionStore,
    tenant_id: str,
    expired: ExpiredRecordSelection,
    deleted_at: datetime | None = None,
) -> DeletionSummary:
    """Scrub the selected records in place.

    Args:
        store: Retention storage port.
        tenant_id: Tenant owning the records.
        expired: Selected record ids.
        deleted_at: Timestamp stamped on soft-deletable rows.

    Returns:
        Per-type counts of updated records.
    """
    timestamp = deleted_at or utcnow()
    candidate_scrub: dict[str, Any] = {
        "deleted_at": timestamp,
        "full_name": REMOVED_CANDIDATE_NAME,
        "status": DELETED_CANDIDATE_STATUS,
    }
    candidate_scrub.update({field: None for field in CANDIDATE_PII_FIELDS})

    agent_run_logs, matches, match_results, candidates = await gather_settled(
        _update_if_any(
            store,
            RetentionEntity.AGENT_RUN_LOG,
            tenant_id,
            expired.agent_run_logs,
            {"deleted_at": timestamp, "input": {}, "output": DB_NULL, "error_message": None},
        ),
        _update_if_any(
            store,
            RetentionEntity.MATCH,
            tenant_id,
            expired.matches,
            {"deleted_at": timestamp, "score_breakdown": JSON_NULL},
        ),
        _update_if_any(
            store,
            RetentionEntity.MATCH_RESULT,
            tenant_id,
            expired.match_results,
            {"reasons": JSON_NULL},
        ),
        _update_if_any(
            store,
            RetentionEntity.CANDIDATE,
            tenant_id,
            expired.candidates,
            candidate_scrub,
        ),
    )
    return DeletionSummary(
        soft=True,
        agent_run_logs=agent_run_logs,
        matches=matches,
        match_results=match_results,
        candidates=candidates,
    )


async def delete_dependents(
    store: RetentionStore,
    tenant_id: str,
    candidate_ids: Sequence[str],
) -> DependentDeletionCounts:
    """Delete every record hanging off the given candidates."""
    if not candidate_ids:
        return DependentDeletionCounts()

    def by_candidate(entity: RetentionEntity) -> RecordQuery:
        return RecordQuery(entity, tenant_id=tenant_id, candidate_ids=candidate_ids)

    skills, job_candidates, outreach, match_results, matches = await gather_settled(
        store.delete_many(by_candidate(RetentionEntity.CANDIDATE_SKILL)),
        store.delete_many(by_candidate(RetentionEntity.JOB_CANDIDATE)),
        store.delete_many(by_candidate(RetentionEntity.OUTREACH_INTERACTION)),
        store.delete_many(by_candidate(RetentionEntity.MATCH_RESULT)),
        store.delete_many(by_candidate(RetentionEntity.MATCH)),
    )
    return DependentDeletionCounts(
        candidate_skills=skills,
        job_candidates=job_candidates,
        outreach_interactions=outreach,
        dependent_matches=matches,
        dependent_match_results=match_results,
    )


async def hard_delete_expired_records(
    store: RetentionStore,
    tenant_id: str,
    expired: ExpiredRecordSelection,
) -> DeletionSummary:
    """Delete the selected records and their candidate dependents.

    Phase two only starts after every phase-one delete has completed.
    Primary counts may be lower than the selection sizes when phase one
    already removed a selected match or match result.
    """
    dependents = await delete_dependents(store, tenant_id, expired.candidates)

    match_results, matches, agent_run_logs, candidates = await gather_settled(
        _delete_if_any(store, RetentionEntity.MATCH_RESULT, tenant_id, expired.match_results),
        _delete_if_any(store, RetentionEntity.MATCH, tenant_id, expired.matches),
        _delete_if_any(store, RetentionEntity.AGENT_RUN_LOG, tenant_id, expired.agent_run_logs),
        _delete_if_any(store, RetentionEntity.CANDIDATE, tenant_id, expired.candidates),
    )
    return DeletionSummary(
        soft=False,
        agent_run_logs=agent_run_logs,
        matches=matches,
        match_results=match_results,
        candidates=candidates,
        candidate_skills=dependents.candidate_skills,
        job_candidates=dependents.job_candidates,
        outreach_interactions=dependents.outreach_interactions,
        dependent_matches=dependents.dependent_matches,
        dependent_match_results=dependents.dependent_match_results,
    )
