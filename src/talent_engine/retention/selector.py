"""
Expired record selection.
"""

from dataclasses import dataclass, field
from datetime import datetime

from talent_engine.retention.repository import RecordQuery, RetentionEntity, RetentionStore
from talent_engine.shared.concurrency import gather_settled


@dataclass(frozen=True)
class ExpiredRecordSelection:
    """Ids of a tenant's records selected for retention handling."""

    agent_run_logs: list[str] = field(default_factory=list)
    matches: list[str] = field(default_factory=list)
    match_results: list[str] = field(default_factory=list)
    candidates: list[str] = field(default_factory=list)

    @property
    def total(self) -> int:
        return (
            len(self.agent_run_logs)
            + len(self.matches)
            + len(self.match_results)
            + len(self.candidates)
        )

    @property
    def is_empty(self) -> bool:
        return self.total == 0


async def find_expired_records(
    store: RetentionStore,
    tenant_id: str,
    cutoff: datetime,
) -> ExpiredRecordSelection:
    """Select the tenant's records older than ``cutoff``.

    Match results carry no soft-delete marker, so previously scrubbed match
    results are selected again on later runs.
    """
    agent_run_logs, matches, match_results, candidates = await gather_settled(
        store.find_ids(
            RecordQuery(
                RetentionEntity.AGENT_RUN_LOG,
                tenant_id=tenant_id,
                older_than=("started_at", cutoff),
                active_only=True,
            )
        ),
        store.find_ids(
            RecordQuery(
                RetentionEntity.MATCH,
                tenant_id=tenant_id,
                older_than=("created_at", cutoff),
                active_only=True,
            )
        ),
        store.find_ids(
            RecordQuery(
                RetentionEntity.MATCH_RESULT,
                tenant_id=tenant_id,
                older_than=("created_at", cutoff),
            )
        ),
        store.find_ids(
            RecordQuery(
                RetentionEntity.CANDIDATE,
                tenant_id=tenant_id,
                older_than=("updated_at", cutoff),
                active_only=True,
            )
        ),
    )
    return ExpiredRecordSelection(
        agent_run_logs=agent_run_logs,
        matches=matches,
        match_results=match_results,
        candidates=candidates,
    )


async def collect_tenant_data(store: RetentionStore, tenant_id: str) -> ExpiredRecordSelection:
    """Select every retention-governed record of the tenant, deleted or not."""
    agent_run_logs, matches, match_results, candidates = await gather_settled(
        store.find_ids(RecordQuery(RetentionEntity.AGENT_RUN_LOG, tenant_id=tenant_id)),
        store.find_ids(RecordQuery(RetentionEntity.MATCH, tenant_id=tenant_id)),
        store.find_ids(RecordQuery(RetentionEntity.MATCH_RESULT, tenant_id=tenant_id)),
        store.find_ids(RecordQuery(RetentionEntity.CANDIDATE, tenant_id=tenant_id)),
    )
    return ExpiredRecordSelection(
        agent_run_logs=agent_run_logs,
        matches=matches,
        match_results=match_results,
        candidates=candidates,
    )
