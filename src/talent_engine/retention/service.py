"""
Tenant retention processing, the retention job, and tenant offboarding.

All functions operate on the :class:`RetentionStore` port. Tenants are
processed strictly one after another; fan-out only happens inside a
tenant's pass.
"""

from collections.abc import Sequence
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import Any

from talent_engine.retention.executors import (
    DeletionSummary,
    hard_delete_expired_records,
    soft_delete_expired_records,
)
from talent_engine.retention.policy import (
    TenantDeletionMode,
    TenantRetentionSettings,
    resolve_retention_policy,
)
from talent_engine.retention.repository import RecordQuery, RetentionEntity, RetentionStore
from talent_engine.retention.selector import collect_tenant_data, find_expired_records
from talent_engine.shared.clock import utcnow
from talent_engine.shared.concurrency import gather_settled
from talent_engine.shared.logging import get_logger

logger = get_logger(__name__)

RETENTION_COMPLETED_MESSAGE = "Tenant data retention completed"


@dataclass(frozen=True)
class TenantRetentionResult:
    """Outcome of one tenant's retention pass.

    ``cutoff`` and ``summary`` are None for tenants without a policy.
    ``error`` is set only when the job isolates per-tenant failures.
    """

    tenant_id: str
    cutoff: datetime | None
    summary: DeletionSummary | None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "tenant_id": self.tenant_id,
            "cutoff": self.cutoff.isoformat() if self.cutoff else None,
            "summary": self.summary.to_dict() if self.summary else None,
        }
        if self.error is not None:
            data["error"] = self.error
        return data


@dataclass(frozen=True)
class RetentionTotals:
    agent_run_logs: int = 0
    matches: int = 0
    match_results: int = 0
    candidates: int = 0


@dataclass(frozen=True)
class RetentionJobReport:
    """Aggregate report of one retention job run."""

    processed: int
    acted_on: int
    deletions: RetentionTotals
    results: list[TenantRetentionResult]
    run_at: str
    failed: int = 0
    message: str = RETENTION_COMPLETED_MESSAGE

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "details": {
                "processed": self.processed,
                "acted_on": self.acted_on,
                "failed": self.failed,
                "deletions": {
                    "agent_run_logs": self.deletions.agent_run_logs,
                    "matches": self.deletions.matches,
                    "match_results": self.deletions.match_results,
                    "candidates": self.deletions.candidates,
                },
                "results": [result.to_dict() for result in self.results],
                "run_at": self.run_at,
            },
        }


@dataclass(frozen=True)
class TenantDataDeletionSummary(DeletionSummary):
    """Offboarding summary; tenant-level counts are set only for hard deletes."""

    feature_flags: int | None = None
    job_skills: int | None = None
    job_reqs: int | None = None
    customers: int | None = None
    tenant_subscriptions: int | None = None
    users: int | None = None
    user_identities: int | None = None

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        if not self.soft:
            data.update(
                feature_flags=self.feature_flags or 0,
                job_skills=self.job_skills or 0,
                job_reqs=self.job_reqs or 0,
                customers=self.customers or 0,
                tenant_subscriptions=self.tenant_subscriptions or 0,
                users=self.users or 0,
                user_identities=self.user_identities or 0,
            )
        return data


async def process_tenant_retention(
    store: RetentionStore,
    tenant: TenantRetentionSettings,
    now: datetime | None = None,
) -> TenantRetentionResult:
    """Apply a tenant's retention policy once.

    Args:
        store: Retention storage port.
        tenant: Tenant with its retention configuration.
        now: Reference instant for the cutoff and soft-delete timestamp.

    Returns:
        The tenant's result; a zero summary when nothing has expired.
    """
    reference = now or utcnow()
    policy = resolve_retention_policy(tenant, reference)
    if policy is None:
        logger.debug("Retention not configured; tenant skipped", extra={"tenant_id": tenant.id})
        return TenantRetentionResult(tenant_id=tenant.id, cutoff=None, summary=None)

    expired = await find_expired_records(store, tenant.id, policy.cutoff)
    soft = policy.mode == TenantDeletionMode.SOFT_DELETE

    if expired.is_empty:
        return TenantRetentionResult(
            tenant_id=tenant.id,
            cutoff=policy.cutoff,
            summary=DeletionSummary(soft=soft),
        )

    if soft:
        summary = await soft_delete_expired_records(store, tenant.id, expired, deleted_at=reference)
    else:
        summary = await hard_delete_expired_records(store, tenant.id, expired)

    logger.info(
        "Tenant retention applied",
        extra={
            "tenant_id": tenant.id,
            "mode": policy.mode.value,
            "cutoff": policy.cutoff.isoformat(),
            **summary.to_dict(),
        },
    )
    return TenantRetentionResult(tenant_id=tenant.id, cutoff=policy.cutoff, summary=summary)


def summarize_retention_results(
    tenant_count: int,
    results: Sequence[TenantRetentionResult],
    run_at: datetime,
) -> RetentionJobReport:
    """Fold per-tenant results into a job report."""
    acted_on = [result for result in results if result.summary is not None]
    totals = RetentionTotals(
        agent_run_logs=sum(result.summary.agent_run_logs for result in acted_on),
        matches=sum(result.summary.matches for result in acted_on),
        match_results=sum(result.summary.match_results for result in acted_on),
        candidates=sum(result.summary.candidates for result in acted_on),
    )
    return RetentionJobReport(
        processed=tenant_count,
        acted_on=len(acted_on),
        deletions=totals,
        results=list(results),
        run_at=run_at.isoformat(),
        failed=sum(1 for result in results if result.error is not None),
    )


async def run_tenant_retention_job(
    store: RetentionStore,
    now: datetime | None = None,
    *,
    continue_on_error: bool = False,
) -> RetentionJobReport:
    """Run retention for every tenant, one tenant at a time.

    Args:
        store: Retention storage port.
        now: Reference instant shared by every tenant pass.
        continue_on_error: Record a failing tenant and keep going instead
            of aborting the job.

    Returns:
        The aggregate job report.
    """
    reference = now or utcnow()
    tenants = await store.list_tenants()
    results: list[TenantRetentionResult] = []

    for tenant in tenants:
        try:
            results.append(await process_tenant_retention(store, tenant, reference))
        except Exception as exc:
            if not continue_on_error:
                raise
            logger.exception("Tenant retention failed", extra={"tenant_id": tenant.id})
            results.append(
                TenantRetentionResult(tenant_id=tenant.id, cutoff=None, summary=None, error=str(exc))
            )

    report = summarize_retention_results(len(tenants), results, reference)
    logger.info(
        RETENTION_COMPLETED_MESSAGE,
        extra={"processed": report.processed, "acted_on": report.acted_on, "failed": report.failed},
    )
    return report


async def delete_tenant_data(
    store: RetentionStore,
    tenant_id: str,
    mode: TenantDeletionMode = TenantDeletionMode.HARD_DELETE,
    now: datetime | None = None,
) -> TenantDataDeletionSummary:
    """Remove or scrub all of a tenant's data for offboarding.

    The tenant row itself is kept. Hard mode also removes tenant-level
    configuration, users, and their identities.
    """
    everything = await collect_tenant_data(store, tenant_id)

    if mode == TenantDeletionMode.SOFT_DELETE:
        soft = await soft_delete_expired_records(store, tenant_id, everything, deleted_at=now or utcnow())
        logger.info("Tenant data scrubbed", extra={"tenant_id": tenant_id, **soft.to_dict()})
        return TenantDataDeletionSummary(**asdict(soft))

    hard = await hard_delete_expired_records(store, tenant_id, everything)
    user_ids = await store.find_ids(RecordQuery(RetentionEntity.USER, tenant_id=tenant_id))

    def by_tenant(entity: RetentionEntity) -> RecordQuery:
        return RecordQuery(entity, tenant_id=tenant_id)

    # Leaves first: job skills before job reqs before customers, identities before users.
    feature_flags, subscriptions, job_skills, identities = await gather_settled(
        store.delete_many(by_tenant(RetentionEntity.FEATURE_FLAG)),
        store.delete_many(by_tenant(RetentionEntity.TENANT_SUBSCRIPTION)),
        store.delete_many(by_tenant(RetentionEntity.JOB_SKILL)),
        store.delete_many(RecordQuery(RetentionEntity.USER_IDENTITY, user_ids=user_ids)),
    )
    job_reqs, users = await gather_settled(
        store.delete_many(by_tenant(RetentionEntity.JOB_REQ)),
        store.delete_many(by_tenant(RetentionEntity.USER)),
    )
    customers = await store.delete_many(by_tenant(RetentionEntity.CUSTOMER))

    summary = TenantDataDeletionSummary(
        **asdict(hard),
        feature_flags=feature_flags,
        job_skills=job_skills,
        job_reqs=job_reqs,
        customers=customers,
        tenant_subscriptions=subscriptions,
        users=users,
        user_identities=identities,
    )
    logger.info("Tenant data deleted", extra={"tenant_id": tenant_id, **summary.to_dict()})
    return summary
