"""
Database-backed retention entry points.

Each tenant's pass runs in its own session and transaction, so a hard
delete's dependent and primary phases commit or roll back together.
"""

from datetime import datetime

from talent_engine.retention.policy import TenantDeletionMode
from talent_engine.retention.service import (
    RetentionJobReport,
    TenantDataDeletionSummary,
    TenantRetentionResult,
    delete_tenant_data,
    process_tenant_retention,
    summarize_retention_results,
)
from talent_engine.retention.sqlalchemy_store import SqlAlchemyRetentionStore
from talent_engine.shared.clock import utcnow
from talent_engine.shared.database import DatabaseManager
from talent_engine.shared.exceptions import NotFoundError
from talent_engine.shared.logging import get_logger, tenant_context
from talent_engine.tenants.models import Tenant

logger = get_logger(__name__)


async def run_retention_job(
    db: DatabaseManager,
    now: datetime | None = None,
    *,
    continue_on_error: bool = False,
) -> RetentionJobReport:
    """Run retention for every tenant with one transaction per tenant.

    Args:
        db: Database manager providing sessions.
        now: Reference instant shared by every tenant pass.
        continue_on_error: Roll back and record a failing tenant, then
            continue with the next one.
    """
    reference = now or utcnow()
    async with db.session() as session:
        tenants = await SqlAlchemyRetentionStore(session).list_tenants()

    results: list[TenantRetentionResult] = []
    for tenant in tenants:
        with tenant_context(tenant.id):
            try:
                async with db.session() as session:
                    result = await process_tenant_retention(
                        SqlAlchemyRetentionStore(session), tenant, reference
                    )
            except Exception as exc:
                if not continue_on_error:
                    raise
                logger.exception("Tenant retention failed; rolled back")
                result = TenantRetentionResult(
                    tenant_id=tenant.id, cutoff=None, summary=None, error=str(exc)
                )
        results.append(result)

    report = summarize_retention_results(len(tenants), results, reference)
    logger.info(
        report.message,
        extra={"processed": report.processed, "acted_on": report.acted_on, "failed": report.failed},
    )
    return report


async def delete_tenant_data_atomic(
    db: DatabaseManager,
    tenant_id: str,
    mode: TenantDeletionMode = TenantDeletionMode.HARD_DELETE,
    now: datetime | None = None,
) -> TenantDataDeletionSummary:
    """Offboard a tenant inside a single transaction.

    Raises:
        NotFoundError: If the tenant does not exist.
    """
    with tenant_context(tenant_id):
        async with db.session() as session:
            if await session.get(Tenant, tenant_id) is None:
                raise NotFoundError(f"Tenant {tenant_id} not found")
            return await delete_tenant_data(
                SqlAlchemyRetentionStore(session), tenant_id, mode, now
            )
