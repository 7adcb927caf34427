"""
Internal retention endpoints: scheduled job trigger and tenant offboarding.
"""

import hmac
from typing import Any

from fastapi import APIRouter, Depends, Header, HTTPException, status

from talent_engine.config import Settings, get_settings
from talent_engine.retention.jobs import delete_tenant_data_atomic, run_retention_job
from talent_engine.retention.schemas import TenantDeletionRequest
from talent_engine.shared.database import DatabaseManager, get_database_manager

router = APIRouter(prefix="/internal/retention", tags=["retention"])


def require_internal_secret(
    x_internal_secret: str | None = Header(default=None),
    settings: Settings = Depends(get_settings),
) -> None:
    """Reject callers without the configured internal secret."""
    expected = settings.internal_secret
    if not expected or not x_internal_secret or not hmac.compare_digest(
        x_internal_secret, expected
    ):
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Forbidden")


@router.post("/run", dependencies=[Depends(require_internal_secret)])
async def run_retention(
    db: DatabaseManager = Depends(get_database_manager),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    report = await run_retention_job(db, continue_on_error=settings.retention_continue_on_error)
    return report.to_dict()


@router.post("/tenants/{tenant_id}/delete", dependencies=[Depends(require_internal_secret)])
async def delete_tenant(
    tenant_id: str,
    body: TenantDeletionRequest | None = None,
    db: DatabaseManager = Depends(get_database_manager),
) -> dict[str, Any]:
    request = body or TenantDeletionRequest()
    summary = await delete_tenant_data_atomic(db, tenant_id, request.mode)
    return {"tenant_id": tenant_id, "mode": request.mode.value, "summary": summary.to_dict()}
