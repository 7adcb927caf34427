"""
Tenant retention policy resolution.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum
from typing import Protocol

from talent_engine.shared.clock import utcnow


class TenantDeletionMode(str, Enum):
    """How expired tenant data is removed."""

    SOFT_DELETE = "SOFT_DELETE"
    HARD_DELETE = "HARD_DELETE"


class TenantRetentionSettings(Protocol):
    """Tenant fields the retention subsystem reads."""

    id: str
    data_retention_days: int | None
    deletion_mode: TenantDeletionMode | None


@dataclass(frozen=True)
class RetentionPolicy:
    """Resolved policy for one tenant at one instant."""

    cutoff: datetime
    mode: TenantDeletionMode


def resolve_retention_policy(
    tenant: TenantRetentionSettings,
    now: datetime | None = None,
) -> RetentionPolicy | None:
    """Resolve a tenant's retention policy.

    Args:
        tenant: Tenant carrying ``data_retention_days`` and ``deletion_mode``.
        now: Reference instant; defaults to the current UTC time.

    Returns:
        The policy, or None when retention is unconfigured or negative.
        A zero-day retention yields ``cutoff == now``.
    """
    days = tenant.data_retention_days
    if days is None or days < 0:
        return None

    reference = now or utcnow()
    return RetentionPolicy(
        cutoff=reference - timedelta(days=days),
        mode=tenant.deletion_mode or TenantDeletionMode.SOFT_DELETE,
    )
