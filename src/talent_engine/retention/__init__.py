"""
Tenant data retention: policy resolution, expired record selection,
soft/hard deletion, the scheduled retention job, and offboarding.
"""

from talent_engine.retention.policy import (
    RetentionPolicy,
    TenantDeletionMode,
    resolve_retention_policy,
)
from talent_engine.retention.repository import RecordQuery, RetentionEntity, RetentionStore

__all__ = [
    "RecordQuery",
    "RetentionEntity",
    "RetentionPolicy",
    "RetentionStore",
    "TenantDeletionMode",
    "resolve_retention_policy",
]
