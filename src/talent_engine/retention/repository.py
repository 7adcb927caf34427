"""
Storage port for the retention subsystem.

Retention logic talks to storage only through :class:`RetentionStore`;
concrete adapters live in ``memory_store`` and ``sqlalchemy_store``.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any, Protocol

from talent_engine.retention.policy import TenantRetentionSettings


class RetentionEntity(str, Enum):
    """Record types the retention subsystem reads or removes."""

    AGENT_RUN_LOG = "agent_run_log"
    MATCH = "match"
    MATCH_RESULT = "match_result"
    CANDIDATE = "candidate"
    CANDIDATE_SKILL = "candidate_skill"
    JOB_CANDIDATE = "job_candidate"
    OUTREACH_INTERACTION = "outreach_interaction"
    FEATURE_FLAG = "feature_flag"
    JOB_SKILL = "job_skill"
    JOB_REQ = "job_req"
    CUSTOMER = "customer"
    TENANT_SUBSCRIPTION = "tenant_subscription"
    USER = "user"
    USER_IDENTITY = "user_identity"


class _NullMarker:
    def __init__(self, name: str) -> None:
        self._name = name

    def __repr__(self) -> str:
        return self._name


# Clears a JSON column to SQL NULL.
DB_NULL = _NullMarker("DB_NULL")
# Stores a JSON ``null`` document in a JSON column.
JSON_NULL = _NullMarker("JSON_NULL")


@dataclass(frozen=True)
class RecordQuery:
    """Filter for bulk find/update/delete operations.

    Every populated field narrows the selection (logical AND). ``ids``,
    ``candidate_ids`` and ``user_ids`` are membership tests; ``older_than``
    is ``(field, cutoff)`` and selects rows where ``field < cutoff``;
    ``active_only`` requires ``deleted_at`` to be unset.
    """

    entity: RetentionEntity
    tenant_id: str | None = None
    ids: Sequence[str] | None = None
    candidate_ids: Sequence[str] | None = None
    user_ids: Sequence[str] | None = None
    older_than: tuple[str, datetime] | None = None
    active_only: bool = False


class RetentionStore(Protocol):
    """Bulk operations over tenant-scoped records."""

    async def list_tenants(self) -> Sequence[TenantRetentionSettings]:
        """Return every tenant."""
        ...

    async def find_ids(self, query: RecordQuery) -> list[str]:
        """Return the ids of the records matching ``query``."""
        ...

    async def update_many(self, query: RecordQuery, values: Mapping[str, Any]) -> int:
        """Apply ``values`` to the matching records and return the count."""
        ...

    async def delete_many(self, query: RecordQuery) -> int:
        """Delete the matching records and return the count."""
        ...
