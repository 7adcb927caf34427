"""
In-memory retention store.

Reference implementation of :class:`RetentionStore` used by tests and local
development. Records are plain dicts keyed by attribute name.
"""

from collections.abc import Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from talent_engine.retention.policy import TenantDeletionMode
from talent_engine.retention.repository import (
    DB_NULL,
    JSON_NULL,
    RecordQuery,
    RetentionEntity,
)


@dataclass
class TenantRecord:
    id: str
    name: str = ""
    data_retention_days: int | None = None
    deletion_mode: TenantDeletionMode | None = TenantDeletionMode.SOFT_DELETE


class InMemoryRetentionStore:
    """Dict-backed store honouring the same filter semantics as the SQL adapter."""

    def __init__(self) -> None:
        self._tenants: list[TenantRecord] = []
        self._records: dict[RetentionEntity, list[dict[str, Any]]] = {
            entity: [] for entity in RetentionEntity
        }

    def add_tenant(self, tenant: TenantRecord) -> TenantRecord:
        self._tenants.append(tenant)
        return tenant

    def add(self, entity: RetentionEntity, **fields: Any) -> dict[str, Any]:
        """Insert a record; ``id`` is required."""
        if "id" not in fields:
            raise ValueError("records require an id")
        record = dict(fields)
        self._records[entity].append(record)
        return record

    def records(self, entity: RetentionEntity) -> list[dict[str, Any]]:
        """Return copies of every stored record of ``entity``."""
        return [dict(record) for record in self._records[entity]]

    def get(self, entity: RetentionEntity, record_id: str) -> dict[str, Any] | None:
        for record in self._records[entity]:
            if record["id"] == record_id:
                return dict(record)
        return None

    async def list_tenants(self) -> Sequence[TenantRecord]:
        return list(self._tenants)

    async def find_ids(self, query: RecordQuery) -> list[str]:
        return [record["id"] for record in self._matching(query)]

    async def update_many(self, query: RecordQuery, values: Mapping[str, Any]) -> int:
        resolved = {key: self._resolve(value) for key, value in values.items()}
        matched = self._matching(query)
        for record in matched:
            record.update(resolved)
        return len(matched)

    async def delete_many(self, query: RecordQuery) -> int:
        matched = {id(record) for record in self._matching(query)}
        before = len(self._records[query.entity])
        self._records[query.entity] = [
            record for record in self._records[query.entity] if id(record) not in matched
        ]
        return before - len(self._records[query.entity])

    def _matching(self, query: RecordQuery) -> list[dict[str, Any]]:
        return [record for record in self._records[query.entity] if self._matches(record, query)]

    @staticmethod
    def _matches(record: Mapping[str, Any], query: RecordQuery) -> bool:
        if query.tenant_id is not None and record.get("tenant_id") != query.tenant_id:
            return False
        if query.ids is not None and record["id"] not in query.ids:
            return False
        if query.candidate_ids is not None and record.get("candidate_id") not in query.candidate_ids:
            return False
        if query.user_ids is not None and record.get("user_id") not in query.user_ids:
            return False
        if query.older_than is not None:
            field, cutoff = query.older_than
            value = record.get(field)
            if value is None or not value < cutoff:
                return False
        if query.active_only and record.get("deleted_at") is not None:
            return False
        return True

    @staticmethod
    def _resolve(value: Any) -> Any:
        if value is DB_NULL or value is JSON_NULL:
            return None
        return value
