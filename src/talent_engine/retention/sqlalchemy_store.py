"""
SQLAlchemy implementation of the retention storage port.
"""

import asyncio
from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy import JSON, delete, null, select, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from talent_engine.matching.models import (
    AgentRunLog,
    Candidate,
    CandidateSkill,
    JobCandidate,
    JobReq,
    JobSkill,
    Match,
    MatchResult,
    OutreachInteraction,
)
from talent_engine.retention.repository import (
    DB_NULL,
    JSON_NULL,
    RecordQuery,
    RetentionEntity,
)
from talent_engine.tenants.models import (
    Customer,
    FeatureFlag,
    Tenant,
    TenantSubscription,
    User,
    UserIdentity,
)

ENTITY_MODELS: dict[RetentionEntity, type[Any]] = {
    RetentionEntity.AGENT_RUN_LOG: AgentRunLog,
    RetentionEntity.MATCH: Match,
    RetentionEntity.MATCH_RESULT: MatchResult,
    RetentionEntity.CANDIDATE: Candidate,
    RetentionEntity.CANDIDATE_SKILL: CandidateSkill,
    RetentionEntity.JOB_CANDIDATE: JobCandidate,
    RetentionEntity.OUTREACH_INTERACTION: OutreachInteraction,
    RetentionEntity.FEATURE_FLAG: FeatureFlag,
    RetentionEntity.JOB_SKILL: JobSkill,
    RetentionEntity.JOB_REQ: JobReq,
    RetentionEntity.CUSTOMER: Customer,
    RetentionEntity.TENANT_SUBSCRIPTION: TenantSubscription,
    RetentionEntity.USER: User,
    RetentionEntity.USER_IDENTITY: UserIdentity,
}


class SqlAlchemyRetentionStore:
    """Retention store bound to one ``AsyncSession``.

    An ``AsyncSession`` cannot run statements concurrently, so operations
    fanned out concurrently are serialized on an internal lock.
    Transaction boundaries belong to the session owner.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize the store.

        Args:
            session: Async database session; committed by the caller.
        """
        self._session = session
        self._lock = asyncio.Lock()

    async def list_tenants(self) -> Sequence[Tenant]:
        async with self._lock:
            result = await self._session.execute(select(Tenant).order_by(Tenant.id))
            return list(result.scalars().all())

    async def find_ids(self, query: RecordQuery) -> list[str]:
        model = ENTITY_MODELS[query.entity]
        stmt = select(model.id).where(*self._conditions(model, query))
        async with self._lock:
            result = await self._session.execute(stmt)
            return list(result.scalars().all())

    async def update_many(self, query: RecordQuery, values: Mapping[str, Any]) -> int:
        model = ENTITY_MODELS[query.entity]
        stmt = (
            update(model)
            .where(*self._conditions(model, query))
            .values({key: self._resolve(value) for key, value in values.items()})
            .execution_options(synchronize_session=False)
        )
        async with self._lock:
            result = await self._session.execute(stmt)
            return result.rowcount or 0

    async def delete_many(self, query: RecordQuery) -> int:
        model = ENTITY_MODELS[query.entity]
        stmt = (
            delete(model)
            .where(*self._conditions(model, query))
            .execution_options(synchronize_session=False)
        )
        async with self._lock:
            result = await self._session.execute(stmt)
            return result.rowcount or 0

    @staticmethod
    def _conditions(model: type[Any], query: RecordQuery) -> list[ColumnElement[bool]]:
        conditions: list[ColumnElement[bool]] = []
        if query.tenant_id is not None:
            conditions.append(model.tenant_id == query.tenant_id)
        if query.ids is not None:
            conditions.append(model.id.in_(list(query.ids)))
        if query.candidate_ids is not None:
            conditions.append(model.candidate_id.in_(list(query.candidate_ids)))
        if query.user_ids is not None:
            conditions.append(model.user_id.in_(list(query.user_ids)))
        if query.older_than is not None:
            field, cutoff = query.older_than
            conditions.append(getattr(model, field) < cutoff)
        if query.active_only:
            conditions.append(model.deleted_at.is_(None))
        return conditions

    @staticmethod
    def _resolve(value: Any) -> Any:
        if value is DB_NULL:
            return null()
        if value is JSON_NULL:
            return JSON.NULL
        return value
