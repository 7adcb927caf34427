"""
Shared pytest fixtures.
"""

from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

import talent_engine.integrations.ats.models  # noqa: F401
import talent_engine.matching.models  # noqa: F401
import talent_engine.tenants.models  # noqa: F401
from talent_engine.config import Settings
from talent_engine.retention.memory_store import InMemoryRetentionStore, TenantRecord
from talent_engine.retention.policy import TenantDeletionMode
from talent_engine.retention.repository import RetentionEntity
from talent_engine.shared.database import Base, enable_sqlite_foreign_keys

NOW = datetime(2024, 2, 1, tzinfo=timezone.utc)


def days_ago(days: int) -> datetime:
    return NOW - timedelta(days=days)


@pytest.fixture
def test_settings() -> Settings:
    return Settings(
        app_env="dev",
        debug=True,
        database_url="sqlite+aiosqlite:///:memory:",
        internal_secret="test-internal-secret",
    )


@pytest.fixture
def retention_store() -> InMemoryRetentionStore:
    """Three tenants: 30-day soft delete, 5-day hard delete, and no policy."""
    store = InMemoryRetentionStore()

    store.add_tenant(TenantRecord("tenant-a", "Tenant A", 30, TenantDeletionMode.SOFT_DELETE))
    store.add_tenant(TenantRecord("tenant-b", "Tenant B", 5, TenantDeletionMode.HARD_DELETE))
    store.add_tenant(TenantRecord("tenant-c", "Tenant C", None, TenantDeletionMode.SOFT_DELETE))

    for record_id, tenant_id, age in (
        ("arl-old-a", "tenant-a", 60),
        ("arl-new-a", "tenant-a", 2),
        ("arl-old-b", "tenant-b", 10),
    ):
        store.add(
            RetentionEntity.AGENT_RUN_LOG,
            id=record_id,
            tenant_id=tenant_id,
            started_at=days_ago(age),
            deleted_at=None,
            input={"prompt": "match candidates"},
            output={"result": "ok"},
            error_message="timeout",
        )

    for record_id, tenant_id, age, candidate_id in (
        ("match-old-a", "tenant-a", 40, "cand-old-a"),
        ("match-new-a", "tenant-a", 1, "cand-new-a"),
        ("match-old-b", "tenant-b", 7, "cand-old-b"),
    ):
        store.add(
            RetentionEntity.MATCH,
            id=record_id,
            tenant_id=tenant_id,
            created_at=days_ago(age),
            deleted_at=None,
            candidate_id=candidate_id,
            job_req_id="req",
            score_breakdown={"skills": 0.8},
        )

    for record_id, tenant_id, age, candidate_id in (
        ("mr-old-a", "tenant-a", 45, "cand-old-a"),
        ("mr-new-a", "tenant-a", 1, "cand-new-a"),
        ("mr-old-b", "tenant-b", 8, "cand-old-b"),
    ):
        store.add(
            RetentionEntity.MATCH_RESULT,
            id=record_id,
            tenant_id=tenant_id,
            created_at=days_ago(age),
            candidate_id=candidate_id,
            job_req_id="req",
            reasons=["strong python"],
        )

    for record_id, tenant_id, age, name in (
        ("cand-old-a", "tenant-a", 90, "Old A"),
        ("cand-new-a", "tenant-a", 1, "New A"),
        ("cand-old-b", "tenant-b", 20, "Old B"),
        ("cand-c-retained", "tenant-c", 400, "Retained"),
    ):
        store.add(
            RetentionEntity.CANDIDATE,
            id=record_id,
            tenant_id=tenant_id,
            full_name=name,
            email=f"{record_id}@example.com",
            phone="123",
            status="active",
            created_at=days_ago(age),
            updated_at=days_ago(age),
            deleted_at=None,
        )

    store.add(RetentionEntity.CANDIDATE_SKILL, id="skill-b", tenant_id="tenant-b", candidate_id="cand-old-b")
    store.add(RetentionEntity.JOB_CANDIDATE, id="jc-b", tenant_id="tenant-b", candidate_id="cand-old-b")
    store.add(RetentionEntity.OUTREACH_INTERACTION, id="out-b", tenant_id="tenant-b", candidate_id="cand-old-b")
    store.add(RetentionEntity.FEATURE_FLAG, id="ff-b", tenant_id="tenant-b")
    store.add(RetentionEntity.CUSTOMER, id="cust-b", tenant_id="tenant-b")
    store.add(RetentionEntity.JOB_REQ, id="req-b", tenant_id="tenant-b", customer_id="cust-b")
    store.add(RetentionEntity.JOB_SKILL, id="job-skill-b", tenant_id="tenant-b", job_req_id="req-b")
    store.add(RetentionEntity.TENANT_SUBSCRIPTION, id="sub-b", tenant_id="tenant-b")
    store.add(RetentionEntity.USER, id="user-a", tenant_id="tenant-a", email="a@example.com")
    store.add(RetentionEntity.USER, id="user-b", tenant_id="tenant-b", email="b@example.com")
    store.add(RetentionEntity.USER_IDENTITY, id="uid-b", user_id="user-b")

    return store


@pytest_asyncio.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine, None]:
    """In-memory SQLite engine with every table created and foreign keys enforced."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    factory = async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)
    async with factory() as session:
        yield session
