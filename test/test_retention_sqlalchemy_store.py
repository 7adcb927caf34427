"""Tests for the SQLAlchemy retention store and the per-tenant transaction runner."""

from collections.abc import AsyncGenerator
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from talent_engine.matching.models import (
    AgentRunLog,
    Candidate,
    CandidateSkill,
    JobCandidate,
    JobReq,
    JobSkill,
    Match,
    MatchResult,
)
from talent_engine.retention.jobs import delete_tenant_data_atomic, run_retention_job
from talent_engine.retention.policy import TenantDeletionMode
from talent_engine.retention.repository import RecordQuery, RetentionEntity
from talent_engine.retention.service import process_tenant_retention
from talent_engine.retention.sqlalchemy_store import SqlAlchemyRetentionStore
from talent_engine.shared.database import DatabaseManager
from talent_engine.shared.exceptions import NotFoundError
from talent_engine.tenants.models import (
    Customer,
    FeatureFlag,
    Tenant,
    TenantSubscription,
    User,
    UserIdentity,
)

NOW = datetime(2024, 2, 1, tzinfo=timezone.utc)


def days_ago(days: int) -> datetime:
    return NOW - timedelta(days=days)


async def seed(session: AsyncSession) -> None:
    # No relationship() is mapped, so flush each row in parent-first order.
    for row in [
            Tenant(id="tenant-a", name="Tenant A", data_retention_days=30),
            Tenant(
                id="tenant-b",
                name="Tenant B",
                data_retention_days=5,
                deletion_mode=TenantDeletionMode.HARD_DELETE,
            ),
            Tenant(id="tenant-c", name="Tenant C", data_retention_days=None),
            Candidate(
                id="cand-old-a",
                tenant_id="tenant-a",
                full_name="Old A",
                email="old-a@example.com",
                raw_resume_text="resume",
                created_at=days_ago(90),
                updated_at=days_ago(90),
            ),
            Candidate(
                id="cand-new-a",
                tenant_id="tenant-a",
                full_name="New A",
                created_at=days_ago(1),
                updated_at=days_ago(1),
            ),
            Candidate(
                id="cand-old-b",
                tenant_id="tenant-b",
                full_name="Old B",
                created_at=days_ago(20),
                updated_at=days_ago(20),
            ),
            CandidateSkill(id="skill-b", tenant_id="tenant-b", candidate_id="cand-old-b", name="go"),
            AgentRunLog(
                id="arl-old-a",
                tenant_id="tenant-a",
                input={"prompt": "p"},
                output={"result": "r"},
                error_message="boom",
                started_at=days_ago(60),
            ),
            Match(
                id="match-old-a",
                tenant_id="tenant-a",
                candidate_id="cand-old-a",
                score_breakdown={"skills": 0.8},
                created_at=days_ago(40),
            ),
            MatchResult(
                id="mr-old-a",
                tenant_id="tenant-a",
                candidate_id="cand-old-a",
                reasons=["python"],
                created_at=days_ago(45),
            ),
            Match(
                id="match-old-b",
                tenant_id="tenant-b",
                candidate_id="cand-old-b",
                created_at=days_ago(7),
            ),
            User(id="user-b", tenant_id="tenant-b", email="b@example.com"),
            UserIdentity(id="uid-b", user_id="user-b", provider="oidc", subject="sub-b"),
        ]:
        session.add(row)
        await session.flush()


@pytest_asyncio.fixture
async def seeded_session(db_session: AsyncSession) -> AsyncSession:
    await seed(db_session)
    await db_session.commit()
    return db_session


class TestSqlAlchemyRetentionStore:
    @pytest.mark.asyncio
    async def test_lists_tenants_ordered_by_id(self, seeded_session: AsyncSession) -> None:
        tenants = await SqlAlchemyRetentionStore(seeded_session).list_tenants()

        assert [tenant.id for tenant in tenants] == ["tenant-a", "tenant-b", "tenant-c"]

    @pytest.mark.asyncio
    async def test_find_ids_applies_every_filter(self, seeded_session: AsyncSession) -> None:
        store = SqlAlchemyRetentionStore(seeded_session)

        ids = await store.find_ids(
            RecordQuery(
                RetentionEntity.CANDIDATE,
                tenant_id="tenant-a",
                older_than=("updated_at", days_ago(30)),
                active_only=True,
            )
        )

        assert ids == ["cand-old-a"]

    @pytest.mark.asyncio
    async def test_delete_by_user_ids(self, seeded_session: AsyncSession) -> None:
        store = SqlAlchemyRetentionStore(seeded_session)

        deleted = await store.delete_many(
            RecordQuery(RetentionEntity.USER_IDENTITY, user_ids=["user-b"])
        )

        assert deleted == 1

    @pytest.mark.asyncio
    async def test_candidate_with_dependents_cannot_be_deleted_first(
        self, seeded_session: AsyncSession
    ) -> None:
        store = SqlAlchemyRetentionStore(seeded_session)

        with pytest.raises(IntegrityError):
            await store.delete_many(
                RecordQuery(RetentionEntity.CANDIDATE, tenant_id="tenant-b", ids=["cand-old-b"])
            )

    @pytest.mark.asyncio
    async def test_soft_retention_scrubs_rows(self, seeded_session: AsyncSession) -> None:
        store = SqlAlchemyRetentionStore(seeded_session)
        tenant = await seeded_session.get(Tenant, "tenant-a")

        result = await process_tenant_retention(store, tenant, NOW)
        await seeded_session.commit()

        assert result.summary is not None
        assert result.summary.candidates == 1
        assert result.summary.agent_run_logs == 1
        candidate = await seeded_session.get(Candidate, "cand-old-a", populate_existing=True)
        assert candidate.full_name == "Removed Candidate"
        assert candidate.email is None
        assert candidate.raw_resume_text is None
        assert candidate.status == "deleted"
        assert candidate.deleted_at is not None
        log = await seeded_session.get(AgentRunLog, "arl-old-a", populate_existing=True)
        assert log.input == {}
        assert log.output is None
        assert log.error_message is None
        match_result = await seeded_session.get(MatchResult, "mr-old-a", populate_existing=True)
        assert match_result.reasons is None
        fresh = await seeded_session.get(Candidate, "cand-new-a", populate_existing=True)
        assert fresh.deleted_at is None

    @pytest.mark.asyncio
    async def test_hard_retention_removes_rows(self, seeded_session: AsyncSession) -> None:
        store = SqlAlchemyRetentionStore(seeded_session)
        tenant = await seeded_session.get(Tenant, "tenant-b")

        result = await process_tenant_retention(store, tenant, NOW)
        await seeded_session.commit()

        assert result.summary is not None
        assert result.summary.candidates == 1
        assert result.summary.candidate_skills == 1
        assert result.summary.dependent_matches == 1
        remaining = await seeded_session.execute(
            select(Candidate.id).where(Candidate.tenant_id == "tenant-b")
        )
        assert remaining.scalars().all() == []
        assert await seeded_session.get(Tenant, "tenant-b") is not None


@pytest_asyncio.fixture
async def database(tmp_path: Path) -> AsyncGenerator[DatabaseManager, None]:
    db = DatabaseManager(f"sqlite+aiosqlite:///{tmp_path / 'retention.db'}")
    await db.create_all()
    async with db.session() as session:
        await seed(session)
    yield db
    await db.close()


class TestRetentionJobs:
    @pytest.mark.asyncio
    async def test_run_retention_job_commits_each_tenant(self, database: DatabaseManager) -> None:
        report = await run_retention_job(database, NOW)

        assert report.processed == 3
        assert report.acted_on == 2
        assert report.deletions.candidates == 2
        async with database.session() as session:
            ids = (await session.execute(select(Candidate.id).order_by(Candidate.id))).scalars().all()
        assert ids == ["cand-new-a", "cand-old-a"]

    @pytest.mark.asyncio
    async def test_failed_tenant_is_rolled_back(
        self, database: DatabaseManager, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        original = SqlAlchemyRetentionStore.delete_many

        async def failing_delete(self, query: RecordQuery) -> int:
            if query.entity == RetentionEntity.CANDIDATE:
                raise RuntimeError("constraint violation")
            return await original(self, query)

        monkeypatch.setattr(SqlAlchemyRetentionStore, "delete_many", failing_delete)

        report = await run_retention_job(database, NOW, continue_on_error=True)

        assert report.failed == 1
        assert report.results[1].error == "constraint violation"
        async with database.session() as session:
            skills = (await session.execute(select(CandidateSkill.id))).scalars().all()
            candidate = await session.get(Candidate, "cand-old-a")
        # tenant-b's dependent deletes were rolled back with the failing phase
        assert skills == ["skill-b"]
        assert candidate.full_name == "Removed Candidate"

    @pytest.mark.asyncio
    async def test_delete_tenant_data_atomic(self, database: DatabaseManager) -> None:
        summary = await delete_tenant_data_atomic(database, "tenant-b")

        assert summary.users == 1
        assert summary.user_identities == 1
        async with database.session() as session:
            assert await session.get(User, "user-b") is None
            assert await session.get(Tenant, "tenant-b") is not None

    @pytest.mark.asyncio
    async def test_offboarding_deletes_children_before_parents(
        self, database: DatabaseManager
    ) -> None:
        async with database.session() as session:
            for row in [
                    Customer(id="cust-b", tenant_id="tenant-b", name="Acme"),
                    JobReq(id="req-b", tenant_id="tenant-b", customer_id="cust-b", title="SRE"),
                    JobSkill(id="job-skill-b", tenant_id="tenant-b", job_req_id="req-b", name="k8s"),
                    JobCandidate(
                        id="jc-b", tenant_id="tenant-b", candidate_id="cand-old-b", job_req_id="req-b"
                    ),
                    FeatureFlag(id="ff-b", tenant_id="tenant-b", name="beta"),
                    TenantSubscription(id="sub-b", tenant_id="tenant-b"),
                ]:
                session.add(row)
                await session.flush()

        summary = await delete_tenant_data_atomic(database, "tenant-b")

        assert summary.customers == 1
        assert summary.job_reqs == 1
        assert summary.job_skills == 1
        assert summary.job_candidates == 1
        assert summary.candidate_skills == 1
        assert summary.dependent_matches == 1
        async with database.session() as session:
            for model in (Customer, JobReq, JobSkill, JobCandidate, Candidate, CandidateSkill, Match):
                rows = await session.execute(select(model.id).where(model.tenant_id == "tenant-b"))
                assert rows.scalars().all() == [], model.__tablename__

    @pytest.mark.asyncio
    async def test_delete_unknown_tenant(self, database: DatabaseManager) -> None:
        with pytest.raises(NotFoundError, match="Tenant missing not found"):
            await delete_tenant_data_atomic(database, "missing")
