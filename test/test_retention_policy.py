"""Tests for tenant retention policy resolution."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from talent_engine.retention.policy import TenantDeletionMode, resolve_retention_policy

NOW = datetime(2024, 2, 1, tzinfo=timezone.utc)


@dataclass
class _Tenant:
    id: str
    data_retention_days: int | None
    deletion_mode: TenantDeletionMode | None = TenantDeletionMode.SOFT_DELETE


class TestResolveRetentionPolicy:
    def test_no_retention_configured(self) -> None:
        assert resolve_retention_policy(_Tenant("t", None), NOW) is None

    def test_negative_retention_is_treated_as_unconfigured(self) -> None:
        assert resolve_retention_policy(_Tenant("t", -1), NOW) is None

    def test_cutoff_is_retention_days_before_now(self) -> None:
        policy = resolve_retention_policy(_Tenant("t", 10, TenantDeletionMode.HARD_DELETE), NOW)

        assert policy is not None
        assert policy.cutoff == NOW - timedelta(days=10)
        assert policy.mode == TenantDeletionMode.HARD_DELETE

    def test_zero_days_cuts_off_at_now(self) -> None:
        policy = resolve_retention_policy(_Tenant("t", 0), NOW)

        assert policy is not None
        assert policy.cutoff == NOW

    def test_missing_mode_defaults_to_soft_delete(self) -> None:
        policy = resolve_retention_policy(_Tenant("t", 30, None), NOW)

        assert policy is not None
        assert policy.mode == TenantDeletionMode.SOFT_DELETE

    def test_defaults_now_to_current_time(self) -> None:
        before = datetime.now(timezone.utc)
        policy = resolve_retention_policy(_Tenant("t", 1))
        after = datetime.now(timezone.utc)

        assert policy is not None
        assert before - timedelta(days=1) <= policy.cutoff <= after - timedelta(days=1)
