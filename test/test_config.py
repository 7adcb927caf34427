"""
Tests for application settings.
"""

import pytest

from talent_engine.config import Settings, get_settings
from talent_engine.shared.database import engine_options


class TestSettings:
    def test_declared_defaults(self) -> None:
        # Settings reads the environment; check the declared field defaults instead.
        assert Settings.model_fields["app_env"].default == "dev"
        assert Settings.model_fields["internal_secret"].default == ""
        assert Settings.model_fields["retention_continue_on_error"].default is False

    def test_custom_values(self, test_settings: Settings) -> None:
        assert test_settings.database_url == "sqlite+aiosqlite:///:memory:"
        assert test_settings.internal_secret == "test-internal-secret"
        assert test_settings.debug is True

    def test_cors_origins_list(self) -> None:
        settings = Settings(cors_origins="http://a.test, http://b.test,,")

        assert settings.cors_origins_list == ["http://a.test", "http://b.test"]

    def test_environment_overrides(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("RETENTION_CONTINUE_ON_ERROR", "true")
        monkeypatch.setenv("INTERNAL_SECRET", "from-env")

        settings = get_settings()

        assert settings.retention_continue_on_error is True
        assert settings.internal_secret == "from-env"

    def test_rejects_unknown_environment(self) -> None:
        with pytest.raises(ValueError):
            Settings(app_env="staging")


class TestEngineOptions:
    def test_server_database_gets_pool_sizing(self) -> None:
        settings = Settings(db_pool_size=3, db_max_overflow=0, db_echo=True)

        options = engine_options("postgresql+asyncpg://u:p@db/talent", settings)

        assert options == {"echo": True, "pool_pre_ping": True, "pool_size": 3, "max_overflow": 0}

    def test_sqlite_omits_pool_sizing(self, test_settings: Settings) -> None:
        options = engine_options(test_settings.database_url, test_settings)

        assert "pool_size" not in options
        assert "max_overflow" not in options
