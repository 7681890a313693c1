"""Tests for core config module."""

import pytest
from pydantic import ValidationError


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "STATEMENT_STORE",
        "SUPABASE_URL",
        "SUPABASE_SERVICE_KEY",
        "MAX_UPLOAD_BYTES",
        "IMPORT_SAMPLE_SIZE",
        "ALLOWED_ORIGINS",
        "LOG_LEVEL",
        "ENVIRONMENT",
    ):
        monkeypatch.delenv(name, raising=False)


class TestSettings:
    """Test Pydantic Settings loads env vars correctly."""

    def test_settings_defaults(self):
        """Settings should have sensible defaults."""
        from apps.api.core.config import Settings
        settings = Settings(_env_file=None)
        assert settings.STATEMENT_STORE == "memory"
        assert settings.MAX_UPLOAD_BYTES == 10 * 1024 * 1024
        assert settings.IMPORT_SAMPLE_SIZE == 10
        assert settings.LOG_LEVEL == "INFO"
        assert settings.ENVIRONMENT == "development"
        assert settings.ALLOWED_ORIGINS == "http://localhost:3000"
        assert settings.json_logs is False

    def test_settings_loads_allowed_origins(self, monkeypatch):
        """Settings should parse ALLOWED_ORIGINS as comma-separated list."""
        monkeypatch.setenv("ALLOWED_ORIGINS", "http://localhost:3000, https://conciliacion.example.com,")

        from apps.api.core.config import Settings
        settings = Settings(_env_file=None)
        assert settings.allowed_origins == [
            "http://localhost:3000",
            "https://conciliacion.example.com",
        ]

    def test_settings_loads_import_limits(self, monkeypatch):
        monkeypatch.setenv("MAX_UPLOAD_BYTES", "2048")
        monkeypatch.setenv("IMPORT_SAMPLE_SIZE", "3")

        from apps.api.core.config import Settings
        settings = Settings(_env_file=None)
        assert settings.MAX_UPLOAD_BYTES == 2048
        assert settings.IMPORT_SAMPLE_SIZE == 3

    def test_production_uses_json_logs(self, monkeypatch):
        monkeypatch.setenv("ENVIRONMENT", "production")

        from apps.api.core.config import Settings
        assert Settings(_env_file=None).json_logs is True

    def test_supabase_store_requires_credentials(self, monkeypatch):
        monkeypatch.setenv("STATEMENT_STORE", "supabase")
        monkeypatch.setenv("SUPABASE_URL", "https://test.supabase.co")

        from apps.api.core.config import Settings
        with pytest.raises(ValidationError, match="SUPABASE_SERVICE_KEY"):
            Settings(_env_file=None)

    def test_supabase_store_with_credentials(self, monkeypatch):
        monkeypatch.setenv("STATEMENT_STORE", "supabase")
        monkeypatch.setenv("SUPABASE_URL", "https://test.supabase.co")
        monkeypatch.setenv("SUPABASE_SERVICE_KEY", "service-key")

        from apps.api.core.config import Settings
        settings = Settings(_env_file=None)
        assert settings.STATEMENT_STORE == "supabase"

    def test_unknown_store_rejected(self, monkeypatch):
        monkeypatch.setenv("STATEMENT_STORE", "sqlite")

        from apps.api.core.config import Settings
        with pytest.raises(ValidationError):
            Settings(_env_file=None)
