"""Unit tests for application settings configuration."""

from pathlib import Path

from recordsync.config import Settings


def test_settings_uses_project_env_file_independent_of_cwd():
    """Settings should always include the project .env as an env source."""
    env_files = Settings.model_config.get("env_file")
    assert env_files is not None

    normalized = {str(Path(item)) for item in env_files}
    expected_project_env = str(Path(__file__).resolve().parents[2] / ".env")

    assert expected_project_env in normalized
    assert str(Path(".env")) in normalized


def test_sync_defaults():
    settings = Settings(_env_file=None)

    assert len(settings.connectivity_probe_endpoints) >= 2
    assert settings.connectivity_probe_timeout == 5.0
    assert settings.cache_ttl_online < settings.cache_ttl_offline
    assert settings.retry_max_attempts == 3
    assert settings.search_include_pending is True


def test_settings_read_from_environment(monkeypatch):
    monkeypatch.setenv("CACHE_TTL_ONLINE", "60")
    monkeypatch.setenv("CAN_DELETE", "false")
    monkeypatch.setenv("STATISTICS_FIELDS", '["status"]')

    settings = Settings(_env_file=None)

    assert settings.cache_ttl_online == 60
    assert settings.can_delete is False
    assert settings.statistics_fields == ["status"]
