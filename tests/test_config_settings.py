"""Tests for deployment settings loading and derived values."""

from __future__ import annotations

from pathlib import Path

import pytest

from stackdeploy.config import SettingsLoadError, config_load_settings


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> Path:
    """Run every test in an empty directory with required variables set.

    Args:
        monkeypatch: Pytest monkeypatch fixture.
        tmp_path: Per-test temporary directory.

    Returns:
        Path: Working directory used for dotenv lookup.
    """

    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DOMAIN", "example.com")
    monkeypatch.setenv("DB_ROOT_PASSWORD", "root-secret")
    for name in (
        "DATABASE_URL",
        "LOG_LEVEL",
        "SOFT_HEALTH_CHECKS",
        "COMPOSE_FILES",
        "DB_WAIT_MAX_ATTEMPTS",
        "POST_START_COMMANDS",
    ):
        monkeypatch.delenv(name, raising=False)
    return tmp_path


def test_config_load_settings_applies_deployment_defaults() -> None:
    """Load defaults matching the production stack layout."""

    settings = config_load_settings()

    assert settings.domain == "example.com"
    assert settings.database_service == "mysql"
    assert settings.database_url is None
    assert settings.db_wait_max_attempts == 60
    assert settings.db_wait_delay_seconds == 5.0
    assert settings.db_wait_progress_interval == 10
    assert settings.service_check_max_attempts == 30
    assert settings.service_check_progress_interval == 5
    assert settings.settings_compose_file_list() == ("docker-compose.yml", "docker-compose.cra.yml")
    assert settings.settings_soft_health_check_targets() == (("tileserver", "/health"), ("api-laravel-nginx", "/"))
    assert settings.settings_expected_service_list() == (
        "traefik",
        "mysql",
        "api-laravel",
        "api-laravel-nginx",
        "tileserver",
    )
    assert settings.settings_post_start_command_list() == (
        "php artisan config:cache",
        "php artisan route:cache",
        "php artisan view:cache",
        "chown -R www-data:www-data /var/www/html/storage /var/www/html/bootstrap/cache",
    )
    assert settings.app_key_env_file == "apps/api-laravel/.env"
    assert settings.app_key_command == "php artisan key:generate --force"


def test_config_load_settings_derives_service_urls() -> None:
    settings = config_load_settings()

    assert settings.settings_service_urls() == {
        "App": "https://example.com",
        "API": "https://api.example.com",
        "Tiles": "https://tiles.example.com",
    }
    assert settings.settings_dashboard_urls() == {
        "Traefik": "https://traefik.example.com",
        "PhpMyAdmin": "https://pma.example.com",
    }


def test_config_load_settings_reads_dotenv_file(isolated_environment: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    """Read values from `.env` in the working directory."""

    monkeypatch.delenv("DOMAIN")
    (isolated_environment / ".env").write_text(
        "DOMAIN=stack.example.org\nDB_WAIT_MAX_ATTEMPTS=3\nSOFT_HEALTH_CHECKS=tileserver\n",
        encoding="utf-8",
    )

    settings = config_load_settings()

    assert settings.domain == "stack.example.org"
    assert settings.db_wait_max_attempts == 3
    assert settings.settings_soft_health_check_targets() == (("tileserver", "/"),)


def test_config_load_settings_requires_database_root_password(monkeypatch: pytest.MonkeyPatch) -> None:
    """Wrap validation failures in `SettingsLoadError`."""

    monkeypatch.delenv("DB_ROOT_PASSWORD")

    with pytest.raises(SettingsLoadError, match="db_root_password"):
        config_load_settings()


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("DB_WAIT_MAX_ATTEMPTS", "0"),
        ("SERVICE_CHECK_DELAY_SECONDS", "-1"),
        ("LOG_LEVEL", "chatty"),
        ("SOFT_HEALTH_CHECKS", "tileserver:health"),
        ("DOMAIN", "   "),
    ],
)
def test_config_load_settings_rejects_invalid_values(monkeypatch: pytest.MonkeyPatch, name: str, value: str) -> None:
    monkeypatch.setenv(name, value)

    with pytest.raises(SettingsLoadError):
        config_load_settings()


def test_config_load_settings_normalizes_optional_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "  ")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = config_load_settings()

    assert settings.database_url is None
    assert settings.log_level == "DEBUG"
