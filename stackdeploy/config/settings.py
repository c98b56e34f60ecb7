"""Typed deployment settings with dotenv support and startup validation."""

from __future__ import annotations

import logging

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class SettingsLoadError(RuntimeError):
    """Raised when deployment settings cannot be loaded or validated."""


class DeploySettings(BaseSettings):
    """Deployment settings threaded explicitly through every deployment step.

    Environment variable names map directly to field names in uppercase.
    Example: `db_root_password` reads from `DB_ROOT_PASSWORD`.

    Attributes:
        environment_name: Runtime environment label.
        domain: Public base domain of the deployed stack.
        compose_files: Comma-separated compose files passed as `-f` arguments.
        project_directory: Directory compose commands run in.
        database_service: Compose service name of the database.
        db_root_password: Database root password used by the ping probe.
        database_url: Optional SQLAlchemy DSN; when set, readiness uses `SELECT 1`.
        db_wait_max_attempts: Database readiness attempt budget.
        db_wait_delay_seconds: Fixed delay between database attempts.
        db_wait_progress_interval: Database progress reporting interval.
        service_check_max_attempts: Soft service health attempt budget.
        service_check_delay_seconds: Fixed delay between service attempts.
        service_check_progress_interval: Service progress reporting interval.
        soft_health_checks: Comma-separated `service:/path` health targets.
        expected_services: Comma-separated services that must be running at the end.
        optional_services: Services expected only when defined in compose config.
        startup_grace_seconds: Wait after `up` before readiness gates start.
        dependency_settle_seconds: Wait after the database gate before soft checks.
        post_start_service: Service that receives post-start commands.
        post_start_commands: Semicolon-separated commands run inside `post_start_service`.
        app_key_env_file: Application env file, relative to `project_directory`; blank skips key generation.
        app_key_command: Command generating the application key when the env file has none.
        phpmyadmin_service: Service whose running container adds the PhpMyAdmin URL.
        prune_label: Label filter for `docker system prune`; blank disables pruning.
        tls_log_service: Service whose logs are scanned for TLS markers.
        local_probe_url: Host-side URL probed once at the end of the run.
        command_timeout_seconds: Timeout for one compose CLI invocation.
        probe_timeout_seconds: Timeout for one readiness probe attempt.
        log_level: Standard logging level name.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    environment_name: str = Field(default="production")
    domain: str = Field(min_length=1)
    compose_files: str = Field(default="docker-compose.yml,docker-compose.cra.yml")
    project_directory: str = Field(default=".")
    database_service: str = Field(default="mysql")
    db_root_password: str = Field(min_length=1)
    database_url: str | None = Field(default=None)
    db_wait_max_attempts: int = Field(default=60, ge=1)
    db_wait_delay_seconds: float = Field(default=5.0, ge=0)
    db_wait_progress_interval: int = Field(default=10, ge=1)
    service_check_max_attempts: int = Field(default=30, ge=1)
    service_check_delay_seconds: float = Field(default=5.0, ge=0)
    service_check_progress_interval: int = Field(default=5, ge=1)
    soft_health_checks: str = Field(default="tileserver:/health,api-laravel-nginx:/")
    expected_services: str = Field(default="traefik,mysql,api-laravel,api-laravel-nginx,tileserver")
    optional_services: str = Field(default="client-ui-nginx")
    startup_grace_seconds: float = Field(default=15.0, ge=0)
    dependency_settle_seconds: float = Field(default=10.0, ge=0)
    post_start_service: str = Field(default="api-laravel")
    post_start_commands: str = Field(
        default=(
            "php artisan config:cache;php artisan route:cache;php artisan view:cache;"
            "chown -R www-data:www-data /var/www/html/storage /var/www/html/bootstrap/cache"
        )
    )
    app_key_env_file: str = Field(default="apps/api-laravel/.env")
    app_key_command: str = Field(default="php artisan key:generate --force")
    phpmyadmin_service: str = Field(default="phpmyadmin")
    prune_label: str = Field(default="com.metamag.project=sig-platform")
    tls_log_service: str = Field(default="traefik")
    local_probe_url: str = Field(default="http://localhost")
    command_timeout_seconds: float = Field(default=900.0, gt=0)
    probe_timeout_seconds: float = Field(default=5.0, gt=0)
    log_level: str = Field(default="INFO")

    @field_validator("domain", "db_root_password", "database_service", "compose_files")
    @classmethod
    def _validate_non_empty_string(cls, value: str) -> str:
        stripped_value = value.strip()
        if not stripped_value:
            raise ValueError("value must not be blank")
        return stripped_value

    @field_validator("database_url")
    @classmethod
    def _validate_optional_database_url(cls, value: str | None) -> str | None:
        if value is None:
            return None
        stripped_value = value.strip()
        return stripped_value or None

    @field_validator("log_level")
    @classmethod
    def _validate_log_level(cls, value: str) -> str:
        normalized_value = value.strip().upper()
        if normalized_value not in logging.getLevelNamesMapping():
            raise ValueError(f"unknown log level: {value}")
        return normalized_value

    @field_validator("soft_health_checks")
    @classmethod
    def _validate_soft_health_checks(cls, value: str) -> str:
        for entry in _config_split_list(value, separator=","):
            service_name, _, path = entry.partition(":")
            if not service_name.strip():
                raise ValueError(f"health check entry has no service name: {entry!r}")
            if path and not path.startswith("/"):
                raise ValueError(f"health check path must start with '/': {entry!r}")
        return value

    def settings_compose_file_list(self) -> tuple[str, ...]:
        """Return compose files in the order they are passed to the CLI."""

        return tuple(_config_split_list(self.compose_files, separator=","))

    def settings_soft_health_check_targets(self) -> tuple[tuple[str, str], ...]:
        """Return `(service, path)` pairs for soft health checks.

        Entries without a path default to `/`.
        """

        targets: list[tuple[str, str]] = []
        for entry in _config_split_list(self.soft_health_checks, separator=","):
            service_name, _, path = entry.partition(":")
            targets.append((service_name.strip(), path.strip() or "/"))
        return tuple(targets)

    def settings_expected_service_list(self) -> tuple[str, ...]:
        """Return services that must be running after deployment."""

        return tuple(_config_split_list(self.expected_services, separator=","))

    def settings_optional_service_list(self) -> tuple[str, ...]:
        """Return services expected only when the compose config defines them."""

        return tuple(_config_split_list(self.optional_services, separator=","))

    def settings_post_start_command_list(self) -> tuple[str, ...]:
        """Return post-start commands in execution order."""

        return tuple(_config_split_list(self.post_start_commands, separator=";"))

    def settings_service_urls(self) -> dict[str, str]:
        """Return public service URLs derived from the configured domain."""

        return {
            "App": f"https://{self.domain}",
            "API": f"https://api.{self.domain}",
            "Tiles": f"https://tiles.{self.domain}",
        }

    def settings_dashboard_urls(self) -> dict[str, str]:
        """Return dashboard URLs reported only when their services are deployed."""

        return {
            "Traefik": f"https://traefik.{self.domain}",
            "PhpMyAdmin": f"https://pma.{self.domain}",
        }


def _config_split_list(value: str, separator: str) -> list[str]:
    """Split a delimited setting into stripped non-empty items."""

    return [item.strip() for item in value.split(separator) if item.strip()]


def config_load_settings() -> DeploySettings:
    """Load and validate deployment settings from environment and dotenv.

    Returns:
        DeploySettings: Validated deployment settings object.

    Raises:
        SettingsLoadError: Raised when required settings are missing or invalid.
    """

    try:
        return DeploySettings()
    except ValidationError as error:
        raise SettingsLoadError(
            f"Deployment configuration validation failed. Update .env or environment variables. Details: {error}"
        ) from error
