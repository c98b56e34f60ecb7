"""Deployment bootstrap wiring for startup validation and dependency assembly."""

from __future__ import annotations

from pathlib import Path

from stackdeploy.adapters import ComposeCliAdapter, ComposePort
from stackdeploy.config import DeploySettings, config_load_settings
from stackdeploy.db import SQLAlchemyDatabaseHealthService, db_create_engine
from stackdeploy.domain import DEPENDENCY_KIND_HARD, DEPENDENCY_KIND_SOFT, DependencyDescriptor, ReadinessProbe
from stackdeploy.jobs import DeploymentOrchestrator, DeploymentOrchestratorConfig
from stackdeploy.readiness import (
    probe_all_of,
    probe_compose_exec_http,
    probe_compose_service_running,
    probe_database,
    probe_http,
    probe_mysqladmin_ping,
)


def bootstrap_create_compose_adapter(settings: DeploySettings) -> ComposeCliAdapter:
    """Build the compose CLI adapter from deployment settings.

    Args:
        settings: Validated deployment settings.

    Returns:
        ComposeCliAdapter: Adapter bound to the configured compose files.

    Raises:
        ValueError: Raised when no compose files are configured.
    """

    return ComposeCliAdapter(
        compose_files=settings.settings_compose_file_list(),
        project_directory=settings.project_directory,
        command_timeout_seconds=settings.command_timeout_seconds,
    )


def bootstrap_create_database_probe(settings: DeploySettings, compose: ComposePort) -> ReadinessProbe:
    """Build the database readiness probe.

    A configured `DATABASE_URL` selects the SQLAlchemy `SELECT 1` probe;
    otherwise `mysqladmin ping` runs inside the database container.
    """

    if settings.database_url:
        engine = db_create_engine(database_url=settings.database_url)
        return probe_database(SQLAlchemyDatabaseHealthService(engine=engine))
    return probe_mysqladmin_ping(
        compose=compose,
        service=settings.database_service,
        root_password=settings.db_root_password,
        timeout_seconds=settings.probe_timeout_seconds,
    )


def bootstrap_create_orchestrator_config(
    settings: DeploySettings,
    compose: ComposePort,
) -> DeploymentOrchestratorConfig:
    """Translate deployment settings into orchestrator dependency descriptors.

    Args:
        settings: Validated deployment settings.
        compose: Compose adapter used by container probes.

    Returns:
        DeploymentOrchestratorConfig: Fully populated run configuration.
    """

    database = DependencyDescriptor(
        name=settings.database_service,
        probe=bootstrap_create_database_probe(settings=settings, compose=compose),
        max_attempts=settings.db_wait_max_attempts,
        delay_seconds=settings.db_wait_delay_seconds,
        kind=DEPENDENCY_KIND_HARD,
        progress_interval=settings.db_wait_progress_interval,
    )
    soft_dependencies = tuple(
        DependencyDescriptor(
            name=service,
            probe=probe_all_of(
                probe_compose_service_running(compose=compose, service=service),
                probe_compose_exec_http(
                    compose=compose,
                    service=service,
                    path=path,
                    timeout_seconds=settings.probe_timeout_seconds,
                ),
            ),
            max_attempts=settings.service_check_max_attempts,
            delay_seconds=settings.service_check_delay_seconds,
            kind=DEPENDENCY_KIND_SOFT,
            progress_interval=settings.service_check_progress_interval,
        )
        for service, path in settings.settings_soft_health_check_targets()
    )
    app_key_env_file = ""
    if settings.app_key_env_file.strip():
        app_key_env_file = str(Path(settings.project_directory) / settings.app_key_env_file.strip())
    dashboard_urls = settings.settings_dashboard_urls()
    local_endpoint = None
    if settings.local_probe_url.strip():
        local_endpoint = DependencyDescriptor(
            name="local-endpoint",
            probe=probe_http(
                url=settings.local_probe_url,
                timeout_seconds=settings.probe_timeout_seconds,
                accept_any_status=True,
            ),
            max_attempts=1,
            delay_seconds=0,
            kind=DEPENDENCY_KIND_SOFT,
        )

    return DeploymentOrchestratorConfig(
        database=database,
        soft_dependencies=soft_dependencies,
        expected_services=settings.settings_expected_service_list(),
        optional_services=settings.settings_optional_service_list(),
        post_start_service=settings.post_start_service,
        post_start_commands=settings.settings_post_start_command_list(),
        app_key_env_file=app_key_env_file,
        app_key_command=settings.app_key_command,
        prune_label=settings.prune_label,
        tls_log_service=settings.tls_log_service,
        local_endpoint=local_endpoint,
        startup_grace_seconds=settings.startup_grace_seconds,
        dependency_settle_seconds=settings.dependency_settle_seconds,
        service_urls=settings.settings_service_urls(),
        traefik_dashboard_url=dashboard_urls["Traefik"],
        phpmyadmin_service=settings.phpmyadmin_service,
        phpmyadmin_url=dashboard_urls["PhpMyAdmin"],
    )


def bootstrap_create_deployment_orchestrator(settings: DeploySettings | None = None) -> DeploymentOrchestrator:
    """Assemble the deployment orchestrator after validating startup configuration.

    Args:
        settings: Optional preloaded settings; loaded from the environment when omitted.

    Returns:
        DeploymentOrchestrator: Fully wired orchestrator.

    Raises:
        SettingsLoadError: Raised when startup configuration validation fails.
    """

    resolved_settings = settings or config_load_settings()
    compose = bootstrap_create_compose_adapter(resolved_settings)
    return DeploymentOrchestrator(
        compose=compose,
        config=bootstrap_create_orchestrator_config(settings=resolved_settings, compose=compose),
    )
