"""Job-layer deployment orchestrator with a deterministic stage timeline."""

from __future__ import annotations

import logging
import re
import shlex
import time
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Final

from stackdeploy.adapters import (
    ComposeCommandError,
    ComposeError,
    ComposePort,
    ComposeTimeoutError,
    ComposeUnavailableError,
)
from stackdeploy.domain import (
    STAGE_STATUS_COMPLETED,
    STAGE_STATUS_FAILED,
    STAGE_STATUS_SKIPPED,
    STAGE_STATUS_STARTED,
    STAGE_STATUS_WARNING,
    DependencyDescriptor,
    domain_build_stage_event,
)
from stackdeploy.readiness import (
    HardDependencyError,
    probe_compose_service_running,
    readiness_gate,
)

from .interfaces import (
    DEPLOYMENT_STATUS_FAILED,
    DEPLOYMENT_STATUS_SUCCESS,
    DEPLOYMENT_STATUS_WITH_ISSUES,
    DeploymentReport,
    JobOrchestratorPort,
)

logger = logging.getLogger(__name__)

_TLS_LOG_MARKER_PATTERN: Final[re.Pattern[str]] = re.compile(r"certificate|acme|letsencrypt|tls", re.IGNORECASE)
_TRAEFIK_DASHBOARD_PATTERN: Final[re.Pattern[str]] = re.compile(r"traefik.*api@internal")
_APP_KEY_MARKER: Final[str] = "APP_KEY=base64:"


@dataclass(frozen=True)
class DeploymentOrchestratorConfig:
    """Configuration values for one deployment run.

    Attributes:
        database: Hard dependency gating everything after `up`.
        soft_dependencies: Auxiliary services checked after the database gate.
        expected_services: Services that must be running at the end of the run.
        optional_services: Services expected only when defined in compose config.
        post_start_service: Service receiving post-start commands.
        post_start_commands: Shell-style commands run inside `post_start_service`.
        app_key_env_file: Application env file checked for a generated key; blank skips.
        app_key_command: Command run in `post_start_service` when the key is missing.
        prune_label: Label filter for pruning; blank skips the prune stage.
        tls_log_service: Service whose logs are scanned for TLS markers; blank skips.
        local_endpoint: Optional single-shot soft dependency probed at the end.
        startup_grace_seconds: Wait after `up` before readiness gates.
        dependency_settle_seconds: Wait between the database gate and soft checks.
        service_urls: Public service URLs reported in the summary.
        traefik_dashboard_url: Reported when the compose config routes `api@internal`.
        phpmyadmin_service: Service whose running container adds `phpmyadmin_url`.
        phpmyadmin_url: Reported when `phpmyadmin_service` is up.
    """

    database: DependencyDescriptor
    soft_dependencies: tuple[DependencyDescriptor, ...] = ()
    expected_services: tuple[str, ...] = ()
    optional_services: tuple[str, ...] = ()
    post_start_service: str = ""
    post_start_commands: tuple[str, ...] = ()
    app_key_env_file: str = ""
    app_key_command: str = ""
    prune_label: str = ""
    tls_log_service: str = ""
    local_endpoint: DependencyDescriptor | None = None
    startup_grace_seconds: float = 15.0
    dependency_settle_seconds: float = 10.0
    service_urls: dict[str, str] = field(default_factory=dict)
    traefik_dashboard_url: str = ""
    phpmyadmin_service: str = ""
    phpmyadmin_url: str = ""


@dataclass
class _DeploymentRunState:
    """Mutable accumulator for one orchestrator execution."""

    job_name: str
    timeline: list[dict[str, object]] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    unhealthy_dependencies: list[str] = field(default_factory=list)
    running_services: tuple[str, ...] = ()
    failed_services: tuple[str, ...] = ()
    service_urls: dict[str, str] = field(default_factory=dict)

    def run_record(self, stage: str, status: str, details: dict[str, object] | None = None) -> None:
        self.timeline.append(domain_build_stage_event(stage=stage, status=status, details=details))

    def run_warn(self, stage: str, message: str) -> None:
        logger.warning(message)
        self.warnings.append(message)
        self.run_record(stage=stage, status=STAGE_STATUS_WARNING, details={"message": message})


class DeploymentOrchestrator(JobOrchestratorPort):
    """Concrete orchestrator for the compose-based production deployment."""

    JOB_DEPLOY: Final[str] = "deploy"
    JOB_WAIT_DATABASE: Final[str] = "wait_database"
    JOB_HEALTH_CHECK: Final[str] = "health_check"
    JOB_STATUS: Final[str] = "status"

    def __init__(self, compose: ComposePort, config: DeploymentOrchestratorConfig):
        """Initialize deployment orchestrator dependencies.

        Args:
            compose: Adapter for the compose CLI.
            config: Deployment run configuration.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when dependencies or config values are invalid.
        """

        if compose is None:
            raise ValueError("compose must not be None")
        if not config.database.dependency_is_hard():
            raise ValueError("config.database must be a hard dependency")
        if any(dependency.dependency_is_hard() for dependency in config.soft_dependencies):
            raise ValueError("config.soft_dependencies must only contain soft dependencies")
        if (config.post_start_commands or config.app_key_command.strip()) and not config.post_start_service.strip():
            raise ValueError("config.post_start_service must not be blank when post-start commands are set")
        if config.startup_grace_seconds < 0:
            raise ValueError("config.startup_grace_seconds must be >= 0")
        if config.dependency_settle_seconds < 0:
            raise ValueError("config.dependency_settle_seconds must be >= 0")

        self._compose = compose
        self._config = config

    def job_supported_names(self) -> tuple[str, ...]:
        return (self.JOB_DEPLOY, self.JOB_WAIT_DATABASE, self.JOB_HEALTH_CHECK, self.JOB_STATUS)

    def job_execute(self, job_name: str) -> DeploymentReport:
        """Execute one named deployment workflow.

        Hard failures end the run with status `failed`; soft failures are
        collected as warnings and turn `success` into `completed_with_issues`.
        Only preflight, `up` and the database gate raise hard failures.

        Args:
            job_name: One of `job_supported_names()`.

        Returns:
            DeploymentReport: Final deployment report.

        Raises:
            ValueError: Raised when the job name is unsupported.
        """

        normalized_job_name = job_name.strip()
        if normalized_job_name not in self.job_supported_names():
            raise ValueError(f"unsupported job_name={normalized_job_name}")

        state = _DeploymentRunState(job_name=normalized_job_name, service_urls=dict(self._config.service_urls))
        state.run_record(stage="run", status=STAGE_STATUS_STARTED)

        try:
            if normalized_job_name == self.JOB_DEPLOY:
                self._job_run_deploy(state)
            elif normalized_job_name == self.JOB_WAIT_DATABASE:
                self._job_run_preflight(state)
                self._job_run_database_gate(state)
            elif normalized_job_name == self.JOB_HEALTH_CHECK:
                self._job_run_preflight(state)
                self._job_run_soft_dependencies(state)
                self._job_run_final_status(state)
            else:
                self._job_run_preflight(state)
                self._job_run_final_status(state)
                self._job_run_soft_step(state, "urls", self._job_run_service_urls)
        except (HardDependencyError, ComposeUnavailableError, ComposeCommandError, ComposeTimeoutError) as error:
            logger.error("%s", error)
            state.run_record(stage="run", status=STAGE_STATUS_FAILED, details={"error": str(error)})
            return self._job_build_report(state, status=DEPLOYMENT_STATUS_FAILED, error_message=str(error))

        status = DEPLOYMENT_STATUS_SUCCESS
        if state.warnings or state.failed_services or state.unhealthy_dependencies:
            status = DEPLOYMENT_STATUS_WITH_ISSUES
        state.run_record(stage="run", status=STAGE_STATUS_COMPLETED, details={"status": status})
        return self._job_build_report(state, status=status)

    def _job_run_deploy(self, state: _DeploymentRunState) -> None:
        self._job_run_preflight(state)
        self._job_run_soft_step(state, "stop", self._job_run_stop)
        self._job_run_prune(state)
        self._job_run_soft_step(state, "pull", self._job_run_pull)
        self._job_run_up(state)
        self._job_run_database_gate(state)
        self._job_wait(self._config.dependency_settle_seconds, reason="dependent services")
        self._job_run_soft_dependencies(state)
        self._job_run_soft_step(state, "app_key", self._job_run_app_key)
        self._job_run_post_start_commands(state)
        self._job_run_soft_step(state, "tls", self._job_run_tls_check)
        self._job_run_final_status(state)
        self._job_run_soft_step(state, "urls", self._job_run_service_urls)
        self._job_run_local_endpoint(state)

    def _job_run_soft_step(
        self,
        state: _DeploymentRunState,
        stage: str,
        step: Callable[[_DeploymentRunState], None],
    ) -> None:
        """Run one soft stage, downgrading compose errors to warnings.

        Args:
            state: Run accumulator.
            stage: Timeline stage name used for the warning.
            step: Stage method to execute.
        """

        try:
            step(state)
        except ComposeError as error:
            state.run_warn(stage=stage, message=f"{stage} step failed: {error}")

    def _job_run_preflight(self, state: _DeploymentRunState) -> None:
        """Verify the compose CLI, the engine, and the compose files.

        Raises:
            ComposeUnavailableError: Raised when any preflight check fails.
        """

        state.run_record(stage="preflight", status=STAGE_STATUS_STARTED)
        self._compose.compose_check_engine()
        self._compose.compose_resolve_command()
        missing_files = self._compose.compose_missing_files()
        if missing_files:
            raise ComposeUnavailableError(f"Missing required file: {', '.join(missing_files)}")
        state.run_record(stage="preflight", status=STAGE_STATUS_COMPLETED)
        logger.info("All pre-checks passed")

    def _job_run_stop(self, state: _DeploymentRunState) -> None:
        logger.info("Stopping existing containers...")
        if self._compose.compose_down(remove_orphans=True).command_succeeded():
            state.run_record(stage="stop", status=STAGE_STATUS_COMPLETED)
            return
        state.run_warn(stage="stop", message="Some containers were already stopped")

    def _job_run_prune(self, state: _DeploymentRunState) -> None:
        if not self._config.prune_label.strip():
            state.run_record(stage="prune", status=STAGE_STATUS_SKIPPED)
            return
        logger.info("Cleaning up unused Docker resources...")
        # Pruning is best-effort and never reported as an issue.
        try:
            prune_result = self._compose.compose_prune(self._config.prune_label)
        except ComposeError as error:
            logger.debug("docker system prune failed: %s", error)
            state.run_record(stage="prune", status=STAGE_STATUS_SKIPPED, details={"error": str(error)})
            return
        if prune_result.command_succeeded():
            state.run_record(stage="prune", status=STAGE_STATUS_COMPLETED)
            return
        logger.debug("docker system prune failed: %s", prune_result.stderr.strip())
        state.run_record(stage="prune", status=STAGE_STATUS_SKIPPED, details={"returncode": prune_result.returncode})

    def _job_run_pull(self, state: _DeploymentRunState) -> None:
        logger.info("Pulling latest Docker images...")
        if self._compose.compose_pull().command_succeeded():
            state.run_record(stage="pull", status=STAGE_STATUS_COMPLETED)
            return
        state.run_warn(stage="pull", message="Some images could not be pulled (may be built locally)")

    def _job_run_up(self, state: _DeploymentRunState) -> None:
        """Build and start containers, then log the container listing.

        Raises:
            ComposeCommandError: Raised when `up` fails.
            ComposeTimeoutError: Raised when `up` exceeds the command timeout.
        """

        logger.info("Building and starting containers...")
        state.run_record(stage="up", status=STAGE_STATUS_STARTED)
        self._compose.compose_up(build=True)
        state.run_record(stage="up", status=STAGE_STATUS_COMPLETED)

        self._job_wait(self._config.startup_grace_seconds, reason="initial container startup")
        try:
            ps_result = self._compose.compose_ps()
        except ComposeError as error:
            logger.debug("Could not list containers: %s", error)
            return
        logger.info("Container status:\n%s", ps_result.stdout.rstrip())

    def _job_run_database_gate(self, state: _DeploymentRunState) -> None:
        """Block until the database is ready.

        Raises:
            HardDependencyError: Raised when the database never becomes ready.
        """

        database = self._config.database
        state.run_record(stage="database", status=STAGE_STATUS_STARTED, details={"service": database.name})
        outcome = readiness_gate(
            descriptor=database,
            logs_command=self._job_logs_command(database.name),
            fallback_probe=probe_compose_service_running(self._compose, database.name),
        )
        state.run_record(stage="database", status=STAGE_STATUS_COMPLETED, details={"attempts": outcome.attempts})

    def _job_run_soft_dependencies(self, state: _DeploymentRunState) -> None:
        for dependency in self._config.soft_dependencies:
            stage = f"health:{dependency.name}"
            logger.info("Checking health of %s...", dependency.name)
            outcome = readiness_gate(
                descriptor=dependency,
                logs_command=self._job_logs_command(dependency.name),
                fallback_probe=probe_compose_service_running(self._compose, dependency.name),
            )
            if outcome.poll_outcome_is_ready():
                logger.info("%s is healthy", dependency.name)
                state.run_record(stage=stage, status=STAGE_STATUS_COMPLETED, details={"attempts": outcome.attempts})
                continue
            message = f"{dependency.name} health check timed out"
            state.unhealthy_dependencies.append(dependency.name)
            state.warnings.append(message)
            state.run_record(stage=stage, status=STAGE_STATUS_WARNING, details={"message": message})

    def _job_run_app_key(self, state: _DeploymentRunState) -> None:
        env_file = self._config.app_key_env_file.strip()
        command = tuple(shlex.split(self._config.app_key_command))
        if not env_file or not command:
            state.run_record(stage="app_key", status=STAGE_STATUS_SKIPPED)
            return
        try:
            env_text = Path(env_file).read_text(encoding="utf-8")
        except OSError:
            env_text = ""
        if _APP_KEY_MARKER in env_text:
            logger.debug("Application key already exists")
            state.run_record(stage="app_key", status=STAGE_STATUS_SKIPPED, details={"reason": "present"})
            return

        logger.info("Generating application key...")
        if self._compose.compose_exec(self._config.post_start_service, command).command_succeeded():
            state.run_record(stage="app_key", status=STAGE_STATUS_COMPLETED)
            return
        state.run_warn(stage="app_key", message="Failed to generate application key")

    def _job_run_post_start_commands(self, state: _DeploymentRunState) -> None:
        service = self._config.post_start_service
        for command_text in self._config.post_start_commands:
            command = tuple(shlex.split(command_text))
            if not command:
                continue
            try:
                result = self._compose.compose_exec(service, command)
            except ComposeError as error:
                state.run_warn(stage="post_start", message=f"{service}: `{command_text}` failed: {error}")
                continue
            if result.command_succeeded():
                logger.debug("%s completed", command_text)
                state.run_record(stage="post_start", status=STAGE_STATUS_COMPLETED, details={"command": command_text})
                continue
            state.run_warn(stage="post_start", message=f"{service}: `{command_text}` failed")

    def _job_run_tls_check(self, state: _DeploymentRunState) -> None:
        service = self._config.tls_log_service.strip()
        if not service:
            state.run_record(stage="tls", status=STAGE_STATUS_SKIPPED)
            return
        logger.info("Checking %s TLS configuration...", service)
        logs_result = self._compose.compose_logs(service)
        if logs_result.command_succeeded() and _TLS_LOG_MARKER_PATTERN.search(logs_result.stdout):
            logger.info("%s SSL configuration detected", service)
            state.run_record(stage="tls", status=STAGE_STATUS_COMPLETED)
            return
        state.run_warn(
            stage="tls",
            message="SSL certificates may not be configured yet; generation can take a few minutes",
        )

    def _job_run_final_status(self, state: _DeploymentRunState) -> None:
        logger.info("Performing final service status check...")
        expected_services = list(self._config.expected_services)
        if self._config.optional_services:
            try:
                defined_services = set(self._compose.compose_defined_services())
            except ComposeError as error:
                state.run_warn(stage="status", message=f"Could not list compose services: {error}")
                defined_services = set()
            expected_services.extend(
                service
                for service in self._config.optional_services
                if service in defined_services and service not in expected_services
            )

        running_services: list[str] = []
        failed_services: list[str] = []
        for service in expected_services:
            if self._job_service_is_running(service):
                running_services.append(service)
            else:
                failed_services.append(service)

        state.running_services = tuple(running_services)
        state.failed_services = tuple(failed_services)
        state.run_record(
            stage="status",
            status=STAGE_STATUS_WARNING if failed_services else STAGE_STATUS_COMPLETED,
            details={"running": running_services, "failed": failed_services},
        )

    def _job_run_service_urls(self, state: _DeploymentRunState) -> None:
        """Add dashboard URLs whose services are present in this deployment."""

        if self._config.traefik_dashboard_url:
            config_result = self._compose.compose_config()
            if config_result.command_succeeded() and _TRAEFIK_DASHBOARD_PATTERN.search(config_result.stdout):
                state.service_urls["Traefik"] = self._config.traefik_dashboard_url
        phpmyadmin_service = self._config.phpmyadmin_service.strip()
        if phpmyadmin_service and self._config.phpmyadmin_url:
            if self._compose.compose_service_is_running(phpmyadmin_service):
                state.service_urls["PhpMyAdmin"] = self._config.phpmyadmin_url
        state.run_record(stage="urls", status=STAGE_STATUS_COMPLETED, details={"labels": list(state.service_urls)})

    def _job_run_local_endpoint(self, state: _DeploymentRunState) -> None:
        endpoint = self._config.local_endpoint
        if endpoint is None or endpoint.probe is None:
            return
        logger.info("Testing local connectivity...")
        outcome = readiness_gate(descriptor=endpoint)
        if outcome.poll_outcome_is_ready():
            logger.info("Local HTTP endpoint responding")
            state.run_record(stage="local_endpoint", status=STAGE_STATUS_COMPLETED)
            return
        logger.warning("Local HTTP endpoint not responding yet; this is normal if SSL redirect is enforced")
        state.run_record(stage="local_endpoint", status=STAGE_STATUS_SKIPPED, details={"error": outcome.last_error})

    def _job_service_is_running(self, service: str) -> bool:
        try:
            return self._compose.compose_service_is_running(service)
        except ComposeError as error:
            logger.warning("Could not read status of %s: %s", service, error)
            return False

    def _job_wait(self, seconds: float, reason: str) -> None:
        if seconds <= 0:
            return
        logger.info("Waiting %gs for %s...", seconds, reason)
        time.sleep(seconds)

    def _job_logs_command(self, service: str) -> str:
        return f"{self._compose.compose_command_label()} logs {service}"

    def _job_compose_label_or_blank(self) -> str:
        try:
            return self._compose.compose_command_label()
        except ComposeUnavailableError:
            return ""

    def _job_build_report(
        self,
        state: _DeploymentRunState,
        status: str,
        error_message: str | None = None,
    ) -> DeploymentReport:
        return DeploymentReport(
            job_name=state.job_name,
            status=status,
            running_services=state.running_services,
            failed_services=state.failed_services,
            unhealthy_services=tuple(state.unhealthy_dependencies),
            warnings=tuple(state.warnings),
            timeline=list(state.timeline),
            compose_command=self._job_compose_label_or_blank(),
            service_urls=dict(state.service_urls),
            error_message=error_message,
        )
