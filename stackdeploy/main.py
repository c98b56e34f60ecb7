"""Main module entrypoint for deployment runs.

This module validates deployment configuration, runs the selected workflow,
and prints the operator summary.
"""

import argparse
import logging
import os

from stackdeploy.bootstrap import bootstrap_create_deployment_orchestrator
from stackdeploy.config import SettingsLoadError, config_load_settings
from stackdeploy.jobs import (
    DeploymentOrchestrator,
    DeploymentReport,
    JobOrchestratorPort,
    job_render_deployment_summary,
)

_COMMAND_TO_JOB_NAME = {
    "deploy": DeploymentOrchestrator.JOB_DEPLOY,
    "wait-db": DeploymentOrchestrator.JOB_WAIT_DATABASE,
    "check": DeploymentOrchestrator.JOB_HEALTH_CHECK,
    "status": DeploymentOrchestrator.JOB_STATUS,
}

logger = logging.getLogger(__name__)


def main(argv: list[str] | None = None) -> None:
    """Run the selected deployment command with validated configuration.

    Args:
        argv: Optional argument list; defaults to `sys.argv[1:]`.

    Returns:
        None: This function does not return a runtime value.

    Raises:
        SystemExit: Raised with status 1 on configuration or hard deployment failure.
    """

    argument_parser = argparse.ArgumentParser(description="Compose stack deployment entrypoint")
    argument_parser.add_argument(
        "command",
        nargs="?",
        default="deploy",
        choices=tuple(_COMMAND_TO_JOB_NAME),
        help="Deployment command: `deploy` runs the full deployment, `wait-db` only waits for the database, "
        "`check` runs service health checks, `status` reports running services",
        type=str,
    )
    argument_parser.add_argument(
        "--log-level",
        dest="log_level",
        choices=("DEBUG", "INFO", "WARNING", "ERROR"),
        type=str.upper,
        help="Optional log level override (DEBUG shows every compose command)",
    )
    parsed_arguments = argument_parser.parse_args(argv)

    try:
        settings = config_load_settings()
    except SettingsLoadError as error:
        logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")
        logger.error("%s", error)
        raise SystemExit(1) from error

    main_configure_logging(parsed_arguments.log_level or settings.log_level)
    main_warn_if_root()

    orchestrator = bootstrap_create_deployment_orchestrator(settings=settings)
    logger.info("Starting %s...", parsed_arguments.command)
    report = main_run_job(orchestrator, job_name=_COMMAND_TO_JOB_NAME[parsed_arguments.command])

    if report.report_is_failed():
        raise SystemExit(1)


def main_run_job(orchestrator: JobOrchestratorPort, job_name: str) -> DeploymentReport:
    """Execute one job and print its operator summary.

    Args:
        orchestrator: Deployment orchestrator.
        job_name: Orchestrator job name.

    Returns:
        DeploymentReport: Report of the executed job.
    """

    report = orchestrator.job_execute(job_name=job_name)
    for line in job_render_deployment_summary(report):
        print(line)
    return report


def main_warn_if_root() -> None:
    """Warn when the deployment runs with root privileges on POSIX hosts."""

    get_effective_uid = getattr(os, "geteuid", None)
    if get_effective_uid is not None and get_effective_uid() == 0:
        logger.warning("Running as root. Consider using a non-root user with sudo for better security.")


def main_configure_logging(level_name: str) -> None:
    """Configure root logging once for the command-line run.

    Args:
        level_name: Standard logging level name.

    Raises:
        ValueError: Raised when the level name is unknown.
    """

    level = logging.getLevelNamesMapping().get(level_name.strip().upper())
    if level is None:
        raise ValueError(f"unknown log level: {level_name}")
    logging.basicConfig(level=level, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")


if __name__ == "__main__":
    main()
