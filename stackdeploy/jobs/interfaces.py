"""Typed interfaces for job-layer orchestration responsibilities."""

from dataclasses import dataclass, field
from typing import Final, Protocol

DEPLOYMENT_STATUS_SUCCESS: Final[str] = "success"
DEPLOYMENT_STATUS_WITH_ISSUES: Final[str] = "completed_with_issues"
DEPLOYMENT_STATUS_FAILED: Final[str] = "failed"


@dataclass(frozen=True)
class JobExecutionResult:
    """Result contract for one deployment workflow execution.

    Attributes:
        job_name: Job identifier.
        status: Final execution state.
    """

    job_name: str
    status: str


@dataclass(frozen=True)
class DeploymentReport(JobExecutionResult):
    """Deployment outcome with everything the operator summary needs.

    Attributes:
        running_services: Expected services reported as up.
        failed_services: Expected services not running.
        unhealthy_services: Soft dependencies whose health check timed out.
        warnings: Soft-failure messages collected during the run.
        timeline: Structured stage timeline events.
        compose_command: Compose invocation prefix used for hints.
        service_urls: Public URLs by label.
        error_message: Hard-failure diagnostic, set only when status is `failed`.
    """

    running_services: tuple[str, ...] = ()
    failed_services: tuple[str, ...] = ()
    unhealthy_services: tuple[str, ...] = ()
    warnings: tuple[str, ...] = ()
    timeline: list[dict[str, object]] = field(default_factory=list)
    compose_command: str = ""
    service_urls: dict[str, str] = field(default_factory=dict)
    error_message: str | None = None

    def report_is_failed(self) -> bool:
        """Return whether the run aborted on a hard failure."""

        return self.status == DEPLOYMENT_STATUS_FAILED


class JobOrchestratorPort(Protocol):
    """Port definition for orchestrating deployment workflows."""

    def job_supported_names(self) -> tuple[str, ...]:
        """Return the workflow names this orchestrator can execute.

        Returns:
            tuple[str, ...]: Deterministic list of supported job names.

        Raises:
            RuntimeError: Raised when supported job metadata is unavailable.
        """

    def job_execute(self, job_name: str) -> DeploymentReport:
        """Execute one named deployment workflow.

        Args:
            job_name: Workflow name.

        Returns:
            DeploymentReport: Final deployment report.

        Raises:
            ValueError: Raised when the job name is unsupported.
        """
