"""Job layer package for deployment workflow orchestration."""

from .deploy_orchestrator import DeploymentOrchestrator, DeploymentOrchestratorConfig
from .interfaces import (
	DEPLOYMENT_STATUS_FAILED,
	DEPLOYMENT_STATUS_SUCCESS,
	DEPLOYMENT_STATUS_WITH_ISSUES,
	DeploymentReport,
	JobExecutionResult,
	JobOrchestratorPort,
)
from .summary import job_render_deployment_summary

__all__ = [
	"DEPLOYMENT_STATUS_FAILED",
	"DEPLOYMENT_STATUS_SUCCESS",
	"DEPLOYMENT_STATUS_WITH_ISSUES",
	"DeploymentOrchestrator",
	"DeploymentOrchestratorConfig",
	"DeploymentReport",
	"JobExecutionResult",
	"JobOrchestratorPort",
	"job_render_deployment_summary",
]
