"""Readiness layer package for dependency polling and probes."""

from .errors import HardDependencyError, ProbeConnectionError, ProbeTimeoutError, ReadinessProbeError
from .poller import (
	TRANSIENT_PROBE_ERRORS,
	ProgressCallback,
	readiness_gate,
	readiness_log_progress,
	readiness_poll,
	readiness_wait_for_dependency,
)
from .probes import (
	probe_all_of,
	probe_command,
	probe_compose_exec,
	probe_compose_exec_http,
	probe_compose_service_running,
	probe_database,
	probe_http,
	probe_mysqladmin_ping,
	probe_tcp,
)

__all__ = [
	"HardDependencyError",
	"ProbeConnectionError",
	"ProbeTimeoutError",
	"ProgressCallback",
	"ReadinessProbeError",
	"TRANSIENT_PROBE_ERRORS",
	"probe_all_of",
	"probe_command",
	"probe_compose_exec",
	"probe_compose_exec_http",
	"probe_compose_service_running",
	"probe_database",
	"probe_http",
	"probe_mysqladmin_ping",
	"probe_tcp",
	"readiness_gate",
	"readiness_log_progress",
	"readiness_poll",
	"readiness_wait_for_dependency",
]
