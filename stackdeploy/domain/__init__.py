"""Domain models used across deployment layer boundaries."""

from .models import (
    DEPENDENCY_KIND_HARD,
    DEPENDENCY_KIND_SOFT,
    POLL_STATUS_EXHAUSTED,
    POLL_STATUS_READY,
    DependencyDescriptor,
    HealthStatus,
    PollOutcome,
    ReadinessProbe,
)
from .timeline import (
    STAGE_STATUS_COMPLETED,
    STAGE_STATUS_FAILED,
    STAGE_STATUS_SKIPPED,
    STAGE_STATUS_STARTED,
    STAGE_STATUS_WARNING,
    domain_build_stage_event,
    domain_timeline_stages_with_status,
)

__all__ = [
    "DEPENDENCY_KIND_HARD",
    "DEPENDENCY_KIND_SOFT",
    "POLL_STATUS_EXHAUSTED",
    "POLL_STATUS_READY",
    "STAGE_STATUS_COMPLETED",
    "STAGE_STATUS_FAILED",
    "STAGE_STATUS_SKIPPED",
    "STAGE_STATUS_STARTED",
    "STAGE_STATUS_WARNING",
    "DependencyDescriptor",
    "HealthStatus",
    "PollOutcome",
    "ReadinessProbe",
    "domain_build_stage_event",
    "domain_timeline_stages_with_status",
]
