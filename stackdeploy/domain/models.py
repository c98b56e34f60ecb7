"""Typed domain models shared across deployment runtime layers.

This module provides the data contracts that travel between the readiness
poller, the compose adapter, and the deployment orchestrator.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Final

DEPENDENCY_KIND_HARD: Final[str] = "hard"
DEPENDENCY_KIND_SOFT: Final[str] = "soft"
DEPENDENCY_KINDS: Final[frozenset[str]] = frozenset({DEPENDENCY_KIND_HARD, DEPENDENCY_KIND_SOFT})

POLL_STATUS_READY: Final[str] = "ready"
POLL_STATUS_EXHAUSTED: Final[str] = "exhausted"

ReadinessProbe = Callable[[], bool]


@dataclass(frozen=True)
class HealthStatus:
    """Health result contract used by connectivity checks.

    Attributes:
        status: Overall status text for service health.
        detail: Additional message suitable for operational diagnostics.
    """

    status: str
    detail: str


@dataclass(frozen=True)
class DependencyDescriptor:
    """Description of one dependency the deployment waits on.

    Attributes:
        name: Target service name, also used for log-inspection hints.
        probe: Optional readiness probe; when None the caller supplies a fallback.
        max_attempts: Total number of probe attempts.
        delay_seconds: Fixed wait between consecutive attempts.
        kind: `hard` aborts the run on exhaustion, `soft` only records a warning.
        progress_interval: Report progress on every n-th attempt.
    """

    name: str
    probe: ReadinessProbe | None = None
    max_attempts: int = 30
    delay_seconds: float = 5.0
    kind: str = DEPENDENCY_KIND_HARD
    progress_interval: int = 10

    def __post_init__(self) -> None:
        if not self.name.strip():
            raise ValueError("name must not be blank")
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.delay_seconds < 0:
            raise ValueError("delay_seconds must be >= 0")
        if self.kind not in DEPENDENCY_KINDS:
            raise ValueError(f"kind must be one of {sorted(DEPENDENCY_KINDS)}")
        if self.progress_interval < 1:
            raise ValueError("progress_interval must be >= 1")

    def dependency_is_hard(self) -> bool:
        """Return whether exhaustion of this dependency must abort the run."""

        return self.kind == DEPENDENCY_KIND_HARD


@dataclass(frozen=True)
class PollOutcome:
    """Final outcome of one readiness polling loop.

    Attributes:
        dependency_name: Polled dependency name.
        status: `ready` or `exhausted`.
        attempts: Number of probe attempts performed.
        last_error: Text of the last transient probe failure, if any.
    """

    dependency_name: str
    status: str
    attempts: int
    last_error: str | None = None

    def poll_outcome_is_ready(self) -> bool:
        """Return whether the dependency became ready within its budget."""

        return self.status == POLL_STATUS_READY
