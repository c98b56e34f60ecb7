"""Bounded fixed-delay readiness polling for deployment dependencies."""

from __future__ import annotations

import logging
import time
from typing import Callable, Final

from stackdeploy.domain import (
    POLL_STATUS_EXHAUSTED,
    POLL_STATUS_READY,
    DependencyDescriptor,
    PollOutcome,
    ReadinessProbe,
)

from .errors import HardDependencyError, ReadinessProbeError

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int, int], None]

TRANSIENT_PROBE_ERRORS: Final[tuple[type[BaseException], ...]] = (
    ReadinessProbeError,
    ConnectionError,
    TimeoutError,
)


def readiness_log_progress(dependency_name: str, attempt: int, max_attempts: int) -> None:
    """Default progress callback writing one info line per reported attempt."""

    logger.info("Attempt %d/%d - %s still starting...", attempt, max_attempts, dependency_name)


def readiness_poll(
    dependency_name: str,
    probe: ReadinessProbe,
    max_attempts: int,
    delay_seconds: float,
    progress_interval: int = 10,
    progress_callback: ProgressCallback | None = None,
) -> PollOutcome:
    """Invoke a probe until it reports ready or the attempt budget runs out.

    Consecutive attempts are separated by exactly one fixed delay. A ready
    probe returns immediately; no delay follows the final attempt.

    Args:
        dependency_name: Dependency label used in logs and the outcome.
        probe: Zero-argument callable returning True when ready.
        max_attempts: Total attempt budget.
        delay_seconds: Fixed wait between consecutive attempts.
        progress_interval: Report progress on every n-th failed attempt.
        progress_callback: Optional progress side channel; defaults to debug logging.

    Returns:
        PollOutcome: `ready` with the attempt that succeeded, or `exhausted`.

    Raises:
        ValueError: Raised when polling parameters are invalid.
    """

    if not dependency_name.strip():
        raise ValueError("dependency_name must not be blank")
    if probe is None:
        raise ValueError("probe must not be None")
    if max_attempts < 1:
        raise ValueError("max_attempts must be >= 1")
    if delay_seconds < 0:
        raise ValueError("delay_seconds must be >= 0")
    if progress_interval < 1:
        raise ValueError("progress_interval must be >= 1")

    report_progress = progress_callback or readiness_log_progress
    last_error: str | None = None

    for attempt in range(1, max_attempts + 1):
        try:
            if probe():
                logger.info("%s is ready", dependency_name)
                return PollOutcome(
                    dependency_name=dependency_name,
                    status=POLL_STATUS_READY,
                    attempts=attempt,
                    last_error=last_error,
                )
        except TRANSIENT_PROBE_ERRORS as error:
            last_error = str(error) or type(error).__name__

        if attempt % progress_interval == 0:
            report_progress(dependency_name, attempt, max_attempts)

        if attempt < max_attempts and delay_seconds > 0:
            time.sleep(delay_seconds)

    return PollOutcome(
        dependency_name=dependency_name,
        status=POLL_STATUS_EXHAUSTED,
        attempts=max_attempts,
        last_error=last_error,
    )


def readiness_wait_for_dependency(
    descriptor: DependencyDescriptor,
    fallback_probe: ReadinessProbe | None = None,
    progress_callback: ProgressCallback | None = None,
) -> PollOutcome:
    """Poll one dependency descriptor.

    Args:
        descriptor: Dependency to wait for.
        fallback_probe: Probe used when the descriptor carries none.
        progress_callback: Optional progress side channel.

    Returns:
        PollOutcome: Polling outcome.

    Raises:
        ValueError: Raised when neither the descriptor nor the caller supplies a probe.
    """

    probe = descriptor.probe or fallback_probe
    if probe is None:
        raise ValueError(f"dependency {descriptor.name} has no readiness probe")

    logger.info("Waiting for %s to be ready...", descriptor.name)
    return readiness_poll(
        dependency_name=descriptor.name,
        probe=probe,
        max_attempts=descriptor.max_attempts,
        delay_seconds=descriptor.delay_seconds,
        progress_interval=descriptor.progress_interval,
        progress_callback=progress_callback,
    )


def readiness_gate(
    descriptor: DependencyDescriptor,
    logs_command: str | None = None,
    fallback_probe: ReadinessProbe | None = None,
    progress_callback: ProgressCallback | None = None,
) -> PollOutcome:
    """Poll a dependency and apply its hard or soft failure policy.

    Args:
        descriptor: Dependency to wait for.
        logs_command: Suggested log-inspection command for diagnostics.
        fallback_probe: Probe used when the descriptor carries none.
        progress_callback: Optional progress side channel.

    Returns:
        PollOutcome: Ready outcome, or the exhausted outcome of a soft dependency.

    Raises:
        HardDependencyError: Raised when a hard dependency is exhausted.
    """

    outcome = readiness_wait_for_dependency(
        descriptor=descriptor,
        fallback_probe=fallback_probe,
        progress_callback=progress_callback,
    )
    if outcome.poll_outcome_is_ready():
        return outcome

    if descriptor.dependency_is_hard():
        logger.error("%s did not start within expected time", descriptor.name)
        if logs_command:
            logger.error("Check %s logs: %s", descriptor.name, logs_command)
        raise HardDependencyError(
            dependency_name=descriptor.name,
            attempts=outcome.attempts,
            logs_command=logs_command,
        )

    logger.warning("%s health check timed out", descriptor.name)
    if logs_command:
        logger.warning("Check logs: %s", logs_command)
    return outcome
