"""Project-native typed exceptions for readiness polling."""

from __future__ import annotations


class ReadinessProbeError(Exception):
    """Base exception for transient probe failures.

    The poller treats every subclass as "not ready yet" and keeps polling.

    Attributes:
        target: Probed target label (host:port, URL, service name).
    """

    def __init__(self, message: str, target: str | None = None):
        super().__init__(message)
        self.target = target


class ProbeConnectionError(ReadinessProbeError, ConnectionError):
    """Probe could not reach its target."""


class ProbeTimeoutError(ReadinessProbeError, TimeoutError):
    """Probe attempt exceeded its timeout."""


class HardDependencyError(RuntimeError):
    """A hard dependency never became ready and the deployment must abort.

    Attributes:
        dependency_name: Name of the dependency that was exhausted.
        attempts: Number of attempts performed.
        logs_command: Suggested command for inspecting the dependency logs.
    """

    def __init__(self, dependency_name: str, attempts: int, logs_command: str | None = None):
        message = f"{dependency_name} did not become ready within {attempts} attempts"
        if logs_command:
            message = f"{message}. Check logs: {logs_command}"
        super().__init__(message)
        self.dependency_name = dependency_name
        self.attempts = attempts
        self.logs_command = logs_command
