"""Readiness probe factories.

Every factory returns a zero-argument callable that answers "is the target
ready?" with a bool, or raises a transient error (`ConnectionError`,
`TimeoutError`, `ReadinessProbeError`) that the poller counts as not ready.
Configuration errors such as a missing executable propagate unchanged.
"""

from __future__ import annotations

import shlex
import socket
import subprocess
from collections.abc import Sequence

import httpx

from stackdeploy.adapters import ComposePort
from stackdeploy.db import DatabaseHealthPort
from stackdeploy.domain import ReadinessProbe

from .errors import ProbeConnectionError, ProbeTimeoutError


def probe_tcp(host: str, port: int, timeout_seconds: float = 5.0) -> ReadinessProbe:
    """Build a probe that succeeds once a TCP connection can be opened.

    Args:
        host: Target host name or address.
        port: Target TCP port.
        timeout_seconds: Connect timeout per attempt.

    Returns:
        ReadinessProbe: TCP connect probe.

    Raises:
        ValueError: Raised when host or port is invalid.
    """

    if not host.strip():
        raise ValueError("host must not be blank")
    if port < 1 or port > 65535:
        raise ValueError("port must be in [1, 65535]")

    target = f"{host}:{port}"

    def _probe() -> bool:
        try:
            with socket.create_connection((host, port), timeout=timeout_seconds):
                return True
        except TimeoutError as error:
            raise ProbeTimeoutError(f"connection to {target} timed out", target=target) from error
        except OSError as error:
            raise ProbeConnectionError(f"connection to {target} failed: {error}", target=target) from error

    return _probe


def probe_command(arguments: Sequence[str], timeout_seconds: float = 30.0) -> ReadinessProbe:
    """Build a probe that succeeds when a local command exits with status zero.

    Args:
        arguments: Argument vector of the health command.
        timeout_seconds: Command timeout per attempt.

    Returns:
        ReadinessProbe: Command execution probe.

    Raises:
        ValueError: Raised when the argument vector is empty.
    """

    command = tuple(arguments)
    if not command:
        raise ValueError("arguments must not be empty")

    def _probe() -> bool:
        try:
            completed = subprocess.run(
                list(command),
                capture_output=True,
                timeout=timeout_seconds,
                check=False,
            )
        except subprocess.TimeoutExpired as error:
            raise ProbeTimeoutError(
                f"`{shlex.join(command)}` timed out after {timeout_seconds:g}s",
                target=command[0],
            ) from error
        return completed.returncode == 0

    return _probe


def probe_http(
    url: str,
    timeout_seconds: float = 5.0,
    client: httpx.Client | None = None,
    accept_any_status: bool = False,
) -> ReadinessProbe:
    """Build a probe that succeeds when an HTTP GET returns a 2xx status.

    Redirects are not followed. With `accept_any_status` any HTTP response
    counts as ready, so an HTTPS redirect answers the probe.

    Args:
        url: Absolute URL to request.
        timeout_seconds: Request timeout per attempt.
        client: Optional preconfigured client; one is created per attempt otherwise.
        accept_any_status: Treat every HTTP status as ready.

    Returns:
        ReadinessProbe: HTTP request probe.

    Raises:
        ValueError: Raised when url is blank.
    """

    if not url.strip():
        raise ValueError("url must not be blank")

    def _probe() -> bool:
        try:
            if client is not None:
                response = client.get(url, timeout=timeout_seconds)
            else:
                with httpx.Client(timeout=timeout_seconds, follow_redirects=False) as ephemeral_client:
                    response = ephemeral_client.get(url)
        except httpx.TimeoutException as error:
            raise ProbeTimeoutError(f"request to {url} timed out", target=url) from error
        except httpx.TransportError as error:
            raise ProbeConnectionError(f"request to {url} failed: {error}", target=url) from error
        return accept_any_status or response.is_success

    return _probe


def probe_compose_exec(
    compose: ComposePort,
    service: str,
    command: Sequence[str],
    timeout_seconds: float | None = None,
) -> ReadinessProbe:
    """Build a probe that runs a health command inside a service container.

    Args:
        compose: Compose adapter.
        service: Compose service name.
        command: Argument vector executed in the container.
        timeout_seconds: Optional per-attempt timeout.

    Returns:
        ReadinessProbe: Container command probe.

    Raises:
        ValueError: Raised when service or command is empty.
    """

    if not service.strip():
        raise ValueError("service must not be blank")
    container_command = tuple(command)
    if not container_command:
        raise ValueError("command must not be empty")

    def _probe() -> bool:
        result = compose.compose_exec(service, container_command, timeout_seconds=timeout_seconds)
        return result.command_succeeded()

    return _probe


def probe_mysqladmin_ping(
    compose: ComposePort,
    service: str,
    root_password: str,
    timeout_seconds: float | None = None,
) -> ReadinessProbe:
    """Build a `mysqladmin ping` probe executed inside the database container."""

    return probe_compose_exec(
        compose=compose,
        service=service,
        command=("mysqladmin", "ping", "-h", "localhost", "-u", "root", f"-p{root_password}", "--silent"),
        timeout_seconds=timeout_seconds,
    )


def probe_compose_exec_http(
    compose: ComposePort,
    service: str,
    path: str = "/",
    timeout_seconds: float | None = None,
) -> ReadinessProbe:
    """Build a probe requesting `http://localhost<path>` from inside a container.

    Images ship either curl or wget, so curl is tried first and wget second.

    Args:
        compose: Compose adapter.
        service: Compose service name.
        path: Request path starting with `/`.
        timeout_seconds: Optional per-attempt timeout for each command.

    Returns:
        ReadinessProbe: In-container HTTP probe.

    Raises:
        ValueError: Raised when service is blank or path is relative.
    """

    if not service.strip():
        raise ValueError("service must not be blank")
    if not path.startswith("/"):
        raise ValueError("path must start with '/'")

    url = f"http://localhost{path}"
    curl_command = ("curl", "-f", "-s", url)
    wget_command = ("wget", "--quiet", "--tries=1", "--spider", url)

    def _probe() -> bool:
        if compose.compose_exec(service, curl_command, timeout_seconds=timeout_seconds).command_succeeded():
            return True
        return compose.compose_exec(service, wget_command, timeout_seconds=timeout_seconds).command_succeeded()

    return _probe


def probe_compose_service_running(compose: ComposePort, service: str) -> ReadinessProbe:
    """Build a probe that succeeds once the service container is listed as up."""

    if not service.strip():
        raise ValueError("service must not be blank")

    def _probe() -> bool:
        return compose.compose_service_is_running(service)

    return _probe


def probe_database(health_service: DatabaseHealthPort) -> ReadinessProbe:
    """Build a probe backed by the SQLAlchemy database health service.

    Args:
        health_service: Database health service.

    Returns:
        ReadinessProbe: `SELECT 1` probe; connection errors count as not ready.

    Raises:
        ValueError: Raised when health_service is None.
    """

    if health_service is None:
        raise ValueError("health_service must not be None")

    def _probe() -> bool:
        return health_service.db_check_health().status == "ok"

    return _probe


def probe_all_of(*probes: ReadinessProbe) -> ReadinessProbe:
    """Combine probes; ready only when every probe is ready, evaluated in order.

    Evaluation stops at the first probe that is not ready.
    """

    if not probes:
        raise ValueError("at least one probe is required")

    def _probe() -> bool:
        return all(probe() for probe in probes)

    return _probe
