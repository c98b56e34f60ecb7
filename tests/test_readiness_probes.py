"""Tests for readiness probe factories."""

from __future__ import annotations

import socket
import sys
from collections.abc import Sequence

import httpx
import pytest

from stackdeploy.adapters import CommandResult, ComposeTimeoutError
from stackdeploy.domain import HealthStatus
from stackdeploy.readiness import (
    ProbeConnectionError,
    ProbeTimeoutError,
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


class _ComposeExecStub:
    """Compose stub returning scripted exit codes for exec calls."""

    def __init__(self, returncodes: dict[str, int], running: bool = True):
        self.returncodes = returncodes
        self.running = running
        self.exec_calls: list[tuple[str, tuple[str, ...], float | None]] = []

    def compose_exec(
        self,
        service: str,
        command: Sequence[str],
        timeout_seconds: float | None = None,
    ) -> CommandResult:
        self.exec_calls.append((service, tuple(command), timeout_seconds))
        returncode = self.returncodes.get(command[0], 1)
        return CommandResult(args=tuple(command), returncode=returncode)

    def compose_service_is_running(self, service: str) -> bool:
        _ = service
        return self.running


class _TimingOutCompose(_ComposeExecStub):
    """Compose stub whose exec calls time out."""

    def compose_exec(
        self,
        service: str,
        command: Sequence[str],
        timeout_seconds: float | None = None,
    ) -> CommandResult:
        raise ComposeTimeoutError("exec timed out")


def test_probe_tcp_ready_when_port_accepts_connections() -> None:
    """Report ready when a listener accepts the connection."""

    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as listener:
        listener.bind(("127.0.0.1", 0))
        listener.listen(1)
        port = listener.getsockname()[1]

        assert probe_tcp("127.0.0.1", port, timeout_seconds=1.0)() is True


def test_probe_tcp_raises_connection_error_for_closed_port() -> None:
    """Map refused connections to a transient probe connection error."""

    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as reserved:
        reserved.bind(("127.0.0.1", 0))
        port = reserved.getsockname()[1]

    with pytest.raises(ProbeConnectionError) as error_info:
        probe_tcp("127.0.0.1", port, timeout_seconds=1.0)()

    assert error_info.value.target == f"127.0.0.1:{port}"


@pytest.mark.parametrize("port", [0, 70000])
def test_probe_tcp_rejects_invalid_port(port: int) -> None:
    with pytest.raises(ValueError):
        probe_tcp("localhost", port)


def test_probe_command_reflects_exit_status() -> None:
    """Report ready only for a zero exit status."""

    assert probe_command([sys.executable, "-c", "raise SystemExit(0)"])() is True
    assert probe_command([sys.executable, "-c", "raise SystemExit(3)"])() is False


def test_probe_command_raises_timeout_error() -> None:
    with pytest.raises(ProbeTimeoutError):
        probe_command([sys.executable, "-c", "import time; time.sleep(5)"], timeout_seconds=0.2)()


def test_probe_command_rejects_empty_arguments() -> None:
    with pytest.raises(ValueError):
        probe_command([])


def test_probe_http_ready_only_for_success_status() -> None:
    """Treat 2xx as ready and any other status as not ready.

    Returns:
        None: Assertions validate status-code mapping.

    Raises:
        AssertionError: Raised when status mapping is incorrect.
    """

    status_by_path = {"/health": 200, "/starting": 503, "/redirect": 301}

    def _handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_by_path[request.url.path])

    with httpx.Client(transport=httpx.MockTransport(_handler)) as client:
        assert probe_http("http://tileserver/health", client=client)() is True
        assert probe_http("http://tileserver/starting", client=client)() is False
        assert probe_http("http://tileserver/redirect", client=client)() is False


@pytest.mark.parametrize("status_code", [200, 301, 404, 503])
def test_probe_http_accept_any_status_counts_every_response(status_code: int) -> None:
    """Treat an HTTPS redirect or error page as a responding endpoint."""

    def _handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(status_code, headers={"Location": "https://localhost/"})

    with httpx.Client(transport=httpx.MockTransport(_handler)) as client:
        assert probe_http("http://localhost", client=client, accept_any_status=True)() is True


def test_probe_http_accept_any_status_still_maps_connection_errors() -> None:
    def _refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with httpx.Client(transport=httpx.MockTransport(_refuse)) as client:
        with pytest.raises(ProbeConnectionError):
            probe_http("http://localhost", client=client, accept_any_status=True)()


def test_probe_http_maps_transport_failures() -> None:
    """Map httpx connect and timeout failures to transient probe errors."""

    def _refuse(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    def _time_out(request: httpx.Request) -> httpx.Response:
        raise httpx.ReadTimeout("read timed out", request=request)

    with httpx.Client(transport=httpx.MockTransport(_refuse)) as client:
        with pytest.raises(ProbeConnectionError):
            probe_http("http://localhost", client=client)()

    with httpx.Client(transport=httpx.MockTransport(_time_out)) as client:
        with pytest.raises(ProbeTimeoutError):
            probe_http("http://localhost", client=client)()


def test_probe_compose_exec_http_falls_back_to_wget() -> None:
    """Try curl first and wget second inside the container."""

    compose = _ComposeExecStub(returncodes={"curl": 127, "wget": 0})

    assert probe_compose_exec_http(compose, "tileserver", "/health", timeout_seconds=5)() is True
    assert [call[1][0] for call in compose.exec_calls] == ["curl", "wget"]
    assert compose.exec_calls[0][1] == ("curl", "-f", "-s", "http://localhost/health")
    assert compose.exec_calls[1][1][-1] == "http://localhost/health"


def test_probe_compose_exec_http_skips_wget_when_curl_succeeds() -> None:
    compose = _ComposeExecStub(returncodes={"curl": 0})

    assert probe_compose_exec_http(compose, "api-laravel-nginx")() is True
    assert len(compose.exec_calls) == 1


def test_probe_compose_exec_http_rejects_relative_path() -> None:
    with pytest.raises(ValueError):
        probe_compose_exec_http(_ComposeExecStub(returncodes={}), "tileserver", "health")


def test_probe_mysqladmin_ping_runs_inside_database_container() -> None:
    """Run `mysqladmin ping` with the root password in the database service."""

    compose = _ComposeExecStub(returncodes={"mysqladmin": 0})

    assert probe_mysqladmin_ping(compose, "mysql", "s3cret", timeout_seconds=5)() is True
    service, command, timeout_seconds = compose.exec_calls[0]
    assert service == "mysql"
    assert command == ("mysqladmin", "ping", "-h", "localhost", "-u", "root", "-ps3cret", "--silent")
    assert timeout_seconds == 5


def test_probe_compose_exec_timeout_propagates_as_timeout_error() -> None:
    """Surface compose exec timeouts as `TimeoutError` for the poller."""

    probe = probe_compose_exec(_TimingOutCompose(returncodes={}), "mysql", ["mysqladmin", "ping"])

    with pytest.raises(TimeoutError):
        probe()


def test_probe_compose_service_running_reflects_container_state() -> None:
    assert probe_compose_service_running(_ComposeExecStub(returncodes={}, running=True), "traefik")() is True
    assert probe_compose_service_running(_ComposeExecStub(returncodes={}, running=False), "traefik")() is False


def test_probe_database_uses_health_service() -> None:
    """Report ready when the database health service answers ok."""

    class _HealthyDatabase:
        def db_connection_label(self) -> str:
            return "mysql://root@mysql/app"

        def db_check_health(self) -> HealthStatus:
            return HealthStatus(status="ok", detail="database connectivity verified")

    assert probe_database(_HealthyDatabase())() is True


def test_probe_all_of_short_circuits_on_first_not_ready() -> None:
    """Skip later probes once an earlier probe is not ready."""

    calls: list[str] = []

    def _not_running() -> bool:
        calls.append("running")
        return False

    def _http() -> bool:
        calls.append("http")
        return True

    assert probe_all_of(_not_running, _http)() is False
    assert calls == ["running"]


def test_probe_all_of_requires_probes() -> None:
    with pytest.raises(ValueError):
        probe_all_of()
