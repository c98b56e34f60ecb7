"""Docker Compose CLI adapter implementation."""

from __future__ import annotations

import logging
import re
import shlex
import shutil
import subprocess
from collections.abc import Sequence
from pathlib import Path
from typing import Callable, Final

from .compose_errors import ComposeCommandError, ComposeTimeoutError, ComposeUnavailableError
from .interfaces import CommandResult, CommandRunner, ComposePort

logger = logging.getLogger(__name__)

_SECRET_ARGUMENT_PATTERN: Final[re.Pattern[str]] = re.compile(r"^(-p|--password=|[A-Z_]*(?:PASSWORD|PWD)=)(.+)$")
_REDACTED: Final[str] = "***"


class ComposeCliAdapter(ComposePort):
    """Adapter for `docker-compose` (v1) and `docker compose` (v2) command lines."""

    _LEGACY_EXECUTABLE: Final[str] = "docker-compose"
    _DOCKER_EXECUTABLE: Final[str] = "docker"
    _RUNNING_MARKER: Final[str] = "Up"

    def __init__(
        self,
        compose_files: Sequence[str],
        project_directory: str = ".",
        command_timeout_seconds: float = 900.0,
        command_runner: CommandRunner | None = None,
        executable_lookup: Callable[[str], str | None] | None = None,
    ):
        """Initialize compose CLI adapter.

        Args:
            compose_files: Compose files passed as `-f` arguments, in order.
            project_directory: Working directory for compose invocations.
            command_timeout_seconds: Default timeout for one command.
            command_runner: Optional runner replacing subprocess execution.
            executable_lookup: Optional replacement for `shutil.which`.

        Returns:
            None: Initializer does not return a value.

        Raises:
            ValueError: Raised when config values are invalid.
        """

        normalized_files = tuple(file_name.strip() for file_name in compose_files if file_name.strip())
        if not normalized_files:
            raise ValueError("compose_files must contain at least one file")
        if command_timeout_seconds <= 0:
            raise ValueError("command_timeout_seconds must be > 0")

        self._compose_files = normalized_files
        self._project_directory = Path(project_directory)
        self._command_timeout_seconds = command_timeout_seconds
        self._command_runner = command_runner or self._compose_run_subprocess
        self._executable_lookup = executable_lookup or shutil.which
        self._resolved_command: tuple[str, ...] | None = None

    def compose_resolve_command(self) -> tuple[str, ...]:
        """Resolve which compose CLI flavour is installed.

        The standalone `docker-compose` binary wins over the `docker compose`
        plugin, matching how existing hosts were provisioned.

        Returns:
            tuple[str, ...]: Executable prefix without `-f` arguments.

        Raises:
            ComposeUnavailableError: Raised when neither flavour is usable.
        """

        if self._resolved_command is not None:
            return self._resolved_command

        if self._executable_lookup(self._LEGACY_EXECUTABLE):
            version_result = self._command_runner(
                (self._LEGACY_EXECUTABLE, "version", "--short"),
                self._command_timeout_seconds,
            )
            version_label = version_result.stdout.strip() or "unknown"
            logger.debug("Using docker-compose v%s", version_label)
            self._resolved_command = (self._LEGACY_EXECUTABLE,)
            return self._resolved_command

        if self._executable_lookup(self._DOCKER_EXECUTABLE):
            version_result = self._command_runner(
                (self._DOCKER_EXECUTABLE, "compose", "version"),
                self._command_timeout_seconds,
            )
            if version_result.command_succeeded():
                logger.debug("Using docker compose (v2)")
                self._resolved_command = (self._DOCKER_EXECUTABLE, "compose")
                return self._resolved_command

        raise ComposeUnavailableError("Docker Compose is not installed. Please install Docker Compose.")

    def compose_check_engine(self) -> None:
        """Verify the docker engine is installed and answering.

        Raises:
            ComposeUnavailableError: Raised when docker is missing or not running.
        """

        if not self._executable_lookup(self._DOCKER_EXECUTABLE):
            raise ComposeUnavailableError("Docker is not installed. Please install Docker first.")
        info_result = self._command_runner((self._DOCKER_EXECUTABLE, "info"), self._command_timeout_seconds)
        if not info_result.command_succeeded():
            raise ComposeUnavailableError(
                "Docker is not running. Please start Docker service.",
                returncode=info_result.returncode,
            )

    def compose_missing_files(self) -> tuple[str, ...]:
        """Return configured compose files absent from the project directory."""

        return tuple(
            file_name
            for file_name in self._compose_files
            if not (self._project_directory / file_name).is_file()
        )

    def compose_command_label(self) -> str:
        return shlex.join(self._compose_base_arguments())

    def compose_up(self, build: bool = True) -> CommandResult:
        """Start services detached.

        Args:
            build: Whether to rebuild images before starting.

        Returns:
            CommandResult: Successful command result.

        Raises:
            ComposeCommandError: Raised when `up` exits non-zero.
            ComposeTimeoutError: Raised when `up` exceeds the timeout.
        """

        arguments = ["up", "-d"]
        if build:
            arguments.append("--build")
        return self._compose_run(arguments, check=True)

    def compose_down(self, remove_orphans: bool = True) -> CommandResult:
        arguments = ["down"]
        if remove_orphans:
            arguments.append("--remove-orphans")
        return self._compose_run(arguments)

    def compose_pull(self) -> CommandResult:
        return self._compose_run(["pull"])

    def compose_ps(self, service: str | None = None) -> CommandResult:
        arguments = ["ps"]
        if service:
            arguments.append(service)
        return self._compose_run(arguments)

    def compose_service_is_running(self, service: str) -> bool:
        """Return whether `ps` reports the service container as up.

        Args:
            service: Compose service name.

        Returns:
            bool: True when the `ps` listing carries the running marker.

        Raises:
            ComposeTimeoutError: Raised when `ps` exceeds the timeout.
        """

        ps_result = self.compose_ps(service)
        if not ps_result.command_succeeded():
            return False
        return self._RUNNING_MARKER in ps_result.stdout

    def compose_exec(
        self,
        service: str,
        command: Sequence[str],
        timeout_seconds: float | None = None,
    ) -> CommandResult:
        """Run a command inside a service container without a TTY.

        Args:
            service: Compose service name.
            command: Argument vector executed in the container.
            timeout_seconds: Optional override of the default command timeout.

        Returns:
            CommandResult: Captured command result; non-zero status is not raised.

        Raises:
            ValueError: Raised when service or command is empty.
            ComposeTimeoutError: Raised when the command exceeds the timeout.
        """

        if not service.strip():
            raise ValueError("service must not be blank")
        if not command:
            raise ValueError("command must not be empty")
        return self._compose_run(["exec", "-T", service, *command], timeout_seconds=timeout_seconds)

    def compose_logs(self, service: str) -> CommandResult:
        return self._compose_run(["logs", service])

    def compose_defined_services(self) -> tuple[str, ...]:
        """Return services declared in the merged compose configuration.

        Returns:
            tuple[str, ...]: Declared service names; empty when config cannot be rendered.

        Raises:
            ComposeTimeoutError: Raised when `config` exceeds the timeout.
        """

        config_result = self._compose_run(["config", "--services"])
        if not config_result.command_succeeded():
            logger.warning("Could not list compose services: %s", config_result.stderr.strip())
            return ()
        return tuple(line.strip() for line in config_result.stdout.splitlines() if line.strip())

    def compose_config(self) -> CommandResult:
        return self._compose_run(["config"])

    def compose_prune(self, label: str) -> CommandResult:
        if not label.strip():
            raise ValueError("label must not be blank")
        return self._compose_execute(
            (self._DOCKER_EXECUTABLE, "system", "prune", "-f", "--filter", f"label={label.strip()}"),
            timeout_seconds=None,
        )

    def _compose_base_arguments(self) -> list[str]:
        base_arguments = list(self.compose_resolve_command())
        for file_name in self._compose_files:
            base_arguments.extend(["-f", file_name])
        return base_arguments

    def _compose_run(
        self,
        arguments: Sequence[str],
        check: bool = False,
        timeout_seconds: float | None = None,
    ) -> CommandResult:
        """Run one compose subcommand with the configured `-f` files.

        Args:
            arguments: Subcommand and its arguments.
            check: Raise on non-zero exit status when True.
            timeout_seconds: Optional override of the default command timeout.

        Returns:
            CommandResult: Captured command result.

        Raises:
            ComposeCommandError: Raised when `check` is set and the command fails.
            ComposeTimeoutError: Raised when the command exceeds the timeout.
        """

        full_arguments = (*self._compose_base_arguments(), *arguments)
        result = self._compose_execute(full_arguments, timeout_seconds=timeout_seconds)
        if check and not result.command_succeeded():
            raise ComposeCommandError(
                f"`{compose_redact_arguments(full_arguments)}` failed with exit status {result.returncode}: "
                f"{result.stderr.strip()}",
                returncode=result.returncode,
            )
        return result

    def _compose_execute(self, arguments: Sequence[str], timeout_seconds: float | None) -> CommandResult:
        effective_timeout = timeout_seconds if timeout_seconds is not None else self._command_timeout_seconds
        logger.debug("Running %s", compose_redact_arguments(arguments))
        return self._command_runner(tuple(arguments), effective_timeout)

    def _compose_run_subprocess(self, arguments: Sequence[str], timeout_seconds: float) -> CommandResult:
        """Execute one command through `subprocess.run` in the project directory.

        Args:
            arguments: Full argument vector.
            timeout_seconds: Command timeout.

        Returns:
            CommandResult: Captured command result.

        Raises:
            ComposeUnavailableError: Raised when the executable does not exist.
            ComposeTimeoutError: Raised when the command exceeds the timeout.
        """

        try:
            completed = subprocess.run(
                list(arguments),
                cwd=self._project_directory,
                capture_output=True,
                text=True,
                timeout=timeout_seconds,
                check=False,
            )
        except FileNotFoundError as error:
            raise ComposeUnavailableError(f"executable not found: {arguments[0]}") from error
        except subprocess.TimeoutExpired as error:
            raise ComposeTimeoutError(
                f"`{compose_redact_arguments(arguments)}` timed out after {timeout_seconds:g}s"
            ) from error

        return CommandResult(
            args=tuple(arguments),
            returncode=completed.returncode,
            stdout=completed.stdout or "",
            stderr=completed.stderr or "",
        )


def compose_redact_arguments(arguments: Sequence[str]) -> str:
    """Render an argument vector for logs and errors with secret values masked.

    Attached password flags (`-psecret`, `--password=secret`) and
    `*PASSWORD=`/`*PWD=` environment assignments keep their prefix only.

    Args:
        arguments: Argument vector as passed to the runner.

    Returns:
        str: Shell-quoted command line safe for logging.
    """

    redacted_arguments = []
    for argument in arguments:
        secret_match = _SECRET_ARGUMENT_PATTERN.match(argument)
        redacted_arguments.append(f"{secret_match.group(1)}{_REDACTED}" if secret_match else argument)
    return shlex.join(redacted_arguments)
