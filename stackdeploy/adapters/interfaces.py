"""Typed interfaces for adapter-layer responsibilities."""

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Callable, Protocol


@dataclass(frozen=True)
class CommandResult:
    """Captured result of one external command.

    Attributes:
        args: Full argument vector that was executed.
        returncode: Process exit status.
        stdout: Captured standard output text.
        stderr: Captured standard error text.
    """

    args: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    def command_succeeded(self) -> bool:
        """Return whether the command exited with status zero."""

        return self.returncode == 0


CommandRunner = Callable[[Sequence[str], float], CommandResult]


class ComposePort(Protocol):
    """Port definition for driving the container orchestration CLI."""

    def compose_resolve_command(self) -> tuple[str, ...]:
        """Return the installed compose executable prefix.

        Raises:
            ComposeUnavailableError: Raised when no compose CLI is installed.
        """

    def compose_check_engine(self) -> None:
        """Verify the container engine is running.

        Raises:
            ComposeUnavailableError: Raised when the engine is missing or stopped.
        """

    def compose_missing_files(self) -> tuple[str, ...]:
        """Return configured compose files that do not exist."""

    def compose_command_label(self) -> str:
        """Return the compose invocation prefix for operator-facing hints.

        Returns:
            str: Command prefix such as `docker compose -f docker-compose.yml`.

        Raises:
            ComposeUnavailableError: Raised when no compose CLI is installed.
        """

    def compose_up(self, build: bool = True) -> CommandResult:
        """Start services detached, optionally rebuilding images."""

    def compose_down(self, remove_orphans: bool = True) -> CommandResult:
        """Stop and remove running services."""

    def compose_pull(self) -> CommandResult:
        """Pull images for all services."""

    def compose_ps(self, service: str | None = None) -> CommandResult:
        """List containers, optionally for one service."""

    def compose_service_is_running(self, service: str) -> bool:
        """Return whether the service container is up."""

    def compose_exec(
        self,
        service: str,
        command: Sequence[str],
        timeout_seconds: float | None = None,
    ) -> CommandResult:
        """Run a command inside a running service container without a TTY."""

    def compose_logs(self, service: str) -> CommandResult:
        """Return captured logs of one service."""

    def compose_defined_services(self) -> tuple[str, ...]:
        """Return service names declared by the compose configuration."""

    def compose_config(self) -> CommandResult:
        """Render the merged compose configuration."""

    def compose_prune(self, label: str) -> CommandResult:
        """Prune unused docker resources matching a label filter."""
