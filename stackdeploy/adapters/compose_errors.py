"""Project-native typed exceptions for compose CLI failures."""

from __future__ import annotations


class ComposeError(Exception):
    """Base exception for compose adapter failures.

    Attributes:
        returncode: Exit status of the failed command, when one ran.
    """

    def __init__(self, message: str, returncode: int | None = None):
        super().__init__(message)
        self.returncode = returncode


class ComposeUnavailableError(ComposeError, RuntimeError):
    """Docker engine or compose CLI is missing or not running."""


class ComposeCommandError(ComposeError, RuntimeError):
    """Compose command exited with a non-zero status."""


class ComposeTimeoutError(ComposeError, TimeoutError):
    """Compose command did not finish within the configured timeout."""
