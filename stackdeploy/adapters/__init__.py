"""Adapter layer package for container orchestration boundaries."""

from .compose_cli import ComposeCliAdapter
from .compose_errors import (
	ComposeCommandError,
	ComposeError,
	ComposeTimeoutError,
	ComposeUnavailableError,
)
from .interfaces import CommandResult, CommandRunner, ComposePort

__all__ = [
	"CommandResult",
	"CommandRunner",
	"ComposeCliAdapter",
	"ComposeCommandError",
	"ComposeError",
	"ComposePort",
	"ComposeTimeoutError",
	"ComposeUnavailableError",
]
