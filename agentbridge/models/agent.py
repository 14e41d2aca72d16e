"""Agent provider domain models."""

from __future__ import annotations

import shlex
from dataclasses import dataclass
from enum import Enum


class AgentType(str, Enum):
    CLAUDE = "claude"
    CODEX = "codex"


@dataclass(frozen=True)
class CommandSpec:
    """Specification for launching an agent subprocess."""

    program: str
    args: tuple[str, ...] = ()

    @property
    def full_command(self) -> str:
        """Return the full command string for logging."""
        parts = [self.program, *self.args]
        return " ".join(shlex.quote(p) for p in parts)


@dataclass(frozen=True)
class StartOptions:
    """Parameters for starting or resuming an agent process."""

    user_id: str
    session_ref: str | None = None
    fresh: bool = False


@dataclass(frozen=True)
class AgentOutput:
    """Result of one send to an agent process."""

    text: str
    session_ref: str | None = None


@dataclass(frozen=True)
class AgentCommandConfig:
    """Host configuration for one provider's executable."""

    command: str
    args: tuple[str, ...] = ()
