"""Agent runtime error taxonomy.

Every error names the provider it came from and carries whatever raw
transcript had been captured, so the caller can log it for diagnosis.
"""

from __future__ import annotations

from agentbridge.models.agent import AgentType


class AgentError(RuntimeError):
    """Base class for agent process failures."""

    def __init__(self, agent: AgentType, message: str, transcript: str = "") -> None:
        super().__init__(message)
        self.agent = agent
        self.transcript = transcript


class StartupFailure(AgentError):
    """Process exited or errored before it was ready."""


class SendTimeout(AgentError):
    """Hard response ceiling exceeded."""


class SendIdleNoOutput(AgentError):
    """Idle period elapsed without a single byte of output."""


class UnexpectedExit(AgentError):
    """Process died while a send was in flight."""


class DisabledProvider(AgentError):
    """Target provider has no adapter configured on this host."""

    def __init__(self, agent: AgentType) -> None:
        super().__init__(agent, f"Agent '{agent.value}' is disabled on this host")
