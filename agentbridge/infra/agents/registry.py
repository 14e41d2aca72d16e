"""Agent adapter factory/registry."""

from __future__ import annotations

from typing import TYPE_CHECKING

from agentbridge.infra.agents.base import AgentAdapter
from agentbridge.infra.agents.claude import ClaudeAdapter
from agentbridge.infra.agents.codex import CodexAdapter
from agentbridge.models.agent import AgentCommandConfig, AgentType

if TYPE_CHECKING:
    from agentbridge.config import AgentBridgeConfig, ProcessConfig

_ADAPTERS: dict[AgentType, type] = {
    AgentType.CLAUDE: ClaudeAdapter,
    AgentType.CODEX: CodexAdapter,
}


def get_adapter(
    agent_type: AgentType | str,
    command: AgentCommandConfig,
    process: ProcessConfig | None = None,
) -> AgentAdapter:
    """Build an adapter instance for one provider from its host configuration."""
    if isinstance(agent_type, str):
        agent_type = AgentType(agent_type)

    cls = _ADAPTERS.get(agent_type)
    if cls is None:
        raise ValueError(f"Unknown agent type: {agent_type}")

    if process is None:
        return cls(command.command, command.args)
    return cls(
        command.command,
        command.args,
        startup_settle_ms=process.startup_settle_ms,
        stop_grace_ms=process.stop_grace_ms,
        stop_kill_ms=process.stop_kill_ms,
        exit_command=process.exit_command,
    )


def build_adapters(config: AgentBridgeConfig) -> dict[AgentType, AgentAdapter]:
    """Build adapters for every provider enabled on this host.

    Disabled providers are simply absent from the map, which is what the
    manager checks before touching any process.
    """
    return {
        agent: get_adapter(agent, config.agents.command_for(agent), config.process)
        for agent in config.agents.enabled
    }
