"""Claude Code CLI adapter."""

from __future__ import annotations

from agentbridge.infra.agents.cli_adapter import BaseCliAgentAdapter
from agentbridge.models.agent import AgentType


class ClaudeAdapter(BaseCliAgentAdapter):
    """Adapter for the Claude Code CLI.

    Generates commands like:
        claude --resume SESSION_ID
        claude --continue
        claude
    """

    agent_type = AgentType.CLAUDE

    def build_start_args(self, session_ref: str | None, fresh: bool) -> list[str]:
        if fresh:
            return []
        if session_ref:
            return ["--resume", session_ref]
        return ["--continue"]
