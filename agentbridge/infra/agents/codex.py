"""Codex CLI adapter."""

from __future__ import annotations

from agentbridge.infra.agents.cli_adapter import BaseCliAgentAdapter
from agentbridge.models.agent import AgentType


class CodexAdapter(BaseCliAgentAdapter):
    """Adapter for the Codex CLI.

    Generates commands like:
        codex resume SESSION_ID
        codex resume --last
        codex
    """

    agent_type = AgentType.CODEX

    def build_start_args(self, session_ref: str | None, fresh: bool) -> list[str]:
        if fresh:
            return []
        if session_ref:
            return ["resume", session_ref]
        return ["resume", "--last"]
