"""Inbound text routing: agent switch commands vs. messages for the agent."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from agentbridge.models.agent import AgentType

_SWITCH_COMMANDS = {f"/{agent.value}": agent for agent in AgentType}


class RouteKind(str, Enum):
    SWITCH_AGENT = "switch_agent"
    PASSTHROUGH = "passthrough"
    MESSAGE = "message"


@dataclass(frozen=True)
class RouteDecision:
    kind: RouteKind
    agent: AgentType | None = None
    payload: str = ""


def route_text_input(raw_text: str) -> RouteDecision:
    """Classify inbound text.

    ``/claude`` and ``/codex`` switch the active agent. Any other slash
    command is passed through verbatim so the agent CLI can handle it.
    """
    text = raw_text.strip()
    if text in _SWITCH_COMMANDS:
        return RouteDecision(kind=RouteKind.SWITCH_AGENT, agent=_SWITCH_COMMANDS[text])
    if text.startswith("/"):
        return RouteDecision(kind=RouteKind.PASSTHROUGH, payload=raw_text)
    return RouteDecision(kind=RouteKind.MESSAGE, payload=raw_text)


def other_agent(agent: AgentType) -> AgentType:
    """Return the alternate provider used for failover."""
    return AgentType.CODEX if agent is AgentType.CLAUDE else AgentType.CLAUDE
