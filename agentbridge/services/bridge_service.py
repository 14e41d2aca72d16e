"""Bridge service: turns one inbound text event into agent replies."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from agentbridge.infra.agents.errors import AgentError, DisabledProvider
from agentbridge.services.routing import RouteKind, route_text_input

if TYPE_CHECKING:
    from agentbridge.services.agent_manager import AgentManager

logger = logging.getLogger(__name__)

EMPTY_RESPONSE = "(No textual response from agent.)"


def chunk_text(text: str, size: int) -> list[str]:
    """Split text into pieces of at most ``size`` characters."""
    if len(text) <= size:
        return [text]
    return [text[i:i + size] for i in range(0, len(text), size)]


class BridgeService:
    """Routes inbound text to the AgentManager and formats the reply.

    The surrounding message loop owns transport; it must call
    ``handle_text`` for a given user one event at a time.
    """

    def __init__(self, manager: AgentManager, chunk_size: int = 3000) -> None:
        self._manager = manager
        self._chunk_size = chunk_size

    async def handle_text(self, user_id: str, text: str) -> list[str]:
        """Process one inbound message. Returns the reply as delivery-sized chunks."""
        route = route_text_input(text)

        if route.kind is RouteKind.SWITCH_AGENT:
            try:
                await self._manager.switch_agent(user_id, route.agent)
            except DisabledProvider as e:
                return [f"{e}."]
            except AgentError as e:
                logger.error("Switch to %s failed for %s: %s", route.agent.value, user_id, e)
                return [f"Failed to switch to {route.agent.value}: {e}"]
            return [f"Switched active agent to {route.agent.value}."]

        if not route.payload.strip():
            return ["Empty message received."]

        try:
            output = await self._manager.send_to_active(user_id, route.payload)
            response = output.text or EMPTY_RESPONSE
        except Exception as e:
            logger.error("Agent send failed for %s: %s", user_id, e)
            response = f"Agent execution failed: {e}"

        return chunk_text(response, self._chunk_size)
