"""Agent manager: per-user runtimes, switching, failover and shutdown."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from agentbridge.infra.agents.errors import DisabledProvider, StartupFailure
from agentbridge.models.agent import AgentOutput, AgentType, StartOptions
from agentbridge.services.routing import other_agent

if TYPE_CHECKING:
    from agentbridge.config import ManagerOptions
    from agentbridge.infra.agents.base import AgentAdapter, RunningAgent
    from agentbridge.infra.db.bindings import BindingRepo
    from agentbridge.models.binding import SessionBinding

logger = logging.getLogger(__name__)

FAILOVER_PREAMBLE = "[Automatic failover from previous agent due to runtime error.]"


class AgentManager:
    """Owns every user's RunningAgent and keeps at most one alive per user.

    Callers must invoke operations for a given user sequentially (one
    inbound event at a time). Different users may interleave freely.
    """

    def __init__(
        self,
        repo: BindingRepo,
        adapters: dict[AgentType, AgentAdapter],
        options: ManagerOptions,
    ) -> None:
        self._repo = repo
        self._adapters = dict(adapters)
        self._options = options
        self._runtimes: dict[str, RunningAgent] = {}

    def runtime_for(self, user_id: str) -> RunningAgent | None:
        return self._runtimes.get(user_id)

    @property
    def live_user_ids(self) -> list[str]:
        return list(self._runtimes)

    async def switch_agent(self, user_id: str, target: AgentType) -> None:
        """Make ``target`` the user's active provider and start it."""
        self._require_adapter(target)
        await self._repo.get_binding(user_id, self._options.default_agent)

        current = self._runtimes.get(user_id)
        if current and current.agent is target and current.is_alive:
            return
        if current:
            await self._retire(current)

        await self._repo.set_active_agent(user_id, target)
        binding = await self._repo.get_binding(user_id, self._options.default_agent)
        runtime = await self._start_for_binding(user_id, target, binding)
        self._runtimes[user_id] = runtime
        logger.info("Switched active agent for %s to %s", user_id, target.value)

    async def send_to_active(self, user_id: str, text: str) -> AgentOutput:
        """Send one message to the user's active agent, failing over on error."""
        binding = await self._repo.get_binding(user_id, self._options.default_agent)
        active = self._ensure_enabled(binding.active_agent)
        if active is not binding.active_agent:
            logger.info(
                "Agent %s disabled on this host, demoting %s to %s",
                binding.active_agent.value,
                user_id,
                active.value,
            )
            await self._repo.set_active_agent(user_id, active)
            binding = binding.with_active_agent(active)

        runtime = await self._ensure_runtime(user_id, active, binding)
        try:
            return await self._send(runtime, text)
        except Exception as e:
            await self._discard_failed(runtime, e)
            if not self._options.failover_enabled:
                raise
            fallback = other_agent(runtime.agent)
            if fallback not in self._adapters:
                raise
            return await self._failover(user_id, fallback, text)

    async def shutdown_all(self) -> None:
        """Stop every live runtime, persisting its last known session ref."""
        for runtime in list(self._runtimes.values()):
            await self._retire(runtime)
        logger.info("All agent runtimes stopped")

    async def _failover(self, user_id: str, fallback: AgentType, text: str) -> AgentOutput:
        logger.warning("Failing over %s to %s", user_id, fallback.value)
        await self._repo.set_active_agent(user_id, fallback)
        binding = await self._repo.get_binding(user_id, self._options.default_agent)
        runtime = await self._ensure_runtime(user_id, fallback, binding)

        handoff = "\n\n".join(
            [FAILOVER_PREAMBLE, "Continue from this latest user request:", text]
        )
        try:
            output = await self._send(runtime, handoff)
        except Exception as e:
            await self._discard_failed(runtime, e)
            raise
        return AgentOutput(
            text=f"[Failover -> {fallback.value}]\n\n{output.text}",
            session_ref=output.session_ref,
        )

    async def _send(self, runtime: RunningAgent, text: str) -> AgentOutput:
        adapter = self._require_adapter(runtime.agent)
        output = await adapter.send(
            runtime,
            text,
            self._options.agent_idle_ms,
            self._options.agent_response_sec * 1000,
        )
        if output.session_ref:
            await self._repo.update_session_ref(runtime.user_id, runtime.agent, output.session_ref)
        return output

    async def _ensure_runtime(
        self, user_id: str, agent: AgentType, binding: SessionBinding
    ) -> RunningAgent:
        self._require_adapter(agent)
        existing = self._runtimes.get(user_id)
        if existing and existing.agent is agent and existing.is_alive:
            return existing
        if existing:
            await self._retire(existing)

        runtime = await self._start_for_binding(user_id, agent, binding)
        self._runtimes[user_id] = runtime
        return runtime

    async def _start_for_binding(
        self, user_id: str, agent: AgentType, binding: SessionBinding
    ) -> RunningAgent:
        """Start in resume mode, retrying once fresh if the resume attempt fails."""
        adapter = self._require_adapter(agent)
        session_ref = binding.session_ref(agent)
        try:
            runtime = await adapter.start(
                StartOptions(user_id=user_id, session_ref=session_ref, fresh=False)
            )
        except StartupFailure as e:
            logger.warning(
                "Resume start of %s for %s failed, retrying fresh: %s", agent.value, user_id, e
            )
            runtime = await adapter.start(StartOptions(user_id=user_id, fresh=True))

        pid = runtime.pid if runtime.pid is not None else -1
        await self._repo.set_runtime_pid(user_id, agent, pid)
        return runtime

    async def _retire(self, runtime: RunningAgent) -> None:
        """Stop a runtime, persist its ref for its own provider and drop it."""
        adapter = self._require_adapter(runtime.agent)
        session_ref = await adapter.stop(runtime)
        await self._repo.clear_runtime_pid(runtime.user_id, runtime.agent)
        if session_ref:
            await self._repo.update_session_ref(runtime.user_id, runtime.agent, session_ref)
        if self._runtimes.get(runtime.user_id) is runtime:
            del self._runtimes[runtime.user_id]

    async def _discard_failed(self, runtime: RunningAgent, error: Exception) -> None:
        """Record a send failure and tear the runtime down without keeping its ref."""
        logger.error(
            "Agent %s failed for %s: %s", runtime.agent.value, runtime.user_id, error
        )
        await self._repo.clear_runtime_pid(runtime.user_id, runtime.agent, str(error))
        if self._runtimes.get(runtime.user_id) is runtime:
            del self._runtimes[runtime.user_id]
        await self._require_adapter(runtime.agent).stop(runtime)

    def _require_adapter(self, agent: AgentType) -> AgentAdapter:
        adapter = self._adapters.get(agent)
        if adapter is None:
            raise DisabledProvider(agent)
        return adapter

    def _ensure_enabled(self, agent: AgentType) -> AgentType:
        if agent in self._adapters:
            return agent
        return self._options.default_agent
