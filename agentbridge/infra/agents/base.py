"""Agent adapter protocol and the runtime it hands out."""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

from agentbridge.models.agent import AgentOutput, AgentType, StartOptions


class OutputListener(Protocol):
    """Receives stream activity from a RunningAgent."""

    def on_data(self, chunk: str) -> None: ...

    def on_exit(self, returncode: int | None) -> None: ...


@dataclass
class RunningAgent:
    """A live agent process plus its accumulated output.

    Owned by the AgentManager for its whole lifetime. The buffer keeps
    growing while the process runs, whether or not a send is waiting on it.
    """

    agent: AgentType
    user_id: str
    process: Any
    session_ref: str | None = None
    output_buffer: str = ""
    _listeners: list[OutputListener] = field(default_factory=list, repr=False)
    _exited: asyncio.Event = field(default_factory=asyncio.Event, repr=False)
    pumps: list[asyncio.Task] = field(default_factory=list, repr=False)

    @property
    def pid(self) -> int | None:
        return getattr(self.process, "pid", None)

    @property
    def is_alive(self) -> bool:
        return self.process.returncode is None and not self._exited.is_set()

    def add_listener(self, listener: OutputListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: OutputListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def feed(self, chunk: str) -> None:
        """Append a chunk of output and notify listeners."""
        self.output_buffer += chunk
        for listener in list(self._listeners):
            listener.on_data(chunk)

    def mark_exited(self) -> None:
        """Record process exit and notify listeners."""
        self._exited.set()
        for listener in list(self._listeners):
            listener.on_exit(self.process.returncode)

    async def wait_exited(self, timeout: float) -> bool:
        """Wait up to ``timeout`` seconds for the process to exit."""
        try:
            await asyncio.wait_for(self._exited.wait(), timeout)
            return True
        except asyncio.TimeoutError:
            return False


@runtime_checkable
class AgentAdapter(Protocol):
    """Capability exposed by every provider: start, send, stop.

    One implementation exists per AgentType; the manager selects it from a
    typed ``dict[AgentType, AgentAdapter]``.
    """

    agent_type: AgentType

    async def start(self, options: StartOptions) -> RunningAgent:
        """Spawn the provider process, resuming ``options.session_ref`` unless fresh."""
        ...

    async def send(
        self, runtime: RunningAgent, text: str, idle_ms: int, timeout_ms: int
    ) -> AgentOutput:
        """Write one line of input and wait for the response."""
        ...

    async def stop(self, runtime: RunningAgent) -> str | None:
        """Shut the process down. Returns the best known session ref."""
        ...
