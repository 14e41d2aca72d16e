"""Process protocol engine shared by every CLI agent adapter.

Agent CLIs speak unframed free text over stdin/stdout, so a response is
considered complete once output has gone quiet for ``idle_ms``. A hard
ceiling bounds every send, and process exit mid-send is always a failure.
"""

from __future__ import annotations

import asyncio
import codecs
import logging
import signal
from enum import Enum

from agentbridge.infra.agents.base import RunningAgent
from agentbridge.infra.agents.errors import (
    AgentError,
    SendIdleNoOutput,
    SendTimeout,
    StartupFailure,
    UnexpectedExit,
)
from agentbridge.infra.agents.session_ref import extract_session_ref
from agentbridge.infra.subprocess_mgr import SubprocessManager
from agentbridge.models.agent import AgentOutput, AgentType, CommandSpec, StartOptions

logger = logging.getLogger(__name__)

_READ_CHUNK = 4096
_PUMP_DRAIN_TIMEOUT = 0.2


class SendState(str, Enum):
    WAITING = "waiting"
    COMPLETED = "completed"
    FAILED = "failed"


class PendingSend:
    """State machine for a single send.

    Four event sources race: data arrival, idle timer, hard timer and
    process exit. The first one to reach a terminal state cancels the
    rest and resolves ``future`` exactly once.
    """

    def __init__(
        self,
        runtime: RunningAgent,
        idle_ms: int,
        timeout_ms: int,
    ) -> None:
        self._runtime = runtime
        self._loop = asyncio.get_running_loop()
        self._idle_s = idle_ms / 1000
        self._timeout_s = timeout_ms / 1000
        self._start = len(runtime.output_buffer)
        self._had_output = False
        self._idle_handle: asyncio.TimerHandle | None = None
        self._hard_handle: asyncio.TimerHandle | None = None
        self.state = SendState.WAITING
        self.future: asyncio.Future[AgentOutput] = self._loop.create_future()

    def arm(self) -> None:
        self._runtime.add_listener(self)
        self._hard_handle = self._loop.call_later(self._timeout_s, self._on_hard_timeout)
        self._arm_idle()

    def _arm_idle(self) -> None:
        if self._idle_handle:
            self._idle_handle.cancel()
        self._idle_handle = self._loop.call_later(self._idle_s, self._on_idle)

    def on_data(self, chunk: str) -> None:
        if self.state is not SendState.WAITING:
            return
        self._had_output = True
        self._arm_idle()

    def on_exit(self, returncode: int | None) -> None:
        code = "unknown" if returncode is None else returncode
        self.fail(
            UnexpectedExit(
                self._runtime.agent,
                f"{self._runtime.agent.value} process exited unexpectedly ({code})",
                self._runtime.output_buffer,
            )
        )

    def _on_idle(self) -> None:
        if not self._had_output:
            self.fail(
                SendIdleNoOutput(
                    self._runtime.agent,
                    f"No output from {self._runtime.agent.value}",
                    self._runtime.output_buffer,
                )
            )
            return
        self._complete()

    def _on_hard_timeout(self) -> None:
        self.fail(
            SendTimeout(
                self._runtime.agent,
                f"{self._runtime.agent.value} timed out after {self._timeout_s:g}s",
                self._runtime.output_buffer,
            )
        )

    def _complete(self) -> None:
        if not self._settle(SendState.COMPLETED):
            return
        runtime = self._runtime
        text = runtime.output_buffer[self._start:].strip()
        ref = extract_session_ref(runtime.output_buffer) or runtime.session_ref
        runtime.session_ref = ref
        self.future.set_result(AgentOutput(text=text, session_ref=ref))

    def fail(self, error: AgentError) -> None:
        if self._settle(SendState.FAILED):
            self.future.set_exception(error)

    def _settle(self, state: SendState) -> bool:
        if self.state is not SendState.WAITING:
            return False
        self.state = state
        if self._idle_handle:
            self._idle_handle.cancel()
        if self._hard_handle:
            self._hard_handle.cancel()
        self._runtime.remove_listener(self)
        return True


class BaseCliAgentAdapter:
    """Shared start/send/stop behaviour over a piped CLI process.

    Subclasses set ``agent_type`` and implement ``build_start_args``, the
    only provider-specific piece: how to ask the CLI to resume a session
    or to start fresh.
    """

    agent_type: AgentType

    def __init__(
        self,
        command: str,
        base_args: tuple[str, ...] | list[str] = (),
        *,
        startup_settle_ms: int = 1200,
        stop_grace_ms: int = 1500,
        stop_kill_ms: int = 2000,
        exit_command: str = "/exit",
        subprocess_mgr: SubprocessManager | None = None,
    ) -> None:
        self.command = command
        self.base_args = tuple(base_args)
        self.startup_settle_ms = startup_settle_ms
        self.stop_grace_ms = stop_grace_ms
        self.stop_kill_ms = stop_kill_ms
        self.exit_command = exit_command
        self._subprocess_mgr = subprocess_mgr or SubprocessManager()

    def build_start_args(self, session_ref: str | None, fresh: bool) -> list[str]:
        raise NotImplementedError

    def start_command(self, options: StartOptions) -> CommandSpec:
        """Generate the command that starts or resumes this provider."""
        args = self.build_start_args(options.session_ref, options.fresh)
        return CommandSpec(program=self.command, args=(*self.base_args, *args))

    async def start(self, options: StartOptions) -> RunningAgent:
        command = self.start_command(options)
        try:
            proc = await self._subprocess_mgr.spawn(command)
        except OSError as e:
            raise StartupFailure(
                self.agent_type, f"Failed to spawn {command.program}: {e}"
            ) from e

        runtime = RunningAgent(
            agent=self.agent_type,
            user_id=options.user_id,
            process=proc,
            session_ref=options.session_ref,
        )
        self._attach_pumps(runtime)

        # No readiness signal exists; surviving the settle window counts as ready.
        if await runtime.wait_exited(self.startup_settle_ms / 1000):
            await self._drain_pumps(runtime)
            raise StartupFailure(
                self.agent_type,
                f"{command.program} exited during startup "
                f"({proc.returncode}): {runtime.output_buffer.strip()}",
                runtime.output_buffer,
            )

        logger.info(
            "Started %s for user %s (pid=%s, resume=%s)",
            self.agent_type.value,
            options.user_id,
            proc.pid,
            bool(options.session_ref) and not options.fresh,
        )
        return runtime

    async def send(
        self, runtime: RunningAgent, text: str, idle_ms: int, timeout_ms: int
    ) -> AgentOutput:
        if not runtime.is_alive:
            raise UnexpectedExit(
                runtime.agent,
                f"{runtime.agent.value} process is not running",
                runtime.output_buffer,
            )

        pending = PendingSend(runtime, idle_ms, timeout_ms)
        pending.arm()
        try:
            runtime.process.stdin.write(f"{text.rstrip()}\n".encode())
            await runtime.process.stdin.drain()
        except (BrokenPipeError, ConnectionResetError) as e:
            pending.fail(
                UnexpectedExit(
                    runtime.agent,
                    f"{runtime.agent.value} stdin closed: {e}",
                    runtime.output_buffer,
                )
            )
        return await pending.future

    async def stop(self, runtime: RunningAgent) -> str | None:
        proc = runtime.process
        if runtime.is_alive:
            self._write_exit_command(runtime)
            if not await runtime.wait_exited(self.stop_grace_ms / 1000):
                logger.warning(
                    "%s (pid=%s) ignored %s, sending SIGTERM",
                    runtime.agent.value,
                    proc.pid,
                    self.exit_command,
                )
                self._subprocess_mgr.send_signal(proc, signal.SIGTERM)
                if not await runtime.wait_exited(self.stop_kill_ms / 1000):
                    logger.warning(
                        "%s (pid=%s) ignored SIGTERM, sending SIGKILL",
                        runtime.agent.value,
                        proc.pid,
                    )
                    self._subprocess_mgr.send_signal(proc, signal.SIGKILL)
            if not runtime.is_alive:
                await self._drain_pumps(runtime)

        return extract_session_ref(runtime.output_buffer) or runtime.session_ref

    def _write_exit_command(self, runtime: RunningAgent) -> None:
        stdin = runtime.process.stdin
        if stdin is None or stdin.is_closing():
            return
        try:
            stdin.write(f"{self.exit_command}\n".encode())
        except (BrokenPipeError, ConnectionResetError):
            logger.debug("stdin already closed for %s", runtime.agent.value)

    def _attach_pumps(self, runtime: RunningAgent) -> None:
        proc = runtime.process
        runtime.pumps.extend(
            [
                asyncio.create_task(self._pump(runtime, proc.stdout)),
                asyncio.create_task(self._pump(runtime, proc.stderr)),
                asyncio.create_task(self._watch_exit(runtime)),
            ]
        )

    @staticmethod
    async def _pump(runtime: RunningAgent, stream: asyncio.StreamReader) -> None:
        decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
        while True:
            data = await stream.read(_READ_CHUNK)
            if not data:
                tail = decoder.decode(b"", final=True)
                if tail:
                    runtime.feed(tail)
                return
            chunk = decoder.decode(data)
            if chunk:
                runtime.feed(chunk)

    @staticmethod
    async def _watch_exit(runtime: RunningAgent) -> None:
        returncode = await runtime.process.wait()
        logger.debug("%s (pid=%s) exited with %s", runtime.agent.value, runtime.pid, returncode)
        runtime.mark_exited()

    @staticmethod
    async def _drain_pumps(runtime: RunningAgent) -> None:
        """Give the output pumps a moment to flush what the process wrote last."""
        readers = runtime.pumps[:2]
        if readers:
            await asyncio.wait(readers, timeout=_PUMP_DRAIN_TIMEOUT)
