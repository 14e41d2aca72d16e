"""Subprocess manager: piped spawning + PID signalling."""

from __future__ import annotations

import asyncio
import logging
import os
import signal

from agentbridge.models.agent import CommandSpec

logger = logging.getLogger(__name__)


class SubprocessManager:
    """Spawns agent processes with all three standard streams piped."""

    async def spawn(self, command: CommandSpec) -> asyncio.subprocess.Process:
        """Spawn a subprocess with the inherited environment.

        Raises OSError if the executable cannot be launched.
        """
        proc = await asyncio.create_subprocess_exec(
            command.program,
            *command.args,
            env=os.environ.copy(),
            stdin=asyncio.subprocess.PIPE,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        logger.debug("Spawned %s (pid=%s)", command.full_command, proc.pid)
        return proc

    @staticmethod
    def is_pid_alive(pid: int) -> bool:
        """Check if a process is alive."""
        try:
            os.kill(pid, 0)
            return True
        except (ProcessLookupError, PermissionError):
            return False

    @staticmethod
    def send_signal(proc: asyncio.subprocess.Process, sig: signal.Signals) -> bool:
        """Send a signal to a process. Returns False if it is already gone."""
        if proc.returncode is not None:
            return False
        try:
            proc.send_signal(sig)
            return True
        except ProcessLookupError:
            return False
