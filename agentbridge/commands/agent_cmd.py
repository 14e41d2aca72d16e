"""CLI handlers for agent commands."""

from __future__ import annotations

import asyncio

import click

from agentbridge.infra.subprocess_mgr import SubprocessManager
from agentbridge.models.agent import AgentType


def _run(coro):
    return asyncio.run(coro)


async def _open_context():
    from agentbridge.context import AppContext

    ctx = AppContext()
    await ctx.initialize()
    return ctx


@click.group("agent")
def agent_group():
    """Talk to a user's agent session."""
    pass


@agent_group.command("send")
@click.argument("user_id")
@click.argument("text")
def agent_send(user_id: str, text: str):
    """Send TEXT to USER_ID's active agent and print the reply."""

    async def _send():
        ctx = await _open_context()
        try:
            for chunk in await ctx.bridge_service.handle_text(user_id, text):
                click.echo(chunk)
        finally:
            await ctx.close()

    _run(_send())


@agent_group.command("switch")
@click.argument("user_id")
@click.argument("agent", type=click.Choice([a.value for a in AgentType]))
def agent_switch(user_id: str, agent: str):
    """Make AGENT the active provider for USER_ID."""

    async def _switch():
        ctx = await _open_context()
        try:
            for chunk in await ctx.bridge_service.handle_text(user_id, f"/{agent}"):
                click.echo(chunk)
        finally:
            await ctx.close()

    _run(_switch())


@agent_group.command("status")
@click.argument("user_id")
def agent_status(user_id: str):
    """Show USER_ID's binding and recorded agent processes."""

    async def _status():
        ctx = await _open_context()
        try:
            repo = ctx.binding_repo
            binding = await repo.get_binding(user_id, ctx.config.default_agent)
            click.echo(f"User: {binding.user_id}")
            click.echo(f"  Active agent: {binding.active_agent.value}")
            click.echo(f"  Updated: {binding.updated_at}")
            for agent in AgentType:
                ref = binding.session_ref(agent) or "-"
                record = await repo.find_runtime(user_id, agent)
                if record is None:
                    state = "never started"
                elif record.is_running:
                    alive = SubprocessManager.is_pid_alive(record.pid)
                    state = f"pid {record.pid}" if alive else f"pid {record.pid} (stale)"
                else:
                    state = f"stopped ({record.last_error})" if record.last_error else "stopped"
                click.echo(f"  {agent.value}: session={ref}, {state}")
        finally:
            await ctx.close()

    _run(_status())
