"""Click CLI definitions - main entry point."""

from __future__ import annotations

import logging
import sys

import click

from agentbridge.commands.agent_cmd import agent_group
from agentbridge.commands.config_cmd import config_group


@click.group()
@click.option("--debug", is_flag=True, help="Enable debug logging")
@click.pass_context
def cli(ctx, debug: bool) -> None:
    """agentbridge - per-user agent CLI sessions with resume and failover."""
    level = logging.DEBUG if debug else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        stream=sys.stderr,
    )
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug


cli.add_command(agent_group, "agent")
cli.add_command(config_group, "config")


if __name__ == "__main__":
    cli()
