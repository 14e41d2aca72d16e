"""CLI handlers for config commands."""

from __future__ import annotations

import json
import tomllib

import click
import tomli_w

from agentbridge.config import DEFAULT_CONFIG_PATH, init_config, load_config


@click.group("config")
def config_group():
    """Manage configuration."""
    pass


@config_group.command("init")
def config_init():
    """Create default configuration file."""
    path = init_config()
    click.echo(f"Configuration created at: {path}")


@config_group.command("show")
def config_show():
    """Show current configuration."""
    config = load_config()
    click.echo(f"Config file: {config.config_path}")
    click.echo(f"  Default agent: {config.default_agent.value}")
    click.echo(f"  MongoDB: {config.mongodb.uri}/{config.mongodb.database}")
    click.echo(f"  Failover: {'enabled' if config.routing.failover_enabled else 'disabled'}")
    click.echo(
        f"  Timeouts: response={config.timeouts.agent_response_sec}s, "
        f"idle={config.timeouts.agent_idle_ms}ms"
    )

    click.echo("\n  Agents:")
    for agent in config.agents.enabled:
        cmd = config.agents.command_for(agent)
        click.echo(f"    {agent.value}: {' '.join([cmd.command, *cmd.args])}")


@config_group.command("set")
@click.argument("key")
@click.argument("value")
def config_set(key: str, value: str):
    """Set a configuration value.

    Modifies the TOML config file. Key uses dot notation, e.g.:
    general.default_agent, routing.failover_enabled, timeouts.agent_idle_ms
    """
    path = DEFAULT_CONFIG_PATH
    if not path.exists():
        click.echo("No config file found. Run 'agentbridge config init' first.", err=True)
        return

    with open(path, "rb") as f:
        data = tomllib.load(f)

    # Navigate dot-separated key
    parts = key.split(".")
    target = data
    for part in parts[:-1]:
        if part not in target:
            target[part] = {}
        target = target[part]

    final_key = parts[-1]
    if value.lower() in ("true", "false"):
        target[final_key] = value.lower() == "true"
    elif value.isdigit():
        target[final_key] = int(value)
    elif value.startswith("[") or value.startswith("{"):
        try:
            target[final_key] = json.loads(value)
        except json.JSONDecodeError:
            target[final_key] = value
    else:
        target[final_key] = value

    with open(path, "wb") as f:
        tomli_w.dump(data, f)

    click.echo(f"Set {key} = {value}")
