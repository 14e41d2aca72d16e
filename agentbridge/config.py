"""Configuration loading: TOML file + environment variable overlay."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, field
from pathlib import Path

from agentbridge.models.agent import AgentCommandConfig, AgentType

DEFAULT_CONFIG_DIR = Path.home() / ".config" / "agentbridge"
DEFAULT_CONFIG_PATH = DEFAULT_CONFIG_DIR / "config.toml"


DEFAULT_CONFIG_TOML = """\
[general]
default_agent = "codex"

[mongodb]
uri = "mongodb://localhost:27017"
database = "agentbridge"

[agents]
enabled = ["claude", "codex"]

[agents.claude]
command = "claude"
args = []

[agents.codex]
command = "codex"
args = []

[routing]
failover_enabled = true
response_chunk_size = 3000

[timeouts]
agent_response_sec = 240
agent_idle_ms = 1500

[process]
startup_settle_ms = 1200
stop_grace_ms = 1500
stop_kill_ms = 2000
exit_command = "/exit"
"""


@dataclass
class MongoConfig:
    uri: str = "mongodb://localhost:27017"
    database: str = "agentbridge"


@dataclass
class AgentsConfig:
    enabled: list[AgentType] = field(
        default_factory=lambda: [AgentType.CLAUDE, AgentType.CODEX]
    )
    claude: AgentCommandConfig = field(
        default_factory=lambda: AgentCommandConfig(command="claude")
    )
    codex: AgentCommandConfig = field(
        default_factory=lambda: AgentCommandConfig(command="codex")
    )

    def command_for(self, agent: AgentType) -> AgentCommandConfig:
        return self.claude if agent is AgentType.CLAUDE else self.codex

    def is_enabled(self, agent: AgentType) -> bool:
        return agent in self.enabled


@dataclass
class RoutingConfig:
    failover_enabled: bool = True
    response_chunk_size: int = 3000


@dataclass
class TimeoutsConfig:
    agent_response_sec: int = 240
    agent_idle_ms: int = 1500


@dataclass
class ProcessConfig:
    startup_settle_ms: int = 1200
    stop_grace_ms: int = 1500
    stop_kill_ms: int = 2000
    exit_command: str = "/exit"


@dataclass(frozen=True)
class ManagerOptions:
    """Timing and failover knobs consumed by the AgentManager."""

    default_agent: AgentType = AgentType.CODEX
    failover_enabled: bool = True
    agent_response_sec: int = 240
    agent_idle_ms: int = 1500


@dataclass
class AgentBridgeConfig:
    default_agent: AgentType = AgentType.CODEX
    mongodb: MongoConfig = field(default_factory=MongoConfig)
    agents: AgentsConfig = field(default_factory=AgentsConfig)
    routing: RoutingConfig = field(default_factory=RoutingConfig)
    timeouts: TimeoutsConfig = field(default_factory=TimeoutsConfig)
    process: ProcessConfig = field(default_factory=ProcessConfig)
    config_path: Path = DEFAULT_CONFIG_PATH

    def manager_options(self) -> ManagerOptions:
        return ManagerOptions(
            default_agent=self.default_agent,
            failover_enabled=self.routing.failover_enabled,
            agent_response_sec=self.timeouts.agent_response_sec,
            agent_idle_ms=self.timeouts.agent_idle_ms,
        )


def _env_overlay(config: AgentBridgeConfig) -> None:
    """Override config values with environment variables where applicable."""
    if uri := os.environ.get("MONGODB_URI"):
        config.mongodb.uri = uri
    if db := os.environ.get("AGENTBRIDGE_DB"):
        config.mongodb.database = db


def _parse_command(data: dict, default_command: str) -> AgentCommandConfig:
    return AgentCommandConfig(
        command=data.get("command", default_command),
        args=tuple(data.get("args", [])),
    )


def normalize_config(config: AgentBridgeConfig) -> AgentBridgeConfig:
    """Keep at least one provider enabled and the default agent among them."""
    if not config.agents.enabled:
        config.agents.enabled = [AgentType.CODEX]
    if not config.agents.is_enabled(config.default_agent):
        config.default_agent = config.agents.enabled[0]
    return config


def load_config(config_path: Path | None = None) -> AgentBridgeConfig:
    """Load configuration from TOML file with env var overlay."""
    path = config_path or DEFAULT_CONFIG_PATH

    if path.exists():
        with open(path, "rb") as f:
            raw = tomllib.load(f)
    else:
        raw = tomllib.loads(DEFAULT_CONFIG_TOML)

    general = raw.get("general", {})
    mongo_raw = raw.get("mongodb", {})
    agents_raw = raw.get("agents", {})
    routing_raw = raw.get("routing", {})
    timeouts_raw = raw.get("timeouts", {})
    process_raw = raw.get("process", {})

    config = AgentBridgeConfig(
        default_agent=AgentType(general.get("default_agent", "codex")),
        mongodb=MongoConfig(
            uri=mongo_raw.get("uri", "mongodb://localhost:27017"),
            database=mongo_raw.get("database", "agentbridge"),
        ),
        agents=AgentsConfig(
            enabled=[AgentType(name) for name in agents_raw.get("enabled", ["claude", "codex"])],
            claude=_parse_command(agents_raw.get("claude", {}), "claude"),
            codex=_parse_command(agents_raw.get("codex", {}), "codex"),
        ),
        routing=RoutingConfig(
            failover_enabled=routing_raw.get("failover_enabled", True),
            response_chunk_size=routing_raw.get("response_chunk_size", 3000),
        ),
        timeouts=TimeoutsConfig(
            agent_response_sec=timeouts_raw.get("agent_response_sec", 240),
            agent_idle_ms=timeouts_raw.get("agent_idle_ms", 1500),
        ),
        process=ProcessConfig(
            startup_settle_ms=process_raw.get("startup_settle_ms", 1200),
            stop_grace_ms=process_raw.get("stop_grace_ms", 1500),
            stop_kill_ms=process_raw.get("stop_kill_ms", 2000),
            exit_command=process_raw.get("exit_command", "/exit"),
        ),
        config_path=path,
    )

    _env_overlay(config)
    return normalize_config(config)


def init_config(config_path: Path | None = None) -> Path:
    """Create default config file."""
    path = config_path or DEFAULT_CONFIG_PATH
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(DEFAULT_CONFIG_TOML)
    return path
