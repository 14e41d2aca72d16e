"""Tests for config loading."""

from pathlib import Path

import pytest

from agentbridge.config import AgentBridgeConfig, init_config, load_config, normalize_config
from agentbridge.models.agent import AgentType


class TestConfig:
    def test_load_defaults(self):
        """Loading with no file should return defaults."""
        config = load_config(Path("/nonexistent/config.toml"))
        assert config.default_agent == AgentType.CODEX
        assert config.agents.enabled == [AgentType.CLAUDE, AgentType.CODEX]
        assert config.agents.claude.command == "claude"
        assert config.routing.failover_enabled is True
        assert config.timeouts.agent_response_sec == 240
        assert config.timeouts.agent_idle_ms == 1500

    def test_init_config(self, tmp_path):
        path = tmp_path / "config.toml"
        result = init_config(path)
        assert result == path
        assert path.exists()
        # Should be loadable
        config = load_config(path)
        assert config.mongodb.database == "agentbridge"

    def test_agent_commands_parsed(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text(
            '[agents]\nenabled = ["claude"]\n'
            '[agents.claude]\ncommand = "/opt/claude"\nargs = ["--verbose"]\n'
            "[general]\ndefault_agent = \"claude\"\n"
        )
        config = load_config(path)
        assert config.agents.enabled == [AgentType.CLAUDE]
        assert config.agents.claude.command == "/opt/claude"
        assert config.agents.claude.args == ("--verbose",)

    def test_default_agent_demoted_when_disabled(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text('[general]\ndefault_agent = "codex"\n[agents]\nenabled = ["claude"]\n')
        config = load_config(path)
        assert config.default_agent == AgentType.CLAUDE

    def test_no_enabled_agents_falls_back_to_codex(self):
        config = AgentBridgeConfig()
        config.agents.enabled = []
        normalize_config(config)
        assert config.agents.enabled == [AgentType.CODEX]
        assert config.default_agent == AgentType.CODEX

    def test_unknown_agent_raises(self, tmp_path):
        path = tmp_path / "config.toml"
        path.write_text('[agents]\nenabled = ["gemini"]\n')
        with pytest.raises(ValueError):
            load_config(path)

    def test_env_overlay(self, monkeypatch):
        monkeypatch.setenv("MONGODB_URI", "mongodb://db.internal:27017")
        monkeypatch.setenv("AGENTBRIDGE_DB", "bridge_test")
        config = load_config(Path("/nonexistent/config.toml"))
        assert config.mongodb.uri == "mongodb://db.internal:27017"
        assert config.mongodb.database == "bridge_test"

    def test_manager_options(self):
        config = AgentBridgeConfig()
        config.routing.failover_enabled = False
        config.timeouts.agent_idle_ms = 250
        options = config.manager_options()
        assert options.failover_enabled is False
        assert options.agent_idle_ms == 250
        assert options.default_agent == AgentType.CODEX
