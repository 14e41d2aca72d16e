"""Tests for agent adapters' start arguments and the registry."""

import pytest

from agentbridge.config import AgentBridgeConfig, AgentsConfig, ProcessConfig
from agentbridge.infra.agents.base import AgentAdapter
from agentbridge.infra.agents.claude import ClaudeAdapter
from agentbridge.infra.agents.codex import CodexAdapter
from agentbridge.infra.agents.registry import build_adapters, get_adapter
from agentbridge.models.agent import AgentCommandConfig, AgentType, StartOptions


class TestClaudeAdapter:
    def test_resume_with_ref(self):
        adapter = ClaudeAdapter("claude")
        cmd = adapter.start_command(StartOptions(user_id="u1", session_ref="abc123"))
        assert cmd.program == "claude"
        assert cmd.args == ("--resume", "abc123")

    def test_continue_without_ref(self):
        adapter = ClaudeAdapter("claude")
        cmd = adapter.start_command(StartOptions(user_id="u1"))
        assert cmd.args == ("--continue",)

    def test_fresh_ignores_ref(self):
        adapter = ClaudeAdapter("claude")
        cmd = adapter.start_command(StartOptions(user_id="u1", session_ref="abc", fresh=True))
        assert cmd.args == ()

    def test_base_args_come_first(self):
        adapter = ClaudeAdapter("claude", ["--permission-mode", "bypassPermissions"])
        cmd = adapter.start_command(StartOptions(user_id="u1", session_ref="s1"))
        assert cmd.args == ("--permission-mode", "bypassPermissions", "--resume", "s1")

    def test_satisfies_protocol(self):
        assert isinstance(ClaudeAdapter("claude"), AgentAdapter)


class TestCodexAdapter:
    def test_resume_with_ref(self):
        adapter = CodexAdapter("codex")
        cmd = adapter.start_command(StartOptions(user_id="u1", session_ref="sess456"))
        assert cmd.args == ("resume", "sess456")

    def test_resume_last_without_ref(self):
        adapter = CodexAdapter("codex")
        cmd = adapter.start_command(StartOptions(user_id="u1"))
        assert cmd.args == ("resume", "--last")

    def test_fresh(self):
        adapter = CodexAdapter("/opt/bin/codex", ["--full-auto"])
        cmd = adapter.start_command(StartOptions(user_id="u1", fresh=True))
        assert cmd.program == "/opt/bin/codex"
        assert cmd.args == ("--full-auto",)


class TestRegistry:
    def test_get_claude(self):
        adapter = get_adapter(AgentType.CLAUDE, AgentCommandConfig(command="claude"))
        assert isinstance(adapter, ClaudeAdapter)

    def test_get_by_string(self):
        adapter = get_adapter("codex", AgentCommandConfig(command="codex"))
        assert isinstance(adapter, CodexAdapter)

    def test_process_config_applied(self):
        adapter = get_adapter(
            AgentType.CODEX,
            AgentCommandConfig(command="codex"),
            ProcessConfig(startup_settle_ms=50, stop_grace_ms=60, stop_kill_ms=70, exit_command="/quit"),
        )
        assert adapter.startup_settle_ms == 50
        assert adapter.stop_grace_ms == 60
        assert adapter.stop_kill_ms == 70
        assert adapter.exit_command == "/quit"

    def test_unknown_raises(self):
        with pytest.raises(ValueError):
            get_adapter("nonexistent", AgentCommandConfig(command="x"))

    def test_build_adapters_only_enabled(self):
        config = AgentBridgeConfig(
            default_agent=AgentType.CLAUDE,
            agents=AgentsConfig(
                enabled=[AgentType.CLAUDE],
                claude=AgentCommandConfig(command="/usr/local/bin/claude", args=("--verbose",)),
            ),
        )
        adapters = build_adapters(config)
        assert list(adapters) == [AgentType.CLAUDE]
        assert adapters[AgentType.CLAUDE].command == "/usr/local/bin/claude"
        assert adapters[AgentType.CLAUDE].base_args == ("--verbose",)
