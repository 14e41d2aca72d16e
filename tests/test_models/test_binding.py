"""Tests for SessionBinding and AgentRuntimeRecord models."""

from datetime import datetime, timezone

import pytest

from agentbridge.models.agent import AgentType
from agentbridge.models.binding import AgentRuntimeRecord, SessionBinding


class TestSessionBinding:
    def test_create_defaults(self):
        binding = SessionBinding(user_id="u1", active_agent=AgentType.CODEX)
        assert binding.session_ref(AgentType.CLAUDE) is None
        assert binding.session_ref(AgentType.CODEX) is None

    def test_empty_user_id_raises(self):
        with pytest.raises(ValueError, match="must have a user_id"):
            SessionBinding(user_id="", active_agent=AgentType.CODEX)

    def test_with_session_ref(self):
        binding = SessionBinding(user_id="u1", active_agent=AgentType.CODEX)
        updated = binding.with_session_ref(AgentType.CLAUDE, "ref-1")
        assert updated.session_ref(AgentType.CLAUDE) == "ref-1"
        assert binding.session_ref(AgentType.CLAUDE) is None  # unchanged

    def test_with_active_agent_keeps_refs(self):
        binding = SessionBinding(
            user_id="u1", active_agent=AgentType.CODEX, session_refs={AgentType.CODEX: "c1"}
        )
        switched = binding.with_active_agent(AgentType.CLAUDE)
        assert switched.active_agent == AgentType.CLAUDE
        assert switched.session_ref(AgentType.CODEX) == "c1"

    def test_doc_round_trip(self):
        ts = datetime(2026, 1, 2, tzinfo=timezone.utc)
        binding = SessionBinding(
            user_id="u1",
            active_agent=AgentType.CLAUDE,
            session_refs={AgentType.CLAUDE: "abc"},
            updated_at=ts,
        )
        doc = binding.to_doc()
        assert doc["active_agent"] == "claude"
        assert doc["session_refs"] == {"claude": "abc", "codex": None}
        restored = SessionBinding.from_doc(doc)
        assert restored.active_agent == AgentType.CLAUDE
        assert restored.session_ref(AgentType.CLAUDE) == "abc"
        assert restored.updated_at == ts

    def test_from_doc_missing_refs(self):
        binding = SessionBinding.from_doc({"user_id": "u1", "active_agent": "codex"})
        assert binding.session_ref(AgentType.CODEX) is None


class TestAgentRuntimeRecord:
    def test_running(self):
        record = AgentRuntimeRecord(user_id="u1", agent=AgentType.CODEX, pid=10)
        assert record.is_running

    def test_stopped(self):
        record = AgentRuntimeRecord(
            user_id="u1",
            agent=AgentType.CODEX,
            stopped_at=datetime.now(timezone.utc),
            last_error="codex timed out",
        )
        assert not record.is_running
        assert AgentRuntimeRecord.from_doc(record.to_doc()) == record
