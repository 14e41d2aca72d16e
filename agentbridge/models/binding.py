"""Session binding domain models."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone

from agentbridge.models.agent import AgentType


@dataclass(frozen=True)
class SessionBinding:
    """Persisted record of a user's active provider and per-provider session refs."""

    user_id: str
    active_agent: AgentType
    session_refs: dict[AgentType, str | None] = field(default_factory=dict)
    updated_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        if not self.user_id:
            raise ValueError("SessionBinding must have a user_id")

    def session_ref(self, agent: AgentType) -> str | None:
        """Return the last known session ref for a provider."""
        return self.session_refs.get(agent)

    def with_active_agent(self, agent: AgentType) -> SessionBinding:
        """Return a copy with a different active provider."""
        return SessionBinding(
            user_id=self.user_id,
            active_agent=agent,
            session_refs=dict(self.session_refs),
            updated_at=datetime.now(timezone.utc),
        )

    def with_session_ref(self, agent: AgentType, ref: str | None) -> SessionBinding:
        """Return a copy with an updated session ref for one provider."""
        refs = dict(self.session_refs)
        refs[agent] = ref
        return SessionBinding(
            user_id=self.user_id,
            active_agent=self.active_agent,
            session_refs=refs,
            updated_at=datetime.now(timezone.utc),
        )

    def to_doc(self) -> dict:
        return {
            "user_id": self.user_id,
            "active_agent": self.active_agent.value,
            "session_refs": {
                agent.value: self.session_refs.get(agent) for agent in AgentType
            },
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_doc(cls, doc: dict) -> SessionBinding:
        refs_raw = doc.get("session_refs") or {}
        return cls(
            user_id=doc["user_id"],
            active_agent=AgentType(doc["active_agent"]),
            session_refs={agent: refs_raw.get(agent.value) for agent in AgentType},
            updated_at=doc.get("updated_at", datetime.now(timezone.utc)),
        )


@dataclass(frozen=True)
class AgentRuntimeRecord:
    """Persisted bookkeeping for the OS process backing a user's agent."""

    user_id: str
    agent: AgentType
    pid: int | None = None
    started_at: datetime | None = None
    stopped_at: datetime | None = None
    last_error: str | None = None

    @property
    def is_running(self) -> bool:
        return self.pid is not None and self.stopped_at is None

    def to_doc(self) -> dict:
        return {
            "user_id": self.user_id,
            "agent": self.agent.value,
            "pid": self.pid,
            "started_at": self.started_at,
            "stopped_at": self.stopped_at,
            "last_error": self.last_error,
        }

    @classmethod
    def from_doc(cls, doc: dict) -> AgentRuntimeRecord:
        return cls(
            user_id=doc["user_id"],
            agent=AgentType(doc["agent"]),
            pid=doc.get("pid"),
            started_at=doc.get("started_at"),
            stopped_at=doc.get("stopped_at"),
            last_error=doc.get("last_error"),
        )
