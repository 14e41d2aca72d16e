"""Binding repository - durable session bindings and runtime pid bookkeeping."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from pymongo import ReturnDocument

from agentbridge.models.agent import AgentType
from agentbridge.models.binding import AgentRuntimeRecord, SessionBinding

logger = logging.getLogger(__name__)


class BindingRepo:
    """Persistence collaborator consumed by the AgentManager.

    Binding rows are created lazily on first contact and never deleted here.
    """

    COLLECTION = "agent_bindings"
    RUNTIME_COLLECTION = "agent_runtime"

    def __init__(self, db) -> None:
        self._col = db[self.COLLECTION]
        self._runtime_col = db[self.RUNTIME_COLLECTION]

    async def get_binding(self, user_id: str, default_agent: AgentType) -> SessionBinding:
        """Return the user's binding, creating a default row if absent."""
        default_doc = SessionBinding(user_id=user_id, active_agent=default_agent).to_doc()
        default_doc.pop("user_id")
        doc = await self._col.find_one_and_update(
            {"user_id": user_id},
            {"$setOnInsert": default_doc},
            upsert=True,
            return_document=ReturnDocument.AFTER,
        )
        return SessionBinding.from_doc(doc)

    async def set_active_agent(self, user_id: str, agent: AgentType) -> None:
        await self._col.update_one(
            {"user_id": user_id},
            {"$set": {"active_agent": agent.value, "updated_at": datetime.now(timezone.utc)}},
        )

    async def update_session_ref(self, user_id: str, agent: AgentType, ref: str) -> None:
        await self._col.update_one(
            {"user_id": user_id},
            {
                "$set": {
                    f"session_refs.{agent.value}": ref,
                    "updated_at": datetime.now(timezone.utc),
                }
            },
        )

    async def set_runtime_pid(self, user_id: str, agent: AgentType, pid: int) -> None:
        await self._runtime_col.update_one(
            {"user_id": user_id, "agent": agent.value},
            {
                "$set": {
                    "pid": pid,
                    "started_at": datetime.now(timezone.utc),
                    "stopped_at": None,
                    "last_error": None,
                }
            },
            upsert=True,
        )

    async def clear_runtime_pid(
        self, user_id: str, agent: AgentType, error: str | None = None
    ) -> None:
        if error:
            logger.debug("Recording %s failure for %s: %s", agent.value, user_id, error)
        await self._runtime_col.update_one(
            {"user_id": user_id, "agent": agent.value},
            {
                "$set": {
                    "pid": None,
                    "stopped_at": datetime.now(timezone.utc),
                    "last_error": error,
                }
            },
            upsert=True,
        )

    async def find_runtime(self, user_id: str, agent: AgentType) -> AgentRuntimeRecord | None:
        """Find the runtime bookkeeping row for a user/provider pair."""
        doc = await self._runtime_col.find_one({"user_id": user_id, "agent": agent.value})
        return AgentRuntimeRecord.from_doc(doc) if doc else None
