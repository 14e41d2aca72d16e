"""AppContext: wires DB, config, adapters and the agent manager together."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from agentbridge.config import AgentBridgeConfig, load_config
from agentbridge.infra.db.client import MongoClient

if TYPE_CHECKING:
    from pathlib import Path

    from agentbridge.infra.db.bindings import BindingRepo
    from agentbridge.services.agent_manager import AgentManager
    from agentbridge.services.bridge_service import BridgeService

logger = logging.getLogger(__name__)


class AppContext:
    """Central wiring for all application dependencies.

    Holds the single AgentManager for the process. Call ``initialize()``
    before use and ``close()`` at teardown so no agent child is orphaned.
    """

    def __init__(
        self, config: AgentBridgeConfig | None = None, config_path: Path | None = None
    ) -> None:
        self.config = config or load_config(config_path)
        self._mongo: MongoClient | None = None
        self._binding_repo: BindingRepo | None = None
        self._agent_manager: AgentManager | None = None
        self._bridge_service: BridgeService | None = None

    async def initialize(self) -> None:
        """Initialize the database connection and run migrations."""
        from agentbridge.infra.db.migrations import run_migrations

        self._mongo = MongoClient(
            uri=self.config.mongodb.uri,
            database=self.config.mongodb.database,
        )
        await run_migrations(self._mongo.db)
        logger.info("AppContext initialized")

    async def close(self) -> None:
        """Stop every agent runtime and close connections."""
        if self._agent_manager:
            await self._agent_manager.shutdown_all()
        if self._mongo:
            self._mongo.close()
        logger.info("AppContext closed")

    @property
    def mongo(self) -> MongoClient:
        if self._mongo is None:
            raise RuntimeError("AppContext not initialized. Call initialize() first.")
        return self._mongo

    @property
    def binding_repo(self) -> BindingRepo:
        if self._binding_repo is None:
            from agentbridge.infra.db.bindings import BindingRepo

            self._binding_repo = BindingRepo(self.mongo.db)
        return self._binding_repo

    @property
    def agent_manager(self) -> AgentManager:
        if self._agent_manager is None:
            from agentbridge.infra.agents.registry import build_adapters
            from agentbridge.services.agent_manager import AgentManager

            self._agent_manager = AgentManager(
                self.binding_repo,
                build_adapters(self.config),
                self.config.manager_options(),
            )
        return self._agent_manager

    @property
    def bridge_service(self) -> BridgeService:
        if self._bridge_service is None:
            from agentbridge.services.bridge_service import BridgeService

            self._bridge_service = BridgeService(
                self.agent_manager,
                chunk_size=self.config.routing.response_chunk_size,
            )
        return self._bridge_service
