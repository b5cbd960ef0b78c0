"""Client wiring for one MoneySync app session."""

from __future__ import annotations

from dataclasses import replace
from pathlib import Path
import logging
import os

from moneysync.config import SyncConfig, load_config
from moneysync.identity import IdentityBridge
from moneysync.models import ExternalIdentity
from moneysync.persistence import LocalStore
from moneysync.repository import Repository
from moneysync.sync import SyncOrchestrator, SyncResult
from moneysync.transport import RemoteTransport

# Configure logging
logger = logging.getLogger("moneysync")
log_level = os.environ.get('LOGGING_LEVEL', 'INFO').upper()
logger.setLevel(getattr(logging, log_level, logging.INFO))
if not logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter('%(levelname)s - %(name)s - %(message)s'))
    logger.addHandler(handler)


class MoneySyncClient:
    """Build the store, transport, identity bridge and orchestrator.

    Use as an async context manager: entering opens the local store and
    loads it, leaving waits for background propagation and closes
    everything.
    """

    def __init__(
        self,
        db_path: str | Path | None = None,
        config: SyncConfig | None = None,
        config_path: str | Path | None = None,
        store: LocalStore | None = None,
        transport: RemoteTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            db_path: Path to the local SQLite file, overriding config
            config: Explicit configuration; loaded from file and env when None
            config_path: Config file to read when ``config`` is None
            store: Optional custom local store backend
            transport: Optional preconfigured remote transport
        """
        if config is None:
            config = load_config(config_path, db_path=db_path)
        elif db_path is not None:
            config = replace(config, db_path=Path(db_path))
        self.config = config
        self.store = store or Repository(self.config.db_path)
        self.transport = transport or RemoteTransport.from_config(self.config)
        self.orchestrator = SyncOrchestrator(
            self.store,
            self.transport,
            bridge=IdentityBridge(self.transport),
            cooldown_seconds=self.config.sync_cooldown_seconds,
        )

    async def __aenter__(self) -> SyncOrchestrator:
        """Open the local store and load it into memory."""
        await self.open()
        return self.orchestrator

    async def __aexit__(self, exc_type, exc, tb) -> None:
        """Drain background work and close connections."""
        await self.close()

    async def open(self) -> SyncOrchestrator:
        self.store.connect()
        await self.orchestrator.load()
        logger.debug("Session opened with %r", self.config)
        return self.orchestrator

    async def start_session(self, identity: ExternalIdentity | None) -> SyncResult | None:
        """Sign in when an identity is available, otherwise enter guest mode."""
        if identity is None:
            self.orchestrator.enter_guest_mode()
            return None
        return await self.orchestrator.sign_in(identity)

    async def close(self) -> None:
        try:
            await self.orchestrator.wait_for_background()
        finally:
            self.transport.close()
            self.store.close()
