"""Resolution of external auth identities into remote owner ids."""

from __future__ import annotations

import logging

from moneysync.models import ExternalIdentity
from moneysync.transport import RemoteTransport

logger = logging.getLogger(__name__)


class IdentityBridge:
    """Resolve an external identity to a remote owner id once per session.

    The remote profile upsert is keyed by the external id, so the same
    identity resolves to the same owner id on every launch. A successful
    resolution is cached for the bridge's lifetime. A failed one is not,
    but the orchestrator only asks once per session.
    """

    def __init__(self, transport: RemoteTransport) -> None:
        self.transport = transport
        self._resolved: dict[str, str] = {}

    async def resolve(self, identity: ExternalIdentity) -> str | None:
        """Return the owner id for ``identity``, or None for local-only mode."""
        cached = self._resolved.get(identity.id)
        if cached is not None:
            return cached
        owner_id = await self.transport.upsert_owner_profile(
            identity.id,
            identity.full_name,
            identity.email,
            identity.avatar_url,
        )
        if owner_id is None:
            logger.info("No owner id for external identity; staying local-only")
            return None
        self._resolved[identity.id] = owner_id
        logger.debug("Resolved external identity to owner %s", owner_id)
        return owner_id

    def forget(self, identity_id: str | None = None) -> None:
        """Drop cached resolutions, all of them when no id is given."""
        if identity_id is None:
            self._resolved.clear()
        else:
            self._resolved.pop(identity_id, None)
