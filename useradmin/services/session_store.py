"""
Session store used until login sessions are persisted.
"""

import logging
import uuid
from typing import Any

logger = logging.getLogger(__name__)


class NullSessionStore:
    """
    Session store with no sessions.

    Listing always returns nothing and termination ends nothing. Access
    tokens are stateless JWTs, so there is no server-side session to end.
    """

    async def terminate(
        self, target_id: uuid.UUID, exclude_token: str | None = None
    ) -> int:
        logger.debug(f"Session termination requested for user {target_id}: no session store")
        return 0

    async def list(self, target_id: uuid.UUID) -> list[dict[str, Any]]:
        return []
