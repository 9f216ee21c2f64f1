"""
Identity and request context passed from the HTTP layer into services.
"""

import uuid
from dataclasses import dataclass


@dataclass(frozen=True)
class Principal:
    """
    The authenticated caller.

    Attributes:
        id: User id from the access token's 'sub' claim
        token: The raw bearer token (kept so a user terminating their own
            sessions does not end the current one)
    """

    id: uuid.UUID
    token: str | None = None


@dataclass(frozen=True)
class RequestContext:
    """Client details recorded on every audit entry."""

    ip_address: str | None = None
    user_agent: str | None = None
    request_id: str | None = None
