"""
Audit log Pydantic schemas for API responses.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class AuditLogResponse(BaseModel):
    """
    Schema for audit log response.

    Attributes:
        id: Audit log entry ID
        user_id: Principal who performed the action
        action: Action tag (e.g. "user_updated", "unauthorized_user_lookup")
        target_user_id: User the entry refers to
        details: Action context (reason, counts, changed fields)
        ip_address: IP address of the client
        user_agent: User agent string of the client
        request_id: Correlation ID for tracing requests
        timestamp: When the action occurred
    """

    id: UUID = Field(description="Audit log entry ID")
    user_id: UUID | None = Field(default=None, description="Acting principal")
    action: str = Field(description="Action tag")
    target_user_id: UUID | None = Field(default=None, description="User acted upon")
    details: dict[str, Any] = Field(default_factory=dict)
    ip_address: str | None = None
    user_agent: str | None = None
    request_id: str | None = None
    timestamp: datetime

    model_config = ConfigDict(from_attributes=True)
