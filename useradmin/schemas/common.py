"""
Common Pydantic schemas for API request/response handling.

This module provides:
- Offset/limit pagination parameters and metadata
- Internal search result container
- Generic paginated and message responses
"""

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from useradmin.core.config import settings

DataT = TypeVar("DataT")


class SearchResult(BaseModel, Generic[DataT]):
    """
    Internal search result container.

    Used for service-to-route communication. Not exposed directly to API.
    Routes convert this to PaginatedResponse for HTTP responses.

    Attributes:
        items: List of model instances for current page
        total: Count reported to the client (see the producing service for
            whether it is the full match count or the page size)
    """

    items: list[DataT]
    total: int

    model_config = ConfigDict(from_attributes=True, arbitrary_types_allowed=True)


class PaginationParams(BaseModel):
    """
    Query parameters for offset/limit paginated endpoints.

    Attributes:
        limit: Maximum number of items to return
        offset: Number of items to skip
    """

    limit: int = Field(
        default=settings.default_page_limit,
        ge=1,
        le=settings.max_page_limit,
        description="Maximum number of items to return",
    )
    offset: int = Field(default=0, ge=0, description="Number of items to skip")


class PaginationMeta(BaseModel):
    """
    Metadata for paginated responses.

    Attributes:
        total: Reported number of items
        limit: Page size requested
        offset: Items skipped
    """

    total: int = Field(description="Reported number of items")
    limit: int = Field(description="Maximum number of items returned")
    offset: int = Field(description="Number of items skipped")


class PaginatedResponse(BaseModel, Generic[DataT]):
    """
    Generic paginated response wrapper.

    Attributes:
        data: List of items for current page
        meta: Pagination metadata
    """

    data: list[DataT]
    meta: PaginationMeta


class MessageResponse(BaseModel):
    """Plain confirmation message."""

    message: str
