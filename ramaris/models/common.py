"""
Response envelopes shared by every endpoint.

Single resources arrive as ``{"data": T}`` and lists as
``{"data": [T], "pagination": {...}}``. Models are immutable and read
camelCase keys from the wire while exposing snake_case attributes.
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class WireModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        frozen=True,
        extra="ignore",
    )


class Pagination(WireModel):
    """
    Pagination state of a list response.

    Attributes:
        page: Current page number (1-based).
        page_size: Items per page.
        total_items: Items across all pages.
        total_pages: Number of pages.
    """
    page: int
    page_size: int
    total_items: int
    total_pages: int


class ListResponse(WireModel, Generic[T]):
    data: list[T] = Field(default_factory=list)
    pagination: Pagination

    @field_validator("data", mode="before")
    @classmethod
    def _null_data_is_empty(cls, value: Any) -> Any:
        return [] if value is None else value


class SingleResponse(WireModel, Generic[T]):
    data: T
