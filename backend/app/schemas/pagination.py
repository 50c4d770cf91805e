# backend/app/schemas/pagination.py
"""
Pagination metadata for list endpoints.

Two flavours, matching the two kinds of lists the API serves:
- PaginationMeta: offset based (skip/limit), used for stored portfolios
- PageMeta: page based (page/page_size), used for on-chain transactions

Both expose computed navigation fields (pages, has_next, has_previous).
"""

from pydantic import BaseModel, Field, computed_field


class PaginationMeta(BaseModel):
    """
    Offset pagination metadata.

    Attributes:
        total: Total number of items matching the query
        skip: Number of items skipped (offset)
        limit: Maximum items returned per page
    """

    total: int = Field(..., ge=0, description="Total number of items matching query")
    skip: int = Field(..., ge=0, description="Number of items skipped (offset)")
    limit: int = Field(..., ge=1, description="Maximum items per page")

    @computed_field
    @property
    def page(self) -> int:
        """Current page number (1-indexed)."""
        return (self.skip // self.limit) + 1

    @computed_field
    @property
    def pages(self) -> int:
        if self.total <= 0:
            return 1
        return (self.total + self.limit - 1) // self.limit

    @computed_field
    @property
    def has_next(self) -> bool:
        return self.skip + self.limit < self.total

    @computed_field
    @property
    def has_previous(self) -> bool:
        return self.skip > 0

    @classmethod
    def create(cls, total: int, skip: int, limit: int) -> "PaginationMeta":
        return cls(total=total, skip=skip, limit=limit)


class PageMeta(BaseModel):
    """
    Page-number pagination metadata.

    A page_size of 0 means the whole result is on one page.
    """

    total: int = Field(..., ge=0, description="Items matching the filters")
    page: int = Field(..., ge=1, description="Current page (1-indexed)")
    page_size: int = Field(..., ge=0, description="Items per page, 0 = all")

    @computed_field
    @property
    def pages(self) -> int:
        if self.page_size <= 0 or self.total <= 0:
            return 1
        return (self.total + self.page_size - 1) // self.page_size

    @computed_field
    @property
    def has_next(self) -> bool:
        return self.page < self.pages

    @computed_field
    @property
    def has_previous(self) -> bool:
        return self.page > 1
