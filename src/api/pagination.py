# This file parses page, page-size, and sort query parameters for list routes.
# It exists so catalog services, saved scenarios, and guest submissions page and order rows the same way.
# Sort fields are checked against each service's allowlist before any SQL text is built.

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass

from src.api.schemas.common import PaginationMetadata

SORT_ORDERS = ("asc", "desc")


@dataclass(frozen=True)
class SortSpec:
    field: str
    order: str

    @property
    def as_text(self) -> str:
        return f"{self.field}:{self.order}"

    def order_by(self, field_map: Mapping[str, str], *, tiebreaker: str) -> str:
        """ORDER BY body; `tiebreaker` keeps rows with equal sort keys in a stable order."""

        return f"{field_map[self.field]} {self.order.upper()}, {tiebreaker} ASC"


@dataclass(frozen=True)
class PaginationSpec:
    page: int
    page_size: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    def metadata(self, *, total_count: int, sort: str) -> PaginationMetadata:
        return PaginationMetadata(
            page=self.page,
            page_size=self.page_size,
            total_count=total_count,
            total_pages=compute_total_pages(total_count=total_count, page_size=self.page_size),
            sort=sort,
        )


def page_bind_params(*, page: int, page_size: int) -> dict[str, int]:
    return {"limit": page_size, "offset": (page - 1) * page_size}


def normalize_pagination(
    *,
    page: int,
    page_size: int | None,
    limit: int | None,
    default_page_size: int,
    max_page_size: int,
) -> PaginationSpec:
    """`limit` is accepted as an alias of `page_size` and wins when both are sent."""

    size = limit if limit is not None else page_size
    if size is None:
        size = default_page_size
    if page < 1:
        raise ValueError("page must be >= 1")
    if size < 1:
        raise ValueError("page_size must be >= 1")
    if size > max_page_size:
        raise ValueError(f"page_size must be <= {max_page_size}")
    return PaginationSpec(page=page, page_size=size)


def parse_sort(
    *,
    requested_sort: str | None,
    default_sort: str,
    allowed_fields: set[str],
) -> SortSpec:
    """Parse `field` or `field:asc|desc`, falling back to `default_sort`."""

    raw_sort = (requested_sort or default_sort).strip().lower()
    if not raw_sort:
        raise ValueError("sort cannot be empty")

    field, _, order = raw_sort.partition(":")
    order = order or "asc"
    if field not in allowed_fields:
        supported = ", ".join(sorted(allowed_fields))
        raise ValueError(f"Unsupported sort field '{field}'. Supported fields: {supported}")
    if order not in SORT_ORDERS:
        raise ValueError("sort order must be 'asc' or 'desc'")
    return SortSpec(field=field, order=order)


def compute_total_pages(*, total_count: int, page_size: int) -> int:
    if total_count <= 0:
        return 0
    return -(-total_count // page_size)
