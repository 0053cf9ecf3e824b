"""
Query specifications for the event catalog.

These are already-validated, typed inputs: bounds checking of page sizes and parsing
of raw query strings happen at the API boundary.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

DEFAULT_PAGE_SIZE = 20
MAX_PAGE_SIZE = 100


@dataclass(frozen=True)
class Pagination:
    page: int = 1
    page_size: int = DEFAULT_PAGE_SIZE

    @property
    def offset(self) -> int:
        if self.page <= 0:
            return 0
        return (self.page - 1) * self.page_size

    @property
    def limit(self) -> int:
        return max(self.page_size, 0)


@dataclass(frozen=True)
class EventFilter:
    """
    Optional predicates ANDed together by the catalog.

    `tags` matches events carrying any of the listed names. Date and fee bounds are
    inclusive on both ends.
    """

    date_from: Optional[datetime] = None
    date_to: Optional[datetime] = None
    min_fee: Optional[float] = None
    max_fee: Optional[float] = None
    tags: tuple[str, ...] = ()
    pagination: Optional[Pagination] = None

    @property
    def has_predicates(self) -> bool:
        return any(
            value is not None
            for value in (self.date_from, self.date_to, self.min_fee, self.max_fee)
        ) or bool(self.tags)

    def cache_key(self) -> str:
        """Canonical string form, stable across tag ordering."""
        parts = [
            f"from={self.date_from.isoformat() if self.date_from else ''}",
            f"to={self.date_to.isoformat() if self.date_to else ''}",
            f"min={'' if self.min_fee is None else self.min_fee}",
            f"max={'' if self.max_fee is None else self.max_fee}",
            f"tags={','.join(sorted(set(self.tags)))}",
        ]
        if self.pagination is not None:
            parts.append(f"page={self.pagination.page}&size={self.pagination.page_size}")
        return "&".join(parts)
