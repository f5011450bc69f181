"""Parsing of list endpoint query parameters.

List endpoints accept `limit`, `page`, `sort`, `sortBy` and `populate`
as raw query strings. The helpers here turn them into a validated
`ListQuery` before any database work happens:

- `limit` and `page` are range checked and rejected when invalid
- `sort` must be `asc` or `desc`
- `sortBy` is checked against a per-entity whitelist and silently falls
  back to the default field
- `populate` tags that the entity does not know are ignored; `all`
  selects every known tag
"""

import math
from dataclasses import dataclass
from typing import FrozenSet, Iterable, Optional

from ..errors import ValidationError

DEFAULT_LIMIT = 10
MAX_LIMIT = 100
DEFAULT_PAGE = 1
DEFAULT_SORT_FIELD = "createdAt"
SORT_DIRECTIONS = ("asc", "desc")


@dataclass(frozen=True)
class ListQuery:
    limit: int
    page: int
    sort: str
    sort_by: str
    populate: FrozenSet[str]

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit

    @property
    def descending(self) -> bool:
        return self.sort == "desc"


def _parse_int(raw: Optional[str], label: str, default: int) -> int:
    if raw is None or not str(raw).strip():
        return default
    try:
        return int(str(raw).strip())
    except ValueError:
        raise ValidationError(f"{label} must be an integer")


def parse_limit(raw: Optional[str]) -> int:
    limit = _parse_int(raw, "Limit", DEFAULT_LIMIT)
    if limit < 1 or limit > MAX_LIMIT:
        raise ValidationError(f"Limit must be between 1 and {MAX_LIMIT}")
    return limit


def parse_page(raw: Optional[str]) -> int:
    page = _parse_int(raw, "Page", DEFAULT_PAGE)
    if page < 1:
        raise ValidationError("Page must be greater than 0")
    return page


def parse_sort(raw: Optional[str], default: str) -> str:
    if raw is None or not raw.strip():
        return default
    sort = raw.strip()
    if sort not in SORT_DIRECTIONS:
        raise ValidationError("Sort must be either asc or desc")
    return sort


def resolve_sort_field(raw: Optional[str], allowed: Iterable[str], default: str = DEFAULT_SORT_FIELD) -> str:
    """Return `raw` if it is whitelisted, otherwise `default`."""
    if raw is not None and raw.strip() in allowed:
        return raw.strip()
    return default


def parse_populate(raw: Optional[str], tags: Iterable[str]) -> FrozenSet[str]:
    """Split a comma separated populate string into known relation tags."""
    known = frozenset(tags)
    if not raw:
        return frozenset()
    requested = {part.strip().lower() for part in raw.split(",") if part.strip()}
    if "all" in requested:
        return known
    return frozenset(requested & known)


def parse_list_query(
    limit: Optional[str] = None,
    page: Optional[str] = None,
    sort: Optional[str] = None,
    sort_by: Optional[str] = None,
    populate: Optional[str] = None,
    *,
    sort_fields: Iterable[str],
    populate_tags: Iterable[str],
    default_sort: str = "desc",
) -> ListQuery:
    return ListQuery(
        limit=parse_limit(limit),
        page=parse_page(page),
        sort=parse_sort(sort, default_sort),
        sort_by=resolve_sort_field(sort_by, sort_fields),
        populate=parse_populate(populate, populate_tags),
    )


def page_meta(total: int, query: ListQuery) -> dict:
    """Build the `meta` block of a list envelope."""
    return {
        "totalItems": total,
        "page": query.page,
        "totalPages": math.ceil(total / query.limit),
        "limit": query.limit,
    }
