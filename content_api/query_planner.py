"""
Turns untrusted list query parameters into a closed, typed query plan.

The planner never touches the database.  It decides *what* may be asked
for (which statuses the caller can see, which columns can be matched,
sorted or searched) and the repository translates the resulting
``QueryPlan`` into SQL.

Rules that hold for every collection:

- callers without ``view_all`` only see the machine's public states,
  whatever ``status`` they send;
- unknown sort keys fall back to the collection's default sort;
- ``page``/``limit`` values that are missing, non-numeric or below 1 fall
  back to defaults, and ``limit`` is clamped to ``MAX_PAGE_SIZE``;
- an elevated caller that omits ``limit`` on a collection that allows it
  gets the full, unpaginated result.
"""
import math
from dataclasses import dataclass, field
from typing import Mapping

from content_api.access import Caller
from content_api.config import settings
from content_api.errors import ValidationFailed
from content_api.lifecycle import StatusMachine

ALL_STATUSES = "all"

_TRUE = {"true", "1", "yes"}
_FALSE = {"false", "0", "no"}


@dataclass(frozen=True)
class SortKey:
    column: str
    descending: bool = True


@dataclass(frozen=True)
class ListingRules:
    """Per-collection description of what a list request may do."""

    machine: StatusMachine | None
    sorts: Mapping[str, tuple[SortKey, ...]]
    default_sort: str
    default_limit: int = settings.DEFAULT_PAGE_SIZE
    search_fields: tuple[str, ...] = ()
    # query parameter -> column, exact string match
    exact_filters: Mapping[str, str] = field(default_factory=dict)
    # query parameter -> JSON list column that must contain the value
    member_filters: Mapping[str, str] = field(default_factory=dict)
    # query parameter -> boolean column
    flag_filters: Mapping[str, str] = field(default_factory=dict)
    allow_unpaginated: bool = False


@dataclass(frozen=True)
class ListFilter:
    statuses: tuple[str, ...] | None = None
    exact: tuple[tuple[str, str], ...] = ()
    members: tuple[tuple[str, str], ...] = ()
    flags: tuple[tuple[str, bool], ...] = ()
    search: str | None = None
    search_fields: tuple[str, ...] = ()


@dataclass(frozen=True)
class PageRequest:
    page: int
    limit: int

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


@dataclass(frozen=True)
class QueryPlan:
    filter: ListFilter
    sort_name: str
    sort: tuple[SortKey, ...]
    page: PageRequest | None


@dataclass
class PageResult:
    items: list
    total_items: int
    page: PageRequest | None

    @property
    def total_pages(self) -> int:
        if self.page is None:
            return 1 if self.total_items else 0
        return math.ceil(self.total_items / self.page.limit)

    def pagination(self) -> dict | None:
        if self.page is None:
            return None
        return {
            "current": self.page.page,
            "total": self.total_pages,
            "totalItems": self.total_items,
        }


def _positive_int(value: str | None, default: int) -> int:
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        return default
    return number if number >= 1 else default


def _flag(value: str | None) -> bool | None:
    if value is None:
        return None
    lowered = value.strip().lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    return None


def _visible_statuses(
    raw: Mapping[str, str], caller: Caller, machine: StatusMachine | None
) -> tuple[str, ...] | None:
    if machine is None:
        return None
    if not caller.is_elevated:
        return tuple(sorted(machine.public))

    requested = (raw.get("status") or "").strip()
    if not requested or requested.lower() == ALL_STATUSES:
        return None
    if requested not in machine.states:
        raise ValidationFailed.for_field(
            "status", f"Status must be one of: {', '.join(machine.states)}"
        )
    return (requested,)


def plan(raw: Mapping[str, str], caller: Caller, rules: ListingRules) -> QueryPlan:
    """Build the filter, sort and page for one list request."""
    exact = tuple(
        (column, raw[param].strip())
        for param, column in rules.exact_filters.items()
        if raw.get(param) and raw[param].strip()
    )
    members = tuple(
        (column, raw[param].strip())
        for param, column in rules.member_filters.items()
        if raw.get(param) and raw[param].strip()
    )
    flags: list[tuple[str, bool]] = []
    for param, column in rules.flag_filters.items():
        flag = _flag(raw.get(param))
        if flag is not None:
            flags.append((column, flag))
    search = (raw.get("search") or "").strip() or None

    list_filter = ListFilter(
        statuses=_visible_statuses(raw, caller, rules.machine),
        exact=exact,
        members=members,
        flags=tuple(flags),
        search=search if rules.search_fields else None,
        search_fields=rules.search_fields if search else (),
    )

    sort_name = (raw.get("sort") or "").strip()
    if sort_name not in rules.sorts:
        sort_name = rules.default_sort

    if rules.allow_unpaginated and caller.is_elevated and not raw.get("limit"):
        page = None
    else:
        limit = min(_positive_int(raw.get("limit"), rules.default_limit), settings.MAX_PAGE_SIZE)
        page = PageRequest(page=_positive_int(raw.get("page"), 1), limit=limit)

    return QueryPlan(
        filter=list_filter,
        sort_name=sort_name,
        sort=rules.sorts[sort_name],
        page=page,
    )
