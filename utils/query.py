"""Filtered query engine for the resource listing endpoint.

Turns a sparse filter map into one parameterized query over the
provider/resource join and runs it in three round-trips:

    1. baseline count   - the join with no filters (``total``)
    2. filtered count   - the join with every active filter (``total_filtered``)
    3. page fetch       - filtered, ordered, LIMIT/OFFSET window (``data``)

Filter kinds:
    substring  ``col LIKE %value%`` (wildcards in the value match literally)
    range      "10-50" -> ``col >= 10 AND col <= 50``; "10" -> ``col = 10``;
               any other shape is ignored
    date range "2023-01-01 - 2023-01-31" -> ``col BETWEEN ? AND ?``;
               "2023-01-01" -> ``col = ?``; any other shape is ignored

Every user-supplied value is bound through a ``?`` placeholder.  Column names
and the sort direction only ever come from the allow-lists below.
"""

import logging
import sqlite3
from collections.abc import Mapping
from dataclasses import dataclass, field, fields
from typing import Any

from utils.patterns import BRACKETED_FILTER
from utils.strings import coerce_number, escape_like

logger = logging.getLogger(__name__)

RESOURCES_TABLE = "lbs_resources"
PROVIDERS_TABLE = "lbs_providers"

_JOIN = f"{PROVIDERS_TABLE} p JOIN {RESOURCES_TABLE} r ON p.resource_id = r.resource_id"
_BASE_CONDITIONS = ("r.deleted_at IS NULL",)

# Public filter name -> qualified column
SUBSTRING_FILTERS = {
    "email": "p.email",
    "currency": "p.currency",
    "payment_method": "p.payment_method",
    "promotions": "p.promotions",
    "notes": "p.notes",
    "other_info": "r.other_info",
    "social_media": "r.social_media",
    "main_category": "r.main_category",
    "other_categories": "r.other_categories",
}

RANGE_FILTERS = {
    "price": "p.price",
    "casino_price": "p.casino_price",
    "adult_price": "p.adult_price",
    "usd_price": "p.usd_price",
    "da": "r.da",
    "dr": "r.dr",
    "rd": "r.rd",
    "tr": "r.tr",
    "pa": "r.pa",
    "tf": "r.tf",
    "cf": "r.cf",
    "organic_keywords": "r.organic_keywords",
}

DATE_RANGE_FILTERS = {
    "metrics_update_date": "r.metrics_update_date",
}

RANGE_DELIMITER = "-"
DATE_RANGE_DELIMITER = " - "

# Output column name -> qualified column, in SELECT order
SELECT_COLUMNS = {
    "id": "p.id",
    "email": "p.email",
    "currency": "p.currency",
    "price": "p.price",
    "casino_price": "p.casino_price",
    "cbd_price": "p.cbd_price",
    "adult_price": "p.adult_price",
    "payment_method": "p.payment_method",
    "promotions": "p.promotions",
    "usd_price": "p.usd_price",
    "notes": "p.notes",
    "resource_id": "r.resource_id",
    "resource": "r.resource",
    "da": "r.da",
    "dr": "r.dr",
    "rd": "r.rd",
    "tr": "r.tr",
    "pa": "r.pa",
    "tf": "r.tf",
    "cf": "r.cf",
    "organic_keywords": "r.organic_keywords",
    "metrics_update_date": "r.metrics_update_date",
    "social_media": "r.social_media",
    "other_info": "r.other_info",
    "main_category": "r.main_category",
    "other_categories": "r.other_categories",
}

ALLOWED_SORTS = frozenset(SELECT_COLUMNS)

DEFAULT_PAGE = 1
DEFAULT_LIMIT = 50
DEFAULT_SORT = "resource"
DEFAULT_ORDER = "ASC"
MAX_LIMIT = 500

PAGE_WINDOW_LIMIT = "limit"
PAGE_WINDOW_LEGACY = "legacy"


def _to_positive_int(raw: Any, default: int) -> int:
    """Parse raw as an int >= 1, falling back to default on anything else."""
    if raw is None or isinstance(raw, bool):
        return default
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return default
    return value if value >= 1 else default


def _clean(raw: Any) -> str:
    if raw is None:
        return ""
    return str(raw).strip()


@dataclass
class FilterSpec:
    """A parsed filter map.  Empty strings mean "no filter"."""

    # Substring filters
    email: str = ""
    currency: str = ""
    payment_method: str = ""
    promotions: str = ""
    notes: str = ""
    other_info: str = ""
    social_media: str = ""
    main_category: str = ""
    other_categories: str = ""
    # Range filters
    price: str = ""
    casino_price: str = ""
    adult_price: str = ""
    usd_price: str = ""
    da: str = ""
    dr: str = ""
    rd: str = ""
    tr: str = ""
    pa: str = ""
    tf: str = ""
    cf: str = ""
    organic_keywords: str = ""
    # Date range filter
    metrics_update_date: str = ""
    # Paging and sorting
    page: int = DEFAULT_PAGE
    limit: int = DEFAULT_LIMIT
    sortby: str = DEFAULT_SORT
    order: str = DEFAULT_ORDER

    @classmethod
    def from_params(cls, params: Mapping[str, Any], max_limit: int = MAX_LIMIT) -> "FilterSpec":
        """Build a FilterSpec from a flat (or bracketed) parameter mapping.

        Unknown keys are ignored.  ``page`` and ``limit`` fall back to their
        defaults when missing or malformed; ``limit`` is clamped to max_limit.
        """
        flat = parse_filter_params(params)
        filter_names = (*SUBSTRING_FILTERS, *RANGE_FILTERS, *DATE_RANGE_FILTERS)
        values = {name: _clean(flat.get(name)) for name in filter_names}
        limit = min(_to_positive_int(flat.get("limit"), DEFAULT_LIMIT), max_limit)
        return cls(
            **values,
            page=_to_positive_int(flat.get("page"), DEFAULT_PAGE),
            limit=limit,
            sortby=_clean(flat.get("sortby")) or DEFAULT_SORT,
            order=_clean(flat.get("order")) or DEFAULT_ORDER,
        )

    def active_filters(self) -> dict[str, str]:
        """Return the filter fields that carry a value."""
        skip = {"page", "limit", "sortby", "order"}
        return {
            f.name: getattr(self, f.name)
            for f in fields(self)
            if f.name not in skip and getattr(self, f.name)
        }


@dataclass
class FilteredResult:
    """The three counts plus one page of joined rows."""

    total: int
    total_filtered: int
    limit: int
    page: int
    sortby: str
    order: str
    data: list[dict[str, Any]] = field(default_factory=list)
    page_window: str = PAGE_WINDOW_LIMIT

    @property
    def data_count(self) -> int:
        return len(self.data)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "total": self.total,
            "total_filtered": self.total_filtered,
            "limit": self.limit,
            "page": self.page,
            "sortby": self.sortby,
            "order": self.order,
            "data_count": self.data_count,
            "data": self.data,
            "page_window": self.page_window,
        }


def parse_filter_params(params: Mapping[str, Any]) -> dict[str, Any]:
    """Flatten ``filters[name]=value`` keys into ``name=value``.

    Plain keys pass through unchanged.  If both forms are present for the
    same name, the bracketed one wins (it is what the admin front-end sends).
    """
    flat: dict[str, Any] = {}
    bracketed: dict[str, Any] = {}
    for key, value in params.items():
        m = BRACKETED_FILTER.match(key)
        if m:
            bracketed[m.group(1)] = value
        else:
            flat[key] = value
    flat.update(bracketed)
    return flat


def split_range(value: str, delimiter: str = RANGE_DELIMITER) -> list[str] | None:
    """Split a range filter value into one or two bounds.

    Returns:
        [exact] or [lower, upper], or None when the value has any other
        shape (three or more parts, or an empty part such as "10-").
    """
    parts = [part.strip() for part in value.split(delimiter)]
    if len(parts) not in (1, 2) or any(part == "" for part in parts):
        return None
    return parts


def _range_condition(column: str, value: str, delimiter: str) -> tuple[str, list[Any]] | None:
    parts = split_range(value, delimiter)
    if parts is None:
        return None
    if delimiter == DATE_RANGE_DELIMITER:
        if len(parts) == 2:
            return f"{column} BETWEEN ? AND ?", parts
        return f"{column} = ?", parts
    bounds = [coerce_number(part) for part in parts]
    if len(bounds) == 2:
        return f"{column} >= ? AND {column} <= ?", bounds
    return f"{column} = ?", bounds


def build_where_clause(spec: FilterSpec) -> tuple[str, list[Any]]:
    """Build the WHERE clause for the join, including every active filter.

    Args:
        spec: Parsed filters.  Blank values add nothing.

    Returns:
        Tuple of (where_clause_string, params_list).  The clause always
        starts with "WHERE " because the soft-delete condition is always on.
    """
    conditions: list[str] = list(_BASE_CONDITIONS)
    params: list[Any] = []

    for name, column in SUBSTRING_FILTERS.items():
        value = getattr(spec, name)
        if value:
            conditions.append(f"{column} LIKE ? ESCAPE '\\'")
            params.append(f"%{escape_like(value)}%")

    for name, column in RANGE_FILTERS.items():
        value = getattr(spec, name)
        if not value:
            continue
        condition = _range_condition(column, value, RANGE_DELIMITER)
        if condition:
            conditions.append(condition[0])
            params.extend(condition[1])

    for name, column in DATE_RANGE_FILTERS.items():
        value = getattr(spec, name)
        if not value:
            continue
        condition = _range_condition(column, value, DATE_RANGE_DELIMITER)
        if condition:
            conditions.append(condition[0])
            params.extend(condition[1])

    return "WHERE " + " AND ".join(conditions), params


def build_order_clause(
    sort_by: str,
    sort_dir: str,
    allowed_sorts: frozenset[str] | set[str] | None = None,
    default_sort: str = DEFAULT_SORT,
) -> tuple[str, str, str]:
    """Build a safe ORDER BY clause for the join.

    Args:
        sort_by: Output column name to sort by.
        sort_dir: 'asc' or 'desc' (case-insensitive); anything else is ASC.
        allowed_sorts: Valid sort names.  Defaults to ALLOWED_SORTS.
        default_sort: Name used when sort_by is not allowed.

    Returns:
        (clause, effective_sort, effective_direction), e.g.
        ("ORDER BY r.resource ASC, p.id ASC", "resource", "ASC").
    """
    if allowed_sorts is None:
        allowed_sorts = ALLOWED_SORTS
    col = sort_by if sort_by in allowed_sorts else default_sort
    direction = "DESC" if sort_dir.strip().lower() == "desc" else "ASC"
    clause = f"ORDER BY {SELECT_COLUMNS[col]} {direction}"
    if col != "id":
        # tie-breaker keeps pages stable when the sort column has duplicates
        clause += f", {SELECT_COLUMNS['id']} ASC"
    return clause, col, direction


def build_limit_clause(page: int, limit: int,
                       legacy_page_window: bool = False) -> tuple[str, list[int]]:
    """Build the LIMIT/OFFSET clause for a 1-indexed page.

    The offset is always ``(page - 1) * limit``.  With legacy_page_window the
    row count is ``page * limit``, which is how the legacy listing behaved
    (pages after the first returned more than ``limit`` rows).
    """
    offset = (page - 1) * limit
    count = page * limit if legacy_page_window else limit
    return "LIMIT ? OFFSET ?", [count, offset]


def _count(conn: sqlite3.Connection, where: str, params: list[Any]) -> int:
    return conn.execute(f"SELECT COUNT(*) FROM {_JOIN} {where}", params).fetchone()[0]


def build_and_execute(
    conn: sqlite3.Connection,
    spec: FilterSpec,
    *,
    legacy_page_window: bool = False,
) -> FilteredResult:
    """Run the filtered listing query and return counts plus one page.

    Args:
        conn: Open connection with the provider/resource tables.
        spec: Parsed filters, paging and sorting.
        legacy_page_window: Return ``page * limit`` rows per page instead of
            ``limit`` (compatibility with the legacy front-end).

    Returns:
        FilteredResult with total, total_filtered and the page of rows.
    """
    base_where = "WHERE " + " AND ".join(_BASE_CONDITIONS)
    total = _count(conn, base_where, [])

    where, params = build_where_clause(spec)
    total_filtered = _count(conn, where, params)

    order, sortby, direction = build_order_clause(spec.sortby, spec.order)
    limit_clause, limit_params = build_limit_clause(spec.page, spec.limit, legacy_page_window)

    select_list = ", ".join(f"{col} AS {name}" for name, col in SELECT_COLUMNS.items())
    data_sql = f"SELECT {select_list} FROM {_JOIN} {where} {order} {limit_clause}"
    cursor = conn.execute(data_sql, params + limit_params)
    names = [d[0] for d in cursor.description]
    rows = [dict(zip(names, row)) for row in cursor.fetchall()]

    logger.debug(
        "resource query total=%d filtered=%d page=%d limit=%d filters=%s",
        total, total_filtered, spec.page, spec.limit, sorted(spec.active_filters()),
    )
    return FilteredResult(
        total=total,
        total_filtered=total_filtered,
        limit=spec.limit,
        page=spec.page,
        sortby=sortby,
        order=direction,
        data=rows,
        page_window=PAGE_WINDOW_LEGACY if legacy_page_window else PAGE_WINDOW_LIMIT,
    )
