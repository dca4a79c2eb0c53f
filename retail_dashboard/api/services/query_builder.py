"""
Query builder for transaction listings

Translates a filter request into SQLAlchemy conditions, an ORDER BY directive
and pagination bounds. Listing, statistics and export all build their WHERE
clause here, so every endpoint agrees on which records match a filter.
"""

import math
from datetime import date, datetime, time, timezone
from typing import Any, Callable, List, Optional, Tuple, TYPE_CHECKING

from sqlalchemy import and_, or_

from retail_dashboard.config.settings import settings
from retail_dashboard.models.models import Transaction, TransactionTag

if TYPE_CHECKING:
    from retail_dashboard.api.models.transaction import FilterRequest


DEFAULT_SORT = "date_desc"

SORT_COLUMNS = {
    "id": Transaction.transaction_id,
    "date": Transaction.date,
    "customer": Transaction.customer_name,
    "quantity": Transaction.quantity,
    "amount": Transaction.final_amount,
}
SORT_DIRECTIONS = ("asc", "desc")

# FilterRequest attribute -> column matched by set membership
MEMBERSHIP_COLUMNS = {
    "region": Transaction.region,
    "gender": Transaction.gender,
    "status": Transaction.status,
    "payment_method": Transaction.payment_method,
    "product_category": Transaction.product_category,
    "delivery_type": Transaction.delivery_type,
}

KEYWORD_COLUMNS = (
    Transaction.customer_name,
    Transaction.phone,
    Transaction.product_name,
)


def _is_blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _to_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    try:
        return int(str(value).strip())
    except (TypeError, ValueError):
        return None


def parse_number(value: Any) -> Optional[float]:
    """Parse a finite number, or return None when the value is malformed"""
    if isinstance(value, bool):
        return None
    try:
        number = float(str(value).strip()) if isinstance(value, str) else float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def parse_date(value: Any):
    """
    Parse a date bound

    ``YYYY-MM-DD`` yields a ``date`` (a whole calendar day); anything else
    ISO-8601 yields a naive UTC ``datetime``. Malformed input yields None.
    """
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        return value
    elif isinstance(value, str):
        text = value.strip()
        try:
            if len(text) == 10:
                return date.fromisoformat(text)
            parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError:
            return None
    else:
        return None

    if parsed.tzinfo is not None:
        try:
            parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
        except (ValueError, OverflowError):
            # Shifting to UTC left the representable years
            return None
    return parsed


def lower_edge(value):
    """First instant covered by a lower bound"""
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime.combine(value, time.min)
    return value


def upper_edge(value):
    """Last instant covered by an upper bound; a bare date covers the whole day"""
    if isinstance(value, date) and not isinstance(value, datetime):
        return datetime.combine(value, time.max)
    return value


def parse_range(low: Any, high: Any, parser: Callable[[Any], Any]) -> Tuple[Any, Any]:
    """
    Parse an inclusive [low, high] pair

    Blank bounds are unbounded. If any supplied bound is malformed, or low is
    greater than high, the whole range is dropped and (None, None) is returned.
    """
    bounds = []
    for raw in (low, high):
        if _is_blank(raw):
            bounds.append(None)
            continue
        value = parser(raw)
        if value is None:
            return None, None
        bounds.append(value)

    low_value, high_value = bounds
    if low_value is not None and high_value is not None:
        if lower_edge(low_value) > upper_edge(high_value):
            return None, None
    return low_value, high_value


def normalize_page(value: Any) -> int:
    page = _to_int(value)
    if page is None or page < 1:
        return 1
    return page


def normalize_limit(value: Any) -> int:
    limit = _to_int(value)
    if limit is None or limit < 1:
        return settings.DEFAULT_PAGE_LIMIT
    return min(limit, settings.MAX_PAGE_LIMIT)


def total_pages(total_count: int, limit: int) -> int:
    return math.ceil(total_count / limit) if limit > 0 else 0


def page_offset(page: int, limit: int) -> int:
    return (page - 1) * limit


def resolve_sort(sort_by: Any) -> Tuple[str, str]:
    """
    Split a ``{field}_{direction}`` sort key

    Unknown fields or directions fall back to ``date_desc``.
    """
    if isinstance(sort_by, str):
        field, _, direction = sort_by.strip().lower().rpartition("_")
        if field in SORT_COLUMNS and direction in SORT_DIRECTIONS:
            return field, direction
    default_field, _, default_direction = DEFAULT_SORT.rpartition("_")
    return default_field, default_direction


def normalize_sort(sort_by: Any) -> str:
    field, direction = resolve_sort(sort_by)
    return f"{field}_{direction}"


def order_clauses(sort_by: Any) -> list:
    """ORDER BY clauses for a sort key, ending with the record ID so the order is total"""
    field, direction = resolve_sort(sort_by)
    column = SORT_COLUMNS[field]
    primary = column.desc() if direction == "desc" else column.asc()
    return [primary, Transaction.id.asc()]


def _range_conditions(column, low, high) -> list:
    if low is not None and high is not None and lower_edge(low) > upper_edge(high):
        return []

    conditions = []
    if low is not None:
        conditions.append(column >= lower_edge(low))
    if high is not None:
        conditions.append(column <= upper_edge(high))
    return conditions


def build_conditions(filters: "FilterRequest") -> List:
    """
    Build the WHERE conditions for a filter request

    Each active constraint contributes one condition; the caller combines
    them with AND. An empty list means every record matches.
    """
    conditions = []

    if filters.keyword:
        conditions.append(
            or_(*(column.icontains(filters.keyword, autoescape=True) for column in KEYWORD_COLUMNS))
        )

    for attribute, column in MEMBERSHIP_COLUMNS.items():
        accepted = getattr(filters, attribute)
        if accepted:
            conditions.append(column.in_(accepted))

    if filters.tags:
        conditions.append(Transaction.tags.any(TransactionTag.tag.in_(filters.tags)))

    conditions.extend(_range_conditions(Transaction.age, filters.min_age, filters.max_age))
    conditions.extend(_range_conditions(Transaction.final_amount, filters.min_amount, filters.max_amount))
    conditions.extend(_range_conditions(Transaction.date, filters.start_date, filters.end_date))

    return conditions


def apply_filters(query, filters: "FilterRequest"):
    """Restrict a query to the records matching a filter request"""
    conditions = build_conditions(filters)
    if conditions:
        query = query.filter(and_(*conditions))
    return query


def apply_sort_and_page(query, filters: "FilterRequest"):
    """Order a filtered query and cut out the requested page"""
    return (
        query.order_by(*order_clauses(filters.sort_by))
        .limit(filters.limit)
        .offset(page_offset(filters.page, filters.limit))
    )
