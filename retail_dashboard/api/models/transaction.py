"""
API data models for retail transactions
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from typing import Any, Dict, Iterable, List, Mapping, Optional, Tuple, Union
from datetime import date, datetime
from urllib.parse import urlencode

from retail_dashboard.api.services.query_builder import (
    DEFAULT_SORT,
    normalize_limit,
    normalize_page,
    normalize_sort,
    parse_date,
    parse_number,
    parse_range,
)
from retail_dashboard.config.settings import settings
from retail_dashboard.models.models import TransactionStatus


class CamelModel(BaseModel):
    """Base model serialized with camelCase keys"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class TransactionOut(CamelModel):
    """Model for a transaction record"""
    id: int = Field(..., alias="_id", description="Internal record ID")
    transaction_id: str = Field(..., alias="transactionID", description="Display transaction identifier")
    date: datetime = Field(..., description="Order timestamp")
    customer_name: str = Field(..., description="Customer full name")
    phone: str = Field(..., description="Customer phone number")
    age: Optional[int] = Field(None, description="Customer age")
    gender: Optional[str] = Field(None, description="Customer gender")
    product_name: str = Field(..., description="Product name")
    product_category: str = Field(..., description="Product category")
    quantity: int = Field(..., ge=1, description="Units purchased")
    price_per_unit: float = Field(..., ge=0, description="Price per unit")
    final_amount: float = Field(..., ge=0, description="Amount charged after discounts")
    payment_method: str = Field(..., description="Payment method")
    delivery_type: Optional[str] = Field(None, description="Delivery type")
    region: str = Field(..., description="Customer region")
    status: TransactionStatus = Field(..., description="Order status")
    tags: List[str] = Field(default_factory=list, description="Product tags")


class PaginationOut(CamelModel):
    page: int
    total_pages: int
    total_count: int
    limit: int


class TransactionListResponse(CamelModel):
    """Model for a page of transactions"""
    data: List[TransactionOut]
    pagination: PaginationOut


class TransactionResponse(CamelModel):
    data: TransactionOut


class StatusCount(CamelModel):
    status: str
    count: int


class TransactionStats(CamelModel):
    """Summary statistics over the transactions matching a filter"""
    total_transactions: int = Field(..., description="Number of matching transactions")
    total_revenue: float = Field(..., description="Sum of final amounts")
    status_breakdown: List[StatusCount] = Field(default_factory=list, description="Matching transactions per status")


class TransactionStatsResponse(CamelModel):
    data: TransactionStats


class ValueRange(CamelModel):
    min: Optional[Union[int, float]] = None
    max: Optional[Union[int, float]] = None


class FilterOptions(CamelModel):
    """Values available for each filter, derived from the stored transactions"""
    regions: List[str] = Field(default_factory=list)
    genders: List[str] = Field(default_factory=list)
    statuses: List[str] = Field(default_factory=list)
    payment_methods: List[str] = Field(default_factory=list)
    product_categories: List[str] = Field(default_factory=list)
    delivery_types: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    age_range: ValueRange = Field(default_factory=ValueRange)
    amount_range: ValueRange = Field(default_factory=ValueRange)


class FilterOptionsResponse(CamelModel):
    data: FilterOptions


# FilterRequest attribute -> query-string key
MEMBERSHIP_PARAMS = {
    "region": "region",
    "gender": "gender",
    "status": "status",
    "payment_method": "paymentMethod",
    "product_category": "productCategory",
    "delivery_type": "deliveryType",
    "tags": "tags",
}

# (low attribute, high attribute, low key, high key, parser)
RANGE_PARAMS = (
    ("min_age", "max_age", "minAge", "maxAge", parse_number),
    ("min_amount", "max_amount", "minAmount", "maxAmount", parse_number),
    ("start_date", "end_date", "startDate", "endDate", parse_date),
)


def _collect_params(params: Any) -> Dict[str, List[str]]:
    """Group query parameters by key, keeping repeated values in order"""
    if hasattr(params, "multi_items"):
        items = params.multi_items()
    elif isinstance(params, Mapping):
        items = []
        for key, value in params.items():
            values = value if isinstance(value, (list, tuple)) else [value]
            items.extend((key, v) for v in values)
    else:
        items = list(params)

    grouped: Dict[str, List[str]] = {}
    for key, value in items:
        if value is None:
            continue
        grouped.setdefault(key, []).append(str(value))
    return grouped


def _clean_values(values: Iterable[str]) -> List[str]:
    cleaned = []
    for value in values:
        value = value.strip()
        if value and value not in cleaned:
            cleaned.append(value)
    return cleaned


def _first(values: Optional[List[str]]) -> Optional[str]:
    for value in values or []:
        if value.strip():
            return value.strip()
    return None


def _format_bound(value) -> str:
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


class FilterRequest(BaseModel):
    """
    Constraints, pagination and sort for one transaction query

    Built fresh from each request's query string. Decoding never fails:
    blank, malformed or unknown parameters are dropped, and a range whose
    bounds are malformed or inverted is left unconstrained.
    """
    keyword: Optional[str] = None
    region: List[str] = Field(default_factory=list)
    gender: List[str] = Field(default_factory=list)
    status: List[str] = Field(default_factory=list)
    payment_method: List[str] = Field(default_factory=list)
    product_category: List[str] = Field(default_factory=list)
    delivery_type: List[str] = Field(default_factory=list)
    tags: List[str] = Field(default_factory=list)
    min_age: Optional[float] = None
    max_age: Optional[float] = None
    min_amount: Optional[float] = None
    max_amount: Optional[float] = None
    start_date: Optional[Union[datetime, date]] = None
    end_date: Optional[Union[datetime, date]] = None
    page: int = 1
    limit: int = Field(default_factory=lambda: settings.DEFAULT_PAGE_LIMIT)
    sort_by: str = DEFAULT_SORT

    @classmethod
    def from_query_params(cls, params: Any) -> "FilterRequest":
        """
        Decode a filter request from query parameters

        Accepts Starlette ``QueryParams``, a mapping (values may be lists) or
        a sequence of ``(key, value)`` pairs.
        """
        grouped = _collect_params(params)

        fields: Dict[str, Any] = {"keyword": _first(grouped.get("keyword"))}

        for attribute, key in MEMBERSHIP_PARAMS.items():
            fields[attribute] = _clean_values(grouped.get(key, []))

        for low_attr, high_attr, low_key, high_key, parser in RANGE_PARAMS:
            low, high = parse_range(_first(grouped.get(low_key)), _first(grouped.get(high_key)), parser)
            fields[low_attr] = low
            fields[high_attr] = high

        fields["page"] = normalize_page(_first(grouped.get("page")))
        fields["limit"] = normalize_limit(_first(grouped.get("limit")))
        fields["sort_by"] = normalize_sort(_first(grouped.get("sortBy")))

        return cls(**fields)

    def to_query_params(self) -> List[Tuple[str, str]]:
        """
        Encode as ``(key, value)`` pairs, multi-value filters as repeated keys

        Only active constraints and non-default pagination/sort are emitted.
        """
        params: List[Tuple[str, str]] = []

        if self.keyword:
            params.append(("keyword", self.keyword))

        for attribute, key in MEMBERSHIP_PARAMS.items():
            params.extend((key, value) for value in getattr(self, attribute))

        for low_attr, high_attr, low_key, high_key, _ in RANGE_PARAMS:
            for attribute, key in ((low_attr, low_key), (high_attr, high_key)):
                value = getattr(self, attribute)
                if value is not None:
                    params.append((key, _format_bound(value)))

        if self.page != 1:
            params.append(("page", str(self.page)))
        if self.limit != settings.DEFAULT_PAGE_LIMIT:
            params.append(("limit", str(self.limit)))
        if self.sort_by != DEFAULT_SORT:
            params.append(("sortBy", self.sort_by))

        return params

    def to_query_string(self) -> str:
        return urlencode(self.to_query_params())

