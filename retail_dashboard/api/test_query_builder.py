"""
Tests for the transaction query builder and filter request decoding
"""

from datetime import date, datetime, timedelta, timezone
from urllib.parse import parse_qsl

import pytest
from starlette.datastructures import QueryParams

from retail_dashboard.api.models.transaction import FilterRequest
from retail_dashboard.api.services.query_builder import (
    build_conditions,
    normalize_limit,
    normalize_page,
    order_clauses,
    parse_date,
    parse_range,
    parse_number,
    resolve_sort,
    total_pages,
)


@pytest.mark.parametrize("sort_by,expected", [
    ("date_desc", ("date", "desc")),
    ("amount_asc", ("amount", "asc")),
    ("customer_desc", ("customer", "desc")),
    ("ID_ASC", ("id", "asc")),
    ("quantity_up", ("date", "desc")),
    ("price_asc", ("date", "desc")),
    ("", ("date", "desc")),
    (None, ("date", "desc")),
])
def test_resolve_sort(sort_by, expected):
    assert resolve_sort(sort_by) == expected


def test_order_clauses_end_with_record_id():
    clauses = order_clauses("amount_asc")
    assert len(clauses) == 2
    assert "final_amount" in str(clauses[0])
    assert "transactions.id ASC" in str(clauses[1])


@pytest.mark.parametrize("value,expected", [
    ("3", 3), (3, 3), ("0", 1), ("-2", 1), ("abc", 1), (None, 1), ("2.5", 1),
])
def test_normalize_page(value, expected):
    assert normalize_page(value) == expected


@pytest.mark.parametrize("value,expected", [
    ("25", 25), ("0", 10), ("-1", 10), ("many", 10), (None, 10), ("5000", 1000),
])
def test_normalize_limit(value, expected):
    assert normalize_limit(value) == expected


@pytest.mark.parametrize("count,limit,expected", [(0, 10, 0), (1, 10, 1), (10, 10, 1), (11, 10, 2), (3, 1, 3)])
def test_total_pages(count, limit, expected):
    assert total_pages(count, limit) == expected


def test_parse_number():
    assert parse_number("12.5") == 12.5
    assert parse_number(" 7 ") == 7.0
    assert parse_number("nan") is None
    assert parse_number("1e999") is None
    assert parse_number("twelve") is None


def test_parse_date():
    assert parse_date("2024-02-29") == date(2024, 2, 29)
    assert parse_date("2024-02-30") is None
    assert parse_date("2024-03-01T10:30:00") == datetime(2024, 3, 1, 10, 30)
    assert parse_date("2024-03-01T10:30:00+02:00") == datetime(2024, 3, 1, 8, 30)
    assert parse_date("yesterday") is None
    assert parse_date("9999-12-31T23:00:00-05:00") is None
    assert parse_date("0001-01-01T00:30:00+05:00") is None
    assert parse_date(datetime(9999, 12, 31, 23, tzinfo=timezone(timedelta(hours=-5)))) is None
    assert parse_date("9999-12-31") == date(9999, 12, 31)


def test_parse_range():
    assert parse_range("10", "20", parse_number) == (10.0, 20.0)
    assert parse_range("10", None, parse_number) == (10.0, None)
    assert parse_range("", "20", parse_number) == (None, 20.0)
    assert parse_range("x", "20", parse_number) == (None, None)
    assert parse_range("30", "20", parse_number) == (None, None)
    assert parse_range("2024-01-31", "2024-01-31", parse_date) == (date(2024, 1, 31), date(2024, 1, 31))
    assert parse_range("2024-02-01", "2024-01-31", parse_date) == (None, None)


def test_no_filters_build_no_conditions():
    assert build_conditions(FilterRequest()) == []


def test_each_active_filter_adds_one_condition():
    filters = FilterRequest(
        keyword="jeans",
        region=["North"],
        status=["Completed", "Pending"],
        tags=["sale"],
        min_amount=10.0,
        max_amount=20.0,
    )
    # keyword, region, status, tags, two amount bounds
    assert len(build_conditions(filters)) == 6


def test_inverted_range_on_constructed_request_is_unconstrained():
    filters = FilterRequest(min_age=50.0, max_age=20.0)
    assert build_conditions(filters) == []


def test_decode_from_query_string():
    params = QueryParams(
        "keyword=+phone+&region=North&region=South&region=North&status=&paymentMethod=UPI"
        "&minAge=20&maxAge=abc&minAmount=100&startDate=2024-01-01&endDate=2024-01-31"
        "&page=2&limit=25&sortBy=customer_asc&color=blue"
    )
    filters = FilterRequest.from_query_params(params)

    assert filters.keyword == "phone"
    assert filters.region == ["North", "South"]
    assert filters.status == []
    assert filters.payment_method == ["UPI"]
    assert (filters.min_age, filters.max_age) == (None, None)
    assert (filters.min_amount, filters.max_amount) == (100.0, None)
    assert filters.start_date == date(2024, 1, 1)
    assert filters.end_date == date(2024, 1, 31)
    assert (filters.page, filters.limit, filters.sort_by) == (2, 25, "customer_asc")


def test_decode_accepts_mapping_with_lists():
    filters = FilterRequest.from_query_params({"tags": ["a", "b"], "gender": "Male", "page": None})
    assert filters.tags == ["a", "b"]
    assert filters.gender == ["Male"]
    assert filters.page == 1


def test_decode_empty_is_default():
    assert FilterRequest.from_query_params([]) == FilterRequest()


def test_encode_emits_repeated_keys_and_skips_defaults():
    filters = FilterRequest(
        keyword="shirt",
        region=["North", "East"],
        min_amount=200.0,
        end_date=date(2024, 1, 31),
        page=3,
    )
    assert filters.to_query_params() == [
        ("keyword", "shirt"),
        ("region", "North"),
        ("region", "East"),
        ("minAmount", "200"),
        ("endDate", "2024-01-31"),
        ("page", "3"),
    ]
    assert FilterRequest().to_query_params() == []


def test_encode_then_decode_restores_request():
    query = (
        "keyword=tv&tags=sale&tags=new&deliveryType=Express&minAge=18.5&maxAge=60"
        "&startDate=2024-01-01T08:00:00&endDate=2024-02-01&limit=50&sortBy=amount_asc"
    )
    original = FilterRequest.from_query_params(parse_qsl(query))
    restored = FilterRequest.from_query_params(parse_qsl(original.to_query_string()))
    assert restored == original
    assert original.start_date == datetime(2024, 1, 1, 8, 0)
