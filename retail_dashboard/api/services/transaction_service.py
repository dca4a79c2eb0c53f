"""
Service layer for transaction operations

Provides functions for querying, aggregating and exporting transactions.
Every function builds its WHERE clause through the query builder, so a
filter request matches the same records everywhere.
"""

from typing import List, Optional, Tuple
import logging

from sqlalchemy import func
from sqlalchemy.orm import selectinload

from retail_dashboard.api.models.transaction import (
    FilterOptions,
    FilterRequest,
    StatusCount,
    TransactionOut,
    TransactionStats,
    ValueRange,
)
from retail_dashboard.api.services.query_builder import (
    apply_filters,
    apply_sort_and_page,
    order_clauses,
    total_pages,
)
from retail_dashboard.config.settings import settings
from retail_dashboard.db.session import get_db_session
from retail_dashboard.models.models import Transaction, TransactionTag

# Configure logging
logger = logging.getLogger(__name__)


def serialize_transaction(record: Transaction) -> TransactionOut:
    """Convert an ORM transaction into its API model"""
    return TransactionOut(
        id=record.id,
        transaction_id=record.transaction_id,
        date=record.date,
        customer_name=record.customer_name,
        phone=record.phone,
        age=record.age,
        gender=record.gender,
        product_name=record.product_name,
        product_category=record.product_category,
        quantity=record.quantity,
        price_per_unit=record.price_per_unit,
        final_amount=record.final_amount,
        payment_method=record.payment_method,
        delivery_type=record.delivery_type,
        region=record.region,
        status=record.status,
        tags=record.tag_names,
    )


def list_transactions(filters: FilterRequest) -> Tuple[List[TransactionOut], int, int, int]:
    """
    Get one page of transactions matching a filter request

    Args:
        filters: Normalized filter request

    Returns:
        Tuple: (page records, current page, total pages, total matching count)
    """
    try:
        with get_db_session() as session:
            query = apply_filters(session.query(Transaction), filters)

            # Count before pagination
            total_count = query.count()
            pages = total_pages(total_count, filters.limit)

            # Nothing to fetch past the last page
            data = []
            if filters.page <= pages:
                records = (
                    apply_sort_and_page(query, filters)
                    .options(selectinload(Transaction.tags))
                    .all()
                )
                data = [serialize_transaction(record) for record in records]

        logger.debug(f"Matched {total_count} transactions; returning {len(data)} on page {filters.page}")
        return data, filters.page, pages, total_count

    except Exception as e:
        logger.error(f"Error querying transactions: {str(e)}")
        raise


def get_transaction_by_id(transaction_id: str) -> Optional[TransactionOut]:
    """
    Get a transaction by its display ID

    Args:
        transaction_id: Display transaction identifier

    Returns:
        Optional[TransactionOut]: Transaction or None if not found
    """
    try:
        with get_db_session() as session:
            record = (
                session.query(Transaction)
                .options(selectinload(Transaction.tags))
                .filter(Transaction.transaction_id == transaction_id)
                .first()
            )
            return serialize_transaction(record) if record else None

    except Exception as e:
        logger.error(f"Error retrieving transaction {transaction_id}: {str(e)}")
        raise


def export_transactions(filters: FilterRequest) -> List[TransactionOut]:
    """
    Get every transaction matching a filter request, in the requested order

    Page and limit are ignored.
    """
    try:
        with get_db_session() as session:
            records = (
                apply_filters(session.query(Transaction), filters)
                .options(selectinload(Transaction.tags))
                .order_by(*order_clauses(filters.sort_by))
                .all()
            )
            return [serialize_transaction(record) for record in records]

    except Exception as e:
        logger.error(f"Error exporting transactions: {str(e)}")
        raise


def get_transaction_stats(filters: FilterRequest) -> TransactionStats:
    """
    Compute summary statistics over the transactions matching a filter request

    Args:
        filters: Filter request; page, limit and sort are ignored

    Returns:
        TransactionStats: Count, revenue and per-status breakdown
    """
    try:
        with get_db_session() as session:
            total_transactions, total_revenue = apply_filters(
                session.query(
                    func.count(Transaction.id),
                    func.coalesce(func.sum(Transaction.final_amount), 0.0),
                ),
                filters,
            ).one()

            status_count = func.count(Transaction.id)
            breakdown_rows = (
                apply_filters(session.query(Transaction.status, status_count), filters)
                .group_by(Transaction.status)
                .order_by(status_count.desc(), Transaction.status.asc())
                .all()
            )

        return TransactionStats(
            total_transactions=total_transactions,
            total_revenue=float(total_revenue or 0.0),
            status_breakdown=[
                StatusCount(status=status, count=count)
                for status, count in breakdown_rows
                if status is not None
            ],
        )

    except Exception as e:
        logger.error(f"Error computing transaction statistics: {str(e)}")
        raise


def _distinct_values(session, column) -> List[str]:
    rows = (
        session.query(column)
        .filter(column.isnot(None))
        .distinct()
        .order_by(column.asc())
        .all()
    )
    return [value for (value,) in rows]


def get_filter_options() -> FilterOptions:
    """
    Derive the available filter values from the stored transactions

    Recomputed on every call so newly loaded data shows up without a restart.
    Tags are the most frequent ones, ties broken alphabetically.
    """
    try:
        with get_db_session() as session:
            tag_uses = func.count(TransactionTag.id)
            top_tags = (
                session.query(TransactionTag.tag, tag_uses)
                .group_by(TransactionTag.tag)
                .order_by(tag_uses.desc(), TransactionTag.tag.asc())
                .limit(settings.TOP_TAGS_LIMIT)
                .all()
            )

            min_age, max_age, min_amount, max_amount = session.query(
                func.min(Transaction.age),
                func.max(Transaction.age),
                func.min(Transaction.final_amount),
                func.max(Transaction.final_amount),
            ).one()

            return FilterOptions(
                regions=_distinct_values(session, Transaction.region),
                genders=_distinct_values(session, Transaction.gender),
                statuses=_distinct_values(session, Transaction.status),
                payment_methods=_distinct_values(session, Transaction.payment_method),
                product_categories=_distinct_values(session, Transaction.product_category),
                delivery_types=_distinct_values(session, Transaction.delivery_type),
                tags=[tag for tag, _ in top_tags],
                age_range=ValueRange(min=min_age, max=max_age),
                amount_range=ValueRange(min=min_amount, max=max_amount),
            )

    except Exception as e:
        logger.error(f"Error retrieving filter options: {str(e)}")
        raise
