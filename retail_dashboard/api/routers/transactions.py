"""
API router for retail transactions

Provides endpoints for querying, summarizing and exporting transactions.
Filter parameters are decoded leniently from the raw query string, so a
malformed filter never fails a request.
"""

from fastapi import APIRouter, HTTPException, Request, status
from fastapi.responses import StreamingResponse
from pydantic.alias_generators import to_camel
from sqlalchemy.exc import OperationalError
import pandas as pd
import io
import logging
from datetime import datetime, timezone

# Import models and services
from retail_dashboard.api.models.transaction import (
    FilterOptionsResponse,
    FilterRequest,
    TransactionListResponse,
    TransactionOut,
    TransactionResponse,
    TransactionStatsResponse,
)
from retail_dashboard.api.services.transaction_service import (
    export_transactions,
    get_filter_options,
    get_transaction_by_id,
    get_transaction_stats,
    list_transactions,
)

# Create router
router = APIRouter()
logger = logging.getLogger(__name__)

EXPORT_FORMATS = {
    "csv": ("text/csv", "csv"),
    "excel": ("application/vnd.openxmlformats-officedocument.spreadsheetml.sheet", "xlsx"),
}

EXPORT_COLUMNS = [
    field.alias or to_camel(name) for name, field in TransactionOut.model_fields.items()
]


def _store_unavailable(exc: Exception) -> HTTPException:
    logger.error(f"Transaction store unavailable: {str(exc)}")
    return HTTPException(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        detail="Transaction store unavailable",
    )


@router.get(
    "",
    response_model=TransactionListResponse,
    summary="Query transactions",
    description="Query transactions with filtering, sorting and pagination",
)
def query_transactions(request: Request):
    """
    Query transactions with filtering, sorting and pagination

    Query parameters:
        keyword: Case-insensitive search over customer name, phone and product name
        region, gender, status, paymentMethod, productCategory, deliveryType, tags:
            Accepted values, repeat the key for several values
        minAge, maxAge, minAmount, maxAmount: Inclusive numeric bounds
        startDate, endDate: Inclusive date bounds (YYYY-MM-DD or ISO-8601)
        page: 1-based page number
        limit: Records per page
        sortBy: {id|date|customer|quantity|amount}_{asc|desc}, default date_desc

    Returns:
        TransactionListResponse: Page of transactions with pagination totals
    """
    filters = FilterRequest.from_query_params(request.query_params)
    try:
        records, page, pages, total_count = list_transactions(filters)
        return {
            "data": records,
            "pagination": {
                "page": page,
                "total_pages": pages,
                "total_count": total_count,
                "limit": filters.limit,
            },
        }

    except OperationalError as e:
        raise _store_unavailable(e)
    except Exception as e:
        logger.error(f"Error querying transactions: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error querying transactions: {str(e)}"
        )


@router.get(
    "/stats",
    response_model=TransactionStatsResponse,
    summary="Transaction statistics",
    description="Totals and status breakdown over the filtered transactions",
)
def transaction_stats(request: Request):
    """
    Summarize the transactions matching the same filters as the listing

    Returns:
        TransactionStatsResponse: totalTransactions, totalRevenue, statusBreakdown
    """
    filters = FilterRequest.from_query_params(request.query_params)
    try:
        return {"data": get_transaction_stats(filters)}

    except OperationalError as e:
        raise _store_unavailable(e)
    except Exception as e:
        logger.error(f"Error computing transaction statistics: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error computing transaction statistics: {str(e)}"
        )


@router.get(
    "/filter-options",
    response_model=FilterOptionsResponse,
    summary="Filter options",
    description="Distinct filter values, top tags and value ranges",
)
def filter_options():
    try:
        return {"data": get_filter_options()}

    except OperationalError as e:
        raise _store_unavailable(e)
    except Exception as e:
        logger.error(f"Error retrieving filter options: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error retrieving filter options: {str(e)}"
        )


@router.get(
    "/export",
    summary="Export transactions",
    description="Export every filtered transaction as CSV or Excel",
)
def export_transactions_file(request: Request, format: str = "csv"):
    """
    Export every transaction matching the filters, ignoring pagination

    Args:
        request: Incoming request carrying the filter parameters
        format: Export format (csv or excel)

    Returns:
        StreamingResponse: File download response
    """
    export_format = format.lower()
    if export_format not in EXPORT_FORMATS:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Unsupported export format. Use 'csv' or 'excel'"
        )

    filters = FilterRequest.from_query_params(request.query_params)
    try:
        records = export_transactions(filters)

        rows = []
        for record in records:
            row = record.model_dump(mode="json", by_alias=True)
            row["tags"] = ", ".join(row["tags"])
            rows.append(row)
        df = pd.DataFrame(rows, columns=EXPORT_COLUMNS)

        media_type, extension = EXPORT_FORMATS[export_format]
        timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
        filename = f"transactions_{timestamp}.{extension}"

        # Create in-memory file
        if export_format == "csv":
            output = io.BytesIO(df.to_csv(index=False).encode("utf-8"))
        else:
            output = io.BytesIO()
            df.to_excel(output, index=False)
            output.seek(0)

        logger.info(f"Exporting {len(rows)} transactions as {export_format}")

        return StreamingResponse(
            output,
            media_type=media_type,
            headers={
                "Content-Disposition": f"attachment; filename={filename}"
            }
        )

    except OperationalError as e:
        raise _store_unavailable(e)
    except Exception as e:
        logger.error(f"Error exporting transactions: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error exporting transactions: {str(e)}"
        )


@router.get(
    "/{transaction_id}",
    response_model=TransactionResponse,
    summary="Get transaction by ID",
    description="Get a specific transaction by its display ID",
)
def get_transaction(transaction_id: str):
    try:
        record = get_transaction_by_id(transaction_id)

        if not record:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail=f"Transaction with ID {transaction_id} not found"
            )

        return {"data": record}

    except HTTPException:
        raise
    except OperationalError as e:
        raise _store_unavailable(e)
    except Exception as e:
        logger.error(f"Error retrieving transaction: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Error retrieving transaction: {str(e)}"
        )
