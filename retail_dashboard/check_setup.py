#!/usr/bin/env python
"""
Setup check for the Retail Transactions Dashboard

Verifies the transaction store is reachable, reports how many transactions it
holds, runs a sample keyword search through the query builder and prints one
record.

Usage:
    python -m retail_dashboard.check_setup [--keyword phone]
"""

import argparse
import logging
import sys

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError

from retail_dashboard.api.models.transaction import FilterRequest
from retail_dashboard.api.services.query_builder import apply_filters
from retail_dashboard.config.settings import settings
from retail_dashboard.db.session import check_database_connection, get_db_session, init_db
from retail_dashboard.models.models import Transaction

logger = logging.getLogger("check_setup")


def run_checks(keyword: str = "phone", out=print) -> int:
    """
    Run the setup checks

    Returns:
        int: Process exit code (0 on success)
    """
    out("1. Checking database connection...")
    if not check_database_connection():
        out("   Database connection failed")
        out("   Is the database running, and is DATABASE_URL (or DB_*) correct?")
        return 1
    init_db()
    out("   Database connected successfully")

    out("2. Checking database for transactions...")
    try:
        with get_db_session() as session:
            count = session.query(func.count(Transaction.id)).scalar()
            out(f"   Found {count:,} transactions")

            if count == 0:
                out("   WARNING: database is empty; load transaction data first")
                return 0

            out(f"3. Testing search for '{keyword}'...")
            filters = FilterRequest.from_query_params({"keyword": keyword})
            matches = apply_filters(session.query(func.count(Transaction.id)), filters).scalar()
            out(f"   Search for '{keyword}' found {matches:,} results")

            out("4. Sample transaction:")
            sample = session.query(Transaction).order_by(Transaction.id.asc()).first()
            out(f"   Customer: {sample.customer_name}")
            out(f"   Product:  {sample.product_name}")
            out(f"   Phone:    {sample.phone}")
            out(f"   Amount:   {sample.final_amount}")

    except SQLAlchemyError as e:
        logger.error(f"Error checking database: {str(e)}")
        out(f"   Error checking database: {str(e)}")
        return 1

    out("Setup check complete")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description=f"{settings.APP_NAME} setup check")
    parser.add_argument("--keyword", default="phone", help="Keyword used for the sample search")
    args = parser.parse_args(argv)

    logging.basicConfig(level=logging.WARNING, format="%(asctime)s - %(levelname)s - %(message)s")
    return run_checks(args.keyword)


if __name__ == "__main__":
    sys.exit(main())
