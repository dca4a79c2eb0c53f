"""
Shared test fixtures

Points the application at an in-memory SQLite store before anything imports
the settings, and recreates the schema for every test.
"""

import os

os.environ["DATABASE_URL"] = "sqlite://"
os.environ["DB_RETRY_ATTEMPTS"] = "1"
os.environ["DB_RETRY_DELAY"] = "0"

from datetime import datetime, timedelta
import itertools

import pytest
from fastapi.testclient import TestClient

from retail_dashboard.api.main import app
from retail_dashboard.db.session import Base, engine, get_db_session
from retail_dashboard.models.models import Transaction, TransactionTag

_sequence = itertools.count(1)


def make_transaction(**overrides) -> Transaction:
    """Build a valid transaction; keyword arguments override the defaults"""
    number = next(_sequence)
    tags = overrides.pop("tags", ["organic"])
    values = {
        "transaction_id": f"TXN-{number:05d}",
        "date": datetime(2024, 1, 1, 12, 0) + timedelta(days=number % 28),
        "customer_name": f"Customer {number}",
        "phone": f"98765{number:05d}",
        "age": 30,
        "gender": "Female",
        "product_name": "Cotton T-Shirt",
        "product_category": "Clothing",
        "quantity": 1,
        "price_per_unit": 100.0,
        "final_amount": 100.0,
        "payment_method": "UPI",
        "delivery_type": "Standard",
        "region": "North",
        "status": "Completed",
    }
    values.update(overrides)
    record = Transaction(**values)
    record.tags = [TransactionTag(tag=tag) for tag in tags]
    return record


@pytest.fixture(autouse=True)
def reset_database():
    """Fresh schema for each test"""
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def add_transactions():
    """Insert transactions built from keyword dicts; returns their display IDs"""
    def _add(*rows):
        records = [make_transaction(**dict(row)) for row in rows]
        with get_db_session() as session:
            session.add_all(records)
            session.flush()
            return [record.transaction_id for record in records]
    return _add


@pytest.fixture
def three_transactions(add_transactions):
    """Amounts [100, 500, 900], statuses [Completed, Pending, Completed]"""
    return add_transactions(
        {"final_amount": 100.0, "status": "Completed"},
        {"final_amount": 500.0, "status": "Pending"},
        {"final_amount": 900.0, "status": "Completed"},
    )


@pytest.fixture
def client():
    return TestClient(app)
