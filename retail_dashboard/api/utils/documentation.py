"""
Utilities for enhancing API documentation
"""

from fastapi import FastAPI
from fastapi.openapi.utils import get_openapi

API_DESCRIPTION = """
# Retail Transactions Dashboard API

Read-only access to retail transactions for the sales dashboard.

## Features

- **Transactions**: Search, filter, sort and paginate transactions
- **Statistics**: Totals and status breakdown for the same filters
- **Filter Options**: Available filter values, top tags and value ranges
- **Export**: Download the filtered transactions as CSV or Excel

## Filters

Multi-value filters (`region`, `gender`, `status`, `paymentMethod`,
`productCategory`, `deliveryType`, `tags`) are repeated query keys. Values of
one key are OR-ed; different keys are AND-ed. Malformed range bounds are
ignored rather than rejected.
"""

OPENAPI_TAGS = [
    {
        "name": "Transactions",
        "description": "Query, summarize and export retail transactions"
    },
    {
        "name": "Health",
        "description": "Health check endpoints for monitoring"
    },
]


def install_custom_openapi(app: FastAPI):
    """
    Customize the OpenAPI documentation of the given app
    """
    def custom_openapi():
        if app.openapi_schema:
            return app.openapi_schema

        openapi_schema = get_openapi(
            title=app.title,
            version=app.version,
            description=API_DESCRIPTION,
            routes=app.routes,
        )
        openapi_schema["tags"] = OPENAPI_TAGS

        app.openapi_schema = openapi_schema
        return app.openapi_schema

    app.openapi = custom_openapi
