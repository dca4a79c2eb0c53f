"""
Request logging middleware for the API

Provides request/response logging for monitoring and debugging.
"""

import time
import uuid
import logging
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

# Configure logging
logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Middleware for logging requests and responses

    Reuses an incoming X-Request-ID or generates one, exposes it as
    ``request.state.request_id`` and echoes it on the response.
    """

    async def dispatch(self, request: Request, call_next):
        """
        Log request and response information

        Args:
            request: Incoming request
            call_next: Next middleware in the chain

        Returns:
            Response from downstream middleware, tagged with its request ID
        """
        request_id = request.headers.get(REQUEST_ID_HEADER) or str(uuid.uuid4())
        request.state.request_id = request_id

        client_host = request.client.host if request.client else "unknown"
        user_agent = request.headers.get("user-agent", "unknown")

        start_time = time.time()

        query = f"?{request.url.query}" if request.url.query else ""
        logger.info(
            f"Request {request_id} started: {request.method} {request.url.path}{query} "
            f"from {client_host} - User-Agent: {user_agent}"
        )

        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.time() - start_time
            logger.error(
                f"Request {request_id} failed: {str(e)} in {process_time:.3f}s"
            )
            raise

        process_time = time.time() - start_time
        logger.info(
            f"Request {request_id} completed: {response.status_code} "
            f"in {process_time:.3f}s"
        )

        response.headers[REQUEST_ID_HEADER] = request_id
        return response
