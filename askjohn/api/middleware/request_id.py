"""Request ID middleware.

Takes the caller's X-Request-ID header or generates one, binds it to the
structlog context for the lifetime of the request and echoes it on the
response, so every log line of a chat turn carries the same id.
"""

import uuid

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware

from askjohn.observability.logging import bind_request, unbind_request

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Binds a request id to the logging context of each request."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(REQUEST_ID_HEADER) or generate_request_id()
        request.state.request_id = request_id

        bind_request(request_id)
        try:
            response: Response = await call_next(request)
        finally:
            unbind_request()

        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def generate_request_id() -> str:
    """UUID4 in hex."""
    return uuid.uuid4().hex
