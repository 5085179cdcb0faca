"""
Flock Backend — Request ID Middleware
======================================

What:  Assigns a correlation id to each request and returns it in X-Request-ID.
Why:   Every log line of one request shares the id, and error bodies carry it,
       so a user-reported error can be found in the logs.
How:   Client-sent X-Request-ID is reused; otherwise a short UUID is generated.
       The id is stored in a ContextVar (coroutine-local) and request.state.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

# Coroutine-local: concurrent requests on one event loop each see their own id
request_id_var: ContextVar[str] = ContextVar("request_id", default="")


class RequestIDMiddleware(BaseHTTPMiddleware):

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        rid = request.headers.get("X-Request-ID") or str(uuid.uuid4())[:8]

        # Not reset afterwards: the outermost 500 handler still reads it
        request_id_var.set(rid)
        request.state.request_id = rid

        response = await call_next(request)

        response.headers["X-Request-ID"] = rid
        return response
