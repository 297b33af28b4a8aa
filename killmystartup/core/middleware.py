"""Request middleware binding log context for the intel API."""

import time
import uuid

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from killmystartup.core.logging import bind_industry, get_logger, request_id_var, user_id_var

logger = get_logger(__name__)


class ObservabilityMiddleware(BaseHTTPMiddleware):
    """Binds request_id, user_id and industry to every log line of a request.

    The industry comes from the query string here (GET and DELETE
    endpoints); POST handlers bind it once the body is parsed.
    """

    async def dispatch(
        self,
        request: Request,
        call_next: RequestResponseEndpoint,
    ) -> Response:
        request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
        request_id_var.set(request_id)

        # Forwarded by the dashboard for signed-in founders
        raw_user = request.headers.get("x-user-id")
        if raw_user:
            user_id_var.set(raw_user)

        bind_industry(request.query_params.get("industry"))

        started = time.perf_counter()
        response = await call_next(request)
        duration_ms = round((time.perf_counter() - started) * 1000, 1)

        response.headers["x-request-id"] = request_id

        log = logger.warning if response.status_code >= 500 else logger.debug
        log(
            "request_finished",
            method=request.method,
            path=request.url.path,
            status_code=response.status_code,
            duration_ms=duration_ms,
        )

        return response
