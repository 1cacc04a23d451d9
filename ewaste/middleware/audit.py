import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

log = logging.getLogger("ewaste.audit")


class AuditMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        start = time.perf_counter()
        response = await call_next(request)
        user_id = getattr(request.state, "user_id", None)
        log.info(
            "%s %s -> %s user=%s ip=%s latency_ms=%d",
            request.method,
            request.url.path,
            response.status_code,
            user_id,
            request.client.host if request.client else None,
            int((time.perf_counter() - start) * 1000),
        )
        return response
