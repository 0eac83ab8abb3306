import uuid

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

from absence_tracker.core.config import settings
from absence_tracker.core.logging import request_id_var


class CorrelationIdMiddleware(BaseHTTPMiddleware):
    """Tags every log line of a request with the caller's request id (or a fresh one)."""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get(settings.request_id_header) or str(uuid.uuid4())
        token = request_id_var.set(request_id)
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        response.headers[settings.request_id_header] = request_id
        return response
