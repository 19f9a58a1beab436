"""
VideoTube Backend — Request Body Size Middleware
==================================================

What:  Rejects oversized non-multipart request bodies with 413.
Why:   JSON and urlencoded endpoints (login, refresh) only ever need a few
       hundred bytes; anything beyond settings.json_body_limit (16 KiB by
       default) is refused before a route parses it.
How:   Compares the Content-Length header against the limit.

Multipart requests are exempt here. Their files are bounded per file by
FileStager.validate_size (settings.max_file_size).
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from app.config import settings
from app.middleware.request_id import request_id_var
from app.schemas.common import error_body

logger = logging.getLogger(__name__)


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """Content-Length based body size guard for non-multipart requests."""

    def __init__(self, app, limit: int = 0, **kwargs):
        super().__init__(app, **kwargs)
        self.limit = limit or settings.json_body_limit

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        content_type = request.headers.get("content-type", "")
        if content_type.startswith("multipart/form-data"):
            return await call_next(request)

        raw_length = request.headers.get("content-length")
        if raw_length is None:
            return await call_next(request)

        try:
            length = int(raw_length)
        except ValueError:
            length = -1

        if length < 0 or length > self.limit:
            rid = request_id_var.get("")
            logger.warning(
                "Rejected body of %s bytes on %s %s (limit %d)",
                raw_length,
                request.method,
                request.url.path,
                self.limit,
            )
            status = 413 if length > self.limit else 400
            return JSONResponse(
                status_code=status,
                content=error_body(
                    statuscode=status,
                    error="payload_too_large" if status == 413 else "bad_request",
                    message=(
                        f"Request body exceeds the maximum of {self.limit} bytes."
                        if status == 413
                        else "Invalid Content-Length header."
                    ),
                    request_id=rid,
                    details={"limit": self.limit},
                ),
            )

        return await call_next(request)
