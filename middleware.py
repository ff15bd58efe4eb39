"""
middleware.py - Request tracking and admission middleware
"""
import re
import time
import uuid

from fastapi import Request, status
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware

from config import settings
from logger import get_logger, request_id_var

logger = get_logger(__name__)

# Client supplied ids are echoed in headers and logs
REQUEST_ID_PATTERN = re.compile(r"^[A-Za-z0-9._-]{1,64}$")

# Worst case size of one character in UTF-8
MAX_BYTES_PER_CHAR = 4


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Give each request an id, reported in the response headers and in error bodies"""

    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-ID", "")
        if not REQUEST_ID_PATTERN.match(request_id):
            request_id = str(uuid.uuid4())
        request.state.request_id = request_id
        token = request_id_var.set(request_id)

        start_time = time.time()
        try:
            response = await call_next(request)
        finally:
            request_id_var.reset(token)
        process_time = time.time() - start_time

        response.headers["X-Request-ID"] = request_id
        response.headers["X-Process-Time"] = str(process_time)

        logger.info(
            f"Request {request_id}: {request.method} {request.url.path} "
            f"- {response.status_code} - {process_time:.3f}s"
        )

        return response


class BodySizeLimitMiddleware(BaseHTTPMiddleware):
    """
    Reject bodies that cannot hold a text within the maximum length, before
    reading them. Texts are measured in characters once decoded by the routes.
    """

    def __init__(self, app, max_text_length: int = None, exclude_paths: list = None):
        super().__init__(app)
        self.max_bytes = (max_text_length or settings.get('max_text_length', 100000)) * MAX_BYTES_PER_CHAR
        # JSON bodies carry candidates and escapes besides the text
        self.max_bytes += 64 * 1024
        self.exclude_paths = exclude_paths or ["/health", "/metrics", "/languages"]

    async def dispatch(self, request: Request, call_next):
        if request.method in ["GET", "HEAD", "OPTIONS"] or request.url.path in self.exclude_paths:
            return await call_next(request)

        content_length = request.headers.get("Content-Length")
        if content_length and content_length.isdigit() and int(content_length) > self.max_bytes:
            request_id = getattr(request.state, "request_id", "unknown")
            logger.warning(f"Rejected request {request_id}: body of {content_length} bytes")
            return JSONResponse(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                content={"detail": "Request body too large", "request_id": request_id}
            )

        return await call_next(request)
