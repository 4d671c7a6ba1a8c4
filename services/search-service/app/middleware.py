import json
import logging
import time
import uuid

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

logger = logging.getLogger("search-service.access")


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        request_id = request.headers.get("X-Request-Id") or str(uuid.uuid4())
        request.state.request_id = request_id

        start = time.perf_counter()
        entry = {
            "request_id": request_id,
            "method": request.method,
            "path": request.url.path,
        }
        try:
            response: Response = await call_next(request)
        except Exception:
            entry["status"] = 500
            entry["duration_ms"] = round((time.perf_counter() - start) * 1000, 2)
            logger.error(json.dumps(entry))
            raise

        entry["status"] = response.status_code
        entry["duration_ms"] = round((time.perf_counter() - start) * 1000, 2)
        response.headers["X-Request-Id"] = request_id
        logger.info(json.dumps(entry))
        return response
