import logging
import json
import time
import random
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

# Wide-event request log; kept off the root logger to avoid double logging.
structured_logger = logging.getLogger("api.structured_log")
structured_logger.propagate = False

# logging.ini normally configures this logger; fall back to raw JSON on stderr.
if not structured_logger.handlers:
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter("%(message)s"))
    structured_logger.addHandler(handler)
    structured_logger.setLevel(logging.INFO)


class StructuredLoggingMiddleware(BaseHTTPMiddleware):
    """
    One JSON log line per request, tail sampled:

    1. Always log server errors (status >= 500)
    2. Always log slow requests (> 500ms)
    3. Otherwise log a random 5% sample
    """

    SLOW_THRESHOLD_MS = 500
    SAMPLE_RATE = 0.05

    def should_log(self, status_code: int, duration_ms: float) -> bool:
        if status_code >= 500:
            return True
        if duration_ms > self.SLOW_THRESHOLD_MS:
            return True
        return random.random() < self.SAMPLE_RATE

    async def dispatch(self, request: Request, call_next):
        start_time = time.perf_counter()

        response = None
        error_details = None
        status_code = 500  # stays 500 if the handler raises

        try:
            response = await call_next(request)
            status_code = response.status_code
        except Exception as e:
            error_details = str(e)
            raise
        finally:
            duration_ms = (time.perf_counter() - start_time) * 1000

            if self.should_log(status_code, duration_ms):
                # Routes that act on behalf of a user record it on request.state
                acting_user = getattr(request.state, "user_id", None)

                log_payload = {
                    "timestamp": time.time(),
                    "method": request.method,
                    "path": request.url.path,
                    "status_code": status_code,
                    "duration_ms": round(duration_ms, 2),
                    "client_ip": request.client.host if request.client else None,
                    "user_agent": request.headers.get("user-agent"),
                    "query_params": dict(request.query_params),
                    "error": error_details,
                    "user_id": str(acting_user) if acting_user else None,
                }

                structured_logger.info(json.dumps(log_payload))

        return response
