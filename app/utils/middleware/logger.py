import logging
import time
import uuid
import contextvars
from typing import Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request

# Context var to store request id so any code during the request can fetch it
request_id_ctx: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar("request_id", default=None)

REQUEST_ID_HEADER = "X-Request-ID"


class RequestIdFilter(logging.Filter):
    """Attach request_id to every LogRecord so formatter can include it."""
    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = request_id_ctx.get() or "-"
        return True


def setup_logging(level: int | str = logging.INFO) -> None:
    """
    Configure the root logger once at app startup.

    Every record goes through RequestIdFilter, so booking logs written while
    serving a request can be correlated with its request.start/request.end lines.
    """
    root = logging.getLogger()
    if any(isinstance(f, RequestIdFilter) for h in root.handlers for f in h.filters):
        # Avoid adding duplicate handlers when reloading during development
        return

    handler = logging.StreamHandler()
    fmt = "%(asctime)s %(levelname)s [%(request_id)s] %(name)s: %(message)s"
    handler.setFormatter(logging.Formatter(fmt))
    handler.addFilter(RequestIdFilter())

    root.setLevel(level)
    root.addHandler(handler)

    logging.getLogger("sqlalchemy").setLevel(logging.WARNING)


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Request logger.

    - Reuses an incoming X-Request-ID header or generates one, stores it in a
      context var and echoes it back on the response.
    - Logs request start (method, path, client) and end (status, duration_ms).
    """

    async def dispatch(self, request: Request, call_next):
        req_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        token = request_id_ctx.set(req_id)

        logger = logging.getLogger("app.middleware")
        start = time.perf_counter()

        try:
            client_host = request.client.host if request.client else None
            logger.info(
                "request.start %s %s client=%s",
                request.method,
                request.url.path,
                client_host,
            )

            response = await call_next(request)

            duration_ms = int((time.perf_counter() - start) * 1000)
            logger.info(
                "request.end %s %s status=%s duration_ms=%s",
                request.method,
                request.url.path,
                response.status_code,
                duration_ms,
            )
            response.headers[REQUEST_ID_HEADER] = req_id
            return response

        except Exception:
            duration_ms = int((time.perf_counter() - start) * 1000)
            logger.exception(
                "request.error %s %s duration_ms=%s",
                request.method,
                request.url.path,
                duration_ms,
            )
            raise
        finally:
            request_id_ctx.reset(token)


def get_request_id() -> Optional[str]:
    return request_id_ctx.get()
