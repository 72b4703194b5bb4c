import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware

from app.config import get_settings
from app.security import decode_access_token


def setup_logging() -> None:
    """Configure the root logger once: one stream handler, UTC timestamps."""
    level = getattr(logging, get_settings().log_level.upper(), logging.INFO)
    formatter = logging.Formatter(
        "%(asctime)sZ | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )
    formatter.converter = time.gmtime

    handler = logging.StreamHandler()
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)
    root.handlers = [handler]


def _user_id_from_header(request):
    auth = request.headers.get("authorization") or ""
    scheme, _, token = auth.partition(" ")
    if scheme.lower() != "bearer" or not token:
        return None
    ctx = decode_access_token(token)
    return ctx.user_id if ctx else None


class RequestLogMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request, call_next):
        start = time.perf_counter()
        user_id = _user_id_from_header(request)

        response = await call_next(request)
        ms = (time.perf_counter() - start) * 1000
        logging.getLogger("ledger.req").info(
            "%s %s -> %s in %.1fms user=%s",
            request.method,
            request.url.path,
            response.status_code,
            ms,
            user_id,
        )
        return response
