"""Colored request logger — one ANSI-colored console line per HTTP request.

Color scheme (by response status):
    🟢 Green   — 2xx
    🔵 Cyan    — 3xx
    🟡 Yellow  — 4xx
    🔴 Red     — 5xx
    ⚪ Gray    — Timing
"""

import logging
import time

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

REQUEST_LOGGER_NAME = "dualstore.requests"


# ── ANSI Color Codes ─────────────────────────────────────────────────

class _Colors:
    """ANSI escape codes for terminal colors."""

    RESET = "\033[0m"
    BOLD = "\033[1m"

    RED = "\033[91m"
    GREEN = "\033[92m"
    YELLOW = "\033[93m"
    CYAN = "\033[96m"
    GRAY = "\033[90m"


def status_color(status_code: int) -> str:
    if status_code >= 500:
        return _Colors.RED
    if status_code >= 400:
        return _Colors.YELLOW
    if status_code >= 300:
        return _Colors.CYAN
    return _Colors.GREEN


def format_request_line(method: str, path: str, status_code: int, duration_ms: float) -> str:
    """``GET /api/mongo/users - 200 - 3.2ms`` with method and status colored."""
    color = status_color(status_code)
    return (
        f"{color}{_Colors.BOLD}{method}{_Colors.RESET} {path} - "
        f"{color}{status_code}{_Colors.RESET} - "
        f"{_Colors.GRAY}{duration_ms:.1f}ms{_Colors.RESET}"
    )


# ── Middleware ───────────────────────────────────────────────────────

class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs method, path, status and duration once the response is ready.

    Unhandled exceptions are logged as status 500 and re-raised.
    """

    def __init__(self, app, logger_name: str = REQUEST_LOGGER_NAME):
        super().__init__(app)
        self._logger = logging.getLogger(logger_name)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.perf_counter()
        path = request.url.path
        if request.url.query:
            path = f"{path}?{request.url.query}"
        try:
            response = await call_next(request)
        except Exception:
            elapsed = (time.perf_counter() - start) * 1000
            self._logger.error(format_request_line(request.method, path, 500, elapsed))
            raise
        elapsed = (time.perf_counter() - start) * 1000
        line = format_request_line(request.method, path, response.status_code, elapsed)
        if response.status_code >= 500:
            self._logger.error(line)
        elif response.status_code >= 400:
            self._logger.warning(line)
        else:
            self._logger.info(line)
        return response
