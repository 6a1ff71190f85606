"""Security middleware: optional Basic Auth gate, no-index and no-store headers, request timing."""
import base64
import binascii
import secrets
import time

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

from ads_analyzer.config import get_settings
from ads_analyzer.utils.logger import log

# Paths reachable without credentials
OPEN_PATHS = ("/health", "/robots.txt")


class SecurityMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next):
        settings = get_settings()
        path = request.url.path

        if settings.dash_user and settings.dash_pass and not path.startswith(OPEN_PATHS):
            if not self._check_basic_auth(request.headers.get("authorization", ""), settings):
                return JSONResponse(
                    status_code=401,
                    content={"success": False, "error": "Unauthorized"},
                    headers={"WWW-Authenticate": 'Basic realm="Ad-Spend Analyzer"'},
                )

        started = time.perf_counter()
        response: Response = await call_next(request)
        elapsed_ms = (time.perf_counter() - started) * 1000

        response.headers["X-Robots-Tag"] = "noindex, nofollow"
        # Analysis responses carry the advertiser's revenue figures
        if "application/json" in response.headers.get("content-type", ""):
            response.headers["Cache-Control"] = "no-store"
        response.headers["X-Process-Time-Ms"] = f"{elapsed_ms:.1f}"

        log.debug(f"{request.method} {path} -> {response.status_code} in {elapsed_ms:.1f}ms")
        return response

    @staticmethod
    def _check_basic_auth(header: str, settings) -> bool:
        if not header.startswith("Basic "):
            return False
        try:
            user, password = base64.b64decode(header[6:]).decode("utf-8").split(":", 1)
        except (binascii.Error, UnicodeDecodeError, ValueError):
            return False
        return (
            secrets.compare_digest(user, settings.dash_user)
            and secrets.compare_digest(password, settings.dash_pass)
        )
