"""Origin allowlist enforcement for HTTP requests."""

import logging

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse

logger = logging.getLogger(__name__)


def is_origin_allowed(origin: str | None, allowed_origins: list[str], own_origin: str) -> bool:
    """Check an Origin header against the allowlist.

    Requests without an Origin header and same-origin requests always pass.
    """
    if not origin:
        return True
    if origin in allowed_origins:
        return True
    return origin.rstrip("/") == own_origin.rstrip("/")


class OriginGuardMiddleware(BaseHTTPMiddleware):
    """Reject cross-origin HTTP requests from origins outside the allowlist.

    CORSMiddleware only withholds response headers from disallowed origins.
    This middleware stops them before they reach a handler.
    """

    def __init__(self, app, allowed_origins: list[str]):
        super().__init__(app)
        self.allowed_origins = allowed_origins

    async def dispatch(self, request: Request, call_next):
        origin = request.headers.get("origin")
        own_origin = f"{request.url.scheme}://{request.url.netloc}"
        if not is_origin_allowed(origin, self.allowed_origins, own_origin):
            logger.warning(f"Blocked request from origin {origin} to {request.url.path}")
            return JSONResponse(status_code=403, content={"error": "Not allowed by CORS"})
        return await call_next(request)
