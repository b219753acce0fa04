"""CORS gate for the relay endpoints.

Every gated route answers through `CORSGateMiddleware.dispatch`, which:

- answers OPTIONS preflight with 204 and no body
- answers any other non-POST method with 405 {"error": "Method Not Allowed"}
- otherwise runs the route, turning any exception that escapes it into a
  500 {"error": ...} envelope
- attaches the CORS headers to whichever response came out, once

Browsers read the headers on error responses too, so no exit path may
skip the final header step.
"""

import logging
import re
from typing import Dict, Optional

from fastapi import Request
from fastapi.responses import JSONResponse, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.types import ASGIApp


logger = logging.getLogger(__name__)

ALLOWED_METHODS = "POST, OPTIONS"
ALLOWED_HEADERS = "Content-Type, Authorization"
MAX_AGE_SECONDS = "86400"


class OriginPolicy:
    """Decides the single origin value echoed in Access-Control-Allow-Origin."""

    def resolve(self, origin: Optional[str]) -> str:
        raise NotImplementedError


class StrictOriginPolicy(OriginPolicy):
    """Echo origins matching `pattern` exactly; everything else gets `default_origin`."""

    def __init__(self, pattern: str, default_origin: str):
        self.pattern = re.compile(pattern)
        self.default_origin = default_origin

    def resolve(self, origin: Optional[str]) -> str:
        if origin and self.pattern.fullmatch(origin):
            return origin
        return self.default_origin


class PermissiveOriginPolicy(OriginPolicy):
    """Allow any origin."""

    def resolve(self, origin: Optional[str]) -> str:
        return "*"


def cors_headers(allow_origin: str) -> Dict[str, str]:
    return {
        "Access-Control-Allow-Origin": allow_origin,
        "Access-Control-Allow-Methods": ALLOWED_METHODS,
        "Access-Control-Allow-Headers": ALLOWED_HEADERS,
        "Access-Control-Max-Age": MAX_AGE_SECONDS,
    }


class CORSGateMiddleware(BaseHTTPMiddleware):
    """Apply an OriginPolicy per path.

    Parameters
    ----------
    policies:
        Mapping of request path (without trailing slash) -> OriginPolicy.
        Paths not listed (health checks, docs) pass through untouched.
    """

    def __init__(self, app: ASGIApp, policies: Dict[str, OriginPolicy]) -> None:
        super().__init__(app)
        self.policies = dict(policies)

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        # "/api/chat/" is redirected by the router; it still needs the headers.
        policy = self.policies.get(request.url.path.rstrip("/") or "/")
        if policy is None:
            return await call_next(request)

        allow_origin = policy.resolve(request.headers.get("origin"))

        try:
            if request.method == "OPTIONS":
                response = Response(status_code=204)
            elif request.method != "POST":
                response = JSONResponse({"error": "Method Not Allowed"}, status_code=405)
            else:
                response = await call_next(request)
        except Exception as e:
            logger.exception("[CORS] Unhandled error on %s %s", request.method, request.url.path)
            response = JSONResponse({"error": str(e) or type(e).__name__}, status_code=500)

        response.headers.update(cors_headers(allow_origin))
        return response
