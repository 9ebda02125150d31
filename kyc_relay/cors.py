"""CORS handling: 204 on every preflight, permissive or allow-listed origins."""

import re
from typing import Dict, Optional

from fastapi import Request
from fastapi.responses import Response

from kyc_relay.config import settings

ALLOW_METHODS = "GET,POST,OPTIONS"
ALLOW_HEADERS = "Content-Type, Authorization"
MAX_AGE = "3600"


def allowed_origin(origin: Optional[str]) -> Optional[str]:
    """
    Return the Access-Control-Allow-Origin value for a request origin.

    Without a configured allow-list every origin is allowed ("*"). With one,
    the origin is echoed back when it is listed or matches CORS_ORIGIN_REGEX.
    """
    origins = settings.cors_origins
    if not origins and not settings.CORS_ORIGIN_REGEX:
        return "*"
    if "*" in origins:
        return "*"
    if not origin:
        return None
    if origin in origins:
        return origin
    if settings.CORS_ORIGIN_REGEX and re.fullmatch(settings.CORS_ORIGIN_REGEX, origin):
        return origin
    return None


def cors_headers(origin: Optional[str]) -> Dict[str, str]:
    headers = {
        "Access-Control-Allow-Methods": ALLOW_METHODS,
        "Access-Control-Allow-Headers": ALLOW_HEADERS,
        "Access-Control-Max-Age": MAX_AGE,
    }
    allow = allowed_origin(origin)
    if allow:
        headers["Access-Control-Allow-Origin"] = allow
        if allow != "*":
            headers["Vary"] = "Origin"
    return headers


async def cors_middleware(request: Request, call_next):
    """Answer OPTIONS with 204 and decorate every other response."""
    headers = cors_headers(request.headers.get("origin"))

    if request.method == "OPTIONS":
        return Response(status_code=204, headers=headers)

    response = await call_next(request)
    response.headers.update(headers)
    return response
