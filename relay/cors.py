import logging
from typing import Optional

from fastapi import Request
from fastapi.responses import Response

from relay.config import CorsPolicy
from relay.headers import HeaderMultiMap

logger = logging.getLogger("uvicorn.error")


def _origin_headers(origin: str, policy: CorsPolicy) -> HeaderMultiMap:
    headers = HeaderMultiMap()
    if policy.allow_credentials or "*" not in policy.allow_origins:
        headers.add("Access-Control-Allow-Origin", origin)
        headers.add("Vary", "Origin")
    else:
        headers.add("Access-Control-Allow-Origin", "*")
    if policy.allow_credentials:
        headers.add("Access-Control-Allow-Credentials", "true")
    return headers


def _merge_vary(headers: HeaderMultiMap, field_name: str) -> None:
    existing = headers.get("vary")
    if existing is None:
        headers.add("Vary", field_name)
        return
    listed = [item.strip().lower() for item in existing.split(",")]
    if "*" not in listed and field_name.lower() not in listed:
        headers.merge("Vary", field_name)


def is_preflight(request: Request) -> bool:
    return (
        request.method == "OPTIONS"
        and "origin" in request.headers
        and "access-control-request-method" in request.headers
    )


def cors_precheck(request: Request, policy: CorsPolicy) -> Optional[Response]:
    """
    Run before any other handling. Returns a response when the request is
    fully answered here (preflight or rejected origin), otherwise ``None``.
    """
    origin = request.headers.get("origin")
    if not origin:
        return None

    if not policy.allows(origin):
        logger.info(f"[CORS] Rejected origin {origin} for {request.method} {request.url.path}")
        return Response(status_code=403, content="Origin not allowed")

    if not is_preflight(request):
        return None

    headers = _origin_headers(origin, policy)
    headers.add("Access-Control-Allow-Methods", ", ".join(policy.allow_methods))
    requested_headers = request.headers.get("access-control-request-headers")
    if requested_headers:
        headers.add("Access-Control-Allow-Headers", requested_headers)
        headers.merge("Vary", "Access-Control-Request-Headers")
    headers.add("Access-Control-Max-Age", str(policy.max_age))

    response = Response(status_code=204)
    response.raw_headers = headers.raw()
    logger.debug(f"[CORS] Answered preflight for {origin} on {request.url.path}")
    return response


def apply_cors_headers(
    headers: HeaderMultiMap, request: Request, policy: CorsPolicy
) -> HeaderMultiMap:
    """
    Add the policy's response headers for any name the response does not
    already carry. ``Origin`` is always folded into ``Vary``.
    """
    origin = request.headers.get("origin")
    if not origin or not policy.allows(origin):
        return headers
    for name, value in _origin_headers(origin, policy).items():
        if name.lower() == "vary":
            _merge_vary(headers, value)
        else:
            headers.setdefault(name, value)
    return headers
