import logging
from urllib.parse import urljoin, urlsplit, urlunsplit

from relay.headers import HeaderMultiMap
from relay.proxy.target import TargetDescriptor

logger = logging.getLogger("uvicorn.error")

# Connection-scoped headers that never cross the relay. Fixed and exhaustive.
HOP_BY_HOP_HEADERS = frozenset(
    {
        "connection",
        "keep-alive",
        "public",
        "proxy-authenticate",
        "transfer-encoding",
        "upgrade",
    }
)


def absolutize_location(location: str, target: TargetDescriptor) -> str:
    """Resolve a redirect target against the URL the request was relayed to."""
    resolved = urljoin(target.href, location)
    parts = urlsplit(resolved)
    if parts.scheme and parts.netloc and not parts.path:
        resolved = urlunsplit(parts._replace(path="/"))
    return resolved


def rewrite_location(location: str, target: TargetDescriptor) -> str:
    """
    Re-encode a redirect as a relay-local path so following it routes back
    through the relay: ``/b`` from ``https://example.com/a`` becomes
    ``/https://example.com/b``.
    """
    return "/" + absolutize_location(location, target)


def rewrite_response_headers(
    upstream_headers: HeaderMultiMap,
    target: TargetDescriptor,
    merge_set_cookie: bool = False,
) -> HeaderMultiMap:
    """
    Build the header set sent back to the caller.

    Hop-by-hop headers are dropped, repeated names are folded into one
    ``", "``-joined value in arrival order, and ``location`` is rewritten to a
    relay-local path. ``set-cookie`` stays one line per cookie unless
    ``merge_set_cookie`` is set, because cookie values may contain commas.
    """
    headers = HeaderMultiMap()
    for name, value in upstream_headers.items():
        name_lower = name.lower()
        if name_lower in HOP_BY_HOP_HEADERS:
            continue
        if name_lower == "set-cookie" and not merge_set_cookie:
            headers.add(name, value)
        else:
            headers.merge(name, value)

    location = headers.get("location")
    if location:
        rewritten = rewrite_location(location, target)
        logger.debug(f"[Relay] Rewrote location {location} -> {rewritten}")
        headers.set("location", rewritten)

    return headers
