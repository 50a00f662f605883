import logging
from dataclasses import dataclass
from urllib.parse import urlsplit

import httpx

from relay.errors import TargetValidationError

logger = logging.getLogger("uvicorn.error")

DEFAULT_PORTS = {"http": 80, "https": 443}

# Code points a host name may never contain
FORBIDDEN_HOST_CHARACTERS = frozenset(" \t\r\n\x00#%/:<>?@[\\]^|")


@dataclass(frozen=True)
class TargetDescriptor:
    """Absolute destination parsed from the inbound request path."""

    scheme: str
    host: str
    port: int
    path: str
    href: str

    @property
    def netloc(self) -> str:
        host = f"[{self.host}]" if ":" in self.host else self.host
        if self.port == DEFAULT_PORTS[self.scheme]:
            return host
        return f"{host}:{self.port}"

    @property
    def url(self) -> str:
        """URL the outbound request is sent to (fragment dropped)."""
        return f"{self.scheme}://{self.netloc}{self.path}"


def repair_collapsed_scheme(raw: str) -> str:
    """
    Restore the second slash of ``http://``/``https://`` when a front-end
    layer collapsed it. Only the scheme prefix is ever touched.
    """
    for prefix in ("http:/", "https:/"):
        if raw.startswith(prefix) and not raw.startswith(prefix + "/"):
            return prefix + "/" + raw[len(prefix):]
    return raw


def _check_host(host: str, endpoint: str) -> None:
    if ":" in host:
        # IPv6 literal, brackets already validated by urlsplit
        return
    bad = sorted(FORBIDDEN_HOST_CHARACTERS.intersection(host))
    if bad:
        raise TargetValidationError(
            f"Target host contains forbidden characters: {''.join(bad)!r}",
            target=endpoint,
        )
    labels = host[:-1].split(".") if host.endswith(".") else host.split(".")
    if not all(labels):
        raise TargetValidationError("Target host has an empty label", target=endpoint)


def resolve_target(raw: str) -> TargetDescriptor:
    """
    Parse the raw inbound path (leading separator already stripped) into a
    TargetDescriptor.

    Raises:
        TargetValidationError: if the value is not an absolute http(s) URL
    """
    endpoint = repair_collapsed_scheme(raw)

    try:
        parts = urlsplit(endpoint)
        scheme = parts.scheme.lower()
        host = parts.hostname or ""
        port = parts.port
    except ValueError as e:
        raise TargetValidationError(f"Malformed target URL: {e}", target=endpoint) from e

    if scheme not in DEFAULT_PORTS:
        detail = (
            f"Unsupported URL scheme '{parts.scheme}'"
            if parts.scheme
            else "Target must be an absolute http or https URL"
        )
        raise TargetValidationError(detail, target=endpoint)

    if not host:
        raise TargetValidationError("Target URL has no host", target=endpoint)

    _check_host(host, endpoint)
    try:
        httpx.URL(endpoint)
    except httpx.InvalidURL as e:
        raise TargetValidationError(f"Malformed target URL: {e}", target=endpoint) from e

    path = parts.path or "/"
    if parts.query:
        path = f"{path}?{parts.query}"

    target = TargetDescriptor(
        scheme=scheme,
        host=host,
        port=port if port is not None else DEFAULT_PORTS[scheme],
        path=path,
        href=endpoint,
    )
    logger.debug(f"[Relay] Resolved target {target.url}")
    return target
