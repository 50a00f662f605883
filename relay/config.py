from dataclasses import dataclass, field
from typing import Optional, Tuple

import httpx
from fastapi import Request

from relay import vars as relay_vars

DEFAULT_CORS_METHODS = ("GET", "HEAD", "PUT", "PATCH", "POST", "DELETE", "OPTIONS")


@dataclass(frozen=True)
class CorsPolicy:
    """Cross-origin rules applied before the relay pipeline runs."""

    allow_origins: Tuple[str, ...] = ("*",)
    allow_credentials: bool = True
    allow_methods: Tuple[str, ...] = DEFAULT_CORS_METHODS
    max_age: int = 86400

    def allows(self, origin: str) -> bool:
        return "*" in self.allow_origins or origin in self.allow_origins


@dataclass(frozen=True)
class RelayConfig:
    """
    Process-wide relay settings.

    Built once at start-up and handed to every request by reference. Nothing
    in the pipeline mutates it.

    Attributes:
        timeout: Upstream timeout in seconds, ``None`` for no timeout
        verify_tls: Whether upstream certificates are verified
        merge_set_cookie: Comma-join repeated ``set-cookie`` values instead of
            keeping one header line per cookie
        landing_page_path: Document rendered on ``/`` and ``/favicon.ico``
        cors: Cross-origin pre-check policy
        upstream_transport: Optional httpx transport used for every upstream
            client, mainly for tests and embedding
    """

    timeout: Optional[float] = None
    verify_tls: bool = True
    merge_set_cookie: bool = False
    landing_page_path: str = "README.md"
    cors: CorsPolicy = field(default_factory=CorsPolicy)
    upstream_transport: Optional[httpx.AsyncBaseTransport] = None

    @classmethod
    def from_env(cls) -> "RelayConfig":
        timeout = float(relay_vars.RELAY_TIMEOUT) if relay_vars.RELAY_TIMEOUT else None
        return cls(
            timeout=timeout,
            verify_tls=relay_vars.RELAY_VERIFY_TLS,
            merge_set_cookie=relay_vars.RELAY_MERGE_SET_COOKIE,
            landing_page_path=relay_vars.LANDING_PAGE_PATH,
            cors=CorsPolicy(
                allow_origins=tuple(relay_vars.CORS_ALLOW_ORIGINS),
                allow_credentials=relay_vars.CORS_ALLOW_CREDENTIALS,
                max_age=relay_vars.CORS_MAX_AGE,
            ),
        )


def get_relay_config(request: Request) -> RelayConfig:
    """Dependency returning the configuration stored on the application."""
    return request.app.state.relay_config
