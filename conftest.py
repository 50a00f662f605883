# Shared fixtures for the relay test suite.
#
# Upstream origins are simulated with httpx.MockTransport handed to the relay
# through RelayConfig, so no test ever opens a real socket.
from typing import Callable, Dict, List, Optional

import httpx
import pytest
from starlette.requests import Request

from relay.config import CorsPolicy, RelayConfig


@pytest.fixture
def upstream_calls() -> List[httpx.Request]:
    """Every request that reached the simulated upstream, in order."""
    return []


@pytest.fixture
def mock_upstream(upstream_calls):
    """Wrap a handler into a recording MockTransport."""

    def _create(handler: Callable) -> httpx.MockTransport:
        async def _record(request: httpx.Request):
            upstream_calls.append(request)
            result = handler(request)
            if not isinstance(result, httpx.Response):
                result = await result
            return result

        return httpx.MockTransport(_record)

    return _create


@pytest.fixture
def relay_config(mock_upstream):
    """Build a RelayConfig whose upstream is the given handler."""

    def _create(
        handler: Optional[Callable] = None,
        cors: Optional[CorsPolicy] = None,
        **kwargs,
    ) -> RelayConfig:
        if handler is None:
            handler = lambda request: httpx.Response(200, content=b"ok")  # noqa: E731
        return RelayConfig(
            upstream_transport=mock_upstream(handler),
            cors=cors or CorsPolicy(),
            **kwargs,
        )

    return _create


@pytest.fixture
def make_request():
    """Build a Starlette Request for a raw path such as ``/https://example.com/x?q=1``."""

    def _create(
        path: str,
        method: str = "GET",
        headers: Optional[List] = None,
        app=None,
    ) -> Request:
        raw_path, _, query = path.partition("?")
        scope: Dict = {
            "type": "http",
            "http_version": "1.1",
            "method": method,
            "scheme": "http",
            "path": raw_path,
            "raw_path": raw_path.encode("latin-1"),
            "query_string": query.encode("latin-1"),
            "root_path": "",
            "headers": [
                (name.lower().encode("latin-1"), value.encode("latin-1"))
                for name, value in (headers or [])
            ],
            "client": ("192.168.1.100", 51000),
            "server": ("relay.local", 80),
        }
        if app is not None:
            scope["app"] = app
        return Request(scope)

    return _create
