import logging
from typing import AsyncIterator

import httpx

from relay.config import RelayConfig
from relay.errors import UpstreamRequestError
from relay.headers import HeaderMultiMap
from relay.proxy.translator import OutboundRequestSpec
from relay.utils.exception_logging import format_exception_message

logger = logging.getLogger("uvicorn.error")


class UpstreamResponse:
    """
    Response head from the upstream plus its still-unread body.

    Owns the per-request client; ``aclose`` releases both the response and the
    connection pool behind it and is safe to call more than once.
    """

    def __init__(self, response: httpx.Response, client: httpx.AsyncClient):
        self._response = response
        self._client = client
        self.status_code = response.status_code
        self.headers = HeaderMultiMap.from_raw(response.headers.raw)

    async def aiter_raw(self) -> AsyncIterator[bytes]:
        """Body chunks exactly as received, without content decoding."""
        if self._response.is_stream_consumed:
            # Transports may hand back a response whose body was already read
            if self._response.content:
                yield self._response.content
            return
        async for chunk in self._response.aiter_raw():
            yield chunk

    @property
    def is_closed(self) -> bool:
        return self._response.is_closed and self._client.is_closed

    async def aclose(self) -> None:
        try:
            await self._response.aclose()
        finally:
            await self._client.aclose()


class UpstreamTransport:
    """Sends one outbound request per inbound request; never retries."""

    def __init__(self, config: RelayConfig):
        self.config = config

    def _create_client(self) -> httpx.AsyncClient:
        kwargs = {
            "timeout": httpx.Timeout(self.config.timeout),
            "verify": self.config.verify_tls,
            "follow_redirects": False,
        }
        if self.config.upstream_transport is not None:
            kwargs["transport"] = self.config.upstream_transport
        return httpx.AsyncClient(**kwargs)

    async def send(self, spec: OutboundRequestSpec) -> UpstreamResponse:
        """
        Dispatch the request and return as soon as the response head arrives.

        The request is built directly rather than through ``client.request`` so
        the client's default headers (user agent, accept-encoding) are not
        added on top of the caller's.

        Raises:
            UpstreamRequestError: on any DNS, connect, TLS, timeout or protocol failure
        """
        client = self._create_client()
        try:
            request = httpx.Request(
                spec.method, spec.target.url, headers=spec.headers.items()
            )
            response = await client.send(request, stream=True)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            await client.aclose()
            logger.warning(
                f"[Relay] Upstream request {spec.method} {spec.target.url} failed: "
                f"{type(e).__name__}: {format_exception_message(e)}"
            )
            raise UpstreamRequestError(
                f"Proxy request failed: {format_exception_message(e)}",
                target=spec.target.href,
            ) from e
        except BaseException:
            await client.aclose()
            raise

        logger.debug(
            f"[Relay] Upstream {spec.method} {spec.target.url} -> {response.status_code}"
        )
        return UpstreamResponse(response, client)
