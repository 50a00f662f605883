import logging

from fastapi import Request
from fastapi.responses import JSONResponse, Response, StreamingResponse
from opentelemetry import trace
from starlette.background import BackgroundTask
from starlette.types import Receive, Scope, Send

from relay.config import RelayConfig, get_relay_config
from relay.cors import apply_cors_headers, cors_precheck
from relay.errors import RelayPipelineError
from relay.proxy.exchange import RelayExchange, RelayState
from relay.proxy.rewriter import rewrite_response_headers
from relay.proxy.stream import relay_body
from relay.proxy.target import resolve_target
from relay.proxy.translator import InboundRequest, translate_request
from relay.proxy.transport import UpstreamTransport
from relay.utils.traced_requests import traced_request

tracer = trace.get_tracer(__name__)
logger = logging.getLogger("uvicorn.error")

RELAY_PATH = "/{target:path}"


def error_response(error: RelayPipelineError) -> JSONResponse:
    return JSONResponse(status_code=error.status_code, content=error.to_payload())


async def relay_request(request: Request, config: RelayConfig) -> Response:
    """
    Relay one inbound request to the absolute URL encoded in its path.

    Resolution, translation, dispatch and header rewriting fail fast with a
    JSON error response; once the head is returned the body is streamed and
    any later failure only reaches the logs.
    """
    inbound = InboundRequest.from_request(request)

    with traced_request(
        tracer,
        operation="relay_request",
        method=inbound.method,
        target=inbound.target_spec,
        start_message=f"[Relay] {inbound.method} {inbound.path}",
    ) as span:
        exchange = RelayExchange(inbound.method, inbound.target_spec, span=span)
        try:
            target = resolve_target(inbound.target_spec)
            exchange.advance(RelayState.TRANSLATING)

            spec = translate_request(inbound, target)
            exchange.advance(RelayState.DISPATCHING)

            upstream = await UpstreamTransport(config).send(spec)
        except RelayPipelineError as e:
            exchange.fail(e)
            span.set_attribute("relay.status_code", e.status_code)
            logger.warning(f"[Relay] {e.kind} for {inbound.path}: {e.detail}")
            return error_response(e)

        exchange.advance(RelayState.HEAD_RECEIVED)
        span.set_attribute("relay.status_code", upstream.status_code)

        headers = rewrite_response_headers(
            upstream.headers, target, merge_set_cookie=config.merge_set_cookie
        )
        apply_cors_headers(headers, request, config.cors)

        response = StreamingResponse(
            relay_body(upstream, exchange),
            status_code=upstream.status_code,
            background=BackgroundTask(upstream.aclose),
        )
        response.raw_headers = headers.raw()
        return response


class RelayEndpoint:
    """
    ASGI endpoint for the catch-all relay route.

    Mounted as a plain Starlette route with no method list, so WebDAV and
    custom methods reach the pipeline instead of being answered with 405.
    """

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        request = Request(scope, receive)
        config = get_relay_config(request)
        response = cors_precheck(request, config.cors)
        if response is None:
            response = await relay_request(request, config)
        await response(scope, receive, send)

