import asyncio
import logging
from typing import AsyncIterator

import httpx

from relay.errors import RelayStreamError
from relay.proxy.exchange import RelayExchange, RelayState
from relay.proxy.transport import UpstreamResponse
from relay.utils.exception_logging import (
    format_exception_message,
    log_exception_with_details,
)

logger = logging.getLogger("uvicorn.error")


async def relay_body(
    upstream: UpstreamResponse, exchange: RelayExchange
) -> AsyncIterator[bytes]:
    """
    Yield the upstream body chunk by chunk as it arrives.

    The response head has already been flushed by the time this runs, so a
    failure here can only be logged and propagated to the server, which aborts
    the connection instead of sending a truncated body as complete.
    """
    exchange.advance(RelayState.STREAMING)
    relayed = 0
    try:
        async for chunk in upstream.aiter_raw():
            relayed += len(chunk)
            yield chunk
    except httpx.HTTPError as e:
        exchange.fail(e)
        log_exception_with_details(
            logger,
            f"[Relay] Body copy from {exchange.path} failed after {relayed} bytes.",
            e,
        )
        raise RelayStreamError(
            f"Relay failed after {relayed} bytes: {format_exception_message(e)}",
            target=exchange.path,
        ) from e
    except (asyncio.CancelledError, GeneratorExit) as e:
        exchange.fail(e)
        logger.warning(
            f"[Relay] Caller went away during body copy from {exchange.path} "
            f"after {relayed} bytes"
        )
        raise
    else:
        exchange.advance(RelayState.DONE)
        logger.debug(f"[Relay] Relayed {relayed} bytes from {exchange.path}")
    finally:
        await upstream.aclose()
