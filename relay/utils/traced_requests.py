import logging
from typing import Optional
from contextlib import contextmanager

from opentelemetry.trace import Tracer

logger = logging.getLogger("uvicorn.error")


@contextmanager
def traced_request(
    tracer: Tracer,
    operation: str,
    method: str,
    target: Optional[str],
    start_message: str,
):
    """Context manager to create a span, set common attributes, and log a start message."""
    with tracer.start_as_current_span(operation) as span:
        span.set_attribute("relay.method", method)
        if target:
            span.set_attribute("relay.target", target)
        logger.info(start_message)
        yield span
