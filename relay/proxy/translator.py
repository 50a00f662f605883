from dataclasses import dataclass
from typing import Optional

from fastapi import Request

from relay.headers import HeaderMultiMap
from relay.proxy.target import TargetDescriptor

# Recomputed by the transport or scoped to the inbound connection
STRIPPED_REQUEST_HEADERS = ("content-length", "connection")


@dataclass(frozen=True)
class InboundRequest:
    method: str
    path: str
    headers: HeaderMultiMap

    @classmethod
    def from_request(cls, request: Request) -> "InboundRequest":
        """
        Capture method, undecoded path plus query string, and the raw header
        list (repeats included) from a Starlette request.
        """
        raw_path: Optional[bytes] = request.scope.get("raw_path")
        if raw_path:
            path = raw_path.split(b"?", 1)[0].decode("latin-1")
        else:
            path = request.url.path
        query_string: bytes = request.scope.get("query_string", b"")
        if query_string:
            path = f"{path}?{query_string.decode('latin-1')}"
        return cls(
            method=request.method,
            path=path,
            headers=HeaderMultiMap.from_raw(request.headers.raw),
        )

    @property
    def target_spec(self) -> str:
        """The path without its leading separator."""
        return self.path[1:] if self.path.startswith("/") else self.path


@dataclass(frozen=True)
class OutboundRequestSpec:
    method: str
    target: TargetDescriptor
    headers: HeaderMultiMap


def translate_request(
    inbound: InboundRequest, target: TargetDescriptor
) -> OutboundRequestSpec:
    """Copy method and headers, point ``host`` at the target, drop the stripped set."""
    headers = inbound.headers.copy()
    headers.set("host", target.host)
    for name in STRIPPED_REQUEST_HEADERS:
        headers.remove(name)
    return OutboundRequestSpec(method=inbound.method, target=target, headers=headers)
