import logging
from enum import Enum
from typing import Optional

logger = logging.getLogger("uvicorn.error")


class RelayState(str, Enum):
    """Lifecycle of a single relayed request."""

    RESOLVING = "resolving"
    TRANSLATING = "translating"
    DISPATCHING = "dispatching"
    HEAD_RECEIVED = "head_received"
    STREAMING = "streaming"
    DONE = "done"
    FAILED = "failed"


_TRANSITIONS = {
    RelayState.RESOLVING: RelayState.TRANSLATING,
    RelayState.TRANSLATING: RelayState.DISPATCHING,
    RelayState.DISPATCHING: RelayState.HEAD_RECEIVED,
    RelayState.HEAD_RECEIVED: RelayState.STREAMING,
    RelayState.STREAMING: RelayState.DONE,
}

TERMINAL_STATES = frozenset({RelayState.DONE, RelayState.FAILED})


class RelayExchange:
    """
    Tracks one inbound request through the relay pipeline.

    States only move forward one step at a time; FAILED can be entered from any
    non-terminal state. Nothing leaves DONE or FAILED.
    """

    def __init__(self, method: str, path: str, span=None):
        self.method = method
        self.path = path
        self.state = RelayState.RESOLVING
        self.error: Optional[BaseException] = None
        self._span = span
        self._record()

    @property
    def finished(self) -> bool:
        return self.state in TERMINAL_STATES

    def advance(self, state: RelayState) -> None:
        if _TRANSITIONS.get(self.state) is not state:
            raise RuntimeError(
                f"Invalid relay transition {self.state.value} -> {state.value}"
            )
        self.state = state
        self._record()

    def fail(self, error: BaseException) -> None:
        if self.finished:
            raise RuntimeError(f"Relay already finished in state {self.state.value}")
        logger.debug(
            f"[Relay] {self.method} {self.path} failed while {self.state.value}: {error}"
        )
        self.state = RelayState.FAILED
        self.error = error
        self._record()
        if self._span is not None and self._span.is_recording():
            self._span.set_attribute("relay.error", type(error).__name__)

    def _record(self) -> None:
        # The span ends once the head is returned; later states only reach the logs
        if self._span is not None and self._span.is_recording():
            self._span.set_attribute("relay.state", self.state.value)
