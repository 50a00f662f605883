import pytest

from relay.proxy.exchange import RelayExchange, RelayState

HAPPY_PATH = [
    RelayState.TRANSLATING,
    RelayState.DISPATCHING,
    RelayState.HEAD_RECEIVED,
    RelayState.STREAMING,
    RelayState.DONE,
]


class RecordingSpan:
    def __init__(self, recording=True):
        self.attributes = {}
        self.recording = recording

    def is_recording(self):
        return self.recording

    def set_attribute(self, key, value):
        self.attributes[key] = value


class TestRelayExchange:
    def test_starts_resolving(self):
        exchange = RelayExchange("GET", "https://example.com/")

        assert exchange.state is RelayState.RESOLVING
        assert not exchange.finished

    def test_happy_path(self):
        exchange = RelayExchange("GET", "https://example.com/")
        for state in HAPPY_PATH:
            exchange.advance(state)

        assert exchange.state is RelayState.DONE
        assert exchange.finished

    def test_cannot_skip_states(self):
        exchange = RelayExchange("GET", "https://example.com/")

        with pytest.raises(RuntimeError):
            exchange.advance(RelayState.DISPATCHING)

    @pytest.mark.parametrize("steps", range(len(HAPPY_PATH)))
    def test_failed_reachable_from_every_non_terminal_state(self, steps):
        exchange = RelayExchange("GET", "https://example.com/")
        for state in HAPPY_PATH[:steps]:
            exchange.advance(state)
        error = ValueError("boom")

        exchange.fail(error)

        assert exchange.state is RelayState.FAILED
        assert exchange.error is error

    def test_terminal_states_are_final(self):
        exchange = RelayExchange("GET", "https://example.com/")
        exchange.fail(ValueError("boom"))

        with pytest.raises(RuntimeError):
            exchange.fail(ValueError("again"))
        with pytest.raises(RuntimeError):
            exchange.advance(RelayState.TRANSLATING)

    def test_records_state_on_span(self):
        span = RecordingSpan()
        exchange = RelayExchange("GET", "https://example.com/", span=span)
        exchange.advance(RelayState.TRANSLATING)
        exchange.fail(KeyError("x"))

        assert span.attributes["relay.state"] == "failed"
        assert span.attributes["relay.error"] == "KeyError"

    def test_ended_span_is_left_alone(self):
        span = RecordingSpan(recording=False)
        exchange = RelayExchange("GET", "https://example.com/", span=span)
        exchange.advance(RelayState.TRANSLATING)

        assert span.attributes == {}
