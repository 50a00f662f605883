from typing import Optional


class RelayPipelineError(Exception):
    """Base class for failures surfaced by the relay pipeline."""

    kind = "relay_error"
    status_code = 500

    def __init__(self, detail: str, target: Optional[str] = None):
        super().__init__(detail)
        self.detail = detail
        self.target = target

    def to_payload(self) -> dict:
        payload = {"error": self.kind, "details": self.detail}
        if self.target is not None:
            payload["target"] = self.target
        return payload


class TargetValidationError(RelayPipelineError):
    """The inbound path does not encode an absolute http(s) URL."""

    kind = "invalid_target"
    status_code = 400


class UpstreamRequestError(RelayPipelineError):
    """DNS, connect, TLS, timeout or protocol failure reaching the upstream."""

    kind = "upstream_request_failed"
    status_code = 502


class RelayStreamError(RelayPipelineError):
    """Body copy failed after the response head was already sent."""

    kind = "relay_failed"
    status_code = 502


class LandingPageError(RelayPipelineError):
    kind = "landing_page_unavailable"
    status_code = 500
