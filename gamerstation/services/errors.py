"""
Service-layer exceptions. Routes translate these into JSON error responses.
"""
from typing import Optional


class UpstreamError(Exception):
    """An upstream API (Riot, Data Dragon, Blizzard, Jagex) failed."""


class RiotHttpError(UpstreamError):
    """Non-retryable (or exhausted) Riot response."""

    def __init__(self, url: str, status: int, body_text: Optional[str] = None):
        # keep the body short so it doesn't bloat logs
        snippet = (body_text or "")[:200]
        super().__init__(f"Riot API error {status} for {url}{' ' + snippet if snippet else ''}")
        self.url = url
        self.status = status
        self.body_text = body_text


class CircuitOpenError(UpstreamError):
    """Raised when the circuit breaker is open."""


class MissingCredentialsError(UpstreamError):
    """A required API key / client secret is not configured."""


class BlizzardApiError(UpstreamError):
    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.status = status
