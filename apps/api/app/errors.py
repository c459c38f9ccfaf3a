from __future__ import annotations


class TonightError(Exception):
    code = "tonight_error"


class InvalidQuery(TonightError, ValueError):
    """Rejected before any data access; surfaces as a client error."""

    code = "invalid_query"


class UpstreamUnavailable(TonightError):
    """Rating or candidate source timed out or failed; safe to retry."""

    code = "upstream_unavailable"

    def __init__(self, source: str, reason: str | None = None):
        self.source = source
        self.reason = reason
        msg = f"{source} source unavailable"
        if reason:
            msg = f"{msg}: {reason}"
        super().__init__(msg)


class ReasoningUnavailable(TonightError):
    code = "reasoning_unavailable"
