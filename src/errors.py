"""Shared error types for the Nimbus bridge.

Every bridge failure says whether the request could have reached the
endpoint. ``delivered=False`` means it was never forwarded and is safe to
retry; ``delivered=True`` means the endpoint may have run it and the answer
was lost, so callers that care about side effects must treat it as ambiguous.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class RateLimitError(Exception):
    """Raised when a sliding-window rate limiter is saturated."""

    retry_in: float
    limit: int
    window_seconds: float


class BridgeError(Exception):
    code = "bridge_error"
    delivered = False


@dataclass(frozen=True, slots=True)
class NoSuchEndpoint(BridgeError):
    """No live connection holds the endpoint key."""

    endpoint_key: str
    code = "no_such_endpoint"
    delivered = False

    def __str__(self) -> str:
        return f"endpoint not connected: {self.endpoint_key}"


@dataclass(frozen=True, slots=True)
class RequestTimeout(BridgeError):
    """The deadline elapsed before the endpoint answered."""

    endpoint_key: str
    request_id: str
    timeout_s: float
    code = "request_timeout"
    delivered = True

    def __str__(self) -> str:
        return f"request {self.request_id} to {self.endpoint_key} timed out after {self.timeout_s:g}s"


@dataclass(frozen=True, slots=True)
class ConnectionLost(BridgeError):
    """The endpoint connection died or was replaced with the request in flight."""

    endpoint_key: str
    request_id: str
    reason: str
    code = "connection_lost"
    delivered = True

    def __str__(self) -> str:
        return f"connection to {self.endpoint_key} lost ({self.reason}) with request {self.request_id} in flight"


@dataclass(frozen=True, slots=True)
class DuplicateCompletion(BridgeError):
    """A completion arrived for a request that is no longer pending. Logged, never surfaced."""

    request_id: str
    code = "duplicate_completion"

    def __str__(self) -> str:
        return f"no pending request {self.request_id}"


@dataclass(frozen=True, slots=True)
class SessionEnded(BridgeError):
    """A captured session's underlying process is gone. Reported as status, never raised to callers."""

    endpoint_key: str
    code = "session_ended"

    def __str__(self) -> str:
        return f"session ended: {self.endpoint_key}"


@dataclass(frozen=True, slots=True)
class TmuxCommandError(Exception):
    """A tmux invocation exited non-zero or timed out."""

    command: tuple[str, ...]
    returncode: int | None
    stderr: str = ""

    def __str__(self) -> str:
        if self.returncode is None:
            return f"tmux {self.command[0] if self.command else ''} timed out"
        return f"tmux {' '.join(self.command)} exited {self.returncode}: {self.stderr.strip()}"


__all__ = [
    "BridgeError",
    "ConnectionLost",
    "DuplicateCompletion",
    "NoSuchEndpoint",
    "RateLimitError",
    "RequestTimeout",
    "SessionEnded",
    "TmuxCommandError",
]
