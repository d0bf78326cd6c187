"""Pending request bookkeeping and caller-facing results."""

from __future__ import annotations

import asyncio
from typing import Any
from collections.abc import Generator
from dataclasses import field, dataclass

from src.errors import BridgeError

from .connection import EndpointConnection


@dataclass(frozen=True, slots=True)
class Completion:
    """What the endpoint sent back. ``error`` is the endpoint's own failure text."""

    result: Any = None
    error: str | None = None


@dataclass(slots=True)
class PendingRequest:
    request_id: str
    endpoint_key: str
    connection: EndpointConnection
    future: asyncio.Future
    deadline: float
    timer: asyncio.TimerHandle | None = field(default=None, repr=False)

    def cancel_timer(self) -> None:
        if self.timer is not None:
            self.timer.cancel()
            self.timer = None

    def resolve(self, completion: Completion) -> None:
        self.cancel_timer()
        if not self.future.done():
            self.future.set_result(completion)

    def reject(self, exc: BridgeError) -> None:
        self.cancel_timer()
        if not self.future.done():
            self.future.set_exception(exc)


@dataclass(frozen=True, slots=True)
class RequestHandle:
    request_id: str
    endpoint_key: str
    future: asyncio.Future = field(repr=False)

    def __await__(self) -> Generator[Any, None, Completion]:
        return self.future.__await__()

    def done(self) -> bool:
        return self.future.done()


@dataclass(frozen=True, slots=True)
class SubmitOutcome:
    """Structured result of a control-side submit; never raises bridge errors."""

    endpoint_key: str
    request_id: str | None = None
    result: Any = None
    error: str | None = None
    error_code: str | None = None
    delivered: bool = False

    @property
    def ok(self) -> bool:
        return self.error_code is None

    @classmethod
    def from_completion(cls, handle: RequestHandle, completion: Completion) -> SubmitOutcome:
        return cls(
            endpoint_key=handle.endpoint_key,
            request_id=handle.request_id,
            result=completion.result,
            error=completion.error,
            error_code="endpoint_error" if completion.error else None,
            delivered=True,
        )

    @classmethod
    def from_error(cls, endpoint_key: str, exc: BridgeError, request_id: str | None = None) -> SubmitOutcome:
        return cls(
            endpoint_key=endpoint_key,
            request_id=getattr(exc, "request_id", request_id),
            error=str(exc),
            error_code=exc.code,
            delivered=exc.delivered,
        )

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"result": self.result, "error": self.error}
        if self.error_code is not None:
            data["error_code"] = self.error_code
            data["delivered"] = self.delivered
        return data


__all__ = ["Completion", "PendingRequest", "RequestHandle", "SubmitOutcome"]
