"""Correlation hub: routes requests to execution endpoints by key and results back by request id.

The hub exclusively owns the endpoint-key -> connection map and the
request-id -> pending map. Everything runs on one event loop; every map
mutation happens before the operation's first await so no other task can
observe a half-applied change.
"""

from __future__ import annotations

import uuid
import asyncio
import logging
from typing import Any
from collections.abc import Callable

from src.errors import (
    BridgeError,
    NoSuchEndpoint,
    ConnectionLost,
    RequestTimeout,
    DuplicateCompletion,
)
from src.config.websocket import (
    WS_KEY_TYPE,
    WS_KEY_PAYLOAD,
    WS_KEY_ENDPOINT_KEY,
    WS_CLOSE_REPLACED_CODE,
    WS_TYPE_ENDPOINT_EVENT,
    WS_CLOSE_HEARTBEAT_CODE,
    WS_TYPE_ENDPOINT_STATUS,
    WS_CLOSE_GOING_AWAY_CODE,
    WS_CLOSE_REPLACED_REASON,
    WS_CLOSE_SHUTDOWN_REASON,
    WS_CLOSE_HEARTBEAT_REASON,
)
from src.handlers.websocket.errors import encode_message

from .messages import Invoke
from .subscriber import ControlSubscriber
from .connection import EndpointConnection
from .pending import Completion, RequestHandle, SubmitOutcome, PendingRequest

logger = logging.getLogger(__name__)


class CorrelationHub:
    def __init__(
        self,
        *,
        request_timeout_s: float,
        id_factory: Callable[[], str] | None = None,
    ) -> None:
        self._request_timeout_s = float(request_timeout_s)
        self._new_id = id_factory or (lambda: str(uuid.uuid4()))
        self._endpoints: dict[str, EndpointConnection] = {}
        # Every key that has held a connection; dead ones report False.
        self._known_keys: set[str] = set()
        self._pending: dict[str, PendingRequest] = {}
        self._subscribers: dict[str, ControlSubscriber] = {}

    # ----- endpoint side -------------------------------------------------

    async def register(self, endpoint_key: str, conn: EndpointConnection) -> bool:
        """Install ``conn`` as the live holder of ``endpoint_key``, closing any previous holder.

        A connection the hub already closed is refused; its endpoint must reconnect.
        """
        if conn.closed:
            logger.info("endpoint %s: refusing closed connection %s", endpoint_key, conn.connection_id)
            return False
        previous = self._endpoints.get(endpoint_key)
        if previous is conn:
            return True
        old_key = conn.endpoint_key
        if old_key is not None and self._endpoints.get(old_key) is conn:
            # Re-keyed by a later `ready`; the connection stays open.
            del self._endpoints[old_key]
            self._known_keys.discard(old_key)
        conn.endpoint_key = endpoint_key
        self._endpoints[endpoint_key] = conn
        self._known_keys.add(endpoint_key)

        if previous is not None:
            logger.info("endpoint %s: replacing stale connection %s", endpoint_key, previous.connection_id)
            self._fail_pending_for(previous, WS_CLOSE_REPLACED_REASON)
            await previous.close(code=WS_CLOSE_REPLACED_CODE, reason=WS_CLOSE_REPLACED_REASON)
        else:
            logger.info("endpoint %s: connected (%s)", endpoint_key, conn.connection_id)
        await self.broadcast_status()
        return True

    async def unregister(self, endpoint_key: str, conn: EndpointConnection | None = None) -> bool:
        """Drop ``endpoint_key``. With ``conn``, only if it is still the holder.

        In-flight requests are left to their own deadlines; only ``evict`` or a
        replacement fails them early.
        """
        current = self._endpoints.get(endpoint_key)
        if current is None or (conn is not None and current is not conn):
            return False
        del self._endpoints[endpoint_key]
        current.mark_closed()
        logger.info("endpoint %s: disconnected (%s)", endpoint_key, current.connection_id)
        await self.broadcast_status()
        return True

    async def evict(self, endpoint_key: str, *, code: int, reason: str) -> bool:
        """Close the holder of ``endpoint_key`` and fail its in-flight requests."""
        conn = self._endpoints.pop(endpoint_key, None)
        if conn is None:
            return False
        self._fail_pending_for(conn, reason)
        await conn.close(code=code, reason=reason)
        await self.broadcast_status()
        return True

    def record_pong(self, conn: EndpointConnection) -> None:
        conn.mark_pong()

    async def heartbeat_sweep(self) -> None:
        for endpoint_key, conn in list(self._endpoints.items()):
            if self._endpoints.get(endpoint_key) is not conn:
                continue
            if not conn.seen_pong:
                logger.warning("endpoint %s: no pong since last ping; evicting", endpoint_key)
                await self.evict(endpoint_key, code=WS_CLOSE_HEARTBEAT_CODE, reason=WS_CLOSE_HEARTBEAT_REASON)
                continue
            conn.seen_pong = False
            if not await conn.ping():
                logger.debug("endpoint %s: ping send failed", endpoint_key)

    def status(self) -> dict[str, bool]:
        status: dict[str, bool] = {}
        for key in sorted(self._known_keys):
            conn = self._endpoints.get(key)
            status[key] = conn is not None and conn.is_open
        return status

    def pending_count(self, endpoint_key: str | None = None) -> int:
        if endpoint_key is None:
            return len(self._pending)
        return sum(1 for p in self._pending.values() if p.endpoint_key == endpoint_key)

    # ----- requests ------------------------------------------------------

    async def route_request(
        self,
        endpoint_key: str,
        payload: Any,
        *,
        timeout_s: float | None = None,
    ) -> RequestHandle:
        conn = self._endpoints.get(endpoint_key)
        if conn is None or not conn.is_open:
            raise NoSuchEndpoint(endpoint_key=endpoint_key)

        loop = asyncio.get_running_loop()
        timeout = self._request_timeout_s if timeout_s is None else float(timeout_s)
        request_id = self._new_id()
        pending = PendingRequest(
            request_id=request_id,
            endpoint_key=endpoint_key,
            connection=conn,
            future=loop.create_future(),
            deadline=loop.time() + timeout,
        )
        self._pending[request_id] = pending
        pending.timer = loop.call_later(timeout, self._expire, request_id, timeout)

        if not await conn.send(Invoke(request_id=request_id, payload=payload)):
            if self._pending.pop(request_id, None) is not None:
                pending.cancel_timer()
            raise NoSuchEndpoint(endpoint_key=endpoint_key)
        return RequestHandle(request_id=request_id, endpoint_key=endpoint_key, future=pending.future)

    def complete_request(self, request_id: str, result: Any = None, error: str | None = None) -> bool:
        """Resolve a pending request. Unknown or already-finished ids are discarded."""
        pending = self._pending.pop(request_id, None)
        if pending is None:
            logger.debug("dropping completion: %s", DuplicateCompletion(request_id=request_id))
            return False
        pending.resolve(Completion(result=result, error=error))
        return True

    async def submit(self, endpoint_key: str, payload: Any, *, timeout_s: float | None = None) -> SubmitOutcome:
        handle: RequestHandle | None = None
        try:
            handle = await self.route_request(endpoint_key, payload, timeout_s=timeout_s)
            completion = await handle
        except BridgeError as exc:
            request_id = handle.request_id if handle is not None else None
            return SubmitOutcome.from_error(endpoint_key, exc, request_id)
        return SubmitOutcome.from_completion(handle, completion)

    async def send(self, endpoint_key: str, payload: Any, *, timeout_s: float | None = None) -> str:
        """Route without awaiting the result; it is still correlated and broadcast."""
        handle = await self.route_request(endpoint_key, payload, timeout_s=timeout_s)
        handle.future.add_done_callback(_consume_result)
        return handle.request_id

    def _expire(self, request_id: str, timeout_s: float) -> None:
        pending = self._pending.pop(request_id, None)
        if pending is None:
            return
        logger.warning("request %s to %s timed out after %.1fs", request_id, pending.endpoint_key, timeout_s)
        pending.timer = None
        pending.reject(
            RequestTimeout(endpoint_key=pending.endpoint_key, request_id=request_id, timeout_s=timeout_s)
        )

    def _fail_pending_for(self, conn: EndpointConnection, reason: str) -> int:
        doomed = [p for p in self._pending.values() if p.connection is conn]
        for pending in doomed:
            del self._pending[pending.request_id]
            pending.reject(
                ConnectionLost(endpoint_key=pending.endpoint_key, request_id=pending.request_id, reason=reason)
            )
        if doomed:
            logger.warning("endpoint %s: failed %d in-flight request(s): %s", conn.endpoint_key, len(doomed), reason)
        return len(doomed)

    # ----- control side --------------------------------------------------

    def subscribe(self, subscriber: ControlSubscriber) -> None:
        self._subscribers[subscriber.subscriber_id] = subscriber

    def unsubscribe(self, subscriber: ControlSubscriber) -> None:
        # Pending requests this caller started still complete; the result is dropped.
        self._subscribers.pop(subscriber.subscriber_id, None)

    def subscriber_count(self) -> int:
        return len(self._subscribers)

    async def broadcast(self, message: dict[str, Any]) -> int:
        text = encode_message(message)
        delivered = 0
        for subscriber in list(self._subscribers.values()):
            if await subscriber.send_text(text):
                delivered += 1
        return delivered

    async def on_unsolicited_event(self, endpoint_key: str, event: dict[str, Any]) -> int:
        return await self.broadcast({
            WS_KEY_TYPE: WS_TYPE_ENDPOINT_EVENT,
            WS_KEY_ENDPOINT_KEY: endpoint_key,
            WS_KEY_PAYLOAD: event,
        })

    async def broadcast_status(self) -> int:
        return await self.broadcast({WS_KEY_TYPE: WS_TYPE_ENDPOINT_STATUS, WS_KEY_PAYLOAD: self.status()})

    async def close(self) -> None:
        for pending in list(self._pending.values()):
            pending.reject(
                ConnectionLost(
                    endpoint_key=pending.endpoint_key,
                    request_id=pending.request_id,
                    reason=WS_CLOSE_SHUTDOWN_REASON,
                )
            )
        self._pending.clear()
        endpoints = list(self._endpoints.values())
        self._endpoints.clear()
        for conn in endpoints:
            await conn.close(code=WS_CLOSE_GOING_AWAY_CODE, reason=WS_CLOSE_SHUTDOWN_REASON)


def _consume_result(future: asyncio.Future) -> None:
    if future.cancelled():
        return
    exc = future.exception()
    if exc is not None:
        logger.debug("unawaited request finished with %s", exc)


__all__ = ["CorrelationHub"]
