from __future__ import annotations

import asyncio
import itertools

import orjson
import pytest

from src.hub import CorrelationHub, ControlSubscriber, EndpointConnection
from src.errors import NoSuchEndpoint, ConnectionLost, RequestTimeout
from src.config.websocket import WS_CLOSE_REPLACED_CODE, WS_CLOSE_HEARTBEAT_CODE, WS_CLOSE_SESSION_ENDED_CODE


class _FakeWebSocket:
    def __init__(self, *, fail_sends: bool = False) -> None:
        self.fail_sends = fail_sends
        self.sent: asyncio.Queue[dict] = asyncio.Queue()
        self.messages: list[dict] = []
        self.close_code: int | None = None
        self.close_reason: str | None = None

    async def send_text(self, text: str) -> None:
        if self.fail_sends:
            raise RuntimeError("socket gone")
        msg = orjson.loads(text)
        self.messages.append(msg)
        self.sent.put_nowait(msg)

    async def close(self, *, code: int = 1000, reason: str | None = None) -> None:
        self.close_code = code
        self.close_reason = reason

    async def next_sent(self) -> dict:
        return await asyncio.wait_for(self.sent.get(), timeout=1.0)


def _hub(timeout_s: float = 5.0) -> CorrelationHub:
    counter = itertools.count(1)
    return CorrelationHub(request_timeout_s=timeout_s, id_factory=lambda: f"req-{next(counter)}")


async def _connect(hub: CorrelationHub, key: str) -> tuple[_FakeWebSocket, EndpointConnection]:
    ws = _FakeWebSocket()
    conn = EndpointConnection(ws)
    await hub.register(key, conn)
    return ws, conn


@pytest.mark.asyncio
async def test_route_and_complete_resolves_handle() -> None:
    hub = _hub()
    ws, _conn = await _connect(hub, "shiro")

    handle = await hub.route_request("shiro", {"code": "document.title"})
    invoke = await ws.next_sent()
    assert invoke == {"type": "invoke", "request_id": handle.request_id, "payload": {"code": "document.title"}}
    assert hub.pending_count() == 1

    assert hub.complete_request(handle.request_id, "Shiro OS") is True
    completion = await handle
    assert completion.result == "Shiro OS"
    assert completion.error is None
    assert hub.pending_count() == 0


@pytest.mark.asyncio
async def test_second_completion_is_discarded() -> None:
    hub = _hub()
    await _connect(hub, "shiro")
    handle = await hub.route_request("shiro", {"code": "1+1"})

    assert hub.complete_request(handle.request_id, 2) is True
    assert hub.complete_request(handle.request_id, 3) is False
    assert hub.complete_request("never-issued", 4) is False
    assert (await handle).result == 2


@pytest.mark.asyncio
async def test_route_to_unknown_key_creates_no_pending_entry() -> None:
    hub = _hub()
    with pytest.raises(NoSuchEndpoint) as exc:
        await hub.route_request("missing", {"code": "x"})
    assert exc.value.delivered is False
    assert hub.pending_count() == 0


@pytest.mark.asyncio
async def test_failed_send_is_reported_as_undelivered() -> None:
    hub = _hub()
    ws = _FakeWebSocket(fail_sends=True)
    await hub.register("shiro", EndpointConnection(ws))

    with pytest.raises(NoSuchEndpoint):
        await hub.route_request("shiro", {"code": "x"})
    assert hub.pending_count() == 0


@pytest.mark.asyncio
async def test_invokes_reach_endpoint_in_routing_order() -> None:
    hub = _hub()
    ws, _conn = await _connect(hub, "shiro")

    handles = [await hub.route_request("shiro", {"n": n}) for n in range(5)]
    sent = [await ws.next_sent() for _ in range(5)]
    assert [m["request_id"] for m in sent] == [h.request_id for h in handles]
    assert [m["payload"]["n"] for m in sent] == list(range(5))


@pytest.mark.asyncio
async def test_replacement_closes_stale_connection_and_fails_its_requests() -> None:
    hub = _hub()
    old_ws, old_conn = await _connect(hub, "shiro")
    handle = await hub.route_request("shiro", {"code": "slow()"})

    new_ws, new_conn = await _connect(hub, "shiro")

    with pytest.raises(ConnectionLost) as exc:
        await handle
    assert exc.value.delivered is True
    assert old_ws.close_code == WS_CLOSE_REPLACED_CODE
    assert old_conn.is_open is False
    assert hub.status() == {"shiro": True}

    # The stale connection's late close must not evict its replacement.
    assert await hub.unregister("shiro", old_conn) is False
    follow_up = await hub.route_request("shiro", {"code": "again"})
    assert (await new_ws.next_sent())["request_id"] == follow_up.request_id
    assert new_conn.is_open is True


@pytest.mark.asyncio
async def test_heartbeat_keeps_responsive_endpoint() -> None:
    hub = _hub()
    ws, conn = await _connect(hub, "shiro")

    await hub.heartbeat_sweep()
    assert (await ws.next_sent()) == {"type": "liveness-ping"}
    hub.record_pong(conn)
    await hub.heartbeat_sweep()

    assert hub.status() == {"shiro": True}
    assert ws.close_code is None


@pytest.mark.asyncio
async def test_heartbeat_evicts_silent_endpoint_and_fails_pending() -> None:
    hub = _hub()
    ws, _conn = await _connect(hub, "shiro")
    handle = await hub.route_request("shiro", {"code": "x"})

    await hub.heartbeat_sweep()
    await hub.heartbeat_sweep()

    assert hub.status() == {"shiro": False}
    assert ws.close_code == WS_CLOSE_HEARTBEAT_CODE
    with pytest.raises(ConnectionLost):
        await handle
    with pytest.raises(NoSuchEndpoint):
        await hub.route_request("shiro", {"code": "y"})


@pytest.mark.asyncio
async def test_timeout_fails_request_but_keeps_connection() -> None:
    hub = _hub(timeout_s=0.05)
    ws, _conn = await _connect(hub, "shiro")
    handle = await hub.route_request("shiro", {"code": "while(true){}"})

    with pytest.raises(RequestTimeout) as exc:
        await handle
    assert exc.value.delivered is True
    assert hub.pending_count() == 0
    assert hub.status() == {"shiro": True}
    assert ws.close_code is None
    # A late answer is dropped.
    assert hub.complete_request(handle.request_id, "late") is False


@pytest.mark.asyncio
async def test_clean_close_leaves_pending_to_its_deadline() -> None:
    hub = _hub(timeout_s=0.05)
    _ws, conn = await _connect(hub, "shiro")
    handle = await hub.route_request("shiro", {"code": "x"})

    assert await hub.unregister("shiro", conn) is True
    assert handle.done() is False
    with pytest.raises(RequestTimeout):
        await handle


@pytest.mark.asyncio
async def test_submit_reports_structured_outcomes() -> None:
    hub = _hub()
    missing = await hub.submit("missing", {"code": "x"})
    assert missing.ok is False
    assert missing.error_code == "no_such_endpoint"
    assert missing.delivered is False

    ws, _conn = await _connect(hub, "shiro")
    task = asyncio.create_task(hub.submit("shiro", {"code": "document.title"}))
    invoke = await ws.next_sent()
    hub.complete_request(invoke["request_id"], "Shiro OS")
    outcome = await task
    assert outcome.ok is True
    assert outcome.result == "Shiro OS"
    assert outcome.to_dict() == {"result": "Shiro OS", "error": None}

    task = asyncio.create_task(hub.submit("shiro", {"code": "boom()"}))
    invoke = await ws.next_sent()
    hub.complete_request(invoke["request_id"], None, "ReferenceError: boom is not defined")
    outcome = await task
    assert outcome.error_code == "endpoint_error"
    assert outcome.error == "ReferenceError: boom is not defined"


@pytest.mark.asyncio
async def test_subscribers_receive_status_and_events() -> None:
    hub = _hub()
    dashboard = _FakeWebSocket()
    subscriber = ControlSubscriber(dashboard)
    hub.subscribe(subscriber)

    _ws, conn = await _connect(hub, "shiro")
    assert (await dashboard.next_sent()) == {"type": "endpoint_status", "payload": {"shiro": True}}

    await hub.on_unsolicited_event("shiro", {"level": "log", "args": ["hi"]})
    assert (await dashboard.next_sent()) == {
        "type": "endpoint_event",
        "endpoint_key": "shiro",
        "payload": {"level": "log", "args": ["hi"]},
    }

    hub.unsubscribe(subscriber)
    await hub.unregister("shiro", conn)
    assert dashboard.sent.empty()


@pytest.mark.asyncio
async def test_ready_rekeys_connection_without_closing_it() -> None:
    hub = _hub()
    ws, conn = await _connect(hub, "shiro")
    await hub.register("shiro-spirit", conn)

    assert hub.status() == {"shiro-spirit": True}
    assert conn.is_open is True
    assert ws.close_code is None


@pytest.mark.asyncio
async def test_close_fails_everything_in_flight() -> None:
    hub = _hub()
    ws, _conn = await _connect(hub, "shiro")
    handle = await hub.route_request("shiro", {"code": "x"})

    await hub.close()
    with pytest.raises(ConnectionLost):
        await handle
    assert hub.status() == {"shiro": False}
    assert ws.close_code is not None


@pytest.mark.asyncio
async def test_evicted_endpoint_reports_false_until_it_returns() -> None:
    hub = _hub()
    await _connect(hub, "shiro")

    await hub.heartbeat_sweep()
    await hub.heartbeat_sweep()
    assert hub.status()["shiro"] is False

    await _connect(hub, "shiro")
    assert hub.status()["shiro"] is True


@pytest.mark.asyncio
async def test_cleanly_closed_endpoint_reports_false() -> None:
    hub = _hub()
    _ws, conn = await _connect(hub, "shiro")
    await hub.unregister("shiro", conn)
    assert hub.status() == {"shiro": False}


@pytest.mark.asyncio
async def test_evict_closes_socket_and_refuses_reregistration_on_it() -> None:
    hub = _hub()
    ws, conn = await _connect(hub, "shiro")
    handle = await hub.route_request("shiro", {"code": "x"})

    assert await hub.evict("shiro", code=WS_CLOSE_SESSION_ENDED_CODE, reason="session ended") is True
    assert ws.close_code == WS_CLOSE_SESSION_ENDED_CODE
    assert ws.close_reason == "session ended"
    with pytest.raises(ConnectionLost):
        await handle

    # A `ready` arriving on the closed socket must not revive it.
    assert await hub.register("shiro", conn) is False
    assert hub.status() == {"shiro": False}
    with pytest.raises(NoSuchEndpoint):
        await hub.route_request("shiro", {"code": "y"})

    new_ws, _new_conn = await _connect(hub, "shiro")
    handle = await hub.route_request("shiro", {"code": "z"})
    assert (await new_ws.next_sent())["request_id"] == handle.request_id
    assert hub.status() == {"shiro": True}
