"""REST surface: worker control and blocking endpoint calls."""

from __future__ import annotations

import logging
from typing import Any

import orjson
from fastapi import Body, Query, Depends, Request, APIRouter
from fastapi.responses import ORJSONResponse, PlainTextResponse

from src.state import RuntimeDeps
from src.hub import SubmitOutcome
from src.errors import NoSuchEndpoint, ConnectionLost, RequestTimeout

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api")

RELOAD_CODE = "location.reload(); 'reloading'"

# Bridge error code -> HTTP status for blocking calls.
_STATUS_BY_ERROR_CODE: dict[str, int] = {
    NoSuchEndpoint.code: 503,
    RequestTimeout.code: 504,
    ConnectionLost.code: 502,
}


def get_runtime_deps(request: Request) -> RuntimeDeps:
    runtime_deps = getattr(request.app.state, "runtime_deps", None)
    if runtime_deps is None:
        raise RuntimeError("Runtime dependencies are not initialized")
    return runtime_deps


def _error(status_code: int, message: str) -> ORJSONResponse:
    return ORJSONResponse({"error": message}, status_code=status_code)


def _bridge_failure(outcome: SubmitOutcome) -> ORJSONResponse | None:
    status_code = _STATUS_BY_ERROR_CODE.get(outcome.error_code or "")
    if status_code is None:
        return None
    return ORJSONResponse(
        {"error": outcome.error, "error_code": outcome.error_code, "delivered": outcome.delivered},
        status_code=status_code,
    )


# ----- workers -------------------------------------------------------------


@router.get("/workers")
async def list_workers(runtime_deps: RuntimeDeps = Depends(get_runtime_deps)) -> list[dict[str, Any]]:
    return runtime_deps.workers.all_states()


@router.get("/workers/{worker_id}")
async def get_worker(worker_id: str, runtime_deps: RuntimeDeps = Depends(get_runtime_deps)) -> Any:
    worker = runtime_deps.workers.get(worker_id)
    if worker is None:
        return _error(404, "Worker not found")
    return worker.state.to_dict()


@router.post("/workers/{worker_id}/send")
async def send_to_worker(
    worker_id: str,
    body: dict[str, Any] | None = Body(default=None),
    runtime_deps: RuntimeDeps = Depends(get_runtime_deps),
) -> Any:
    message = (body or {}).get("message")
    if not isinstance(message, str) or not message:
        return _error(400, "message required")
    ok = await runtime_deps.workers.send_to_worker(worker_id, message)
    return {"success": ok}


@router.post("/workers/{worker_id}/interrupt")
async def interrupt_worker(worker_id: str, runtime_deps: RuntimeDeps = Depends(get_runtime_deps)) -> dict[str, bool]:
    return {"success": await runtime_deps.workers.interrupt_worker(worker_id)}


@router.post("/workers/{worker_id}/restart")
async def restart_worker(worker_id: str, runtime_deps: RuntimeDeps = Depends(get_runtime_deps)) -> dict[str, bool]:
    return {"success": await runtime_deps.workers.restart_worker(worker_id)}


# ----- endpoints -----------------------------------------------------------


@router.get("/endpoints/status")
async def endpoint_status(runtime_deps: RuntimeDeps = Depends(get_runtime_deps)) -> dict[str, bool]:
    return runtime_deps.hub.status()


@router.post("/endpoints/{endpoint_key}/exec")
async def endpoint_exec(
    endpoint_key: str,
    body: dict[str, Any] | None = Body(default=None),
    runtime_deps: RuntimeDeps = Depends(get_runtime_deps),
) -> Any:
    code = (body or {}).get("code")
    if not isinstance(code, str) or not code:
        return _error(400, "code required")

    outcome = await runtime_deps.hub.submit(endpoint_key, {"code": code})
    failure = _bridge_failure(outcome)
    if failure is not None:
        return failure
    return {"result": outcome.result, "error": outcome.error}


@router.get("/endpoints/{endpoint_key}/eval")
async def endpoint_eval(
    endpoint_key: str,
    code: str = Query(default=""),
    as_json: str | None = Query(default=None, alias="json"),
    runtime_deps: RuntimeDeps = Depends(get_runtime_deps),
) -> Any:
    """GET-based eval for shell callers: plain text by default, JSON with ``?json=1``."""
    if not code:
        return _error(400, "code query parameter required")

    outcome = await runtime_deps.hub.submit(endpoint_key, {"code": code})
    if outcome.error_code == NoSuchEndpoint.code:
        return _error(503, outcome.error or "endpoint not connected")
    if outcome.error_code in (RequestTimeout.code, ConnectionLost.code):
        label = "Timeout" if outcome.error_code == RequestTimeout.code else "Connection lost"
        status_code = _STATUS_BY_ERROR_CODE[outcome.error_code]
        return PlainTextResponse(f"{label}: {outcome.error}", status_code=status_code)

    if as_json:
        return {"result": outcome.result, "error": outcome.error}
    if outcome.error:
        return PlainTextResponse(f"Error: {outcome.error}", status_code=500)
    if isinstance(outcome.result, str):
        return PlainTextResponse(outcome.result)
    return PlainTextResponse(orjson.dumps(outcome.result).decode("utf-8"))


@router.post("/endpoints/{endpoint_key}/reload")
async def endpoint_reload(endpoint_key: str, runtime_deps: RuntimeDeps = Depends(get_runtime_deps)) -> Any:
    # Not awaited: a reload tears down the endpoint before it can answer.
    try:
        await runtime_deps.hub.send(endpoint_key, {"code": RELOAD_CODE})
    except NoSuchEndpoint as exc:
        return _error(503, str(exc))
    return {"success": True, "message": f"Reload triggered for {endpoint_key}"}


__all__ = ["get_runtime_deps", "router"]
