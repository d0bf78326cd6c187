"""WebSocket protocol configuration and constants."""

from __future__ import annotations

# Paths
WS_CONTROL_PATH = "/ws"
WS_ENDPOINT_PATH = "/endpoint"
WS_ENDPOINT_KEY_PARAM = "key"

# Envelope keys
WS_KEY_TYPE = "type"
WS_KEY_ENDPOINT_KEY = "endpoint_key"
WS_KEY_REQUEST_ID = "request_id"
WS_KEY_PAYLOAD = "payload"
WS_KEY_RESULT = "result"
WS_KEY_ERROR = "error"

WS_UNKNOWN_REQUEST_ID = "unknown"

# Endpoint -> hub message types
WS_TYPE_READY = "ready"
WS_TYPE_RESULT = "result"
WS_TYPE_EVENT = "event"
WS_TYPE_LIVENESS_PONG = "liveness-pong"

# Hub -> endpoint message types
WS_TYPE_INVOKE = "invoke"
WS_TYPE_LIVENESS_PING = "liveness-ping"

# Hub -> control message types
WS_TYPE_ENDPOINT_EVENT = "endpoint_event"
WS_TYPE_ENDPOINT_RESULT = "endpoint_result"
WS_TYPE_ENDPOINT_STATUS = "endpoint_status"
WS_TYPE_WORKER_UPDATE = "worker_update"
WS_TYPE_WORKER_LOG = "worker_log"
WS_TYPE_ALL_WORKERS = "all_workers"
WS_TYPE_ACK = "ack"
WS_TYPE_PONG = "pong"
WS_TYPE_ERROR = "error"

# Control -> hub message types
WS_TYPE_SEND_TO_WORKER = "send_to_worker"
WS_TYPE_INTERRUPT_WORKER = "interrupt_worker"
WS_TYPE_RESTART_WORKER = "restart_worker"
WS_TYPE_ENDPOINT_EXEC = "endpoint_exec"
WS_TYPE_RESIZE_WORKERS = "resize_workers"
WS_TYPE_PING = "ping"
WS_TYPE_END = "end"

# Close codes
WS_CLOSE_CLIENT_REQUEST_CODE = 1000
WS_CLOSE_GOING_AWAY_CODE = 1001
WS_CLOSE_POLICY_CODE = 1008
WS_CLOSE_BUSY_CODE = 4002
WS_CLOSE_HEARTBEAT_CODE = 4003
WS_CLOSE_REPLACED_CODE = 4005
WS_CLOSE_SESSION_ENDED_CODE = 4006

WS_CLOSE_HEARTBEAT_REASON = "heartbeat timeout"
WS_CLOSE_REPLACED_REASON = "replaced"
WS_CLOSE_SHUTDOWN_REASON = "server shutdown"
WS_CLOSE_READY_TIMEOUT_REASON = "ready timeout"
WS_CLOSE_SESSION_ENDED_REASON = "session ended"

# An endpoint that connects without ?key= must send `ready` within this window.
ENV_WS_READY_TIMEOUT_S = "WS_READY_TIMEOUT_S"
DEFAULT_WS_READY_TIMEOUT_S = 10.0

# Errors (payload.code values)
WS_ERROR_SERVER_AT_CAPACITY = "server_at_capacity"
WS_ERROR_INVALID_MESSAGE = "invalid_message"
WS_ERROR_INVALID_PAYLOAD = "invalid_payload"
WS_ERROR_RATE_LIMITED = "rate_limited"
WS_ERROR_UNKNOWN_WORKER = "unknown_worker"
WS_ERROR_INTERNAL = "internal_error"

__all__ = [
    "WS_CONTROL_PATH",
    "WS_ENDPOINT_PATH",
    "WS_ENDPOINT_KEY_PARAM",
    "WS_KEY_TYPE",
    "WS_KEY_ENDPOINT_KEY",
    "WS_KEY_REQUEST_ID",
    "WS_KEY_PAYLOAD",
    "WS_KEY_RESULT",
    "WS_KEY_ERROR",
    "WS_UNKNOWN_REQUEST_ID",
    "WS_TYPE_READY",
    "WS_TYPE_RESULT",
    "WS_TYPE_EVENT",
    "WS_TYPE_LIVENESS_PONG",
    "WS_TYPE_INVOKE",
    "WS_TYPE_LIVENESS_PING",
    "WS_TYPE_ENDPOINT_EVENT",
    "WS_TYPE_ENDPOINT_RESULT",
    "WS_TYPE_ENDPOINT_STATUS",
    "WS_TYPE_WORKER_UPDATE",
    "WS_TYPE_WORKER_LOG",
    "WS_TYPE_ALL_WORKERS",
    "WS_TYPE_ACK",
    "WS_TYPE_PONG",
    "WS_TYPE_ERROR",
    "WS_TYPE_SEND_TO_WORKER",
    "WS_TYPE_INTERRUPT_WORKER",
    "WS_TYPE_RESTART_WORKER",
    "WS_TYPE_ENDPOINT_EXEC",
    "WS_TYPE_RESIZE_WORKERS",
    "WS_TYPE_PING",
    "WS_TYPE_END",
    "WS_CLOSE_CLIENT_REQUEST_CODE",
    "WS_CLOSE_GOING_AWAY_CODE",
    "WS_CLOSE_POLICY_CODE",
    "WS_CLOSE_BUSY_CODE",
    "WS_CLOSE_HEARTBEAT_CODE",
    "WS_CLOSE_REPLACED_CODE",
    "WS_CLOSE_SESSION_ENDED_CODE",
    "WS_CLOSE_HEARTBEAT_REASON",
    "WS_CLOSE_REPLACED_REASON",
    "WS_CLOSE_SHUTDOWN_REASON",
    "WS_CLOSE_READY_TIMEOUT_REASON",
    "WS_CLOSE_SESSION_ENDED_REASON",
    "ENV_WS_READY_TIMEOUT_S",
    "DEFAULT_WS_READY_TIMEOUT_S",
    "WS_ERROR_SERVER_AT_CAPACITY",
    "WS_ERROR_INVALID_MESSAGE",
    "WS_ERROR_INVALID_PAYLOAD",
    "WS_ERROR_RATE_LIMITED",
    "WS_ERROR_UNKNOWN_WORKER",
    "WS_ERROR_INTERNAL",
]
