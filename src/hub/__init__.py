from .hub import CorrelationHub
from .heartbeat import HeartbeatMonitor
from .subscriber import ControlSubscriber
from .connection import EndpointConnection
from .pending import Completion, RequestHandle, SubmitOutcome

__all__ = [
    "Completion",
    "ControlSubscriber",
    "CorrelationHub",
    "EndpointConnection",
    "HeartbeatMonitor",
    "RequestHandle",
    "SubmitOutcome",
]
