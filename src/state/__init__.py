from .runtime import RuntimeDeps
from .settings import AppSettings
from .worker import LogEntry, LogKind, WorkerState, ActivityGuess, ActivityState

__all__ = ["ActivityGuess", "ActivityState", "AppSettings", "LogEntry", "LogKind", "RuntimeDeps", "WorkerState"]
