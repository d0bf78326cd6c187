"""Worker state objects (dataclasses and enums only)."""

from __future__ import annotations

import time
from enum import Enum
from typing import Any
from dataclasses import field, dataclass


class ActivityState(str, Enum):
    STARTING = "starting"
    IDLE = "idle"
    BUSY = "busy"
    ERROR = "error"
    INTERRUPTED = "interrupted"


class ActivityGuess(str, Enum):
    IDLE = "idle"
    BUSY = "busy"
    UNKNOWN = "unknown"


class LogKind(str, Enum):
    SYSTEM = "system"
    USER = "user"
    OUTPUT = "output"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class LogEntry:
    kind: LogKind
    content: str
    timestamp: float = field(default_factory=time.time)
    tool_name: str | None = None

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "timestamp": int(self.timestamp * 1000),
            "type": self.kind.value,
            "content": self.content,
        }
        if self.tool_name:
            data["tool_name"] = self.tool_name
        return data


@dataclass(slots=True)
class WorkerState:
    id: str
    repo_name: str
    repo_path: str
    github_url: str
    tmux_session: str
    live_url: str | None = None
    status: ActivityState = ActivityState.IDLE
    current_task: str | None = None
    last_error: str | None = None
    output_log: list[LogEntry] = field(default_factory=list)

    def to_dict(self, *, include_log: bool = True) -> dict[str, Any]:
        data = {
            "id": self.id,
            "repo_name": self.repo_name,
            "repo_path": self.repo_path,
            "github_url": self.github_url,
            "live_url": self.live_url,
            "status": self.status.value,
            "tmux_session": self.tmux_session,
            "current_task": self.current_task,
            "last_error": self.last_error,
        }
        if include_log:
            data["output_log"] = [entry.to_dict() for entry in self.output_log]
        return data


__all__ = ["ActivityGuess", "ActivityState", "LogEntry", "LogKind", "WorkerState"]
