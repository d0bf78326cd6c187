from .worker import Worker
from .differ import compute_new_content
from .manager import WorkerManager
from .renderer import TerminalRenderer
from .classifier import ActivityClassifier
from .capture import CaptureResult, SessionCaptureLoop

__all__ = [
    "ActivityClassifier",
    "CaptureResult",
    "SessionCaptureLoop",
    "TerminalRenderer",
    "Worker",
    "WorkerManager",
    "compute_new_content",
]
