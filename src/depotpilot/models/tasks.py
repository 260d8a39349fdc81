"""Background task and operator log models."""

from datetime import datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class StreamKind(str, Enum):
    """Output stream a log record came from."""

    OUTPUT = "Output"
    VERBOSE = "Verbose"
    WARNING = "Warning"
    ERROR = "Error"
    INFO = "Info"


class TaskKind(str, Enum):
    """Long-running repository operations."""

    INIT = "Init"
    SYNC = "Sync"
    CLEANUP = "Cleanup"


class TaskState(str, Enum):
    PENDING = "Pending"
    RUNNING = "Running"
    COMPLETED = "Completed"
    FAILED = "Failed"


# Allowed forward moves; terminal states have none
_TRANSITIONS: dict[TaskState, frozenset[TaskState]] = {
    TaskState.PENDING: frozenset({TaskState.RUNNING}),
    TaskState.RUNNING: frozenset({TaskState.COMPLETED, TaskState.FAILED}),
    TaskState.COMPLETED: frozenset(),
    TaskState.FAILED: frozenset(),
}


class LogEntry(BaseModel):
    """One record in the operator log."""

    seq: int = 0
    timestamp: datetime = Field(default_factory=datetime.now)
    task_id: int | None = None
    stream: StreamKind = StreamKind.INFO
    message: str

    def render(self) -> str:
        """Format the entry the way the dashboard log viewer shows it."""
        parts = [f"[{self.timestamp.strftime('%H:%M:%S')}]"]
        if self.task_id is not None:
            parts.append(f"[Task {self.task_id}]")
        parts.append(f"[{self.stream.value.upper()}]")
        parts.append(self.message)
        return " ".join(parts)


class BackgroundTask(BaseModel):
    """A repository operation tracked by the task orchestrator."""

    id: int
    kind: TaskKind
    params: dict[str, Any] = Field(default_factory=dict)
    state: TaskState = TaskState.PENDING
    created_at: datetime = Field(default_factory=datetime.now)
    started_at: datetime | None = None
    finished_at: datetime | None = None
    error: str | None = None

    @property
    def is_terminal(self) -> bool:
        return self.state in (TaskState.COMPLETED, TaskState.FAILED)

    def advance(self, new_state: TaskState) -> None:
        """Move to ``new_state``, refusing any backward or skipped transition.

        Raises:
            ValueError: If the transition is not allowed
        """
        if new_state not in _TRANSITIONS[self.state]:
            raise ValueError(f"Task {self.id} cannot move from {self.state.value} to {new_state.value}")
        self.state = new_state
        if new_state == TaskState.RUNNING:
            self.started_at = datetime.now()
        elif self.is_terminal:
            self.finished_at = datetime.now()
