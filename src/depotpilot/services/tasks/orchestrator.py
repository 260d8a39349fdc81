"""Background task orchestrator for long-running repository operations."""

import itertools
import threading
from collections import deque
from collections.abc import Callable
from typing import Any

import structlog

from depotpilot.logger import get_logger
from depotpilot.models.tasks import BackgroundTask, LogEntry, StreamKind, TaskKind, TaskState

from .aggregator import LogAggregator

logger = get_logger(__name__)

Emit = Callable[[StreamKind, str], None]
TaskRunner = Callable[[TaskKind, dict[str, Any], Emit], None]


class _TrackedTask:
    """Orchestrator-side bookkeeping for one task."""

    def __init__(self, task: BackgroundTask) -> None:
        self.task = task
        self.thread: threading.Thread | None = None
        self.finished = False
        self.succeeded = False
        self.error: str | None = None


class TaskOrchestrator:
    """
    Runs repository operations on worker threads and collects their output.

    ``submit`` returns immediately with the new task id. Workers never touch
    the log directly: their records are queued, and ``poll`` moves everything
    queued since the previous call into the ``LogAggregator`` in arrival
    order. ``poll`` is also where finished workers become Completed or Failed;
    a terminal task stays visible for one more poll, then it is dropped.
    """

    def __init__(self, aggregator: LogAggregator, runner: TaskRunner) -> None:
        """
        Args:
            aggregator: Log sink that receives drained output
            runner: Callable executing one task; it reports output through the
                ``emit`` callback it receives and raises on failure
        """
        self.aggregator = aggregator
        self._runner = runner
        self._ids = itertools.count(1)
        self._tasks: dict[int, _TrackedTask] = {}
        # Bounded like the aggregator; the oldest queued output is dropped first
        self._pending: deque[LogEntry] = deque(maxlen=aggregator.capacity)
        self._lock = threading.Lock()

    def submit(self, kind: TaskKind, params: dict[str, Any] | None = None) -> int:
        """Create a Pending task and start its worker without waiting for it."""
        with self._lock:
            task_id = next(self._ids)
            tracked = _TrackedTask(BackgroundTask(id=task_id, kind=kind, params=dict(params or {})))
            self._tasks[task_id] = tracked
            self._pending.append(
                LogEntry(task_id=task_id, stream=StreamKind.INFO, message=f"{kind.value} task created")
            )

        thread = threading.Thread(target=self._work, args=(tracked,), daemon=True, name=f"task-{task_id}")
        tracked.thread = thread
        thread.start()

        logger.info("Task submitted", task_id=task_id, kind=kind.value)
        return task_id

    def _emit_for(self, task_id: int) -> Emit:
        def emit(stream: StreamKind, message: str) -> None:
            entry = LogEntry(task_id=task_id, stream=stream, message=message)
            with self._lock:
                self._pending.append(entry)

        return emit

    def _work(self, tracked: _TrackedTask) -> None:
        task = tracked.task
        structlog.contextvars.bind_contextvars(task_id=task.id)
        try:
            with self._lock:
                task.advance(TaskState.RUNNING)
            self._runner(task.kind, task.params, self._emit_for(task.id))
            tracked.succeeded = True
        except Exception as e:
            logger.error("Task worker failed", kind=task.kind.value, error=str(e))
            tracked.error = str(e) or type(e).__name__
        finally:
            with self._lock:
                tracked.finished = True
            structlog.contextvars.unbind_contextvars("task_id")

    def poll(self) -> list[LogEntry]:
        """Drain new output from every task and settle finished workers.

        Returns:
            The entries drained by this call, as stored in the aggregator
        """
        with self._lock:
            # Tasks that went terminal on an earlier poll have had their output drained
            for task_id in [tid for tid, t in self._tasks.items() if t.task.is_terminal]:
                del self._tasks[task_id]

            # A finished flag is set after the worker's last emit, so its output is queued already
            for tracked in self._tasks.values():
                if not tracked.finished or tracked.task.is_terminal:
                    continue
                task = tracked.task
                if tracked.succeeded:
                    task.advance(TaskState.COMPLETED)
                    self._pending.append(
                        LogEntry(task_id=task.id, stream=StreamKind.INFO, message=f"{task.kind.value} task completed")
                    )
                else:
                    task.error = tracked.error or "worker exited abnormally"
                    task.advance(TaskState.FAILED)
                    self._pending.append(
                        LogEntry(
                            task_id=task.id,
                            stream=StreamKind.ERROR,
                            message=f"{task.kind.value} task failed: {task.error}",
                        )
                    )

            pending = list(self._pending)
            self._pending.clear()
            return [self.aggregator.append(entry) for entry in pending]

    def get(self, task_id: int) -> BackgroundTask | None:
        """Return a copy of an active task, or None once it has been dropped."""
        with self._lock:
            tracked = self._tasks.get(task_id)
            return tracked.task.model_copy() if tracked else None

    def tasks(self) -> list[BackgroundTask]:
        """Return copies of all active tasks in submission order."""
        with self._lock:
            return [t.task.model_copy() for t in self._tasks.values()]

    def join(self, timeout: float | None = None) -> None:
        """Wait for every running worker thread to finish (used by tests and shutdown)."""
        with self._lock:
            threads = [t.thread for t in self._tasks.values() if t.thread is not None]
        for thread in threads:
            thread.join(timeout)
