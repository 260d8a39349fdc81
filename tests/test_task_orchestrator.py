# ruff: noqa: ANN001, ANN201
import threading

import pytest

from depotpilot.models.tasks import BackgroundTask, StreamKind, TaskKind, TaskState
from depotpilot.services.tasks import LogAggregator, TaskOrchestrator


def make_orchestrator(runner):
    aggregator = LogAggregator(capacity=100)
    return TaskOrchestrator(aggregator, runner), aggregator


def test_submit_returns_before_worker_finishes():
    release = threading.Event()

    def runner(kind, params, emit):
        release.wait(5)

    orchestrator, _ = make_orchestrator(runner)
    task_id = orchestrator.submit(TaskKind.INIT, {"path": "C:/Repo"})

    task = orchestrator.get(task_id)
    assert task is not None
    assert task.state in (TaskState.PENDING, TaskState.RUNNING)

    release.set()
    orchestrator.join(5)
    orchestrator.poll()
    assert orchestrator.get(task_id).state == TaskState.COMPLETED


def test_poll_drains_output_tagged_with_task_id():
    def runner(kind, params, emit):
        emit(StreamKind.VERBOSE, "Initializing repository")
        emit(StreamKind.OUTPUT, "done")

    orchestrator, aggregator = make_orchestrator(runner)
    task_id = orchestrator.submit(TaskKind.INIT)
    orchestrator.join(5)

    drained = orchestrator.poll()
    assert [e.message for e in drained] == [
        "Init task created",
        "Initializing repository",
        "done",
        "Init task completed",
    ]
    assert all(e.task_id == task_id for e in drained)
    assert all(f"[Task {task_id}]" in e.render() for e in aggregator.snapshot())

    # Nothing new on the next poll
    assert orchestrator.poll() == []


def test_terminal_task_is_dropped_after_final_drain():
    orchestrator, _ = make_orchestrator(lambda kind, params, emit: None)
    task_id = orchestrator.submit(TaskKind.CLEANUP)
    orchestrator.join(5)

    orchestrator.poll()
    assert orchestrator.get(task_id).state == TaskState.COMPLETED

    orchestrator.poll()
    assert orchestrator.get(task_id) is None
    assert orchestrator.tasks() == []


def test_failing_worker_does_not_affect_other_tasks():
    def runner(kind, params, emit):
        if kind == TaskKind.SYNC:
            emit(StreamKind.OUTPUT, "starting sync")
            raise RuntimeError("network unreachable")
        emit(StreamKind.OUTPUT, "cleanup ok")

    orchestrator, aggregator = make_orchestrator(runner)
    sync_id = orchestrator.submit(TaskKind.SYNC)
    cleanup_id = orchestrator.submit(TaskKind.CLEANUP)
    orchestrator.join(5)
    orchestrator.poll()

    assert orchestrator.get(sync_id).state == TaskState.FAILED
    assert orchestrator.get(sync_id).error == "network unreachable"
    assert orchestrator.get(cleanup_id).state == TaskState.COMPLETED

    errors = [e for e in aggregator.snapshot() if e.stream == StreamKind.ERROR]
    assert len(errors) == 1
    assert errors[0].task_id == sync_id
    assert "network unreachable" in errors[0].message


def test_task_ids_are_unique_and_increasing():
    orchestrator, _ = make_orchestrator(lambda kind, params, emit: None)
    ids = [orchestrator.submit(TaskKind.INIT) for _ in range(5)]
    orchestrator.join(5)

    assert ids == sorted(set(ids))


def test_runner_receives_task_params():
    seen = {}

    def runner(kind, params, emit):
        seen.update(params)

    orchestrator, _ = make_orchestrator(runner)
    orchestrator.submit(TaskKind.SYNC, {"path": "D:/Softpaqs", "ref_url": "https://example.invalid/ref"})
    orchestrator.join(5)

    assert seen == {"path": "D:/Softpaqs", "ref_url": "https://example.invalid/ref"}


def test_blocked_worker_is_running_before_any_poll():
    started = threading.Event()
    release = threading.Event()

    def runner(kind, params, emit):
        started.set()
        release.wait(5)

    orchestrator, _ = make_orchestrator(runner)
    task_id = orchestrator.submit(TaskKind.SYNC)

    assert started.wait(5)
    assert orchestrator.get(task_id).state == TaskState.RUNNING

    release.set()
    orchestrator.join(5)
    orchestrator.poll()
    assert orchestrator.get(task_id).state == TaskState.COMPLETED


def test_task_state_never_moves_backward():
    task = BackgroundTask(id=1, kind=TaskKind.INIT)
    with pytest.raises(ValueError):
        task.advance(TaskState.FAILED)

    task.advance(TaskState.RUNNING)
    with pytest.raises(ValueError):
        task.advance(TaskState.PENDING)

    task.advance(TaskState.COMPLETED)
    for state in (TaskState.PENDING, TaskState.RUNNING, TaskState.FAILED):
        with pytest.raises(ValueError):
            task.advance(state)
    assert task.state == TaskState.COMPLETED


def test_queued_output_is_bounded_by_log_capacity():
    def runner(kind, params, emit):
        for i in range(20):
            emit(StreamKind.OUTPUT, f"line {i}")

    aggregator = LogAggregator(capacity=5)
    orchestrator = TaskOrchestrator(aggregator, runner)
    orchestrator.submit(TaskKind.INIT)
    orchestrator.join(5)

    drained = orchestrator.poll()

    assert [e.message for e in drained] == ["line 16", "line 17", "line 18", "line 19", "Init task completed"]
    assert len(aggregator) == 5
