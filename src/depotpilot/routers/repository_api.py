"""Repository management API endpoints."""

import asyncio

from fastapi import APIRouter

from depotpilot.logger import get_logger
from depotpilot.models.api.repository import (
    Envelope,
    FilterRequest,
    InfoResponse,
    LogsResponse,
    PathRequest,
    PathResponse,
    SettingsRequest,
    SyncRequest,
    TaskCreatedResponse,
    TaskInfo,
    TasksResponse,
)
from depotpilot.models.tasks import BackgroundTask, TaskKind
from depotpilot.services.repository import get_repository_config, get_repository_service
from depotpilot.services.tasks import get_log_aggregator, get_task_orchestrator

logger = get_logger(__name__)
router = APIRouter(prefix="/api", tags=["repository"])


def _task_info(task: BackgroundTask) -> TaskInfo:
    return TaskInfo(
        id=task.id,
        kind=task.kind.value,
        state=task.state.value,
        created_at=task.created_at.isoformat(),
        started_at=task.started_at.isoformat() if task.started_at else None,
        finished_at=task.finished_at.isoformat() if task.finished_at else None,
        error=task.error,
    )


@router.get("/path", response_model=PathResponse)
async def get_path() -> PathResponse:
    return PathResponse(path=str(get_repository_config().path))


@router.post("/path", response_model=PathResponse)
async def set_path(request: PathRequest) -> PathResponse:
    """Point the backend at another repository directory."""
    path = get_repository_service().set_path(request.path)
    return PathResponse(message=f"Repository path set to {path}", path=str(path))


@router.get("/logs", response_model=LogsResponse)
async def get_logs(since: int | None = None) -> LogsResponse:
    """
    Drain background task output and return the operator log.

    Args:
        since: Cursor from a previous call; only newer entries are returned

    Returns:
        Rendered log lines and the cursor to pass next time
    """
    get_task_orchestrator().poll()
    entries, cursor = get_log_aggregator().read(since)
    return LogsResponse(logs=[e.render() for e in entries], cursor=cursor)


@router.get("/tasks", response_model=TasksResponse)
async def get_tasks() -> TasksResponse:
    orchestrator = get_task_orchestrator()
    orchestrator.poll()
    return TasksResponse(tasks=[_task_info(t) for t in orchestrator.tasks()])


@router.get("/info", response_model=InfoResponse)
async def get_info() -> InfoResponse:
    """Repository information from the vendor module plus the current settings."""
    info, settings = await asyncio.to_thread(get_repository_service().get_info)
    return InfoResponse(info=info, settings=settings)


@router.post("/settings", response_model=Envelope)
async def update_settings(request: SettingsRequest) -> Envelope:
    await asyncio.to_thread(
        get_repository_service().update_settings,
        on_missing=request.missing,
        cache_mode=request.cache,
        report_format=request.report,
    )
    return Envelope(message="Settings applied")


async def _start(kind: TaskKind, ref_url: str | None = None) -> TaskCreatedResponse:
    task_id = get_repository_service().start_task(kind, ref_url)
    return TaskCreatedResponse(message=f"Task {task_id} created", task_id=task_id)


@router.post("/init", response_model=TaskCreatedResponse)
async def init_repository() -> TaskCreatedResponse:
    return await _start(TaskKind.INIT)


@router.post("/sync", response_model=TaskCreatedResponse)
async def sync_repository(request: SyncRequest | None = None) -> TaskCreatedResponse:
    return await _start(TaskKind.SYNC, request.ref_url if request else None)


@router.post("/cleanup", response_model=TaskCreatedResponse)
async def cleanup_repository() -> TaskCreatedResponse:
    return await _start(TaskKind.CLEANUP)


@router.post("/filter", response_model=Envelope)
async def add_filter(request: FilterRequest) -> Envelope:
    repo_filter = request.to_filter()
    await asyncio.to_thread(get_repository_service().add_filter, repo_filter)
    return Envelope(message=f"Filter added for platform {repo_filter.platform.upper()}")


@router.delete("/filter", response_model=Envelope)
async def remove_filter(request: FilterRequest) -> Envelope:
    repo_filter = request.to_filter()
    await asyncio.to_thread(get_repository_service().remove_filter, repo_filter)
    return Envelope(message=f"Filter removed for platform {repo_filter.platform.upper()}")
