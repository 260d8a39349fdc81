"""Fleet scan and deployment API endpoints."""

import asyncio

from fastapi import APIRouter

from depotpilot.logger import get_logger
from depotpilot.models.api.fleet import (
    DeployRequest,
    DeployResponse,
    EndpointResponse,
    EndpointsResponse,
    HostnameRequest,
    ScanResponse,
)
from depotpilot.models.api.repository import Envelope
from depotpilot.services.fleet import get_deploy_pipeline, get_fleet_registry, get_scan_pipeline

logger = get_logger(__name__)
router = APIRouter(prefix="/api", tags=["fleet"])


@router.get("/fleet", response_model=EndpointsResponse)
async def list_endpoints() -> EndpointsResponse:
    return EndpointsResponse(endpoints=get_fleet_registry().list_endpoints())


@router.post("/fleet", response_model=EndpointResponse)
async def add_endpoint(request: HostnameRequest) -> EndpointResponse:
    endpoint = get_fleet_registry().add(request.hostname)
    return EndpointResponse(message=f"Tracking {endpoint.hostname}", endpoint=endpoint)


@router.delete("/fleet/{hostname}", response_model=Envelope)
async def remove_endpoint(hostname: str) -> Envelope:
    get_fleet_registry().remove(hostname)
    return Envelope(message=f"Stopped tracking {hostname}")


@router.post("/fleet/scan", response_model=ScanResponse)
async def scan_endpoint(request: HostnameRequest) -> ScanResponse:
    """
    Scan one endpoint: ping, inventory, applicable packages.

    Unknown hostnames are registered first. A failed scan is still a
    successful request; the endpoint status and message carry the outcome.
    """
    endpoint = await asyncio.to_thread(get_scan_pipeline().scan, request.hostname)
    return ScanResponse(
        message=endpoint.message,
        hostname=endpoint.hostname,
        status=endpoint.status.value,
        system=endpoint.system,
        applicable=endpoint.applicable or [],
    )


@router.post("/fleet/scan-all", response_model=EndpointsResponse)
async def scan_all_endpoints() -> EndpointsResponse:
    endpoints = await asyncio.to_thread(get_scan_pipeline().scan_all)
    return EndpointsResponse(message=f"Scanned {len(endpoints)} endpoint(s)", endpoints=endpoints)


@router.post("/deploy", response_model=DeployResponse)
async def deploy(request: DeployRequest) -> DeployResponse:
    """Deploy packages to targets sequentially and report per-pair outcomes."""
    report = await asyncio.to_thread(get_deploy_pipeline().deploy, request.targets, request.packages)
    summary = report.summary()
    logger.info("Deploy request finished", targets=len(report.targets), **summary)
    return DeployResponse(
        message=", ".join(f"{count} {kind}" for kind, count in summary.items()),
        summary=summary,
        outcomes=report.outcomes,
    )
