import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from depotpilot import __version__
from depotpilot.config import get_config
from depotpilot.exceptions import AppBaseError
from depotpilot.logger import get_logger
from depotpilot.routers import fleet_api as fleet_router
from depotpilot.routers import repository_api as repository_router

# Configure basic logging early so uvicorn and library messages are visible
if not logging.getLogger().handlers:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )

logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Manage application lifespan events."""
    config = get_config()
    config.paths.data_dir.mkdir(parents=True, exist_ok=True)
    yield


app = FastAPI(title="DepotPilot", version=__version__, lifespan=lifespan)

# The dashboard may be served from another origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _envelope(status_code: int, message: str) -> JSONResponse:
    return JSONResponse({"success": False, "message": message}, status_code=status_code)


@app.exception_handler(AppBaseError)
async def app_error_handler(request: Request, exc: AppBaseError) -> JSONResponse:
    if exc.status_code >= 500:
        logger.error("Request failed", path=request.url.path, error=str(exc), error_type=type(exc).__name__)
        return _envelope(exc.status_code, str(exc))
    # Rejected requests still answer 200; `success` carries the outcome
    logger.info("Request rejected", path=request.url.path, error=str(exc))
    return _envelope(200, str(exc))


@app.exception_handler(StarletteHTTPException)
async def http_error_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = str(exc.detail) if exc.detail else "Request failed"
    return _envelope(exc.status_code, message)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    if errors:
        first = errors[0]
        field = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        detail = first.get("msg", "invalid value")
        message = f"Invalid request: {field}: {detail}" if field else f"Invalid request: {detail}"
    else:
        message = "Invalid request"
    return _envelope(422, message)


@app.exception_handler(Exception)
async def unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled exception", path=request.url.path, error=str(exc), exc_info=exc)
    return _envelope(500, f"Internal server error: {exc}")


# Register routers
app.include_router(repository_router.router)
app.include_router(fleet_router.router)


def run_server(port: int | None = None, host: str | None = None) -> None:
    """Run the DepotPilot server.

    Args:
        port: Optional port number to override config. If provided, will be saved to config.
        host: Optional bind address for this run only.
    """
    from depotpilot.config import save_config

    config = get_config()

    if port is not None and port != config.server.port:
        logger.info("Port override detected, updating config", old_port=config.server.port, new_port=port)
        config.server.port = port
        save_config(config)

    uvicorn.run(app, host=host or config.server.host, port=config.server.port)


def main() -> None:
    """Main entry point with CLI argument parsing."""
    import argparse

    parser = argparse.ArgumentParser(
        description="DepotPilot - HP SoftPaq repository and fleet deployment backend",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  depotpilot                       # Start with default/saved port
  depotpilot --port 9000           # Start on port 9000 and save it
  depotpilot --host 0.0.0.0        # Listen on all interfaces
        """,
    )

    parser.add_argument(
        "--port",
        type=int,
        metavar="PORT",
        help="Port number to run the server on (will be saved to config)",
    )

    parser.add_argument(
        "--host",
        metavar="HOST",
        help="Address to bind to (defaults to the configured host)",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"DepotPilot {__version__}",
    )

    args = parser.parse_args()

    run_server(port=args.port, host=args.host)


if __name__ == "__main__":
    main()
