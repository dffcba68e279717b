"""Root API endpoints."""

import logging
import sys
from importlib.metadata import PackageNotFoundError, version

from fastapi import APIRouter, Request

from farm_advisory import __version__, config
from farm_advisory.agents import build_invoker
from farm_advisory.schemas import AppInfo, HealthStatus, Link, RootResponse, Status

logger = logging.getLogger(__name__)

router = APIRouter(tags=["System"])


def _package_version(name: str) -> str:
    try:
        return version(name)
    except PackageNotFoundError:
        return "unknown"


def _agent_details() -> dict[str, str]:
    try:
        return build_invoker().implementation_details()
    except RuntimeError as exc:
        logger.warning("Agent backend is misconfigured: %s", exc)
        return {"backend": config.agent_backend(), "error": str(exc)}


@router.get("/")
def read_index(request: Request) -> RootResponse:
    """Return a welcome message with navigation links."""
    base = str(request.base_url).rstrip("/")
    return RootResponse(
        message="Welcome to the Farm Advisory API",
        links=[
            Link(href=f"{base}/pipelines", rel="pipelines", title="Advisory pipelines"),
            Link(href=f"{base}/pipelines/stages", rel="stages", title="Pipeline stages"),
            Link(href=f"{base}/docs", rel="docs", title="API Docs"),
        ],
    )


@router.get("/health")
def health() -> HealthStatus:
    """Return health status for container health checks."""
    return HealthStatus(status=Status.HEALTHY)


@router.get("/info")
def info() -> AppInfo:
    """Return application version and environment info."""
    return AppInfo(
        app_version=__version__,
        python_version=sys.version,
        agent_backend=config.agent_backend(),
        agent_details=_agent_details(),
        execution_backend=config.execution_backend(),
        fastapi_version=_package_version("fastapi"),
        pydantic_version=_package_version("pydantic"),
        prefect_version=_package_version("prefect"),
        uvicorn_version=_package_version("uvicorn"),
    )
