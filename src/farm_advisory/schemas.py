"""Pydantic response models for the service endpoints."""

from enum import StrEnum

from pydantic import BaseModel


class Status(StrEnum):
    """Health check status values."""

    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


class HealthStatus(BaseModel):
    """Health check response."""

    status: Status


class Link(BaseModel):
    """Hypermedia link."""

    href: str
    rel: str
    title: str


class RootResponse(BaseModel):
    """Root endpoint response with navigation links."""

    message: str
    links: list[Link]


class AppInfo(BaseModel):
    """Application version and environment info."""

    app_version: str
    python_version: str
    agent_backend: str
    agent_details: dict[str, str]
    execution_backend: str
    fastapi_version: str
    pydantic_version: str
    prefect_version: str
    uvicorn_version: str
