"""Application lifespan: startup configuration log and the optional Prefect flow runner."""

import asyncio
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from farm_advisory import config
from farm_advisory.store.state_store import state_dir, state_enabled

logger = logging.getLogger(__name__)


def _log_startup_configuration() -> None:
    cors = config.cors_origins()
    logger.info(
        "Startup config: cors=%s apiKeyRequired=%s",
        "*" if cors == ["*"] else f"{len(cors)} origins",
        config.api_key_required() is not None,
    )
    logger.info(
        "Startup config: agentBackend=%s stageTimeout=%s executionBackend=%s",
        config.agent_backend(),
        config.stage_timeout_seconds(),
        config.execution_backend(),
    )
    logger.info(
        "Startup config: statePersistence=%s stateDir=%s uploadDir=%s",
        state_enabled(),
        state_dir(),
        config.upload_dir(),
    )


async def _serve_flows() -> None:
    """Register Prefect deployments and start a runner to execute them."""
    from prefect.runner import Runner

    from farm_advisory.prefect_flows.flows import ALL_FLOWS

    runner = Runner()
    for fl in ALL_FLOWS:
        await runner.aadd_flow(fl, name=fl.name)
    await runner.start()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Log the effective configuration and, with the Prefect backend, serve the flow deployments."""
    _log_startup_configuration()
    config.upload_dir().mkdir(parents=True, exist_ok=True)

    if not config.prefect_enabled():
        yield
        return

    task = asyncio.create_task(_serve_flows())
    yield
    task.cancel()
