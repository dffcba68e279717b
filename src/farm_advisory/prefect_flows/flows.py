"""Prefect flow that runs one advisory pipeline and publishes a summary artifact.

The flow is synchronous and drives the async runner on its own event loop,
so it must be called from a thread without a running loop (the HTTP layer
uses the threadpool).
"""

import asyncio
import logging
from typing import Any

from prefect import flow, task
from prefect.artifacts import create_markdown_artifact

from farm_advisory import config
from farm_advisory.agents import build_invoker
from farm_advisory.pipelines.runner import PipelineRunner, new_pipeline_id
from farm_advisory.pipelines.schemas import Advisory, AdvisoryRequest
from farm_advisory.store import get_progress_store

logger = logging.getLogger(__name__)

FLOW_NAME = "farm-advisory-pipeline"


def advisory_markdown(pipeline_id: str, advisory: Advisory) -> str:
    lines = [
        f"## Advisory {pipeline_id}",
        "",
        "| Field | Value |",
        "|---|---|",
        f"| Yield expectation | {advisory.yield_expectation} |",
        f"| Price trend | {advisory.price_trend} |",
        f"| Risk score | {advisory.risk_score} |",
        f"| Confidence | {advisory.confidence:.0%} |",
        "",
        f"**Recommendation:** {advisory.recommendation}",
        "",
        f"**Reasoning:** {advisory.reasoning}",
    ]
    return "\n".join(lines)


@task(name="publish-advisory-summary")
def publish_advisory_summary(pipeline_id: str, advisory: Advisory) -> None:
    """Publish the advisory as a markdown artifact on the flow run."""
    create_markdown_artifact(
        key=f"advisory-{pipeline_id}".lower().replace("_", "-"),
        markdown=advisory_markdown(pipeline_id, advisory),
        description=f"Advisory for pipeline {pipeline_id}",
    )


@flow(name=FLOW_NAME, description="Run the six-stage farm advisory pipeline for one farmer input.")
def advisory_pipeline(request: dict[str, Any]) -> dict[str, Any]:
    parsed = AdvisoryRequest.model_validate(request)
    runner = PipelineRunner(
        get_progress_store(),
        build_invoker(),
        stage_timeout=config.stage_timeout_seconds(),
    )
    pipeline_id = parsed.pipeline_id or new_pipeline_id()
    advisory = asyncio.run(runner.run(parsed.to_farmer_input(), pipeline_id))

    publish_advisory_summary(pipeline_id, advisory)
    logger.info("Prefect flow finished pipeline %s", pipeline_id)
    return advisory.model_dump(mode="json", by_alias=True)


ALL_FLOWS = [advisory_pipeline]
