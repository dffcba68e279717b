"""Sequential advisory pipeline: run each agent stage, record progress, score the results.

The runner owns a pipeline record from the moment it marks it ``Running``
until it writes a terminal status. Every failure (agent error, timeout,
malformed stage output) results in exactly one ``Failed`` write followed by
``PipelineFailedError``; no stage is retried or skipped.
"""

import asyncio
import logging
from typing import Any
from uuid import uuid4

from farm_advisory.agents.base import AgentInvoker, PermanentAgentError
from farm_advisory.pipelines.errors import PipelineFailedError, StageOutputError, StageTimeoutError
from farm_advisory.pipelines.schemas import Advisory, FarmerInput, PipelineRecord, PipelineStatus
from farm_advisory.pipelines.scoring import (
    HOURS_SINCE_HARVEST,
    PRICE_VOLATILITY,
    advisory_formatter_tool,
    crop_risk_tool,
    shelf_life_tool,
)
from farm_advisory.pipelines.stages import STAGES, Stage, missing_output_fields, project_stage_input
from farm_advisory.store.errors import InvalidTransitionError, PipelineExistsError
from farm_advisory.store.progress import ProgressStore

logger = logging.getLogger(__name__)

CANCELLED_MESSAGE = "Pipeline cancelled"


def new_pipeline_id() -> str:
    return f"pipeline_{uuid4().hex}"


class PipelineRunner:
    """Runs the fixed stage list for one farmer input at a time."""

    def __init__(
        self,
        store: ProgressStore,
        invoker: AgentInvoker,
        *,
        stage_timeout: float | None = None,
    ) -> None:
        self._store = store
        self._invoker = invoker
        self._stage_timeout = stage_timeout

    def prepare(self, farmer_input: FarmerInput, pipeline_id: str | None = None) -> PipelineRecord:
        """Create the ``Pending`` record ahead of a deferred ``run``."""

        resolved_id = pipeline_id or new_pipeline_id()
        if self._store.get(resolved_id) is not None:
            raise PipelineExistsError(resolved_id)
        return self._store.create(resolved_id, farmer_input)

    async def run(self, farmer_input: FarmerInput, pipeline_id: str | None = None) -> Advisory:
        """Run every stage in order and return the assembled advisory.

        A caller-supplied id may point at a ``Pending`` record created by
        ``prepare``; any other existing record raises ``PipelineExistsError``
        without touching it.
        """

        resolved_id = pipeline_id or new_pipeline_id()
        existing = self._store.get(resolved_id)
        if existing is None:
            self._store.create(resolved_id, farmer_input)
        elif existing.status != PipelineStatus.PENDING:
            raise PipelineExistsError(resolved_id)

        try:
            self._store.start(resolved_id, STAGES[0])
        except InvalidTransitionError as exc:
            # another run claimed the Pending record first
            raise PipelineExistsError(resolved_id) from exc
        logger.info(
            "Pipeline %s started for crop=%s district=%s",
            resolved_id,
            farmer_input.crop,
            farmer_input.district,
        )

        current_stage: Stage | None = None
        try:
            results: dict[Stage, dict[str, Any]] = {}
            for stage in STAGES:
                current_stage = stage
                self._store.set_current_stage(resolved_id, stage)
                output = await self._invoke(stage, farmer_input)
                missing = missing_output_fields(stage, output)
                if missing:
                    raise StageOutputError(stage, missing)
                self._store.write_stage_log(resolved_id, stage, output)
                results[stage] = output
                logger.info("Pipeline %s finished stage %s", resolved_id, stage)

            current_stage = None
            advisory = self._assemble(resolved_id, farmer_input, results)
            self._store.complete(resolved_id, advisory)
        except asyncio.CancelledError:
            logger.warning("Pipeline %s cancelled at %s", resolved_id, current_stage)
            self._store.fail(resolved_id, CANCELLED_MESSAGE)
            raise
        except Exception as exc:
            message = str(exc) or exc.__class__.__name__
            logger.warning("Pipeline %s failed at %s: %s", resolved_id, current_stage or "scoring", message)
            self._store.fail(resolved_id, message)
            raise PipelineFailedError(resolved_id, current_stage, message) from exc

        logger.info("Pipeline %s completed with risk score %s", resolved_id, advisory.risk_score)
        return advisory

    async def _invoke(self, stage: Stage, farmer_input: FarmerInput) -> dict[str, Any]:
        payload = project_stage_input(stage, farmer_input)
        call = self._invoker.invoke(stage, payload)
        if self._stage_timeout is None:
            output = await call
        else:
            try:
                output = await asyncio.wait_for(call, timeout=self._stage_timeout)
            except TimeoutError as exc:
                raise StageTimeoutError(stage, self._stage_timeout) from exc

        if not isinstance(output, dict):
            raise PermanentAgentError(stage, "agent returned a non-object output")
        return output

    def _assemble(
        self,
        pipeline_id: str,
        farmer_input: FarmerInput,
        results: dict[Stage, dict[str, Any]],
    ) -> Advisory:
        weather = results[Stage.WEATHER_INTELLIGENCE]
        decision = results[Stage.DECISION_ORCHESTRATOR]
        explanation = results[Stage.EXPLANATION_COMPLIANCE]

        risk_score = crop_risk_tool(float(weather["weatherScore"]), farmer_input.soil_type, PRICE_VOLATILITY)
        shelf_life = shelf_life_tool(farmer_input.temperature, farmer_input.humidity, HOURS_SINCE_HARVEST)
        recommendation = advisory_formatter_tool(
            crop=farmer_input.crop,
            risk=risk_score,
            shelf_life=shelf_life,
            weather=str(weather["forecast"]),
        )
        logger.info("Pipeline %s scored risk=%s shelfLife=%.3f", pipeline_id, risk_score, shelf_life)

        return Advisory(
            yield_expectation=str(decision["optimizedYield"]),
            price_trend=str(decision["priceTrend"]),
            risk_score=risk_score,
            recommendation=recommendation,
            reasoning=str(explanation["reasoning"]),
            confidence=float(explanation["confidence"]),
        )
