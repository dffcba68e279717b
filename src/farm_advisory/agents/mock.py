"""Scripted agents: a fixed delay per stage followed by a canned payload."""

import asyncio
import copy
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from farm_advisory.pipelines.schemas import StageInput
from farm_advisory.pipelines.stages import is_known_stage

logger = logging.getLogger(__name__)

CONFIG_DIR = Path(__file__).resolve().parent / "config"
DEFAULT_SCRIPT_PATH = CONFIG_DIR / "mock_agents.yaml"
UNKNOWN_AGENT_OUTPUT = {"status": "Unknown Agent"}


class MockAgentScript(BaseModel):
    """Delay and canned output for one stage."""

    delay_ms: int = Field(default=1000, ge=0)
    output: dict[str, Any] = Field(default_factory=dict)


class MockScriptDocument(BaseModel):
    """Top-level mock agent script document."""

    version: str = "1.0"
    default_delay_ms: int = Field(default=1000, ge=0)
    agents: dict[str, MockAgentScript] = Field(default_factory=dict)


def clear_mock_script_cache() -> None:
    load_mock_script.cache_clear()


@lru_cache(maxsize=4)
def load_mock_script(path: str | Path | None = None) -> MockScriptDocument:
    """Load and validate the mock agent script YAML."""

    resolved_path = Path(path) if path is not None else DEFAULT_SCRIPT_PATH
    if not resolved_path.exists():
        raise RuntimeError(f"Mock agent script not found: {resolved_path}")

    with resolved_path.open("r", encoding="utf-8") as file_handle:
        payload = yaml.safe_load(file_handle) or {}
    if not isinstance(payload, dict):
        raise RuntimeError(f"Mock agent script '{resolved_path}' must be a YAML mapping")

    document = MockScriptDocument.model_validate(payload)
    unknown = [name for name in document.agents if not is_known_stage(name)]
    if unknown:
        raise RuntimeError(f"Mock agent script references unknown stages: {', '.join(unknown)}")
    return document


class MockAgentInvoker:
    """Agent backend that sleeps for the scripted delay and returns the scripted output."""

    backend_id = "mock"

    def __init__(self, script: MockScriptDocument | None = None, *, delay_scale: float = 1.0) -> None:
        self._script = script or load_mock_script()
        self._delay_scale = max(0.0, delay_scale)

    def delay_seconds(self, stage: str) -> float:
        agent = self._script.agents.get(stage)
        delay_ms = agent.delay_ms if agent is not None else self._script.default_delay_ms
        return delay_ms / 1000 * self._delay_scale

    async def invoke(self, stage: str, payload: StageInput) -> dict[str, Any]:
        logger.info("Invoking mock agent %s for crop=%s district=%s", stage, payload.crop, payload.district)
        delay = self.delay_seconds(stage)
        if delay > 0:
            await asyncio.sleep(delay)

        agent = self._script.agents.get(stage)
        if agent is None:
            return dict(UNKNOWN_AGENT_OUTPUT)
        return copy.deepcopy(agent.output)

    def implementation_details(self) -> dict[str, str]:
        return {
            "backend": self.backend_id,
            "script_version": self._script.version,
            "delay_scale": str(self._delay_scale),
        }
