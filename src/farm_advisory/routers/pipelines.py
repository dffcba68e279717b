"""FastAPI router for advisory pipeline endpoints."""

import asyncio
import json
import logging
from collections.abc import AsyncIterator
from typing import Any

from fastapi import APIRouter, BackgroundTasks, Body, Depends, Request, Response
from fastapi.responses import StreamingResponse
from starlette.concurrency import run_in_threadpool

from farm_advisory import config
from farm_advisory.agents import build_invoker
from farm_advisory.errors import conflict, internal_error, not_found
from farm_advisory.pipelines.errors import PipelineFailedError
from farm_advisory.pipelines.runner import PipelineRunner, new_pipeline_id
from farm_advisory.pipelines.schemas import Advisory, AdvisoryRequest, FarmerInput, PipelineRecord, ProgressEvent
from farm_advisory.pipelines.stages import STAGE_ROLES, STAGES
from farm_advisory.pipelines.view import PipelineView, build_view
from farm_advisory.store import PipelineExistsError, ProgressStore, get_progress_store

logger = logging.getLogger(__name__)

router = APIRouter()

JSON_MEDIA_TYPE = "application/json"
EVENT_STREAM_MEDIA_TYPE = "text/event-stream"

_EXAMPLE_REQUEST = {
    "crop": "Tomato",
    "district": "Nashik",
    "soilType": "Loamy",
    "growthStage": "Flowering",
    "temp": 28,
    "humidity": 65,
}
_REQUEST_EXAMPLES = {"tomato": {"summary": "Tomato in Nashik", "value": _EXAMPLE_REQUEST}}


def get_store() -> ProgressStore:
    return get_progress_store()


def get_runner(store: ProgressStore = Depends(get_store)) -> PipelineRunner:
    return PipelineRunner(store, build_invoker(), stage_timeout=config.stage_timeout_seconds())


def _base_url(request: Request) -> str:
    return str(request.base_url).rstrip("/")


def _pipeline_links(request: Request, pipeline_id: str) -> list[dict[str, str]]:
    pipeline_url = f"{_base_url(request)}/pipelines/{pipeline_id}"
    return [
        {"rel": "monitor", "type": JSON_MEDIA_TYPE, "href": pipeline_url},
        {"rel": "logs", "type": JSON_MEDIA_TYPE, "href": f"{pipeline_url}/logs"},
        {"rel": "view", "type": JSON_MEDIA_TYPE, "href": f"{pipeline_url}/view"},
        {"rel": "events", "type": EVENT_STREAM_MEDIA_TYPE, "href": f"{pipeline_url}/events"},
    ]


def _record_response(request: Request, record: PipelineRecord) -> dict[str, Any]:
    return {
        **record.model_dump(mode="json", by_alias=True),
        "links": _pipeline_links(request, record.pipeline_id),
    }


def _require_record(store: ProgressStore, pipeline_id: str) -> PipelineRecord:
    record = store.get(pipeline_id)
    if record is None:
        raise not_found("Pipeline", pipeline_id)
    return record


async def execute_pipeline(runner: PipelineRunner, farmer_input: FarmerInput, pipeline_id: str) -> Advisory:
    """Run one pipeline inline, or through the Prefect flow when that backend is configured."""

    if config.prefect_enabled():
        from farm_advisory.prefect_flows.flows import advisory_pipeline

        request = {**farmer_input.model_dump(mode="json", by_alias=True), "pipelineId": pipeline_id}
        result = await run_in_threadpool(advisory_pipeline, request)
        return Advisory.model_validate(result)

    return await runner.run(farmer_input, pipeline_id)


async def _run_in_background(runner: PipelineRunner, record: PipelineRecord) -> None:
    try:
        await execute_pipeline(runner, record.user_input, record.pipeline_id)
    except PipelineFailedError as exc:
        logger.info("Background pipeline %s ended as Failed: %s", exc.pipeline_id, exc.message)
    except PipelineExistsError as exc:
        logger.warning("Background pipeline %s was claimed by another run", exc.pipeline_id)


@router.get("/stages")
def list_stages() -> dict[str, Any]:
    """Return the fixed, ordered stage list."""
    return {
        "stages": [
            {"order": index + 1, "name": str(stage), "role": STAGE_ROLES[stage]} for index, stage in enumerate(STAGES)
        ]
    }


@router.post("/run", response_model=Advisory)
async def run_pipeline(
    response: Response,
    payload: AdvisoryRequest = Body(..., openapi_examples=_REQUEST_EXAMPLES),
    runner: PipelineRunner = Depends(get_runner),
) -> Advisory:
    """Run the advisory pipeline to completion and return the advisory."""
    pipeline_id = payload.pipeline_id or new_pipeline_id()
    response.headers["X-Pipeline-Id"] = pipeline_id
    try:
        return await execute_pipeline(runner, payload.to_farmer_input(), pipeline_id)
    except PipelineExistsError as exc:
        raise conflict(str(exc)) from exc
    except PipelineFailedError as exc:
        logger.error("Pipeline %s failed at %s: %s", exc.pipeline_id, exc.stage, exc.message)
        raise internal_error(exc.message) from exc


@router.post("", status_code=202)
def submit_pipeline(
    request: Request,
    background_tasks: BackgroundTasks,
    payload: AdvisoryRequest = Body(..., openapi_examples=_REQUEST_EXAMPLES),
    runner: PipelineRunner = Depends(get_runner),
) -> dict[str, Any]:
    """Create a pending pipeline and run it after the response is sent."""
    try:
        record = runner.prepare(payload.to_farmer_input(), payload.pipeline_id)
    except PipelineExistsError as exc:
        raise conflict(str(exc)) from exc

    background_tasks.add_task(_run_in_background, runner, record)
    return {
        "pipelineId": record.pipeline_id,
        "status": record.status.value,
        "links": _pipeline_links(request, record.pipeline_id),
    }


@router.get("")
def list_pipelines(request: Request, store: ProgressStore = Depends(get_store)) -> dict[str, Any]:
    """Return all pipeline records, newest first."""
    return {
        "pipelines": [_record_response(request, record) for record in store.list_records()],
    }


@router.get("/{pipeline_id}")
def get_pipeline(pipeline_id: str, request: Request, store: ProgressStore = Depends(get_store)) -> dict[str, Any]:
    """Return the progress document for one pipeline."""
    return _record_response(request, _require_record(store, pipeline_id))


@router.get("/{pipeline_id}/logs")
def get_pipeline_logs(pipeline_id: str, store: ProgressStore = Depends(get_store)) -> dict[str, Any]:
    """Return stage-log entries in the order they were written."""
    _require_record(store, pipeline_id)
    return {
        "pipelineId": pipeline_id,
        "logs": [entry.model_dump(mode="json", by_alias=True) for entry in store.stage_logs(pipeline_id)],
    }


@router.get("/{pipeline_id}/view", response_model=PipelineView)
def get_pipeline_view(pipeline_id: str, store: ProgressStore = Depends(get_store)) -> PipelineView:
    """Return the render state a client derives from the record and its stage log."""
    record = _require_record(store, pipeline_id)
    return build_view(record, store.stage_logs(pipeline_id))


def _sse(event: str, data: dict[str, Any]) -> str:
    return f"event: {event}\ndata: {json.dumps(data, ensure_ascii=False)}\n\n"


async def _event_stream(store: ProgressStore, pipeline_id: str) -> AsyncIterator[str]:
    loop = asyncio.get_running_loop()
    queue: asyncio.Queue[ProgressEvent] = asyncio.Queue()

    def _enqueue(event: ProgressEvent) -> None:
        loop.call_soon_threadsafe(queue.put_nowait, event)

    with store.subscribe(pipeline_id, _enqueue):
        record = store.get(pipeline_id)
        if record is None:
            return
        logs = store.stage_logs(pipeline_id)
        yield _sse(
            "snapshot",
            {
                "record": record.model_dump(mode="json", by_alias=True),
                "logs": [entry.model_dump(mode="json", by_alias=True) for entry in logs],
            },
        )

        last_sequence = record.sequence
        terminal = record.is_terminal
        while not terminal:
            event = await queue.get()
            if event.sequence <= last_sequence:
                continue
            last_sequence = event.sequence
            yield _sse(event.kind, event.model_dump(mode="json", by_alias=True, exclude_none=True))
            terminal = event.record is not None and event.record.is_terminal


@router.get("/{pipeline_id}/events")
def stream_pipeline_events(pipeline_id: str, store: ProgressStore = Depends(get_store)) -> StreamingResponse:
    """Stream a snapshot followed by each update, closing after a terminal status."""
    _require_record(store, pipeline_id)
    return StreamingResponse(_event_stream(store, pipeline_id), media_type=EVENT_STREAM_MEDIA_TYPE)
