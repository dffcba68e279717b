"""Progress store: pipeline records, stage logs and ordered change subscriptions."""

import logging
from collections.abc import Callable, Iterable
from datetime import UTC, datetime
from itertools import count
from threading import RLock
from typing import Any, Protocol

from pydantic import ValidationError

from farm_advisory.pipelines.schemas import (
    TERMINAL_STATUSES,
    Advisory,
    FarmerInput,
    PipelineRecord,
    PipelineStatus,
    ProgressEvent,
    StageLogEntry,
)
from farm_advisory.pipelines.stages import STAGES
from farm_advisory.store.errors import InvalidTransitionError, PipelineExistsError, PipelineNotFoundError
from farm_advisory.store.state_store import load_pipeline_states, save_pipeline_state

logger = logging.getLogger(__name__)

INTERRUPTED_MESSAGE = "Pipeline interrupted before completion"

ProgressCallback = Callable[[ProgressEvent], None]


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Subscription:
    """Handle for one registered progress callback. Release with ``unsubscribe``."""

    def __init__(self, store: "InMemoryProgressStore", pipeline_id: str, token: int) -> None:
        self._store = store
        self.pipeline_id = pipeline_id
        self._token = token
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        if self._active:
            self._store._remove_subscriber(self.pipeline_id, self._token)
            self._active = False

    def __enter__(self) -> "Subscription":
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.unsubscribe()


class ProgressStore(Protocol):
    """Contract the pipeline runner writes to and clients read from."""

    def create(self, pipeline_id: str, farmer_input: FarmerInput) -> PipelineRecord: ...

    def start(self, pipeline_id: str, first_stage: str) -> PipelineRecord: ...

    def set_current_stage(self, pipeline_id: str, stage: str) -> PipelineRecord: ...

    def write_stage_log(self, pipeline_id: str, stage: str, output: dict[str, Any]) -> StageLogEntry: ...

    def complete(self, pipeline_id: str, advisory: Advisory) -> PipelineRecord: ...

    def fail(self, pipeline_id: str, error: str) -> PipelineRecord: ...

    def get(self, pipeline_id: str) -> PipelineRecord | None: ...

    def list_records(self) -> list[PipelineRecord]: ...

    def stage_logs(self, pipeline_id: str) -> list[StageLogEntry]: ...

    def subscribe(self, pipeline_id: str, callback: ProgressCallback) -> Subscription: ...


class InMemoryProgressStore:
    """Thread-safe progress store, optionally mirrored to the JSON state directory.

    Every write bumps the pipeline's sequence number and is delivered to that
    pipeline's subscribers before the lock is released, so observers see
    writes in the order the runner made them.
    """

    def __init__(self, *, persist: bool = True, stages: Iterable[str] = STAGES) -> None:
        self._lock = RLock()
        self._persist = persist
        self._stages = tuple(str(stage) for stage in stages)
        self._records: dict[str, PipelineRecord] = {}
        self._logs: dict[str, dict[str, StageLogEntry]] = {}
        self._subscribers: dict[str, dict[int, ProgressCallback]] = {}
        self._tokens = count(1)
        if persist:
            self._load()

    # -- persistence --------------------------------------------------------

    def _load(self) -> None:
        for pipeline_id, state in load_pipeline_states().items():
            try:
                record = PipelineRecord.model_validate(state["record"])
                entries = [StageLogEntry.model_validate(entry) for entry in state["logs"]]
            except ValidationError:
                logger.warning("Skipping unreadable state for pipeline %s", pipeline_id)
                continue
            self._records[record.pipeline_id] = record
            self._logs[record.pipeline_id] = {entry.stage: entry for entry in entries}

        interrupted = [record for record in self._records.values() if record.status not in TERMINAL_STATUSES]
        for record in interrupted:
            logger.warning(
                "Marking pipeline %s failed: still %s when state was last saved",
                record.pipeline_id,
                record.status.value,
            )
            self._write_record(
                record,
                status=PipelineStatus.FAILED,
                current_stage=None,
                error=INTERRUPTED_MESSAGE,
                end_time=_utcnow(),
            )

    def _save(self, pipeline_id: str) -> None:
        if not self._persist:
            return
        save_pipeline_state(
            pipeline_id,
            self._records[pipeline_id].model_dump(mode="json", by_alias=True),
            [entry.model_dump(mode="json", by_alias=True) for entry in self._logs.get(pipeline_id, {}).values()],
        )

    # -- internals ----------------------------------------------------------

    def _require(self, pipeline_id: str) -> PipelineRecord:
        record = self._records.get(pipeline_id)
        if record is None:
            raise PipelineNotFoundError(pipeline_id)
        return record

    def _require_status(self, record: PipelineRecord, *allowed: PipelineStatus) -> None:
        if record.status not in allowed:
            expected = ", ".join(status.value for status in allowed)
            raise InvalidTransitionError(
                f"Pipeline '{record.pipeline_id}' is {record.status.value}; expected {expected}"
            )

    def _require_stage(self, stage: str) -> None:
        if stage not in self._stages:
            raise InvalidTransitionError(f"Unknown stage '{stage}'")

    def _write_record(self, record: PipelineRecord, **updates: Any) -> PipelineRecord:
        updated = record.model_copy(
            update={**updates, "updated": _utcnow(), "sequence": record.sequence + 1},
        )
        self._records[record.pipeline_id] = updated
        self._save(record.pipeline_id)
        self._publish(
            ProgressEvent(kind="record", pipeline_id=updated.pipeline_id, sequence=updated.sequence, record=updated)
        )
        return updated.model_copy(deep=True)

    def _publish(self, event: ProgressEvent) -> None:
        for callback in list(self._subscribers.get(event.pipeline_id, {}).values()):
            try:
                callback(event)
            except Exception:
                logger.exception("Progress subscriber for %s raised", event.pipeline_id)

    def _remove_subscriber(self, pipeline_id: str, token: int) -> None:
        with self._lock:
            callbacks = self._subscribers.get(pipeline_id)
            if callbacks is None:
                return
            callbacks.pop(token, None)
            if not callbacks:
                del self._subscribers[pipeline_id]

    # -- writes -------------------------------------------------------------

    def create(self, pipeline_id: str, farmer_input: FarmerInput) -> PipelineRecord:
        with self._lock:
            if pipeline_id in self._records:
                raise PipelineExistsError(pipeline_id)
            timestamp = _utcnow()
            record = PipelineRecord(
                pipeline_id=pipeline_id,
                status=PipelineStatus.PENDING,
                user_input=farmer_input,
                created=timestamp,
                updated=timestamp,
            )
            self._records[pipeline_id] = record
            self._logs[pipeline_id] = {}
            self._save(pipeline_id)
            self._publish(ProgressEvent(kind="record", pipeline_id=pipeline_id, sequence=0, record=record))
            return record.model_copy(deep=True)

    def start(self, pipeline_id: str, first_stage: str) -> PipelineRecord:
        with self._lock:
            record = self._require(pipeline_id)
            self._require_status(record, PipelineStatus.PENDING)
            self._require_stage(first_stage)
            return self._write_record(
                record,
                status=PipelineStatus.RUNNING,
                current_stage=first_stage,
                start_time=_utcnow(),
            )

    def set_current_stage(self, pipeline_id: str, stage: str) -> PipelineRecord:
        with self._lock:
            record = self._require(pipeline_id)
            self._require_status(record, PipelineStatus.RUNNING)
            self._require_stage(stage)
            return self._write_record(record, current_stage=stage)

    def write_stage_log(self, pipeline_id: str, stage: str, output: dict[str, Any]) -> StageLogEntry:
        with self._lock:
            record = self._require(pipeline_id)
            self._require_status(record, PipelineStatus.RUNNING)
            self._require_stage(stage)
            entry = StageLogEntry(stage=stage, output=dict(output), timestamp=_utcnow())
            self._logs.setdefault(pipeline_id, {})[stage] = entry

            sequence = record.sequence + 1
            self._records[pipeline_id] = record.model_copy(update={"sequence": sequence})
            self._save(pipeline_id)
            self._publish(ProgressEvent(kind="stage_log", pipeline_id=pipeline_id, sequence=sequence, log_entry=entry))
            return entry

    def complete(self, pipeline_id: str, advisory: Advisory) -> PipelineRecord:
        with self._lock:
            record = self._require(pipeline_id)
            self._require_status(record, PipelineStatus.RUNNING)
            logged = set(self._logs.get(pipeline_id, {}))
            missing = [stage for stage in self._stages if stage not in logged]
            if missing:
                raise InvalidTransitionError(
                    f"Pipeline '{pipeline_id}' cannot complete; no log for: {', '.join(missing)}"
                )
            return self._write_record(
                record,
                status=PipelineStatus.COMPLETED,
                current_stage=None,
                advisory=advisory,
                error=None,
                end_time=_utcnow(),
            )

    def fail(self, pipeline_id: str, error: str) -> PipelineRecord:
        with self._lock:
            record = self._require(pipeline_id)
            self._require_status(record, PipelineStatus.RUNNING)
            return self._write_record(
                record,
                status=PipelineStatus.FAILED,
                current_stage=None,
                advisory=None,
                error=error or "Unknown error",
                end_time=_utcnow(),
            )

    # -- reads --------------------------------------------------------------

    def get(self, pipeline_id: str) -> PipelineRecord | None:
        with self._lock:
            record = self._records.get(pipeline_id)
            return record.model_copy(deep=True) if record is not None else None

    def list_records(self) -> list[PipelineRecord]:
        """Return records in newest-first order."""

        with self._lock:
            records = sorted(reversed(self._records.values()), key=lambda record: record.created, reverse=True)
            return [record.model_copy(deep=True) for record in records]

    def stage_logs(self, pipeline_id: str) -> list[StageLogEntry]:
        with self._lock:
            return list(self._logs.get(pipeline_id, {}).values())

    def subscribe(self, pipeline_id: str, callback: ProgressCallback) -> Subscription:
        with self._lock:
            token = next(self._tokens)
            self._subscribers.setdefault(pipeline_id, {})[token] = callback
            return Subscription(self, pipeline_id, token)
