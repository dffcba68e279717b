"""One JSON document per pipeline under the state directory."""

import json
import logging
import os
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Any

logger = logging.getLogger(__name__)

STATE_DIR_ENV = "ADVISORY_STATE_DIR"
STATE_PERSIST_ENV = "ADVISORY_STATE_PERSIST"
PIPELINES_SUBDIR = "pipelines"


def state_enabled() -> bool:
    raw = os.getenv(STATE_PERSIST_ENV, "true").strip().lower()
    return raw not in {"0", "false", "no", "off"}


def state_dir() -> Path:
    return Path(os.getenv(STATE_DIR_ENV, ".cache/state").strip() or ".cache/state")


def pipeline_state_path(pipeline_id: str) -> Path:
    if not pipeline_id or Path(pipeline_id).name != pipeline_id:
        raise ValueError(f"Pipeline id '{pipeline_id}' cannot be used as a file name")
    return state_dir() / PIPELINES_SUBDIR / f"{pipeline_id}.json"


def load_pipeline_states() -> dict[str, dict[str, Any]]:
    """Read every saved pipeline document, keyed by pipeline id.

    Unreadable files are skipped. Each document holds ``record`` (a dict) and
    ``logs`` (a list, empty when missing).
    """

    if not state_enabled():
        return {}

    directory = state_dir() / PIPELINES_SUBDIR
    if not directory.is_dir():
        return {}

    states: dict[str, dict[str, Any]] = {}
    for path in sorted(directory.glob("*.json")):
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError):
            logger.warning("Skipping unreadable state file %s", path.name)
            continue

        if not isinstance(payload, dict) or not isinstance(payload.get("record"), dict):
            logger.warning("Skipping malformed state file %s", path.name)
            continue

        logs = payload.get("logs")
        states[path.stem] = {"record": payload["record"], "logs": logs if isinstance(logs, list) else []}

    return states


def save_pipeline_state(pipeline_id: str, record: dict[str, Any], logs: list[dict[str, Any]]) -> None:
    """Atomically replace the document for one pipeline; other pipelines' files are untouched."""

    if not state_enabled():
        return

    path = pipeline_state_path(pipeline_id)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile("w", delete=False, dir=path.parent, suffix=".tmp", encoding="utf-8") as tmp:
            json.dump({"record": record, "logs": logs}, tmp, ensure_ascii=False, default=str)
            tmp_path = Path(tmp.name)
        tmp_path.replace(path)
    except OSError:
        logger.warning("Could not save state for pipeline %s", pipeline_id, exc_info=True)
