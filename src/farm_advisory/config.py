"""Environment-driven settings. Values are read on each call so tests can monkeypatch the environment."""

import os
from pathlib import Path

AGENT_BACKENDS = {"mock", "http"}
EXECUTION_BACKENDS = {"inline", "prefect"}


def _flag(name: str, default: str) -> bool:
    raw = os.getenv(name, default).strip().lower()
    return raw not in {"0", "false", "no", "off", ""}


def _float(name: str, default: float) -> float:
    raw = os.getenv(name, "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _choice(name: str, default: str, allowed: set[str]) -> str:
    value = os.getenv(name, default).strip().lower()
    return value if value in allowed else default


def cors_origins() -> list[str]:
    raw = os.getenv("ADVISORY_CORS_ORIGINS", "*").strip()
    if not raw:
        return ["*"]
    return [origin.strip() for origin in raw.split(",") if origin.strip()]


def api_key_required() -> str | None:
    token = os.getenv("ADVISORY_API_KEY", "").strip()
    return token or None


def log_level() -> str:
    return os.getenv("ADVISORY_LOG_LEVEL", "INFO").strip().upper() or "INFO"


def agent_backend() -> str:
    return _choice("ADVISORY_AGENT_BACKEND", "mock", AGENT_BACKENDS)


def agent_api_url() -> str:
    value = os.getenv("ADVISORY_AGENT_API_URL", "").strip()
    if not value:
        raise RuntimeError("ADVISORY_AGENT_API_URL is required when ADVISORY_AGENT_BACKEND=http")
    return value.rstrip("/")


def agent_api_key() -> str | None:
    return os.getenv("ADVISORY_AGENT_API_KEY", "").strip() or None


def agent_timeout_seconds() -> float:
    value = _float("ADVISORY_AGENT_TIMEOUT_SECONDS", 20.0)
    return value if value > 0 else 20.0


def mock_delay_scale() -> float:
    value = _float("ADVISORY_MOCK_DELAY_SCALE", 1.0)
    return value if value >= 0 else 1.0


def stage_timeout_seconds() -> float | None:
    """Per-stage timeout; ``None`` when unset or not positive."""

    value = _float("ADVISORY_STAGE_TIMEOUT_SECONDS", 0.0)
    return value if value > 0 else None


def execution_backend() -> str:
    return _choice("ADVISORY_EXECUTION_BACKEND", "inline", EXECUTION_BACKENDS)


def prefect_enabled() -> bool:
    return execution_backend() == "prefect"


def upload_dir() -> Path:
    return Path(os.getenv("ADVISORY_UPLOAD_DIR", ".cache/uploads").strip() or ".cache/uploads")


def upload_max_bytes() -> int:
    value = _float("ADVISORY_UPLOAD_MAX_BYTES", 10 * 1024 * 1024)
    return int(value) if value > 0 else 10 * 1024 * 1024
