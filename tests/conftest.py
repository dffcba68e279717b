from collections.abc import Iterator

import pytest
from fastapi.testclient import TestClient

from farm_advisory.pipelines.schemas import FarmerInput
from farm_advisory.store import InMemoryProgressStore


@pytest.fixture(autouse=True)
def _isolated_env(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("ADVISORY_STATE_DIR", str(tmp_path / "state"))
    monkeypatch.setenv("ADVISORY_STATE_PERSIST", "false")
    monkeypatch.setenv("ADVISORY_MOCK_DELAY_SCALE", "0")
    monkeypatch.setenv("ADVISORY_UPLOAD_DIR", str(tmp_path / "uploads"))
    monkeypatch.delenv("ADVISORY_API_KEY", raising=False)
    monkeypatch.delenv("ADVISORY_AGENT_BACKEND", raising=False)
    monkeypatch.delenv("ADVISORY_EXECUTION_BACKEND", raising=False)
    monkeypatch.delenv("ADVISORY_STAGE_TIMEOUT_SECONDS", raising=False)


@pytest.fixture
def farmer_input() -> FarmerInput:
    return FarmerInput(
        crop="Tomato",
        district="Nashik",
        soil_type="Loamy",
        growth_stage="Flowering",
        temperature=28,
        humidity=65,
    )


@pytest.fixture
def store() -> InMemoryProgressStore:
    return InMemoryProgressStore(persist=False)


@pytest.fixture
def client(store: InMemoryProgressStore) -> Iterator[TestClient]:
    from farm_advisory.main import app
    from farm_advisory.routers.pipelines import get_store

    app.dependency_overrides[get_store] = lambda: store
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()
