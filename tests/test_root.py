from fastapi.testclient import TestClient

from farm_advisory.schemas import AppInfo, HealthStatus, RootResponse


def test_root_returns_200(client: TestClient) -> None:
    response = client.get("/")
    assert response.status_code == 200


def test_root_returns_welcome_message(client: TestClient) -> None:
    response = client.get("/")
    result = RootResponse.model_validate(response.json())
    assert result.message == "Welcome to the Farm Advisory API"


def test_root_returns_links(client: TestClient) -> None:
    response = client.get("/")
    result = RootResponse.model_validate(response.json())
    rels = [link.rel for link in result.links]
    assert "pipelines" in rels
    assert "stages" in rels
    assert "docs" in rels


def test_health_returns_healthy_status(client: TestClient) -> None:
    response = client.get("/health")
    assert response.status_code == 200
    result = HealthStatus.model_validate(response.json())
    assert result.status == "healthy"


def test_info_reports_backends(client: TestClient) -> None:
    response = client.get("/info")
    assert response.status_code == 200
    result = AppInfo.model_validate(response.json())
    assert result.agent_backend == "mock"
    assert result.execution_backend == "inline"


def test_info_reports_agent_details(client: TestClient) -> None:
    response = client.get("/info")
    result = AppInfo.model_validate(response.json())
    assert result.agent_details["backend"] == "mock"
    assert result.agent_details["delay_scale"] == "0.0"
    assert "script_version" in result.agent_details


def test_info_reports_misconfigured_agent_backend(client: TestClient, monkeypatch) -> None:
    monkeypatch.setenv("ADVISORY_AGENT_BACKEND", "http")
    monkeypatch.delenv("ADVISORY_AGENT_API_URL", raising=False)

    response = client.get("/info")

    assert response.status_code == 200
    result = AppInfo.model_validate(response.json())
    assert result.agent_details["backend"] == "http"
    assert "ADVISORY_AGENT_API_URL" in result.agent_details["error"]
