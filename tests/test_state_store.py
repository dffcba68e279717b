import pytest

from farm_advisory.store.state_store import load_pipeline_states, pipeline_state_path, save_pipeline_state


@pytest.fixture
def persisted(tmp_path, monkeypatch):
    monkeypatch.setenv("ADVISORY_STATE_DIR", str(tmp_path))
    monkeypatch.setenv("ADVISORY_STATE_PERSIST", "true")
    return tmp_path


def test_state_store_roundtrip(persisted) -> None:
    save_pipeline_state("a", {"pipelineId": "a"}, [{"agent": "x"}])
    save_pipeline_state("b", {"pipelineId": "b"}, [])

    loaded = load_pipeline_states()

    assert loaded == {
        "a": {"record": {"pipelineId": "a"}, "logs": [{"agent": "x"}]},
        "b": {"record": {"pipelineId": "b"}, "logs": []},
    }
    assert pipeline_state_path("a") == persisted / "pipelines" / "a.json"


def test_each_pipeline_gets_its_own_file(persisted) -> None:
    save_pipeline_state("a", {"pipelineId": "a"}, [])
    before = pipeline_state_path("a").read_bytes()

    save_pipeline_state("b", {"pipelineId": "b"}, [{"agent": "y"}])

    assert pipeline_state_path("a").read_bytes() == before
    assert sorted(path.name for path in (persisted / "pipelines").iterdir()) == ["a.json", "b.json"]


def test_state_store_disabled(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("ADVISORY_STATE_DIR", str(tmp_path))
    monkeypatch.setenv("ADVISORY_STATE_PERSIST", "false")

    save_pipeline_state("a", {"pipelineId": "a"}, [])

    assert load_pipeline_states() == {}
    assert not (tmp_path / "pipelines").exists()


def test_state_store_skips_corrupt_files(persisted) -> None:
    save_pipeline_state("good", {"pipelineId": "good"}, [])
    (persisted / "pipelines" / "broken.json").write_text("{not json", encoding="utf-8")
    (persisted / "pipelines" / "no-record.json").write_text('{"logs": []}', encoding="utf-8")

    assert list(load_pipeline_states()) == ["good"]


def test_pipeline_state_path_rejects_path_segments(persisted) -> None:
    with pytest.raises(ValueError):
        pipeline_state_path("../escape")
