class StageOutputError(Exception):
    """Raised when a stage output lacks the fields later steps read."""

    def __init__(self, stage: str, missing: list[str]) -> None:
        super().__init__(f"{stage} output is missing field(s): {', '.join(missing)}")
        self.stage = stage
        self.missing = missing


class StageTimeoutError(Exception):
    def __init__(self, stage: str, timeout_seconds: float) -> None:
        super().__init__(f"{stage} did not respond within {timeout_seconds:g}s")
        self.stage = stage
        self.timeout_seconds = timeout_seconds


class PipelineFailedError(Exception):
    """Raised by the runner after it recorded a pipeline as failed."""

    def __init__(self, pipeline_id: str, stage: str | None, message: str) -> None:
        super().__init__(message)
        self.pipeline_id = pipeline_id
        self.stage = stage
        self.message = message
