class StoreError(Exception):
    """Base class for progress store errors."""


class PipelineExistsError(StoreError):
    """Raised when a pipeline id is already owned by another run."""

    def __init__(self, pipeline_id: str) -> None:
        super().__init__(f"Pipeline '{pipeline_id}' already exists")
        self.pipeline_id = pipeline_id


class PipelineNotFoundError(StoreError):
    def __init__(self, pipeline_id: str) -> None:
        super().__init__(f"Pipeline '{pipeline_id}' not found")
        self.pipeline_id = pipeline_id


class InvalidTransitionError(StoreError):
    """Raised when a write would break the pipeline status lifecycle."""
