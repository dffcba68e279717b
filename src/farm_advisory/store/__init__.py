"""Progress store factory and public store interfaces."""

from functools import lru_cache

from farm_advisory.store.errors import (
    InvalidTransitionError,
    PipelineExistsError,
    PipelineNotFoundError,
    StoreError,
)
from farm_advisory.store.progress import InMemoryProgressStore, ProgressCallback, ProgressStore, Subscription


@lru_cache(maxsize=1)
def get_progress_store() -> InMemoryProgressStore:
    """Return the process-wide store used by the HTTP entry points."""

    return InMemoryProgressStore()


__all__ = [
    "InMemoryProgressStore",
    "InvalidTransitionError",
    "PipelineExistsError",
    "PipelineNotFoundError",
    "ProgressCallback",
    "ProgressStore",
    "StoreError",
    "Subscription",
    "get_progress_store",
]
