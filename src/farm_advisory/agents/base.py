"""Agent invocation contract shared by every backend."""

from typing import Any, Protocol

from farm_advisory.pipelines.schemas import StageInput


class AgentInvocationError(Exception):
    """Raised when an agent call fails."""

    transient = False

    def __init__(self, stage: str, message: str) -> None:
        super().__init__(f"{stage}: {message}")
        self.stage = stage
        self.message = message


class TransientAgentError(AgentInvocationError):
    """Network, timeout or provider-side failure; a later attempt may succeed."""

    transient = True


class PermanentAgentError(AgentInvocationError):
    """Request rejected or response unusable; retrying will not help."""


class AgentInvoker(Protocol):
    """Protocol implemented by all agent backends."""

    backend_id: str

    async def invoke(self, stage: str, payload: StageInput) -> dict[str, Any]: ...

    def implementation_details(self) -> dict[str, str]:
        """Return backend metadata for traceability."""
        ...
