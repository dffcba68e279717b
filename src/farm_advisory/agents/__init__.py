"""Agent backend factory and public agent interfaces."""

from farm_advisory import config
from farm_advisory.agents.base import (
    AgentInvocationError,
    AgentInvoker,
    PermanentAgentError,
    TransientAgentError,
)
from farm_advisory.agents.http import HttpAgentInvoker
from farm_advisory.agents.mock import MockAgentInvoker


def build_invoker(backend: str | None = None) -> AgentInvoker:
    """Instantiate the configured agent backend."""

    backend_name = (backend or config.agent_backend()).strip().lower()

    if backend_name == MockAgentInvoker.backend_id:
        return MockAgentInvoker(delay_scale=config.mock_delay_scale())
    if backend_name == HttpAgentInvoker.backend_id:
        return HttpAgentInvoker(
            config.agent_api_url(),
            api_key=config.agent_api_key(),
            timeout_seconds=config.agent_timeout_seconds(),
        )

    raise RuntimeError(f"Unsupported agent backend: {backend_name}")


__all__ = [
    "AgentInvocationError",
    "AgentInvoker",
    "HttpAgentInvoker",
    "MockAgentInvoker",
    "PermanentAgentError",
    "TransientAgentError",
    "build_invoker",
]
