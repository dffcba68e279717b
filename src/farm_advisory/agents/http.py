"""Agent backend that forwards each stage to a remote agent API over HTTP."""

import logging
from typing import Any

import httpx

from farm_advisory.agents.base import PermanentAgentError, TransientAgentError
from farm_advisory.pipelines.schemas import StageInput

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_CODES = {408, 425, 429}


class HttpAgentInvoker:
    """POSTs ``{"agentName", "input"}`` to ``{base_url}/invoke`` and returns the JSON body."""

    backend_id = "http"

    def __init__(
        self,
        base_url: str,
        *,
        api_key: str | None = None,
        timeout_seconds: float = 20.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._api_key = api_key
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return headers

    async def invoke(self, stage: str, payload: StageInput) -> dict[str, Any]:
        body = {"agentName": stage, "input": payload.model_dump(mode="json", by_alias=True)}
        logger.info("Invoking remote agent %s", stage)

        async with httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout_seconds,
            headers=self._headers(),
            transport=self._transport,
        ) as client:
            try:
                response = await client.post("/invoke", json=body)
            except httpx.TimeoutException as exc:
                raise TransientAgentError(stage, f"agent call timed out: {exc}") from exc
            except httpx.TransportError as exc:
                raise TransientAgentError(stage, f"unable to reach agent API: {exc}") from exc

        if response.status_code >= 500 or response.status_code in RETRYABLE_STATUS_CODES:
            raise TransientAgentError(stage, f"agent API error ({response.status_code}): {response.text}")
        if response.status_code >= 400:
            raise PermanentAgentError(stage, f"agent API rejected request ({response.status_code}): {response.text}")

        try:
            result = response.json()
        except ValueError as exc:
            raise PermanentAgentError(stage, "agent API returned a non-JSON body") from exc

        if not isinstance(result, dict):
            raise PermanentAgentError(stage, "agent API returned a non-object body")
        return result

    def implementation_details(self) -> dict[str, str]:
        return {
            "backend": self.backend_id,
            "base_url": self._base_url,
            "timeout_seconds": str(self._timeout_seconds),
        }
