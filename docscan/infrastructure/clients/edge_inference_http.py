"""HTTP client for a locally hosted inference runner."""

from __future__ import annotations

from typing import Any

import httpx

from docscan.domain.pipeline.errors import ExternalServiceError


class EdgeInferenceHttpClient:
    """InferenceRunner reached at ``POST {base_url}/run/{model}``.

    The payload is returned as decoded JSON when the body is JSON and as raw
    text otherwise; callers unwrap it.
    """

    def __init__(
        self,
        base_url: str | None,
        timeout_seconds: float = 60.0,
        *,
        api_token: str | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._base_url = base_url
        self._timeout_seconds = timeout_seconds
        self._api_token = api_token
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        if not self._base_url:
            raise RuntimeError("Edge inference base_url is not configured")
        headers = {"Authorization": f"Bearer {self._api_token}"} if self._api_token else None
        return httpx.AsyncClient(
            base_url=self._base_url.rstrip("/"),
            timeout=self._timeout_seconds,
            transport=self._transport,
            headers=headers,
        )

    async def run(self, model: str, inputs: dict[str, Any]) -> Any:
        try:
            async with self._client() as client:
                resp = await client.post(f"/run/{model.lstrip('/')}", json=inputs)
        except httpx.TimeoutException as e:
            raise ExternalServiceError(
                "EDGE",
                "unavailable",
                error_code="EDGE_INFERENCE_FAILED",
                details={"reason": "timeout"},
            ) from e
        except httpx.HTTPError as e:
            raise ExternalServiceError(
                "EDGE",
                "unavailable",
                error_code="EDGE_INFERENCE_FAILED",
                details={"reason": str(e) or type(e).__name__},
            ) from e

        if resp.is_error:
            raise ExternalServiceError(
                "EDGE",
                "http_error",
                error_code="EDGE_INFERENCE_FAILED",
                details={"reason": f"status {resp.status_code}", "http_status": resp.status_code},
            )
        try:
            return resp.json()
        except ValueError:
            return resp.text
