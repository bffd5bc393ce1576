"""Async HTTP client for the Mistral REST API (OCR and chat completions)."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from docscan.core.codes import ErrorCode
from docscan.domain.pipeline.errors import ExternalServiceError, ResponseFormatError

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "https://api.mistral.ai"


class MistralHttpClient:
    """Thin wrapper over ``POST /v1/ocr`` and ``POST /v1/chat/completions``.

    Raises ``ExternalServiceError`` for transport failures and non-2xx
    statuses, ``ResponseFormatError`` when the body is not a JSON object.
    Request and response bodies are never logged.
    """

    def __init__(
        self,
        api_key: str,
        *,
        base_url: str = DEFAULT_BASE_URL,
        timeout_seconds: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._api_key = api_key
        self._base_url = base_url.rstrip("/")
        self._timeout_seconds = timeout_seconds
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout_seconds,
            transport=self._transport,
            headers={
                "Authorization": f"Bearer {self._api_key}",
                "Accept": "application/json",
            },
        )

    async def _post(
        self,
        path: str,
        payload: dict[str, Any],
        *,
        service: str,
        malformed: ErrorCode,
    ) -> dict[str, Any]:
        try:
            async with self._client() as client:
                resp = await client.post(path, json=payload)
        except httpx.TimeoutException as e:
            raise ExternalServiceError(service, "unavailable", details={"reason": "timeout"}) from e
        except httpx.HTTPError as e:
            raise ExternalServiceError(
                service, "unavailable", details={"reason": str(e) or type(e).__name__}
            ) from e

        logger.debug("mistral_response", extra={"service": service, "http_status": resp.status_code})
        if resp.is_error:
            raise ExternalServiceError(
                service,
                "http_error",
                details={"reason": f"status {resp.status_code}", "http_status": resp.status_code},
            )
        try:
            data = resp.json()
        except ValueError as e:
            raise ResponseFormatError(malformed, "body is not JSON") from e
        if not isinstance(data, dict):
            raise ResponseFormatError(malformed, "body is not a JSON object")
        return data

    async def chat_complete(
        self,
        *,
        model: str,
        messages: list[dict[str, str]],
        response_format: dict[str, Any] | None = None,
        temperature: float = 0.0,
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
        }
        if response_format is not None:
            payload["response_format"] = response_format
        return await self._post(
            "/v1/chat/completions",
            payload,
            service="LLM",
            malformed=ErrorCode.LLM_INVALID_CONTENT,
        )

    async def ocr(self, *, model: str, document: dict[str, str]) -> dict[str, Any]:
        payload = {
            "model": model,
            "document": document,
            "include_image_base64": False,
        }
        return await self._post(
            "/v1/ocr",
            payload,
            service="OCR",
            malformed=ErrorCode.OCR_MALFORMED_RESPONSE,
        )
