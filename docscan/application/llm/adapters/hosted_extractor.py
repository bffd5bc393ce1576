from __future__ import annotations

from typing import Any

from docscan.application.llm.adapters.base import JsonExtractorBase
from docscan.application.llm.parsers import parse_completion_content, parse_json_object
from docscan.application.llm.prompts import EXTRACTION_SYSTEM_PROMPT
from docscan.domain.pipeline.models import ExtractionRequest
from docscan.infrastructure.clients.mistral_http import MistralHttpClient

DEFAULT_EXTRACTION_MODEL = "mistral-large-latest"


def build_response_format(request: ExtractionRequest) -> dict[str, Any]:
    schema = request.schema_
    if schema is None:
        return {"type": "json_object"}
    return {
        "type": "json_schema",
        "json_schema": {
            "name": schema.name,
            "schema": schema.schema_definition,
            "strict": request.options.strict_validation,
        },
    }


class HostedJsonExtractor(JsonExtractorBase):
    """StructuredExtractor over a hosted chat-completion API."""

    backend = "hosted"
    service_name = "LLM"

    def __init__(
        self,
        client: MistralHttpClient,
        *,
        model: str = DEFAULT_EXTRACTION_MODEL,
        temperature: float = 0.0,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self._client = client
        self._model = model
        self._temperature = temperature

    async def _complete(self, request: ExtractionRequest) -> tuple[dict[str, Any], dict[str, Any]]:
        messages = [
            {"role": "system", "content": EXTRACTION_SYSTEM_PROMPT},
            {"role": "user", "content": request.markdown},
        ]
        data = await self._client.chat_complete(
            model=self._model,
            messages=messages,
            response_format=build_response_format(request),
            temperature=self._temperature,
        )
        content = parse_completion_content(data)
        return parse_json_object(content), data
