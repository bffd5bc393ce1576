from __future__ import annotations

import logging
from typing import Any

from docscan.application.llm.adapters.base import JsonExtractorBase
from docscan.application.llm.parsers import edge_finish_reason, parse_edge_json, unwrap_edge_response
from docscan.application.llm.prompts import EDGE_SYSTEM_PROMPT, build_edge_user_prompt
from docscan.domain.pipeline.models import ExtractionRequest
from docscan.domain.ports.extractor_port import InferenceRunner

DEFAULT_EDGE_MODEL = "llama-3.1-8b-instruct"


class EdgeJsonExtractor(JsonExtractorBase):
    """StructuredExtractor over a locally hosted inference runner.

    The runner has no schema-constrained decoding, so the schema travels in
    the user message and the reply is cleaned before parsing.
    """

    backend = "edge"
    service_name = "EDGE"

    def __init__(
        self,
        runner: InferenceRunner,
        *,
        model: str = DEFAULT_EDGE_MODEL,
        max_tokens: int = 2048,
        **kwargs: Any,
    ) -> None:
        super().__init__(**kwargs)
        self._runner = runner
        self._model = model
        self._max_tokens = max_tokens

    def build_inputs(self, request: ExtractionRequest) -> dict[str, Any]:
        schema = request.schema_.schema_definition if request.schema_ is not None else None
        return {
            "messages": [
                {"role": "system", "content": EDGE_SYSTEM_PROMPT},
                {"role": "user", "content": build_edge_user_prompt(request.markdown, schema)},
            ],
            "max_tokens": self._max_tokens,
            "temperature": 0,
            "stream": False,
        }

    async def _complete(self, request: ExtractionRequest) -> tuple[dict[str, Any], dict[str, Any]]:
        payload = await self._runner.run(self._model, self.build_inputs(request))
        shape, text = unwrap_edge_response(payload)
        self._sink.emit("edge_response_unwrapped", logging.DEBUG, shape=shape)
        parsed = parse_edge_json(text)
        reason = edge_finish_reason(payload)
        return parsed, ({"finish_reason": reason} if reason is not None else {})
