"""
Centralized application settings using Pydantic.

All environment variables are read once and validated. Components receive
their configuration from the factories, never from scattered os.getenv() calls.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from docscan.domain.extraction.confidence import ConfidenceWeights


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="DOCSCAN_", env_file=".env", extra="ignore")

    APP_NAME: str = Field(default="docscan")
    LOG_LEVEL: str = Field(default="INFO")
    LOG_JSON: bool = Field(default=True)

    # Hosted OCR + chat completions
    MISTRAL_API_KEY: SecretStr | None = Field(default=None)
    MISTRAL_BASE_URL: str = Field(default="https://api.mistral.ai")
    OCR_MODEL: str = Field(default="mistral-ocr-latest")
    EXTRACTION_MODEL: str = Field(default="mistral-large-latest")
    HTTP_TIMEOUT_SECONDS: float = Field(default=60.0, gt=0)

    # Edge inference runner
    EDGE_BASE_URL: str | None = Field(default=None)
    EDGE_MODEL: str = Field(default="llama-3.1-8b-instruct")
    EDGE_MAX_TOKENS: int = Field(default=2048, gt=0)

    # Backend selection: "hosted" or "edge"
    EXTRACTOR_BACKEND: str = Field(default="hosted")
    EXTRACTOR_FALLBACK: str | None = Field(default="edge")

    # Grounding
    FUZZY_THRESHOLD: float = Field(default=88.0, ge=0, le=100)

    # Confidence scoring
    CONFIDENCE_COMPLETION_WEIGHT: float = Field(default=0.7, ge=0)
    CONFIDENCE_STRUCTURE_WEIGHT: float = Field(default=0.3, ge=0)
    CONFIDENCE_INVALID_INPUT_MULTIPLIER: float = Field(default=0.3, ge=0, le=1)
    OVERALL_OCR_WEIGHT: float = Field(default=0.6, ge=0)
    OVERALL_EXTRACTION_WEIGHT: float = Field(default=0.4, ge=0)

    @property
    def mistral_api_key(self) -> str | None:
        if self.MISTRAL_API_KEY is None:
            return None
        value = self.MISTRAL_API_KEY.get_secret_value().strip()
        return value or None

    @property
    def confidence_weights(self) -> ConfidenceWeights:
        return ConfidenceWeights(
            completion_weight=self.CONFIDENCE_COMPLETION_WEIGHT,
            structure_weight=self.CONFIDENCE_STRUCTURE_WEIGHT,
            invalid_input_multiplier=self.CONFIDENCE_INVALID_INPUT_MULTIPLIER,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()  # type: ignore[call-arg]
