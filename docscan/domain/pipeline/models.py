"""Domain models for the scanning pipeline.

Every model here is request-scoped: created at the start of one document's
processing and discarded once the ScanResult is returned.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Generic, Iterator, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

T = TypeVar("T")
E = TypeVar("E")


@dataclass(frozen=True)
class Result(Generic[T, E]):
    """Explicit success/failure value returned by every fallible operation.

    Iterating yields ``("ok", value)`` or ``("error", error)`` so callers can
    write ``kind, value = result``.
    """

    success: bool
    value: T | None = None
    error: E | None = None

    @classmethod
    def ok(cls, value: T) -> "Result[T, E]":
        return cls(success=True, value=value)

    @classmethod
    def fail(cls, error: E) -> "Result[T, E]":
        return cls(success=False, error=error)

    def __iter__(self) -> Iterator[Any]:
        if self.success:
            return iter(("ok", self.value))
        return iter(("error", self.error))


class DocumentType(str, Enum):
    IMAGE = "image"
    PDF = "pdf"


class Document(BaseModel):
    """A scanned document supplied by the caller. Never persisted."""

    model_config = ConfigDict(frozen=True)

    content: bytes = Field(min_length=1)
    type: DocumentType = DocumentType.IMAGE
    name: str | None = None
    mime_type: str | None = None

    @property
    def resolved_mime_type(self) -> str:
        if self.mime_type:
            return self.mime_type
        return "image/jpeg" if self.type == DocumentType.IMAGE else "application/pdf"


class OcrPage(BaseModel):
    """Recognized text of a single page with its OCR confidence."""

    text: str
    confidence: float = Field(ge=0.0, le=1.0)
    page_number: int = 1


class SchemaDescriptor(BaseModel):
    """JSON Schema plus name identifying one domain's extraction shape."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str
    schema_definition: dict[str, Any]
    model: type[BaseModel]

    @classmethod
    def from_model(cls, name: str, model: type[BaseModel]) -> "SchemaDescriptor":
        return cls(
            name=name,
            schema_definition=model.model_json_schema(by_alias=True),
            model=model,
        )


class ExtractionOptions(BaseModel):
    strict_validation: bool = False


class ExtractionRequest(BaseModel):
    """Input to a structured extractor.

    ``markdown`` is the prompt sent to the model; ``source_text`` is the raw
    OCR text used to ground extracted values (falls back to ``markdown``).
    """

    markdown: str
    schema_: SchemaDescriptor | None = Field(default=None, alias="schema")
    options: ExtractionOptions = Field(default_factory=ExtractionOptions)
    source_text: str | None = None

    model_config = ConfigDict(populate_by_name=True)

    @property
    def grounding_text(self) -> str:
        return self.source_text if self.source_text is not None else self.markdown


class ExtractionResult(BaseModel):
    """Parsed JSON object with its extraction confidence."""

    json_: dict[str, Any] = Field(alias="json")
    confidence: float = Field(ge=0.0, le=1.0)

    model_config = ConfigDict(populate_by_name=True)


class DomainExtraction(BaseModel):
    """Result of a domain extractor: normalized domain JSON and confidence."""

    json_: dict[str, Any] = Field(alias="json")
    confidence: float = Field(ge=0.0, le=1.0)

    model_config = ConfigDict(populate_by_name=True)


class ScanResult(BaseModel):
    """Terminal artifact returned to the caller of the scanner."""

    json_: dict[str, Any] = Field(alias="json")
    ocr_confidence: float = Field(ge=0.0, le=1.0)
    extraction_confidence: float = Field(ge=0.0, le=1.0)
    overall_confidence: float = Field(ge=0.0, le=1.0)
    raw_text: str | None = None

    model_config = ConfigDict(populate_by_name=True)

    @field_validator("ocr_confidence", "extraction_confidence", "overall_confidence")
    @classmethod
    def _two_decimals(cls, value: float) -> float:
        return round(value, 2)
