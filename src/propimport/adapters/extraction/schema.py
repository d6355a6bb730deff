"""Pydantic models describing the extraction endpoint payloads."""

from __future__ import annotations

from collections.abc import Mapping
from typing import cast

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ExtractionBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class FieldConfidencePayload(ExtractionBaseModel):
    field: str
    value: object = None
    confidence: float


class PropertyExtractionPayload(ExtractionBaseModel):
    extracted_data: dict[str, object] = Field(alias="extractedData", default_factory=dict)
    field_confidences: dict[str, float] | None = Field(alias="fieldConfidences", default=None)
    average_confidence: float | None = Field(alias="averageConfidence", default=None)
    fields_extracted: int | None = Field(alias="fieldsExtracted", default=None)

    @field_validator("field_confidences", mode="before")
    @classmethod
    def _flatten_confidences(cls, value: object) -> object:
        # Legacy payloads send a list of {field, value, confidence} entries.
        if isinstance(value, list):
            entries = [
                FieldConfidencePayload.model_validate(item)
                for item in cast(list[object], value)
            ]
            return {entry.field: entry.confidence for entry in entries}
        return value


class MultiPropertyResponse(ExtractionBaseModel):
    properties: list[PropertyExtractionPayload] = Field(default_factory=list)
    total_properties: int | None = Field(alias="totalProperties", default=None)


class ErrorResponse(ExtractionBaseModel):
    error: str


def is_multi_property_payload(payload: Mapping[str, object]) -> bool:
    return "properties" in payload


def is_legacy_payload(payload: Mapping[str, object]) -> bool:
    return "extractedData" in payload and "properties" not in payload
