"""Translate extraction payloads into domain extraction results."""

from __future__ import annotations

from collections.abc import Mapping
from logging import getLogger
from typing import cast

from propimport.domain.model import PropertyFields
from propimport.domain.ports import ExtractionResult

from .schema import (
    MultiPropertyResponse,
    PropertyExtractionPayload,
    is_legacy_payload,
    is_multi_property_payload,
)

log = getLogger(__name__)


class UnexpectedPayloadError(ValueError):
    """Raised when a success response matches none of the known payload shapes."""


def to_property_fields(payload: PropertyExtractionPayload) -> PropertyFields:
    return PropertyFields.from_extraction(payload.extracted_data, payload.field_confidences)


def parse_extraction_result(payload: object) -> ExtractionResult:
    if not isinstance(payload, Mapping):
        raise UnexpectedPayloadError("Extraction response is not a JSON object")
    mapping = cast(Mapping[str, object], payload)

    if is_multi_property_payload(mapping):
        response = MultiPropertyResponse.model_validate(mapping)
        if (
            response.total_properties is not None
            and response.total_properties != len(response.properties)
        ):
            log.warning(
                f"Extraction reported {response.total_properties} properties "
                f"but returned {len(response.properties)}"
            )
        return ExtractionResult(
            properties=[to_property_fields(item) for item in response.properties]
        )

    if is_legacy_payload(mapping):
        single = PropertyExtractionPayload.model_validate(mapping)
        return ExtractionResult(properties=[to_property_fields(single)], legacy=True)

    raise UnexpectedPayloadError("Unexpected extraction response payload")
