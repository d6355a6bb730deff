"""Public interface for the extraction adapter."""

from __future__ import annotations

from .client import ExtractionAPIError, HttpExtractionGateway, build_http_extraction_gateway
from .schema import ErrorResponse, MultiPropertyResponse, PropertyExtractionPayload
from .translator import UnexpectedPayloadError, parse_extraction_result

__all__ = [
    "ErrorResponse",
    "ExtractionAPIError",
    "HttpExtractionGateway",
    "MultiPropertyResponse",
    "PropertyExtractionPayload",
    "UnexpectedPayloadError",
    "build_http_extraction_gateway",
    "parse_extraction_result",
]
