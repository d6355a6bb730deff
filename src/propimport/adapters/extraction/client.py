"""HTTP client for the server-side extraction endpoints."""

from __future__ import annotations

from dataclasses import dataclass, field
from logging import getLogger
from typing import TYPE_CHECKING

import httpx
from pydantic import ValidationError

from propimport.adapters.http_resilience import ResilienceConfig, ResilientClient, build_limiter
from propimport.config.extraction import get_extraction_config
from propimport.domain.ports import ExtractionGateway, ExtractionRequest, ExtractionResult

from .schema import ErrorResponse
from .translator import UnexpectedPayloadError, parse_extraction_result

if TYPE_CHECKING:
    from collections.abc import Callable

    from aiolimiter import AsyncLimiter

    from propimport.config.extraction import ExtractionServiceConfig

log = getLogger(__name__)


def _default_client_factory(
    config: ResilienceConfig, *, limiter: AsyncLimiter | None = None
) -> ResilientClient:
    return ResilientClient(config, limiter=limiter)


def _error_message(response: httpx.Response, fallback: str) -> str:
    try:
        payload = ErrorResponse.model_validate(response.json())
    except ValueError:
        return fallback
    return payload.error or fallback


class ExtractionAPIError(RuntimeError):
    """Raised when the extraction endpoint rejects a request or answers garbage."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


@dataclass(slots=True)
class HttpExtractionGateway:
    """Posts documents to the extraction service.

    Every call opens its own client, but all calls share the gateway's rate
    limiter, so the configured requests-per-minute budget spans the whole run.
    """

    config: ExtractionServiceConfig = field(default_factory=get_extraction_config)
    client_factory: Callable[..., ResilientClient] = field(default=_default_client_factory)
    limiter: AsyncLimiter | None = field(init=False, default=None)

    def __post_init__(self) -> None:
        self.limiter = build_limiter(self.config.resilience.ratelimit)

    async def extract(self, request: ExtractionRequest) -> ExtractionResult:
        async with self.client_factory(self.config.resilience, limiter=self.limiter) as client:
            if request.upload is not None:
                response = await self._post_pdf(client, request)
                fallback = "Failed to process PDF"
            else:
                response = await self._post_text(client, request)
                fallback = "Failed to process text"
        return self._handle_response(response, fallback=fallback)

    async def _post_pdf(self, client: ResilientClient, request: ExtractionRequest) -> httpx.Response:
        upload = request.upload
        if upload is None:
            raise ValueError("PDF extraction needs an upload")
        data: dict[str, str] = {
            "documentType": request.document_type.value,
            "apiKey": request.api_key,
            "provider": request.provider.value,
        }
        if request.model:
            data["model"] = request.model
        files = {"file": (upload.name, upload.content, upload.content_type)}
        return await client.post(self.config.pdf_path, data=data, files=files)

    async def _post_text(self, client: ResilientClient, request: ExtractionRequest) -> httpx.Response:
        body: dict[str, object] = {
            "text": request.text,
            "documentType": request.document_type.value,
            "apiKey": request.api_key,
            "provider": request.provider.value,
            "model": request.model,
        }
        return await client.post(self.config.text_path, json=body)

    def _handle_response(self, response: httpx.Response, *, fallback: str) -> ExtractionResult:
        if response.is_error:
            message = _error_message(response, fallback)
            log.error(f"Extraction API error {response.status_code}: {message}")
            raise ExtractionAPIError(message, status_code=response.status_code)

        try:
            return parse_extraction_result(response.json())
        except (UnexpectedPayloadError, ValidationError, ValueError) as exc:
            raise ExtractionAPIError(
                f"Malformed extraction response: {exc}", status_code=response.status_code
            ) from exc


def build_http_extraction_gateway(
    config: ExtractionServiceConfig | None = None,
) -> HttpExtractionGateway:
    return HttpExtractionGateway(config=config or get_extraction_config())


if TYPE_CHECKING:
    _gateway_check: ExtractionGateway = HttpExtractionGateway()
