"""Configuration for the document extraction service."""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_float, env_int, optional_env_var, require_env_vars
from .http_resilience import RateLimit, ResilienceConfig, RetryPolicy

EXTRACTION_TIMEOUT_SECONDS = 120.0
EXTRACTION_RATE_LIMIT_PER_MINUTE = 30
PROCESS_TEXT_PATH = "/api/import/process-text"
PROCESS_PDF_PATH = "/api/import/process-pdf"


@dataclass(frozen=True, slots=True)
class ExtractionServiceConfig:
    """Where and how to reach the server-side extraction endpoints."""

    base_url: str
    resilience: ResilienceConfig
    access_token: str | None = None
    text_path: str = PROCESS_TEXT_PATH
    pdf_path: str = PROCESS_PDF_PATH


def get_extraction_config(*, resilience: ResilienceConfig | None = None) -> ExtractionServiceConfig:
    values = require_env_vars(("IMPORT_API_BASE_URL",))
    base_url = values["IMPORT_API_BASE_URL"].rstrip("/")
    access_token = optional_env_var("IMPORT_API_TOKEN")
    headers = {"Authorization": f"Bearer {access_token}"} if access_token else None
    per_minute = env_int("IMPORT_API_RATE_LIMIT_PER_MINUTE", EXTRACTION_RATE_LIMIT_PER_MINUTE)
    return ExtractionServiceConfig(
        base_url=base_url,
        access_token=access_token,
        resilience=resilience
        or ResilienceConfig(
            name="extraction",
            base_url=base_url,
            timeout_seconds=env_float("IMPORT_API_TIMEOUT_SECONDS", EXTRACTION_TIMEOUT_SECONDS),
            retry=RetryPolicy(total=env_int("IMPORT_API_MAX_RETRIES", 0)),
            ratelimit=RateLimit(max_calls=per_minute, per_seconds=60.0) if per_minute > 0 else None,
            default_headers=headers,
        ),
    )
