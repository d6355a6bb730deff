"""Defaults for the document import flow."""

from __future__ import annotations

from dataclasses import dataclass

from propimport.domain.importing.controller import (
    ACCEPTED_FILE_TYPES,
    MAX_FILE_SIZE,
    REDIRECT_DELAY_SECONDS,
)
from propimport.domain.model import LookupFailurePolicy

from .env import env_float, env_int, optional_env_var
from .errors import InvalidConfigurationError

SUPPORTED_LOCALES: frozenset[str] = frozenset({"fr", "en"})


@dataclass(frozen=True, slots=True)
class ImportConfig:
    max_file_size: int = MAX_FILE_SIZE
    accepted_file_types: frozenset[str] = ACCEPTED_FILE_TYPES
    redirect_delay_seconds: float = REDIRECT_DELAY_SECONDS
    lookup_failure_policy: LookupFailurePolicy = LookupFailurePolicy.ISOLATE
    locale: str = "fr"


def get_import_config() -> ImportConfig:
    policy_raw = optional_env_var("IMPORT_LOOKUP_FAILURE_POLICY")
    try:
        policy = LookupFailurePolicy(policy_raw.lower()) if policy_raw else LookupFailurePolicy.ISOLATE
    except ValueError as exc:
        raise InvalidConfigurationError(
            "IMPORT_LOOKUP_FAILURE_POLICY", policy_raw, "isolate or abort"
        ) from exc

    locale = (optional_env_var("IMPORT_LOCALE") or "fr").lower()
    if locale not in SUPPORTED_LOCALES:
        raise InvalidConfigurationError("IMPORT_LOCALE", locale, "one of fr, en")

    return ImportConfig(
        max_file_size=env_int("IMPORT_MAX_FILE_SIZE", MAX_FILE_SIZE),
        redirect_delay_seconds=env_float("IMPORT_REDIRECT_DELAY_SECONDS", REDIRECT_DELAY_SECONDS),
        lookup_failure_policy=policy,
        locale=locale,
    )
