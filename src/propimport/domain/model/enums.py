"""Domain enums (pure, dependency-light)."""

from __future__ import annotations

from enum import StrEnum


class DocumentType(StrEnum):
    MLS_LISTING = "mls_listing"
    ROLE_FONCIER = "role_foncier"
    ROLE_TAXE = "role_taxe"
    CERTIFICAT_LOCALISATION = "certificat_localisation"


class ImportSource(StrEnum):
    """Where the document comes from. Browser capture is not available yet."""

    PDF = "pdf"
    BROWSER_EXTENSION = "browser_extension"


class InputMode(StrEnum):
    PDF = "pdf"
    TEXT = "text"


class ImportStatus(StrEnum):
    PENDING = "pending"
    PROCESSING = "processing"
    REVIEW = "review"
    COMPLETED = "completed"
    FAILED = "failed"


class AIProvider(StrEnum):
    DEEPSEEK = "deepseek"
    OPENAI = "openai"
    ANTHROPIC = "anthropic"


class CandidateAction(StrEnum):
    """User decision for one extraction candidate."""

    CREATE = "create"
    MERGE = "merge"
    SKIP = "skip"


class LookupFailurePolicy(StrEnum):
    """What a failed duplicate lookup does to the review transition."""

    ISOLATE = "isolate"
    ABORT = "abort"


DEFAULT_PROVIDER_PRIORITY: tuple[AIProvider, ...] = (
    AIProvider.DEEPSEEK,
    AIProvider.OPENAI,
    AIProvider.ANTHROPIC,
)

DEFAULT_MODELS: dict[AIProvider, str] = {
    AIProvider.DEEPSEEK: "deepseek-chat",
    AIProvider.OPENAI: "gpt-4o-mini",
    AIProvider.ANTHROPIC: "claude-3-5-haiku-20241022",
}
