"""Public domain model surface."""

from __future__ import annotations

from propimport.domain.model.enums import (
    DEFAULT_MODELS,
    DEFAULT_PROVIDER_PRIORITY,
    AIProvider,
    CandidateAction,
    DocumentType,
    ImportSource,
    ImportStatus,
    InputMode,
    LookupFailurePolicy,
)
from propimport.domain.model.fields import PropertyFields, score_field_confidence
from propimport.domain.model.property import IMPORT_SOURCE, ExistingProperty, PropertyRecord
from propimport.domain.model.session import (
    Create,
    ExtractionCandidate,
    ImportSession,
    Merge,
    Resolution,
    Skip,
)

__all__ = [
    "DEFAULT_MODELS",
    "DEFAULT_PROVIDER_PRIORITY",
    "IMPORT_SOURCE",
    "AIProvider",
    "CandidateAction",
    "Create",
    "DocumentType",
    "ExistingProperty",
    "ExtractionCandidate",
    "ImportSession",
    "ImportSource",
    "ImportStatus",
    "InputMode",
    "LookupFailurePolicy",
    "Merge",
    "PropertyFields",
    "PropertyRecord",
    "Resolution",
    "Skip",
    "score_field_confidence",
]
