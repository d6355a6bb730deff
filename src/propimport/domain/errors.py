"""Errors raised by the import pipeline.

Every error is a :class:`PropertyImportError`. The controller maps each
category to one localized string (see ``domain.importing.messages``).
"""

from __future__ import annotations

from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from propimport.domain.importing.committer import CommitReport


class PropertyImportError(RuntimeError):
    """Base class for import pipeline failures."""


class ValidationReason(StrEnum):
    MISSING_DOCUMENT_TYPE = "missing_document_type"
    MISSING_FILE = "missing_file"
    MISSING_TEXT = "missing_text"
    FILE_TOO_LARGE = "file_too_large"
    INVALID_FILE_TYPE = "invalid_file_type"


class ImportValidationError(PropertyImportError):
    """Raised before any network call when the input is incomplete."""

    def __init__(
        self, reason: ValidationReason, message: str | None = None, **params: object
    ) -> None:
        super().__init__(message or reason.value)
        self.reason = reason
        self.params = params


class ExtractionFailedError(PropertyImportError):
    """Raised when extraction (or the review enrichment that follows it) fails."""


class DuplicateLookupError(ExtractionFailedError):
    """Raised when a duplicate lookup fails and failures are not isolated."""

    def __init__(self, message: str, *, index: int) -> None:
        super().__init__(message)
        self.index = index


class CommitFailedError(PropertyImportError):
    def __init__(self, message: str, *, report: CommitReport | None = None) -> None:
        super().__init__(message)
        self.report = report


class ImportAlreadyRunningError(PropertyImportError):
    """Raised when an import starts while another one is still running."""


class InvalidResolutionError(PropertyImportError):
    """Raised when a candidate resolution would reference a missing duplicate."""
