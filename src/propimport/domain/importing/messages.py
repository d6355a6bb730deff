"""Localized user-facing messages, one per error category."""

from __future__ import annotations

from typing import Final

from propimport.domain.errors import (
    CommitFailedError,
    ImportAlreadyRunningError,
    ImportValidationError,
    InvalidResolutionError,
    ValidationReason,
)

DEFAULT_LOCALE: Final[str] = "fr"

EXTRACTION_FAILED: Final[str] = "extraction_failed"
COMMIT_FAILED: Final[str] = "commit_failed"
IMPORT_RUNNING: Final[str] = "import_running"
IMPORT_CANCELLED: Final[str] = "import_cancelled"
BATCH_FAILED: Final[str] = "batch_failed"
INVALID_RESOLUTION: Final[str] = "invalid_resolution"
CANDIDATE_NOT_FOUND: Final[str] = "candidate_not_found"

_DEFAULT_PARAMS: Final[dict[str, object]] = {"max_size_mb": 10}

_MESSAGES: Final[dict[str, dict[str, str]]] = {
    ValidationReason.MISSING_DOCUMENT_TYPE: {
        "fr": "Veuillez choisir un type de document.",
        "en": "Please choose a document type.",
    },
    ValidationReason.MISSING_FILE: {
        "fr": "Veuillez sélectionner un fichier PDF.",
        "en": "Please select a PDF file.",
    },
    ValidationReason.MISSING_TEXT: {
        "fr": "Veuillez coller le texte du document.",
        "en": "Please paste the document text.",
    },
    ValidationReason.FILE_TOO_LARGE: {
        "fr": "Le fichier est trop volumineux (maximum {max_size_mb:g} Mo).",
        "en": "The file is too large ({max_size_mb:g} MB maximum).",
    },
    ValidationReason.INVALID_FILE_TYPE: {
        "fr": "Seuls les fichiers PDF sont acceptés.",
        "en": "Only PDF files are accepted.",
    },
    EXTRACTION_FAILED: {
        "fr": "L'extraction des données a échoué. Veuillez réessayer.",
        "en": "Data extraction failed. Please try again.",
    },
    COMMIT_FAILED: {
        "fr": "L'enregistrement des propriétés a échoué. Veuillez réessayer.",
        "en": "Saving the properties failed. Please try again.",
    },
    IMPORT_RUNNING: {
        "fr": "Un import est déjà en cours. Veuillez attendre qu'il se termine ou l'annuler.",
        "en": "An import is already in progress. Please wait for it to finish or cancel it.",
    },
    IMPORT_CANCELLED: {
        "fr": "Import annulé",
        "en": "Import cancelled",
    },
    BATCH_FAILED: {
        "fr": "Échec du traitement par lots",
        "en": "Batch processing failed",
    },
    INVALID_RESOLUTION: {
        "fr": "Impossible de fusionner : aucune propriété existante n'a été trouvée.",
        "en": "Cannot merge: no existing property was found.",
    },
    CANDIDATE_NOT_FOUND: {
        "fr": "Cette propriété ne fait pas partie de l'import.",
        "en": "This property is not part of the import.",
    },
}


def user_message(category: str, locale: str = DEFAULT_LOCALE, **params: object) -> str:
    """Return the message for ``category`` in ``locale`` (French by default).

    ``params`` fill placeholders such as ``max_size_mb``; missing ones take
    their defaults.
    """

    translations = _MESSAGES.get(category)
    if translations is None:
        raise KeyError(f"Unknown message category: {category}")
    template = translations.get(locale) or translations[DEFAULT_LOCALE]
    return template.format_map(_DEFAULT_PARAMS | params)


def message_for_error(error: BaseException, locale: str = DEFAULT_LOCALE) -> str:
    match error:
        case ImportValidationError(reason=reason, params=params):
            return user_message(reason, locale, **params)
        case ImportAlreadyRunningError():
            return user_message(IMPORT_RUNNING, locale)
        case InvalidResolutionError():
            return user_message(INVALID_RESOLUTION, locale)
        case CommitFailedError():
            return user_message(COMMIT_FAILED, locale)
        case _:
            return user_message(EXTRACTION_FAILED, locale)
