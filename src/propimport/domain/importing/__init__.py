"""Document import pipeline: extraction, duplicate matching, review and commit."""

from __future__ import annotations

from .committer import (
    BatchCommitter,
    CandidateCommitResult,
    CommitOutcome,
    CommitReport,
)
from .controller import ReconciliationController
from .credentials import PriorityCredentialPolicy, ProviderPreferences, ProviderSelection
from .field_mapping import FIELD_MAPPINGS, format_lot_number, map_to_property_input
from .matching import DuplicateMatcher, Failed, Found, LookupOutcome, NotFound, normalize_address
from .messages import message_for_error, user_message
from .pending import PendingImportState
from .runner import (
    BackgroundImportRunner,
    BatchFile,
    ExtractionListener,
    ImportProgress,
    MergeMode,
)
from .state_machine import ImportStep, Rejected, parse_step_param, transition
from .store import RepositoryPropertyStore

__all__ = [
    "FIELD_MAPPINGS",
    "BackgroundImportRunner",
    "BatchCommitter",
    "BatchFile",
    "CandidateCommitResult",
    "CommitOutcome",
    "CommitReport",
    "DuplicateMatcher",
    "ExtractionListener",
    "Failed",
    "Found",
    "ImportProgress",
    "ImportStep",
    "LookupOutcome",
    "MergeMode",
    "NotFound",
    "PendingImportState",
    "PriorityCredentialPolicy",
    "ProviderPreferences",
    "ProviderSelection",
    "ReconciliationController",
    "Rejected",
    "RepositoryPropertyStore",
    "format_lot_number",
    "map_to_property_input",
    "message_for_error",
    "normalize_address",
    "parse_step_param",
    "transition",
    "user_message",
]
