from __future__ import annotations

import pytest

from propimport.domain.errors import InvalidResolutionError
from propimport.domain.model import (
    CandidateAction,
    Create,
    DocumentType,
    ExistingProperty,
    ExtractionCandidate,
    ImportSession,
    ImportStatus,
    Merge,
    Skip,
)
from tests.helpers.imports import make_fields


def _candidate(address: str | None = "123 Main St") -> ExtractionCandidate:
    return ExtractionCandidate(extracted=make_fields(address))


def test_candidate_defaults_to_create() -> None:
    candidate = _candidate()

    assert candidate.duplicate is None
    assert isinstance(candidate.resolution, Create)
    assert candidate.action is CandidateAction.CREATE


def test_merge_requires_a_duplicate() -> None:
    candidate = _candidate()

    with pytest.raises(InvalidResolutionError):
        candidate.choose(CandidateAction.MERGE)

    assert candidate.action is CandidateAction.CREATE


def test_merge_targets_the_duplicate() -> None:
    candidate = _candidate()
    candidate.set_duplicate(ExistingProperty(id="p1", address="123 Main St"))

    resolution = candidate.choose(CandidateAction.MERGE)

    assert resolution == Merge(target_id="p1")
    assert candidate.action is CandidateAction.MERGE


def test_clearing_duplicate_resets_merge_to_create() -> None:
    candidate = _candidate()
    candidate.set_duplicate(ExistingProperty(id="p1"))
    candidate.choose(CandidateAction.MERGE)

    candidate.set_duplicate(None)

    assert candidate.duplicate is None
    assert candidate.action is CandidateAction.CREATE


def test_replacing_duplicate_resets_merge_to_create() -> None:
    candidate = _candidate()
    candidate.set_duplicate(ExistingProperty(id="p1"))
    candidate.choose(CandidateAction.MERGE)

    candidate.set_duplicate(ExistingProperty(id="p2"))

    assert candidate.duplicate is not None
    assert candidate.duplicate.id == "p2"
    assert candidate.action is CandidateAction.CREATE


def test_skip_survives_duplicate_changes() -> None:
    candidate = _candidate()
    candidate.choose(CandidateAction.SKIP)

    candidate.set_duplicate(ExistingProperty(id="p1"))
    candidate.set_duplicate(None)

    assert isinstance(candidate.resolution, Skip)


def test_reviewable_prefers_candidates_over_legacy() -> None:
    session = ImportSession(document_type=DocumentType.MLS_LISTING)
    legacy = _candidate("1 Legacy Rd")
    session.legacy = legacy

    assert session.reviewable() == [legacy]
    assert session.total_properties == 0

    session.candidates = [_candidate("1 A St"), _candidate("2 B St")]

    assert [candidate.address for candidate in session.reviewable()] == ["1 A St", "2 B St"]
    assert session.total_properties == 2


def test_candidate_index_out_of_range() -> None:
    session = ImportSession(document_type=DocumentType.ROLE_TAXE, candidates=[_candidate()])

    assert session.candidate(0).address == "123 Main St"
    with pytest.raises(IndexError):
        session.candidate(1)
    with pytest.raises(IndexError):
        session.candidate(-1)


def test_session_is_resolved_with_default_actions() -> None:
    session = ImportSession(
        document_type=DocumentType.ROLE_FONCIER, candidates=[_candidate(), _candidate(None)]
    )

    assert session.is_resolved


def test_mark_completed_and_failed() -> None:
    session = ImportSession(document_type=DocumentType.MLS_LISTING)

    session.mark_completed(["p1", "p2"])

    assert session.status is ImportStatus.COMPLETED
    assert session.property_ids == ["p1", "p2"]
    assert session.completed_at is not None

    session.mark_failed("network down")

    assert session.status is ImportStatus.FAILED
    assert session.errors == ["network down"]
