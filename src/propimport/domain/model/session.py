"""Import sessions and their per-property extraction candidates."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, ClassVar
from uuid import uuid4

from propimport.domain.errors import InvalidResolutionError
from propimport.domain.model.enums import CandidateAction, ImportSource, ImportStatus
from propimport.domain.model.fields import PropertyFields

if TYPE_CHECKING:
    from propimport.domain.model.enums import DocumentType
    from propimport.domain.model.property import ExistingProperty


@dataclass(slots=True, frozen=True)
class Create:
    action: ClassVar[CandidateAction] = CandidateAction.CREATE


@dataclass(slots=True, frozen=True)
class Merge:
    """Merge into ``target_id``, which is always the candidate's duplicate."""

    target_id: str
    action: ClassVar[CandidateAction] = CandidateAction.MERGE


@dataclass(slots=True, frozen=True)
class Skip:
    action: ClassVar[CandidateAction] = CandidateAction.SKIP


type Resolution = Create | Merge | Skip


@dataclass(slots=True, kw_only=True)
class ExtractionCandidate:
    """One property's worth of extracted fields plus how the user resolved it.

    ``resolution`` can only be :class:`Merge` while ``duplicate`` is set, and the
    merge target is the duplicate's id. Replacing or clearing the duplicate
    resets a merge back to :class:`Create`.
    """

    extracted: PropertyFields = field(default_factory=PropertyFields)
    duplicate: ExistingProperty | None = None
    resolution: Resolution = field(default_factory=Create)
    lookup_error: str | None = None
    committed_property_id: str | None = None

    @property
    def action(self) -> CandidateAction:
        return self.resolution.action

    @property
    def address(self) -> str | None:
        return self.extracted.address

    @property
    def is_committed(self) -> bool:
        return self.committed_property_id is not None

    def set_duplicate(self, duplicate: ExistingProperty | None) -> None:
        self.duplicate = duplicate
        resolution = self.resolution
        if isinstance(resolution, Merge) and (
            duplicate is None or duplicate.id != resolution.target_id
        ):
            self.resolution = Create()

    def choose(self, action: CandidateAction) -> Resolution:
        match action:
            case CandidateAction.CREATE:
                self.resolution = Create()
            case CandidateAction.SKIP:
                self.resolution = Skip()
            case CandidateAction.MERGE:
                if self.duplicate is None:
                    raise InvalidResolutionError("Cannot merge a candidate without a duplicate")
                self.resolution = Merge(target_id=self.duplicate.id)
        return self.resolution


def _now() -> datetime:
    return datetime.now(UTC)


@dataclass(slots=True, kw_only=True)
class ImportSession:
    """Result of one extraction run.

    ``candidates`` keeps the provider's output order. ``legacy`` is the
    single-property shape and is only consulted when ``candidates`` is empty.
    """

    document_type: DocumentType
    id: str = field(default_factory=lambda: str(uuid4()))
    source: ImportSource = ImportSource.PDF
    status: ImportStatus = ImportStatus.PROCESSING
    file_name: str | None = None
    file_size: int | None = None
    created_at: datetime = field(default_factory=_now)
    completed_at: datetime | None = None
    errors: list[str] = field(default_factory=list[str])
    candidates: list[ExtractionCandidate] = field(default_factory=list[ExtractionCandidate])
    legacy: ExtractionCandidate | None = None
    property_ids: list[str] = field(default_factory=list[str])

    @property
    def is_resolved(self) -> bool:
        return all(isinstance(candidate.resolution, Create | Merge | Skip) for candidate in self.reviewable())

    @property
    def total_properties(self) -> int:
        return len(self.candidates)

    def reviewable(self) -> list[ExtractionCandidate]:
        """Candidates the user reviews: the list, or the legacy shape when empty."""

        if self.candidates:
            return list(self.candidates)
        return [self.legacy] if self.legacy is not None else []

    def candidate(self, index: int) -> ExtractionCandidate:
        candidates = self.reviewable()
        if index < 0 or index >= len(candidates):
            raise IndexError(f"No candidate at index {index}")
        return candidates[index]

    def mark_completed(self, property_ids: list[str]) -> None:
        self.property_ids = list(property_ids)
        self.status = ImportStatus.COMPLETED
        self.completed_at = _now()

    def mark_failed(self, message: str) -> None:
        self.status = ImportStatus.FAILED
        self.errors.append(message)
