"""Turn a resolved import session into property records.

Each candidate is committed in its own unit of work, so a failure part way
through leaves the earlier candidates committed. The :class:`CommitReport`
lists one outcome per candidate, and committed candidates remember their
property id so a retry does not submit them twice.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from logging import getLogger
from typing import TYPE_CHECKING

from propimport.domain.errors import CommitFailedError, PropertyImportError
from propimport.domain.model import Merge, Skip

if TYPE_CHECKING:
    from propimport.domain.model import ExtractionCandidate, ImportSession
    from propimport.domain.ports import PropertyStore

log = getLogger(__name__)


class CommitOutcome(StrEnum):
    CREATED = "created"
    MERGED = "merged"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(slots=True, frozen=True, kw_only=True)
class CandidateCommitResult:
    index: int
    outcome: CommitOutcome
    property_id: str | None = None
    error: str | None = None


@dataclass(slots=True)
class CommitReport:
    results: list[CandidateCommitResult] = field(default_factory=list[CandidateCommitResult])

    @property
    def succeeded(self) -> bool:
        return not self.failures

    @property
    def failures(self) -> list[CandidateCommitResult]:
        return [result for result in self.results if result.outcome is CommitOutcome.FAILED]

    @property
    def property_ids(self) -> list[str]:
        return [
            result.property_id
            for result in self.results
            if result.property_id is not None and result.outcome is not CommitOutcome.FAILED
        ]

    def count(self, outcome: CommitOutcome) -> int:
        return sum(1 for result in self.results if result.outcome is outcome)


def committed_result(index: int, candidate: ExtractionCandidate) -> CandidateCommitResult:
    """Result for a candidate that an earlier attempt already committed."""

    outcome = (
        CommitOutcome.MERGED if isinstance(candidate.resolution, Merge) else CommitOutcome.CREATED
    )
    return CandidateCommitResult(
        index=index, outcome=outcome, property_id=candidate.committed_property_id
    )


class BatchCommitter:
    def __init__(self, store: PropertyStore) -> None:
        self._store = store

    async def commit(self, session: ImportSession) -> CommitReport:
        """Commit every non-skipped candidate of ``session``.

        Raises :class:`CommitFailedError` when nothing can be committed or when
        any candidate failed; the error carries the report in the latter case.
        """

        log.info(f"Committing import session {session.id} ({len(session.candidates)} candidates)")
        if session.candidates:
            results = await self._store.create_properties_from_import(session)
        elif session.legacy is not None:
            results = [await self._commit_legacy(session, session.legacy)]
        else:
            raise CommitFailedError("No extracted data in session")

        report = CommitReport(results=list(results))
        if not report.succeeded:
            failed = ", ".join(str(result.index) for result in report.failures)
            session.errors.extend(result.error or "" for result in report.failures)
            raise CommitFailedError(f"Commit failed for candidates {failed}", report=report)

        session.mark_completed(report.property_ids)
        log.info(
            f"Committed import session {session.id}: "
            f"created={report.count(CommitOutcome.CREATED)}, "
            f"merged={report.count(CommitOutcome.MERGED)}, "
            f"skipped={report.count(CommitOutcome.SKIPPED)}"
        )
        return report

    async def _commit_legacy(
        self, session: ImportSession, candidate: ExtractionCandidate
    ) -> CandidateCommitResult:
        if candidate.is_committed:
            return committed_result(0, candidate)
        resolution = candidate.resolution
        if isinstance(resolution, Skip):
            return CandidateCommitResult(index=0, outcome=CommitOutcome.SKIPPED)
        try:
            if isinstance(resolution, Merge):
                await self._store.merge_property_data(resolution.target_id, session)
                property_id = resolution.target_id
                outcome = CommitOutcome.MERGED
            else:
                property_id = await self._store.create_property_from_import(session)
                outcome = CommitOutcome.CREATED
        except PropertyImportError:
            raise
        except Exception as exc:
            raise CommitFailedError(f"Could not commit import session: {exc}") from exc
        candidate.committed_property_id = property_id
        return CandidateCommitResult(index=0, outcome=outcome, property_id=property_id)
