"""Property store service backed by a unit of work."""

from __future__ import annotations

from logging import getLogger
from typing import TYPE_CHECKING

from propimport.domain.errors import CommitFailedError
from propimport.domain.importing.committer import (
    CandidateCommitResult,
    CommitOutcome,
    committed_result,
)
from propimport.domain.importing.field_mapping import PARKING_EXTRAS_COLUMN, map_to_property_input
from propimport.domain.importing.matching import normalize_address
from propimport.domain.model import Merge, PropertyRecord, Skip

if TYPE_CHECKING:
    from collections.abc import Callable

    from propimport.domain.model import (
        DocumentType,
        ExistingProperty,
        ImportSession,
        PropertyFields,
    )
    from propimport.domain.ports import PropertyUnitOfWork

type UnitOfWorkFactory = Callable[[], PropertyUnitOfWork]

log = getLogger(__name__)


class RepositoryPropertyStore:
    """Property store used by the import pipeline.

    Every create or merge runs in its own unit of work. Lookups match on the
    normalized address and return the oldest record when several match.
    """

    def __init__(self, unit_of_work_factory: UnitOfWorkFactory) -> None:
        self._uow_factory = unit_of_work_factory

    async def find_by_address(self, address: str) -> ExistingProperty | None:
        key = normalize_address(address)
        if key is None:
            return None
        with self._uow_factory() as uow:
            record = uow.repositories.properties.find_by_normalized_address(key)
            return record.to_existing() if record is not None else None

    async def create_properties_from_import(
        self, session: ImportSession
    ) -> list[CandidateCommitResult]:
        if not session.candidates:
            raise CommitFailedError("No properties in session")

        results: list[CandidateCommitResult] = []
        for index, candidate in enumerate(session.candidates):
            if candidate.is_committed:
                results.append(committed_result(index, candidate))
                continue
            resolution = candidate.resolution
            if isinstance(resolution, Skip):
                results.append(CandidateCommitResult(index=index, outcome=CommitOutcome.SKIPPED))
                continue
            try:
                if isinstance(resolution, Merge):
                    self._merge(resolution.target_id, candidate.extracted, session.document_type)
                    property_id = resolution.target_id
                    outcome = CommitOutcome.MERGED
                else:
                    property_id = self._create(candidate.extracted, session.document_type)
                    outcome = CommitOutcome.CREATED
            except Exception as exc:
                log.exception(f"Could not commit candidate {index} of session {session.id}")
                results.append(
                    CandidateCommitResult(
                        index=index, outcome=CommitOutcome.FAILED, error=str(exc) or repr(exc)
                    )
                )
                continue
            candidate.committed_property_id = property_id
            results.append(
                CandidateCommitResult(index=index, outcome=outcome, property_id=property_id)
            )
        return results

    async def create_property_from_import(self, session: ImportSession) -> str:
        if session.legacy is None:
            raise CommitFailedError("No extracted data in session")
        return self._create(session.legacy.extracted, session.document_type)

    async def merge_property_data(self, existing_id: str, session: ImportSession) -> None:
        if session.legacy is None:
            raise CommitFailedError("No extracted data in session")
        self._merge(existing_id, session.legacy.extracted, session.document_type)

    def _create(self, extracted: PropertyFields, document_type: DocumentType) -> str:
        values = map_to_property_input(extracted, document_type, is_merge=False)
        record = PropertyRecord()
        record.apply(values)
        record.normalized_address = normalize_address(record.adresse)
        with self._uow_factory() as uow:
            uow.repositories.properties.add(record)
            uow.commit()
        log.info(f"Created property {record.id} from {document_type} import")
        return record.id

    def _merge(self, property_id: str, extracted: PropertyFields, document_type: DocumentType) -> None:
        sources = self._read_field_sources(property_id)
        values = map_to_property_input(
            extracted, document_type, is_merge=True, existing_field_sources=sources
        )
        with self._uow_factory() as uow:
            repository = uow.repositories.properties
            record = repository.get(property_id)
            if record is None:
                raise CommitFailedError(f"Property {property_id} not found")
            extras = values.get(PARKING_EXTRAS_COLUMN)
            current = record.value(PARKING_EXTRAS_COLUMN)
            if extras and current and str(extras) not in str(current):
                values[PARKING_EXTRAS_COLUMN] = f"{current}, {extras}"
            repository.update(record, values)
            record.normalized_address = normalize_address(record.adresse)
            uow.commit()
        log.info(f"Merged {document_type} import into property {property_id}")

    def _read_field_sources(self, property_id: str) -> dict[str, str]:
        try:
            with self._uow_factory() as uow:
                record = uow.repositories.properties.get(property_id)
                return dict(record.field_sources) if record is not None else {}
        except Exception as exc:  # noqa: BLE001
            log.warning(f"Could not fetch existing field sources for {property_id}: {exc}")
            return {}
