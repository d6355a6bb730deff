"""Ports for persisting and looking up properties."""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol, runtime_checkable

from propimport.domain.model import PropertyRecord

if TYPE_CHECKING:
    from propimport.domain.importing.committer import CandidateCommitResult
    from propimport.domain.model import ExistingProperty, ImportSession


@runtime_checkable
class Repository[TEntity](Protocol):
    """Minimal repository contract for a persistent aggregate store."""

    def add(self, entity: TEntity) -> None: ...


@runtime_checkable
class PropertyRepository(Repository[PropertyRecord], Protocol):
    """Persistence contract for property records."""

    def get(self, property_id: str) -> PropertyRecord | None: ...

    def find_by_normalized_address(self, normalized_address: str) -> PropertyRecord | None: ...

    def update(self, record: PropertyRecord, values: dict[str, object]) -> PropertyRecord: ...


@runtime_checkable
class PropertyStore(Protocol):
    """The property library as seen by the import pipeline."""

    async def find_by_address(self, address: str) -> ExistingProperty | None: ...

    async def create_properties_from_import(
        self, session: ImportSession
    ) -> list[CandidateCommitResult]: ...

    async def create_property_from_import(self, session: ImportSession) -> str: ...

    async def merge_property_data(self, existing_id: str, session: ImportSession) -> None: ...
