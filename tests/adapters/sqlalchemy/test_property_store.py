from __future__ import annotations

import asyncio
from collections.abc import Callable  # noqa: TC003

import pytest

from propimport.adapters.sqlalchemy import SqlAlchemyPropertyUnitOfWork  # noqa: TC001
from propimport.domain.errors import CommitFailedError
from propimport.domain.importing import CommitOutcome, RepositoryPropertyStore
from propimport.domain.model import (
    CandidateAction,
    DocumentType,
    ExistingProperty,
    ExtractionCandidate,
    ImportSession,
    PropertyFields,
    PropertyRecord,
)


def _session(
    *payloads: dict[str, object],
    document_type: DocumentType = DocumentType.MLS_LISTING,
    legacy: bool = False,
) -> ImportSession:
    candidates = [
        ExtractionCandidate(extracted=PropertyFields.from_extraction(payload)) for payload in payloads
    ]
    if legacy:
        return ImportSession(document_type=document_type, legacy=candidates[0])
    return ImportSession(document_type=document_type, candidates=candidates)


def _load(
    factory: Callable[[], SqlAlchemyPropertyUnitOfWork], property_id: str
) -> PropertyRecord:
    with factory() as uow:
        record = uow.repositories.properties.get(property_id)
        assert record is not None
        return record


def test_create_persists_mapped_columns(
    property_store: RepositoryPropertyStore,
    sqlite_unit_of_work: Callable[[], SqlAlchemyPropertyUnitOfWork],
) -> None:
    session = _session(
        {"address": "450 Boul. Saint-Joseph, Gatineau, J8Y 3Y7", "sellPrice": 425000, "bedrooms": 3}
    )

    results = asyncio.run(property_store.create_properties_from_import(session))

    assert [result.outcome for result in results] == [CommitOutcome.CREATED]
    property_id = results[0].property_id
    assert property_id is not None
    record = _load(sqlite_unit_of_work, property_id)
    assert record.adresse == "450 Boul. Saint-Joseph, Gatineau, J8Y 3Y7"
    assert record.ville == "Gatineau"
    assert record.code_postal == "J8Y 3Y7"
    assert record.prix_vente == 425000.0
    assert record.source == "import"
    assert record.normalized_address == "450 boul saint joseph gatineau j8y 3y7"
    assert record.attributes == {"nombre_chambres": 3}
    assert record.field_sources["prix_vente"] == "mls_listing"
    assert session.candidates[0].committed_property_id == property_id


def test_find_by_address_ignores_case_accents_and_punctuation(
    property_store: RepositoryPropertyStore,
) -> None:
    session = _session({"address": "12 Rue Sainte-Thérèse"})
    asyncio.run(property_store.create_properties_from_import(session))

    found = asyncio.run(property_store.find_by_address("12 rue sainte therese"))
    missing = asyncio.run(property_store.find_by_address("13 rue sainte therese"))

    assert found is not None
    assert found.id == session.candidates[0].committed_property_id
    assert found.address == "12 Rue Sainte-Thérèse"
    assert missing is None
    assert asyncio.run(property_store.find_by_address("  ")) is None


def test_find_by_address_returns_oldest_match(property_store: RepositoryPropertyStore) -> None:
    first = _session({"address": "1 Elm St"})
    second = _session({"address": "1 ELM ST."})
    asyncio.run(property_store.create_properties_from_import(first))
    asyncio.run(property_store.create_properties_from_import(second))

    found = asyncio.run(property_store.find_by_address("1 elm st"))

    assert found is not None
    assert found.id == first.candidates[0].committed_property_id


def test_merge_respects_municipal_sources_and_appends_parking_extras(
    property_store: RepositoryPropertyStore,
    sqlite_unit_of_work: Callable[[], SqlAlchemyPropertyUnitOfWork],
) -> None:
    role = _session(
        {"address": "8 Maple Dr", "totalValue": 510000, "parkingExtras": "Garage"},
        document_type=DocumentType.ROLE_FONCIER,
        legacy=True,
    )
    property_id = asyncio.run(property_store.create_property_from_import(role))

    listing = _session(
        {
            "address": "8 Maple Drive",
            "totalValue": 999999,
            "askingPrice": 549000,
            "parkingExtras": "Abri d'auto",
        },
        legacy=True,
    )
    asyncio.run(property_store.merge_property_data(property_id, listing))

    record = _load(sqlite_unit_of_work, property_id)
    assert record.adresse == "8 Maple Dr"
    assert record.source == "import"
    assert record.attributes["eval_municipale_total"] == 510000
    assert record.attributes["prix_demande"] == 549000
    assert record.attributes["ameliorations_hors_sol"] == "Garage, Abri d'auto"
    assert record.field_sources["eval_municipale_total"] == "role_foncier"
    assert record.field_sources["prix_demande"] == "mls_listing"


def test_role_foncier_merge_updates_address_and_lookup_key(
    property_store: RepositoryPropertyStore,
) -> None:
    listing = _session({"address": "8 Maple Drive"}, legacy=True)
    property_id = asyncio.run(property_store.create_property_from_import(listing))

    role = _session(
        {"address": "8 Maple Dr"}, document_type=DocumentType.ROLE_FONCIER, legacy=True
    )
    asyncio.run(property_store.merge_property_data(property_id, role))

    found = asyncio.run(property_store.find_by_address("8 maple dr"))
    assert found is not None
    assert found.id == property_id
    assert asyncio.run(property_store.find_by_address("8 Maple Drive")) is None


def test_merge_into_missing_property_fails(property_store: RepositoryPropertyStore) -> None:
    with pytest.raises(CommitFailedError, match="not found"):
        asyncio.run(property_store.merge_property_data("missing", _session({"city": "Laval"}, legacy=True)))


def test_per_candidate_commit_isolates_failures(
    property_store: RepositoryPropertyStore,
    sqlite_unit_of_work: Callable[[], SqlAlchemyPropertyUnitOfWork],
) -> None:
    session = _session({"address": "1 A St"}, {"address": "2 B St"}, {"address": "3 C St"})
    session.candidates[1].choose(CandidateAction.SKIP)
    session.candidates[2].set_duplicate(ExistingProperty(id="does-not-exist"))
    session.candidates[2].choose(CandidateAction.MERGE)

    results = asyncio.run(property_store.create_properties_from_import(session))

    assert [result.outcome for result in results] == [
        CommitOutcome.CREATED,
        CommitOutcome.SKIPPED,
        CommitOutcome.FAILED,
    ]
    created_id = results[0].property_id
    assert created_id is not None
    assert _load(sqlite_unit_of_work, created_id).adresse == "1 A St"
    assert results[2].error is not None

    retry = asyncio.run(property_store.create_properties_from_import(session))

    assert retry[0].outcome is CommitOutcome.CREATED
    assert retry[0].property_id == created_id


def test_legacy_operations_need_legacy_data(property_store: RepositoryPropertyStore) -> None:
    empty = ImportSession(document_type=DocumentType.MLS_LISTING)

    with pytest.raises(CommitFailedError, match="No properties in session"):
        asyncio.run(property_store.create_properties_from_import(empty))
    with pytest.raises(CommitFailedError, match="No extracted data"):
        asyncio.run(property_store.create_property_from_import(empty))
    with pytest.raises(CommitFailedError, match="No extracted data"):
        asyncio.run(property_store.merge_property_data("p1", empty))
