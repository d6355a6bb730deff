from __future__ import annotations

import pytest

from propimport.domain.importing import format_lot_number, map_to_property_input
from propimport.domain.importing.field_mapping import parse_quebec_address
from propimport.domain.model import DocumentType, PropertyFields


def _fields(**data: object) -> PropertyFields:
    return PropertyFields.from_extraction(data)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("1234567", "1 234 567"),
        ("1 234 567", "1 234 567"),
        ("123456", "123456"),
        ("lot 12-34-567", "1 234 567"),
    ],
)
def test_format_lot_number(raw: str, expected: str) -> None:
    assert format_lot_number(raw) == expected


def test_parse_quebec_address() -> None:
    city, postal_code = parse_quebec_address("123 rue Principale, Granby, J2G 1A1")

    assert postal_code == "J2G 1A1"
    assert city == "Granby"

    assert parse_quebec_address("123 Main St") == (None, None)


def test_create_maps_fields_and_records_sources() -> None:
    extracted = _fields(
        address="450 boul. Saint-Joseph, Gatineau, J8Y 3Y7",
        sellPrice=425000,
        bedrooms=3,
        lotNumber="2345678",
        unknownField="ignored",
        extras=None,
    )

    values = map_to_property_input(extracted, DocumentType.MLS_LISTING)

    assert values["adresse"] == "450 boul. Saint-Joseph, Gatineau, J8Y 3Y7"
    assert values["code_postal"] == "J8Y 3Y7"
    assert values["ville"] == "Gatineau"
    assert values["prix_vente"] == 425000
    assert values["nombre_chambres"] == 3
    assert values["lot_number"] == "2 345 678"
    assert values["source"] == "import"
    assert "unknownField" not in values
    assert "extras" not in values
    sources = values["field_sources"]
    assert isinstance(sources, dict)
    assert sources["prix_vente"] == "mls_listing"
    assert sources["adresse"] == "mls_listing"


def test_explicit_city_skips_address_parsing() -> None:
    extracted = _fields(address="1 Elm St, Laval, H7N 1A1", city="Laval-des-Rapides")

    values = map_to_property_input(extracted, DocumentType.ROLE_TAXE)

    assert values["ville"] == "Laval-des-Rapides"
    assert "code_postal" not in values


def test_merge_never_writes_bookkeeping_or_address_columns() -> None:
    extracted = _fields(address="1 Elm St", postalCode="H7N 1A1", sellPrice=1)

    values = map_to_property_input(extracted, DocumentType.MLS_LISTING, is_merge=True)

    assert "source" not in values
    assert "adresse" not in values
    assert "code_postal" not in values
    assert values["prix_vente"] == 1


def test_role_foncier_merge_replaces_the_address() -> None:
    extracted = _fields(address="1 Elm St, Laval, H7N 1A1")

    values = map_to_property_input(extracted, DocumentType.ROLE_FONCIER, is_merge=True)

    assert values["adresse"] == "1 Elm St, Laval, H7N 1A1"
    assert values["code_postal"] == "H7N 1A1"


def test_mls_merge_does_not_overwrite_municipal_fields() -> None:
    extracted = _fields(totalValue=500000, sellPrice=480000)
    sources = {"eval_municipale_total": "role_foncier", "prix_vente": "mls_listing"}

    values = map_to_property_input(
        extracted, DocumentType.MLS_LISTING, is_merge=True, existing_field_sources=sources
    )

    assert "eval_municipale_total" not in values
    assert values["prix_vente"] == 480000
    assert values["field_sources"] == sources


def test_non_mls_merge_keeps_listing_classification() -> None:
    extracted = _fields(status="Vendu", propType="Condo", municipalTax=3200)

    values = map_to_property_input(extracted, DocumentType.ROLE_TAXE, is_merge=True)

    assert "status" not in values
    assert "type_propriete" not in values
    assert values["taxes_municipales_montant"] == 3200


def test_unit_rents_and_parking_extras() -> None:
    extracted = _fields(
        unitNumbers=["101", "102", "103"],
        unitRents=[950, None],
        parkingExtras="Abri d'auto",
    )

    values = map_to_property_input(extracted, DocumentType.MLS_LISTING)

    assert values["unit_rents"] == [
        {"unit": "101", "rent": 950},
        {"unit": "102", "rent": 0},
        {"unit": "103", "rent": 0},
    ]
    assert values["ameliorations_hors_sol"] == "Abri d'auto"
