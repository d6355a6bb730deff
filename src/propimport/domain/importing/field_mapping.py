"""Map extracted fields onto property library columns.

Merges never overwrite bookkeeping columns. Municipal sources (assessment
roll, tax roll) take precedence over MLS listings, and only the assessment
roll may replace an existing address.
"""

from __future__ import annotations

import re
from logging import getLogger
from typing import TYPE_CHECKING, Final

from propimport.domain.model import IMPORT_SOURCE, DocumentType

if TYPE_CHECKING:
    from collections.abc import Mapping

    from propimport.domain.model import PropertyFields

log = getLogger(__name__)

FIELD_MAPPINGS: Final[dict[str, str]] = {
    # Address
    "address": "adresse",
    "city": "ville",
    "postalCode": "code_postal",
    "municipality": "municipalite",
    # Status and classification
    "status": "status",
    "propType": "type_propriete",
    "genrePropriete": "genre_propriete",
    "typeBatiment": "type_batiment",
    # Pricing
    "sellPrice": "prix_vente",
    "askingPrice": "prix_demande",
    "yearBuilt": "annee_construction",
    # Areas
    "surface": "superficie_terrain_m2",
    "privateSurface": "superficie_terrain_m2",
    "livingArea": "superficie_habitable_pi2",
    # Municipal evaluation
    "terrainValue": "eval_municipale_terrain",
    "batimentValue": "eval_municipale_batiment",
    "totalValue": "eval_municipale_total",
    "matricule": "matricule",
    # Taxes
    "copropTax": "frais_condo",
    "schoolTax": "taxes_scolaires_montant",
    "schoolTaxYear": "taxes_scolaires_annee",
    "municipalTax": "taxes_municipales_montant",
    "municipalTaxYear": "taxes_municipales_annee",
    # Market
    "numeroMLS": "numero_mls",
    "daysOnMarket": "jours_sur_marche",
    "acceptanceDate": "date_vente",
    # Rooms
    "roomsAboveGround": "nombre_pieces",
    "bedrooms": "nombre_chambres",
    "bathrooms": "salle_bain",
    "powderRooms": "salle_eau",
    # Parking
    "stationnement": "stationnement",
    "garages": "stationnement",
    "parkingSpaces": "stationnement",
    "lotNumber": "lot_number",
    "extras": "extras",
    "inclusions": "notes",
}

PARKING_EXTRAS_KEY: Final[str] = "parkingExtras"
PARKING_EXTRAS_COLUMN: Final[str] = "ameliorations_hors_sol"

PROTECTED_FOR_MERGE: Final[frozenset[str]] = frozenset(
    {"source", "created_at", "updated_at", "organization_id", "created_by"}
)
ADDRESS_COLUMNS: Final[frozenset[str]] = frozenset({"adresse", "ville", "code_postal"})
PROTECTED_FOR_NON_MLS: Final[frozenset[str]] = frozenset(
    {"status", "type_propriete", "type_evaluation"}
)
MUNICIPAL_SOURCES: Final[frozenset[str]] = frozenset(
    {DocumentType.ROLE_FONCIER, DocumentType.ROLE_TAXE}
)

_POSTAL_CODE = re.compile(r"([A-Z]\d[A-Z]\s?\d[A-Z]\d)", re.IGNORECASE)
_CITY = re.compile(r",\s*([^,]+)\s*,?\s*[A-Z]\d[A-Z]", re.IGNORECASE)


def format_lot_number(value: str) -> str:
    """Quebec cadastre format ``# ### ###`` for 7-digit lot numbers."""

    digits = re.sub(r"\D", "", value)
    if len(digits) != 7:
        return value
    return f"{digits[0]} {digits[1:4]} {digits[4:]}"


def parse_quebec_address(full_address: str) -> tuple[str | None, str | None]:
    """Return ``(city, postal_code)`` found in a one-line Quebec address."""

    postal_match = _POSTAL_CODE.search(full_address)
    postal_code = postal_match.group(1).upper() if postal_match else None
    city_match = _CITY.search(full_address)
    city = city_match.group(1).strip() if city_match else None
    return city, postal_code


def _unit_rents(units: object, rents: object) -> list[dict[str, object]] | None:
    if not isinstance(units, list) or not isinstance(rents, list):
        return None
    rent_values: list[object] = list(rents)  # pyright: ignore[reportUnknownArgumentType]
    result: list[dict[str, object]] = []
    for index, unit in enumerate(units):  # pyright: ignore[reportUnknownVariableType]
        rent = rent_values[index] if index < len(rent_values) else None
        result.append({"unit": unit, "rent": rent or 0})
    return result


def map_to_property_input(
    extracted: PropertyFields,
    document_type: DocumentType | None,
    *,
    is_merge: bool = False,
    existing_field_sources: Mapping[str, str] | None = None,
) -> dict[str, object]:
    """Column values for a create (or a merge) plus the updated ``field_sources``."""

    mapped: dict[str, object] = {}
    sources: dict[str, str] = dict(existing_field_sources or {})
    is_mls = document_type is DocumentType.MLS_LISTING
    protect_address = is_merge and document_type is not DocumentType.ROLE_FONCIER

    def municipal_owned(column: str) -> bool:
        return is_merge and is_mls and sources.get(column) in MUNICIPAL_SOURCES

    def assign(column: str, value: object) -> None:
        mapped[column] = value
        if document_type is not None:
            sources[column] = document_type.value

    for key, value in extracted.data.items():
        column = FIELD_MAPPINGS.get(key)
        if column is None or value is None:
            continue
        if is_merge and column in PROTECTED_FOR_MERGE:
            continue
        if municipal_owned(column):
            log.info(f"Protecting field {column} (source: {sources[column]}) from MLS overwrite")
            continue
        if protect_address and column in ADDRESS_COLUMNS:
            continue
        if (
            is_merge
            and document_type is not None
            and not is_mls
            and column in PROTECTED_FOR_NON_MLS
        ):
            continue
        if column == "lot_number" and isinstance(value, str):
            value = format_lot_number(value)
        assign(column, value)

    address = extracted.address
    if address and (not is_merge or document_type is DocumentType.ROLE_FONCIER):
        if not municipal_owned("adresse"):
            assign("adresse", address)
        if not extracted.city:
            city, postal_code = parse_quebec_address(address)
            if city and not municipal_owned("ville"):
                assign("ville", city)
            if postal_code and not municipal_owned("code_postal"):
                assign("code_postal", postal_code)

    units = _unit_rents(extracted.get("unitNumbers"), extracted.get("unitRents"))
    if units is not None:
        assign("unit_rents", units)

    parking_extras = extracted.get(PARKING_EXTRAS_KEY)
    if parking_extras:
        current = mapped.get(PARKING_EXTRAS_COLUMN)
        mapped[PARKING_EXTRAS_COLUMN] = (
            f"{current}, {parking_extras}" if current else parking_extras
        )

    if not is_merge:
        mapped["source"] = IMPORT_SOURCE

    mapped["field_sources"] = sources
    return mapped
