"""Property records owned by the property store."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Final, cast
from uuid import uuid4

IMPORT_SOURCE: Final[str] = "import"

_TEXT_COLUMNS: Final[frozenset[str]] = frozenset(
    {"adresse", "ville", "code_postal", "municipalite", "source"}
)


def _new_id() -> str:
    return str(uuid4())


def _now() -> datetime:
    return datetime.now(UTC)


def _as_price(value: object) -> float | None:
    if isinstance(value, bool):
        return None
    if isinstance(value, int | float):
        return float(value)
    if isinstance(value, str):
        cleaned = "".join(value.replace("$", "").split())
        try:
            return float(cleaned)
        except ValueError:
            return None
    return None


@dataclass(slots=True, kw_only=True, frozen=True)
class ExistingProperty:
    """Read-only view of a library property, used for duplicate matching."""

    id: str
    address: str | None = None
    city: str | None = None
    municipality: str | None = None
    sale_price: float | None = None
    field_sources: dict[str, str] = field(default_factory=dict[str, str], compare=False)


@dataclass(eq=False, kw_only=True)
class PropertyRecord:
    """Persisted property.

    The columns used for lookups are first-class attributes; every other
    mapped column lives in ``attributes``. ``field_sources`` records which
    document type last wrote each column.
    """

    id: str = field(default_factory=_new_id)
    adresse: str | None = None
    ville: str | None = None
    code_postal: str | None = None
    municipalite: str | None = None
    prix_vente: float | None = None
    normalized_address: str | None = None
    attributes: dict[str, object] = field(default_factory=dict[str, object])
    field_sources: dict[str, str] = field(default_factory=dict[str, str])
    source: str | None = None
    created_at: datetime = field(default_factory=_now)
    updated_at: datetime = field(default_factory=_now)

    def value(self, column: str) -> object | None:
        if column in _TEXT_COLUMNS or column == "prix_vente":
            return getattr(self, column)
        return self.attributes.get(column)

    def apply(self, values: Mapping[str, object]) -> None:
        """Write mapped column values. ``None`` values are ignored."""

        attributes = dict(self.attributes)
        for column, value in values.items():
            if value is None or column in {"id", "created_at", "updated_at"}:
                continue
            if column == "field_sources":
                sources = cast(Mapping[str, object], value)
                self.field_sources = {str(key): str(item) for key, item in sources.items()}
            elif column in _TEXT_COLUMNS:
                setattr(self, column, str(value))
            elif column == "prix_vente" and (price := _as_price(value)) is not None:
                self.prix_vente = price
            else:
                attributes[column] = value
        # new dict so the JSON column registers the change
        self.attributes = attributes
        self.updated_at = _now()

    def to_existing(self) -> ExistingProperty:
        return ExistingProperty(
            id=self.id,
            address=self.adresse,
            city=self.ville,
            municipality=self.municipalite,
            sale_price=self.prix_vente,
            field_sources=dict(self.field_sources),
        )
