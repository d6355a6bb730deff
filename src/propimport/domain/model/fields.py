"""Extracted property fields and their confidence scores."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Mapping


def score_field_confidence(value: object) -> float:
    """Heuristic confidence (0-100) for a value the provider did not score."""

    if value is None:
        return 0.0
    if isinstance(value, bool):
        return 85.0
    if isinstance(value, str):
        length = len(value)
        if length > 20:
            return 95.0
        if length > 10:
            return 85.0
        if length > 5:
            return 75.0
        return 65.0
    if isinstance(value, int | float):
        return 90.0
    return 70.0


@dataclass(slots=True, kw_only=True)
class PropertyFields:
    """Structured fields for one property, keyed by extraction field name."""

    data: dict[str, object] = field(default_factory=dict[str, object])
    confidences: dict[str, float] = field(default_factory=dict[str, float])

    @classmethod
    def from_extraction(
        cls,
        data: Mapping[str, object],
        confidences: Mapping[str, float] | None = None,
    ) -> PropertyFields:
        values = dict(data)
        if confidences:
            scores = {key: float(score) for key, score in confidences.items()}
        else:
            scores = {key: score_field_confidence(value) for key, value in values.items()}
        return cls(data=values, confidences=scores)

    def get(self, key: str) -> object | None:
        return self.data.get(key)

    def text(self, key: str) -> str | None:
        value = self.data.get(key)
        if value is None:
            return None
        text = str(value).strip()
        return text or None

    @property
    def address(self) -> str | None:
        return self.text("address")

    @property
    def city(self) -> str | None:
        return self.text("city")

    @property
    def municipality(self) -> str | None:
        return self.text("municipality")

    @property
    def sale_price(self) -> float | None:
        value = self.data.get("sellPrice")
        if isinstance(value, bool) or not isinstance(value, int | float):
            return None
        return float(value)

    @property
    def average_confidence(self) -> int:
        if not self.confidences:
            return 0
        return round(sum(self.confidences.values()) / len(self.confidences))

    @property
    def fields_extracted(self) -> int:
        return sum(1 for value in self.data.values() if value is not None)
