"""Duplicate detection for extraction candidates.

One lookup per candidate with an address, run concurrently. Results are
applied back by index so completion order never affects which candidate a
match lands on. Each lookup is wrapped in a :data:`LookupOutcome`; the
:class:`LookupFailurePolicy` decides whether a failed lookup degrades that
candidate only or aborts the whole review transition.
"""

from __future__ import annotations

import asyncio
import unicodedata
from dataclasses import dataclass
from logging import getLogger
from typing import TYPE_CHECKING

from propimport.domain.errors import DuplicateLookupError
from propimport.domain.model import LookupFailurePolicy

if TYPE_CHECKING:
    from collections.abc import Sequence

    from propimport.domain.model import ExistingProperty, ExtractionCandidate
    from propimport.domain.ports import PropertyStore

log = getLogger(__name__)


def normalize_address(value: str | None) -> str | None:
    """Comparison key for addresses: accents, case, punctuation and spacing ignored."""

    if value is None:
        return None
    text = unicodedata.normalize("NFKC", value)
    text = text.casefold()
    text = unicodedata.normalize("NFKD", text)
    text = "".join(ch for ch in text if not unicodedata.combining(ch))
    text = "".join(" " if unicodedata.category(ch).startswith("P") else ch for ch in text)
    text = " ".join(text.split())
    return text or None


@dataclass(slots=True, frozen=True)
class Found:
    property: ExistingProperty


@dataclass(slots=True, frozen=True)
class NotFound:
    pass


@dataclass(slots=True, frozen=True)
class Failed:
    error: Exception


type LookupOutcome = Found | NotFound | Failed


class DuplicateMatcher:
    def __init__(
        self,
        store: PropertyStore,
        *,
        failure_policy: LookupFailurePolicy = LookupFailurePolicy.ISOLATE,
    ) -> None:
        self._store = store
        self.failure_policy = failure_policy

    async def find_by_address(self, address: str) -> ExistingProperty | None:
        return await self._store.find_by_address(address)

    async def lookup(self, address: str) -> LookupOutcome:
        try:
            match = await self._store.find_by_address(address)
        except Exception as exc:  # noqa: BLE001
            return Failed(error=exc)
        return Found(property=match) if match is not None else NotFound()

    async def match_candidates(
        self, candidates: Sequence[ExtractionCandidate]
    ) -> list[LookupOutcome | None]:
        """Populate ``duplicate`` on every candidate that has an address.

        Returns one entry per candidate, ``None`` where no lookup ran.
        Resolutions are left untouched.
        """

        indexed = [
            (index, address)
            for index, candidate in enumerate(candidates)
            if (address := candidate.address) is not None
        ]
        results = await asyncio.gather(*(self.lookup(address) for _, address in indexed))

        outcomes: list[LookupOutcome | None] = [None] * len(candidates)
        for (index, _), outcome in zip(indexed, results, strict=True):
            outcomes[index] = outcome

        if self.failure_policy is LookupFailurePolicy.ABORT:
            for index, outcome in enumerate(outcomes):
                if isinstance(outcome, Failed):
                    raise DuplicateLookupError(
                        f"Duplicate lookup failed for candidate {index}: {outcome.error}",
                        index=index,
                    ) from outcome.error

        for index, outcome in enumerate(outcomes):
            candidate = candidates[index]
            match outcome:
                case Found(property=existing):
                    candidate.lookup_error = None
                    candidate.set_duplicate(existing)
                case NotFound():
                    candidate.lookup_error = None
                    candidate.set_duplicate(None)
                case Failed(error=error):
                    log.warning(f"Duplicate lookup failed for candidate {index}: {error}")
                    candidate.lookup_error = str(error) or type(error).__name__
                    candidate.set_duplicate(None)
                case None:
                    pass

        return outcomes
