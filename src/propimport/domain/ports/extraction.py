"""Port for the external AI extraction service."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from propimport.domain.model import AIProvider, DocumentType, PropertyFields


@dataclass(slots=True, frozen=True, kw_only=True)
class FileUpload:
    """A document picked by the user, held in memory."""

    name: str
    content: bytes = field(repr=False)
    content_type: str = "application/pdf"

    @property
    def size(self) -> int:
        return len(self.content)


@dataclass(slots=True, frozen=True, kw_only=True)
class ExtractionRequest:
    """One extraction call: exactly one of ``upload`` or ``text`` is set."""

    document_type: DocumentType
    provider: AIProvider
    api_key: str = field(default="", repr=False)
    model: str | None = None
    upload: FileUpload | None = None
    text: str | None = None

    def __post_init__(self) -> None:
        if (self.upload is None) == (self.text is None):
            raise ValueError("ExtractionRequest needs exactly one of upload or text")


@dataclass(slots=True, kw_only=True)
class ExtractionResult:
    """Provider output in provider order.

    ``legacy`` is true when the provider answered with the single-property
    payload instead of the ``properties`` list.
    """

    properties: list[PropertyFields] = field(default_factory=list["PropertyFields"])
    legacy: bool = False


@runtime_checkable
class ExtractionGateway(Protocol):
    """Single-attempt call to the extraction provider."""

    async def extract(self, request: ExtractionRequest) -> ExtractionResult: ...
