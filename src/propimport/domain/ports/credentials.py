"""Port for choosing the AI provider and key of an extraction call."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from propimport.domain.model import AIProvider


@dataclass(slots=True, frozen=True, kw_only=True)
class ProviderCredentials:
    """Provider, key and model for one call.

    An empty ``api_key`` asks the server to use its shared credentials.
    """

    provider: AIProvider
    api_key: str = field(default="", repr=False)
    model: str | None = None


@runtime_checkable
class CredentialPolicy(Protocol):
    def resolve_provider_and_key(self) -> ProviderCredentials: ...
