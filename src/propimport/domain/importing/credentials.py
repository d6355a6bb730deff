"""Provider and key selection for extraction calls."""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from logging import getLogger
from typing import TYPE_CHECKING, Literal

from propimport.domain.model import DEFAULT_MODELS, DEFAULT_PROVIDER_PRIORITY, AIProvider
from propimport.domain.ports import ProviderCredentials

if TYPE_CHECKING:
    from propimport.domain.ports import CredentialPolicy

log = getLogger(__name__)

type ProviderSelection = AIProvider | Literal["auto"]


@dataclass(frozen=True, slots=True, kw_only=True)
class ProviderPreferences:
    """User-level AI settings."""

    selection: ProviderSelection = "auto"
    priority: tuple[AIProvider, ...] = DEFAULT_PROVIDER_PRIORITY
    api_keys: dict[AIProvider, str] = field(default_factory=dict[AIProvider, str], repr=False)
    models: dict[AIProvider, str] = field(default_factory=lambda: dict(DEFAULT_MODELS))
    use_personal_keys: bool = True


class PriorityCredentialPolicy:
    """Pick the provider by explicit choice or by priority order.

    In ``auto`` mode the first provider in ``priority`` with a personal key
    wins, falling back to DeepSeek. Keys are passed through unchecked; an
    empty key lets the server use its shared credentials.
    """

    def __init__(self, preferences: ProviderPreferences) -> None:
        self.preferences = preferences

    def resolve_provider_and_key(self) -> ProviderCredentials:
        preferences = self.preferences
        keys = preferences.api_keys if preferences.use_personal_keys else {}

        if preferences.selection == "auto":
            provider = next(
                (candidate for candidate in preferences.priority if keys.get(candidate)),
                AIProvider.DEEPSEEK,
            )
        else:
            provider = preferences.selection

        model = preferences.models.get(provider) or DEFAULT_MODELS[provider]
        api_key = keys.get(provider, "")
        if not api_key:
            log.info(f"No personal {provider} key configured, using shared credentials")
        return ProviderCredentials(provider=provider, api_key=api_key, model=model)


def with_provider(preferences: ProviderPreferences, selection: ProviderSelection) -> ProviderPreferences:
    """Copy of ``preferences`` with a different provider selection."""

    return replace(preferences, selection=selection)


if TYPE_CHECKING:
    _policy_check: CredentialPolicy = PriorityCredentialPolicy(ProviderPreferences())
