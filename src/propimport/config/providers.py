"""AI provider preferences (keys, models, priority order)."""

from __future__ import annotations

from propimport.domain.importing.credentials import ProviderPreferences, ProviderSelection
from propimport.domain.model import DEFAULT_MODELS, DEFAULT_PROVIDER_PRIORITY, AIProvider

from .env import env_bool, optional_env_var
from .errors import InvalidConfigurationError

_KEY_VARS: dict[AIProvider, str] = {
    AIProvider.DEEPSEEK: "DEEPSEEK_API_KEY",
    AIProvider.OPENAI: "OPENAI_API_KEY",
    AIProvider.ANTHROPIC: "ANTHROPIC_API_KEY",
}
_MODEL_VARS: dict[AIProvider, str] = {
    AIProvider.DEEPSEEK: "DEEPSEEK_MODEL",
    AIProvider.OPENAI: "OPENAI_MODEL",
    AIProvider.ANTHROPIC: "ANTHROPIC_MODEL",
}


def parse_provider_selection(value: str) -> ProviderSelection:
    normalized = value.strip().lower()
    if normalized == "auto":
        return "auto"
    try:
        return AIProvider(normalized)
    except ValueError as exc:
        raise InvalidConfigurationError("AI_PROVIDER", value, "auto or a known provider") from exc


def parse_provider_priority(value: str) -> tuple[AIProvider, ...]:
    providers: list[AIProvider] = []
    for chunk in value.split(","):
        name = chunk.strip().lower()
        if not name:
            continue
        try:
            provider = AIProvider(name)
        except ValueError as exc:
            raise InvalidConfigurationError(
                "AI_PROVIDER_PRIORITY", name, "a comma-separated list of known providers"
            ) from exc
        if provider not in providers:
            providers.append(provider)
    return tuple(providers) or DEFAULT_PROVIDER_PRIORITY


def get_provider_preferences() -> ProviderPreferences:
    selection_raw = optional_env_var("AI_PROVIDER")
    priority_raw = optional_env_var("AI_PROVIDER_PRIORITY")

    api_keys: dict[AIProvider, str] = {}
    for provider, var in _KEY_VARS.items():
        key = optional_env_var(var)
        if key is not None:
            api_keys[provider] = key

    models = dict(DEFAULT_MODELS)
    for provider, var in _MODEL_VARS.items():
        model = optional_env_var(var)
        if model is not None:
            models[provider] = model

    return ProviderPreferences(
        selection=parse_provider_selection(selection_raw) if selection_raw else "auto",
        priority=parse_provider_priority(priority_raw) if priority_raw else DEFAULT_PROVIDER_PRIORITY,
        api_keys=api_keys,
        models=models,
        use_personal_keys=env_bool("AI_USE_PERSONAL_KEYS", True),
    )
