from typing import Any

from .base import LLMProvider
from .providers import OpenAIProvider

GROQ_BASE_URL = "https://api.groq.com/openai/v1"
GROQ_DEFAULT_MODEL = "moonshotai/kimi-k2-instruct-0905"

# Endpoint defaults per provider name; every provider speaks the Responses API
_PROVIDER_DEFAULTS: dict[str, dict[str, str]] = {
    "openai": {},
    "groq": {"base_url": GROQ_BASE_URL, "model": GROQ_DEFAULT_MODEL},
}


def create_llm_provider(provider: str, **config: Any) -> LLMProvider:
    """Create a streaming provider by name.

    Args:
        provider: 'openai' or 'groq' (case-insensitive)
        **config: OpenAIProvider arguments. api_key is required; model and
            base_url fall back to the provider's defaults when missing or None

    Raises:
        ValueError: Unknown provider name
        TypeError: api_key missing

    Examples:
        >>> llm = create_llm_provider("groq", api_key="gsk_...")
        >>> llm.model
        'moonshotai/kimi-k2-instruct-0905'
    """
    name = provider.lower()
    defaults = _PROVIDER_DEFAULTS.get(name)
    if defaults is None:
        raise ValueError(
            f"Unsupported provider: {provider}. "
            f"Supported providers: {', '.join(sorted(_PROVIDER_DEFAULTS))}"
        )
    if "api_key" not in config:
        raise TypeError(f"{provider} provider requires 'api_key' in config")

    for key, value in defaults.items():
        if config.get(key) is None:
            config[key] = value
    return OpenAIProvider(**config)
