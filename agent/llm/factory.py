from agent.llm.base import LLMClient
from errors import ConfigurationError


def get_llm_client() -> LLMClient:
    from config import settings

    provider = settings.llm_provider.lower()

    if provider in ("openai", "custom"):
        from agent.llm.openai_client import OpenAIClient
        if not settings.openai_api_key:
            raise ConfigurationError("Missing OPENAI_API_KEY on server")
        return OpenAIClient(
            api_key=settings.openai_api_key,
            model=settings.openai_model,
            base_url=settings.openai_base_url or None,
        )

    if provider == "anthropic":
        from agent.llm.anthropic_client import AnthropicClient
        if not settings.anthropic_api_key:
            raise ConfigurationError("Missing ANTHROPIC_API_KEY on server")
        return AnthropicClient(
            api_key=settings.anthropic_api_key,
            model=settings.anthropic_model,
        )

    raise ConfigurationError(f"Unknown LLM_PROVIDER: {provider!r}")


def model_name() -> str:
    from config import settings

    if settings.llm_provider.lower() == "anthropic":
        return settings.anthropic_model
    return settings.openai_model
