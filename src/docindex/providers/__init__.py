"""Provider abstractions: LLM and embedding backends."""

import os
from typing import Optional

from docindex.config.schema import (
    AzureOpenAISettings,
    EmbeddingConfig,
    EmbeddingProviderType,
    LLMConfig,
    LLMProviderType,
)
from docindex.providers.base import EmbeddingProvider, LLMProvider, ProviderConfig, ProviderError


def create_llm_provider(
    config: LLMConfig,
    azure: Optional[AzureOpenAISettings] = None,
) -> LLMProvider:
    """Factory function to create LLM providers based on configuration.

    Args:
        config: LLM configuration (provider, model name, temperature, ...)
        azure: Azure OpenAI settings, required when provider is "azure"

    Returns:
        Initialized LLM provider

    Raises:
        ValueError: If the provider type is unknown
        ProviderError: If required credentials are missing

    Example:
        config = LLMConfig(provider="azure", model_name="gpt-4o", temperature=0)
        llm = create_llm_provider(config, AzureOpenAISettings())
    """
    provider_type = config.provider

    if provider_type == LLMProviderType.MOCK:
        from docindex.providers.mock import MockLLMProvider

        return MockLLMProvider(ProviderConfig(provider_type="mock", model_name=config.model_name))

    if provider_type == LLMProviderType.AZURE:
        from docindex.providers.openai_llm import AzureOpenAILLMProvider

        return AzureOpenAILLMProvider.from_settings(
            azure or AzureOpenAISettings(),
            model_name=config.model_name,
            temperature=config.temperature,
            max_tokens=config.max_tokens,
            timeout=config.timeout,
        )

    if provider_type == LLMProviderType.OPENAI:
        from docindex.providers.openai_llm import OpenAILLMProvider

        return OpenAILLMProvider(
            ProviderConfig(
                provider_type="openai",
                model_name=config.model_name,
                api_key=config.api_key or os.getenv("OPENAI_API_KEY"),
                extra_params={
                    **config.extra_params,
                    "temperature": config.temperature,
                    "max_tokens": config.max_tokens,
                    "timeout": config.timeout,
                },
            )
        )

    raise ValueError(
        f"Unknown LLM provider type: '{config.provider}'. "
        f"Supported types: openai, azure, mock"
    )


def create_embedding_provider(
    config: EmbeddingConfig,
    azure: Optional[AzureOpenAISettings] = None,
) -> EmbeddingProvider:
    """Factory function to create embedding providers based on configuration.

    Raises:
        ValueError: If the provider type is unknown
        ProviderError: If required credentials are missing
    """
    provider_type = config.provider

    if provider_type == EmbeddingProviderType.MOCK:
        from docindex.providers.mock import MockEmbeddingProvider

        return MockEmbeddingProvider(
            ProviderConfig(
                provider_type="mock",
                model_name=config.model_name,
                extra_params=config.extra_params,
            )
        )

    if provider_type == EmbeddingProviderType.AZURE:
        from docindex.providers.openai import AzureOpenAIEmbeddingProvider

        settings = azure or AzureOpenAISettings()
        return AzureOpenAIEmbeddingProvider.from_settings(
            settings,
            deployment=settings.embedding_deployment or config.model_name,
        )

    if provider_type == EmbeddingProviderType.OPENAI:
        from docindex.providers.openai import OpenAIEmbeddingProvider

        return OpenAIEmbeddingProvider(
            ProviderConfig(
                provider_type="openai",
                model_name=config.model_name,
                api_key=config.api_key or os.getenv("OPENAI_API_KEY"),
                extra_params=config.extra_params,
            )
        )

    raise ValueError(
        f"Unknown embedding provider type: '{config.provider}'. "
        f"Supported types: openai, azure, mock"
    )


__all__ = [
    "EmbeddingProvider",
    "LLMProvider",
    "ProviderConfig",
    "ProviderError",
    "create_embedding_provider",
    "create_llm_provider",
]
