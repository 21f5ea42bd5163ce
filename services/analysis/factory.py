"""Selection of the LLM analysis provider from configuration.

Analysis is optional: when it is switched off no provider is built and
callers receive None, which augment() treats as "rule-based result only".
"""

import logging

from services.analysis.anthropic_provider import AnthropicAnalysisProvider
from services.analysis.base import AnalysisProvider
from services.analysis.ollama_provider import OllamaAnalysisProvider
from services.analysis.openai_provider import OpenAIAnalysisProvider
from services.shared.config import Settings

logger = logging.getLogger(__name__)

PROVIDERS: dict[str, type[AnalysisProvider]] = {
    "anthropic": AnthropicAnalysisProvider,
    "openai": OpenAIAnalysisProvider,
    "ollama": OllamaAnalysisProvider,
}


def get_provider_class(name: str) -> type[AnalysisProvider]:
    """Look up a provider class by its settings name.

    Raises:
        ValueError: If no provider is known under that name
    """
    try:
        return PROVIDERS[name]
    except KeyError:
        available = ", ".join(PROVIDERS)
        raise ValueError(
            f"Unknown analysis provider: '{name}'. Available providers: {available}"
        ) from None


def create_analysis_provider(settings: Settings) -> AnalysisProvider | None:
    """Build the provider named by settings.analysis_provider.

    Returns None when settings.analysis_enabled is off. A provider missing its
    credentials is still returned (it answers every request with no analysis),
    but a warning is logged so the misconfiguration shows up at startup.

    Raises:
        ValueError: If the configured provider is unknown
    """
    if not settings.analysis_enabled:
        logger.info("LLM analysis disabled; validation results will be rule-based only")
        return None

    provider = get_provider_class(settings.analysis_provider)(settings)

    if not provider.is_available():
        logger.warning(
            f"Analysis provider '{provider.provider_name}' is not fully available. "
            f"Check configuration (e.g., API keys, server URL)."
        )

    logger.info(f"Created analysis provider: {provider.provider_name}")
    return provider
