"""Abstract base class for invoice analysis providers.

Enables switching between LLM backends (Anthropic, OpenAI, Ollama) while
keeping one interface for the augmentation step.

Based on Strategy Pattern:
https://refactoring.guru/design-patterns/strategy/python

Providers are best-effort: analyze() returns None instead of raising when the
provider is unconfigured or the remote call fails.
"""

from abc import ABC, abstractmethod

from services.invoices.schema import Invoice
from services.shared.config import Settings


class AnalysisProvider(ABC):
    """Abstract base class for narrative invoice analysis providers.

    Example implementations:
    - AnthropicAnalysisProvider: Claude messages API
    - OpenAIAnalysisProvider: OpenAI chat completions API
    - OllamaAnalysisProvider: self-hosted Ollama server
    """

    def __init__(self, settings: Settings) -> None:
        """Initialize provider with settings.

        Args:
            settings: Application settings
        """
        self.settings = settings

    @abstractmethod
    async def analyze(self, invoice: Invoice) -> str | None:
        """Produce a free-text audit of the invoice.

        Args:
            invoice: Invoice to analyze

        Returns:
            Analysis text, or None if unconfigured or the call failed
        """
        pass

    @abstractmethod
    def is_available(self) -> bool:
        """Check if this provider is configured (API keys, server URL).

        Returns:
            True if provider can be used, False otherwise
        """
        pass

    @property
    @abstractmethod
    def provider_name(self) -> str:
        """Get provider name for logging/metrics.

        Returns:
            Provider identifier (e.g., 'anthropic', 'openai')
        """
        pass
