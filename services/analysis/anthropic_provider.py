"""Anthropic-based analysis provider.

Sends the invoice to Claude with an auditor system prompt and returns the
narrative analysis. Requires ANTHROPIC_API_KEY environment variable.

Includes retry logic with exponential backoff for transient API errors.
"""

import logging
import os
from typing import Any

from anthropic import AsyncAnthropic
from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential_jitter,
)

from services.analysis.base import AnalysisProvider
from services.analysis.prompt import SYSTEM_PROMPT, build_user_prompt
from services.invoices.schema import Invoice
from services.shared.config import Settings

logger = logging.getLogger(__name__)


class AnthropicAnalysisProvider(AnalysisProvider):
    """Claude-based analysis provider using the messages API."""

    def __init__(self, settings: Settings) -> None:
        """Initialize Anthropic analysis provider.

        Args:
            settings: Application settings
        """
        super().__init__(settings)
        self._client: AsyncAnthropic | None = None

    @property
    def provider_name(self) -> str:
        return "anthropic"

    def is_available(self) -> bool:
        """Check if Anthropic API key is configured.

        Returns:
            True if ANTHROPIC_API_KEY environment variable is set
        """
        return bool(os.getenv("ANTHROPIC_API_KEY"))

    async def analyze(self, invoice: Invoice) -> str | None:
        """Analyze invoice with Claude.

        Args:
            invoice: Invoice to analyze

        Returns:
            Text of the first text block in the response, or None
        """
        if not self.is_available():
            logger.warning("ANTHROPIC_API_KEY not set. LLM analysis will be skipped.")
            return None

        try:
            api_key = os.getenv("ANTHROPIC_API_KEY")
            if self._client is None or self._client.api_key != api_key:
                self._client = AsyncAnthropic(api_key=api_key)

            message = await self._call_anthropic_with_retry(build_user_prompt(invoice))

            for block in message.content:
                if block.type == "text":
                    text: str = block.text
                    return text
            return None

        except Exception as e:
            logger.error(f"Anthropic analysis failed for invoice {invoice.id}: {e}")
            return None

    @retry(
        retry=retry_if_exception_type((Exception,)),
        wait=wait_exponential_jitter(initial=1, max=30),
        stop=stop_after_attempt(3),
        reraise=True,
    )
    async def _call_anthropic_with_retry(self, prompt: str) -> Any:
        """Call the messages API with retry logic for transient errors.

        Args:
            prompt: User message content

        Returns:
            Anthropic Message response

        Raises:
            Exception: After all retry attempts are exhausted
        """
        if self._client is None:
            raise RuntimeError("Anthropic client not initialized")

        return await self._client.messages.create(
            model=self.settings.anthropic_model,
            max_tokens=self.settings.analysis_max_tokens,
            system=SYSTEM_PROMPT,
            messages=[{"role": "user", "content": prompt}],
        )
