"""OpenAI-based analysis provider.

Uses the OpenAI chat completions API to produce a narrative audit of an
invoice. Requires OPENAI_API_KEY environment variable.

Includes retry logic with exponential backoff for transient API errors.
"""

import logging
import os
from typing import Any

from openai import AsyncOpenAI
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


class OpenAIAnalysisProvider(AnalysisProvider):
    """OpenAI-based analysis provider (gpt-4o-mini by default)."""

    def __init__(self, settings: Settings) -> None:
        """Initialize OpenAI analysis provider.

        Args:
            settings: Application settings
        """
        super().__init__(settings)
        self._client: AsyncOpenAI | None = None

    @property
    def provider_name(self) -> str:
        """Get provider name for logging/metrics.

        Returns:
            Provider identifier 'openai'
        """
        return "openai"

    def is_available(self) -> bool:
        """Check if OpenAI API key is configured.

        Returns:
            True if OPENAI_API_KEY environment variable is set
        """
        return os.getenv("OPENAI_API_KEY") is not None

    async def analyze(self, invoice: Invoice) -> str | None:
        """Analyze invoice using OpenAI.

        Args:
            invoice: Invoice to analyze

        Returns:
            Assistant message content, or None on failure
        """
        if not self.is_available():
            logger.warning("OPENAI_API_KEY not set. LLM analysis will be skipped.")
            return None

        try:
            api_key = os.getenv("OPENAI_API_KEY")
            if self._client is None or self._client.api_key != api_key:
                self._client = AsyncOpenAI(api_key=api_key)

            response = await self._call_openai_with_retry(build_user_prompt(invoice))

            content: str | None = response.choices[0].message.content
            return content or None

        except Exception as e:
            logger.error(f"OpenAI analysis failed for invoice {invoice.id}: {e}")
            return None

    @retry(
        retry=retry_if_exception_type((Exception,)),  # Retry on transient errors
        wait=wait_exponential_jitter(initial=1, max=60),  # Exponential backoff with jitter
        stop=stop_after_attempt(3),  # Max 3 attempts
        reraise=True,  # Re-raise exception after max attempts
    )
    async def _call_openai_with_retry(self, prompt: str) -> Any:
        """Call OpenAI API with retry logic for transient errors.

        Args:
            prompt: User message content

        Returns:
            OpenAI chat completion response

        Raises:
            Exception: After all retry attempts are exhausted
        """
        if self._client is None:
            raise RuntimeError("OpenAI client not initialized")

        return await self._client.chat.completions.create(
            model=self.settings.openai_model,
            messages=[
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": prompt},
            ],
            max_tokens=self.settings.analysis_max_tokens,
            temperature=0,  # Deterministic output
        )
