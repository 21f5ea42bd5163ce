"""Ollama-based analysis provider for self-hosted LLM inference.

Uses a local Ollama server to audit invoices without sending data to a
third-party API.

Requires Ollama server running on localhost:11434.
See: https://ollama.ai/
"""

import logging

import httpx
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


class OllamaAnalysisProvider(AnalysisProvider):
    """Ollama-based analysis provider.

    Supports models like Qwen2.5, Llama3, Mistral.
    """

    def __init__(self, settings: Settings) -> None:
        """Initialize Ollama analysis provider.

        Args:
            settings: Application settings
        """
        super().__init__(settings)
        self._base_url = settings.ollama_base_url
        self._model = settings.ollama_model
        self._client = httpx.AsyncClient(timeout=120.0)  # LLMs can be slow
        self._available: bool | None = None

    @property
    def provider_name(self) -> str:
        return "ollama"

    def is_available(self) -> bool:
        """Check whether an Ollama server is configured.

        The model check needs a network round trip, so it happens in
        check_server(), run once before the first analysis; this only
        reports the last known state.

        Returns:
            False if the last server check failed, True otherwise
        """
        return bool(self._base_url) and self._available is not False

    async def check_server(self) -> bool:
        """Check if Ollama server is running and the model is pulled.

        Returns:
            True if Ollama server responds and model is listed
        """
        try:
            response = await self._client.get(f"{self._base_url}/api/tags")
            if response.status_code != 200:
                self._available = False
                return False
            models = response.json().get("models", [])
            model_names = [m.get("name", "").split(":")[0] for m in models]
            self._available = self._model.split(":")[0] in model_names
        except Exception as e:
            logger.warning(f"Ollama server at {self._base_url} is unreachable: {e}")
            self._available = False
            return False

        if not self._available:
            logger.warning(
                f"Ollama model '{self._model}' is not available at {self._base_url}. "
                f"Pull it with: ollama pull {self._model}"
            )
        return self._available

    async def analyze(self, invoice: Invoice) -> str | None:
        """Analyze invoice using Ollama.

        Args:
            invoice: Invoice to analyze

        Returns:
            Generated analysis text, or None on failure
        """
        if self._available is None and self._base_url:
            await self.check_server()
        if not self.is_available():
            return None

        try:
            text = await self._call_ollama_with_retry(build_user_prompt(invoice))
            return text.strip() or None
        except Exception as e:
            logger.error(f"Ollama analysis failed for invoice {invoice.id}: {e}")
            return None

    @retry(
        retry=retry_if_exception_type((httpx.HTTPError, httpx.TimeoutException)),
        wait=wait_exponential_jitter(initial=1, max=30),
        stop=stop_after_attempt(3),
        reraise=True,
    )
    async def _call_ollama_with_retry(self, prompt: str) -> str:
        """Call Ollama API with retry logic for transient errors.

        Args:
            prompt: User prompt for the LLM

        Returns:
            Raw response text from Ollama

        Raises:
            httpx.HTTPError: After all retry attempts exhausted
        """
        response = await self._client.post(
            f"{self._base_url}/api/generate",
            json={
                "model": self._model,
                "system": SYSTEM_PROMPT,
                "prompt": prompt,
                "stream": False,
                "options": {
                    "temperature": 0,  # Deterministic output
                    "num_predict": self.settings.analysis_max_tokens,
                },
            },
        )
        response.raise_for_status()
        result: str = response.json().get("response", "")
        return result
