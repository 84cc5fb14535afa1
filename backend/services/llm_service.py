"""
LLM Service
Handles communication with OpenAI-compatible LLM providers
(OpenRouter, Deepseek, OpenAI, Gemini).
Supports easy provider switching via environment variables.
"""

import os
from typing import Dict, Any, Optional, Tuple
from openai import OpenAI
from dotenv import load_dotenv

from services.interfaces import CompletionProvider
from utils.errors import ProviderError
from utils.logger import setup_logger, log_success, log_error

# Load environment variables
load_dotenv()

logger = setup_logger(__name__)


class LLMService(CompletionProvider):
    """Service for generating LLM responses via multiple providers."""

    def __init__(
        self,
        provider: Optional[str] = None,
        model: Optional[str] = None,
        api_key: Optional[str] = None,
        temperature: float = None,
        max_tokens: int = None,
        timeout: float = None
    ):
        """
        Initialize the LLM service.

        Args:
            provider: "openrouter", "deepseek", "openai" or "gemini" (defaults to env var)
            model: Model name (defaults to env var)
            api_key: API key (defaults to env var)
            temperature: Response randomness (0.0-1.0)
            max_tokens: Max response length
            timeout: Per-request timeout in seconds
        """
        self.provider = provider or os.getenv("LLM_PROVIDER", "openrouter")

        # Diagnoses should be repeatable, so default lower than chat use
        self.temperature = float(temperature if temperature is not None else os.getenv("LLM_TEMPERATURE", "0.3"))

        self.max_tokens = max_tokens if max_tokens is not None else int(os.getenv("LLM_MAX_TOKENS", "800"))

        self.timeout = float(timeout if timeout is not None else os.getenv("LLM_TIMEOUT", "30"))

        base_url, default_model, api_key_env = self._get_client_config()

        self.model = model or os.getenv("LLM_MODEL") or os.getenv(f"{self.provider.upper()}_MODEL", default_model)
        self.api_key = api_key or os.getenv(api_key_env)

        if not self.api_key:
            raise ValueError(f"API key not found. Set {api_key_env} in .env file")

        self.client = OpenAI(
            base_url=base_url,
            api_key=self.api_key,
            timeout=self.timeout
        )
        log_success(logger, f"LLM Service ready ({self.provider}/{self.model})")

    def _get_client_config(self) -> Tuple[str, str, str]:
        """
        Get provider-specific configuration.

        Returns:
            (base_url, default_model, api_key_env_var)
        """
        if self.provider == "openrouter":
            return (
                "https://openrouter.ai/api/v1",
                "google/gemma-3-27b-it:free",
                "OPENROUTER_API_KEY"
            )
        elif self.provider == "deepseek":
            return (
                "https://api.deepseek.com",
                "deepseek-chat",
                "DEEPSEEK_API_KEY"
            )
        elif self.provider == "openai":
            return (
                "https://api.openai.com/v1",
                "gpt-4o-mini",
                "OPENAI_API_KEY"
            )
        elif self.provider == "gemini":
            return (
                "https://generativelanguage.googleapis.com/v1beta/openai/",
                "gemini-2.0-flash",
                "GEMINI_API_KEY"
            )
        else:
            raise ValueError(f"Unknown provider: {self.provider}")

    def generate(
        self,
        prompt: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None
    ) -> Dict[str, Any]:
        """
        Generate a response from a prompt.

        Args:
            prompt: The prompt string
            temperature: Override default temperature
            max_tokens: Override default max_tokens

        Returns:
            Dictionary with response and metadata
        """
        try:
            temp = temperature if temperature is not None else self.temperature
            tokens = max_tokens if max_tokens is not None else self.max_tokens

            response = self.client.chat.completions.create(
                model=self.model,
                messages=[{"role": "user", "content": prompt}],
                temperature=temp,
                max_tokens=tokens
            )

            return self._format_response(response)

        except Exception as e:
            return self._handle_error(e)

    def complete(self, prompt: str) -> str:
        """
        Return the raw completion text for a prompt.

        Raises:
            ProviderError: If generation fails for any reason
        """
        result = self.generate(prompt)
        if result['status_code'] != 200:
            raise ProviderError(
                f"{result.get('error_type', 'Error')}: {result.get('message', 'LLM generation failed')}",
                provider=self.provider
            )
        return result['response']

    def _format_response(self, response) -> Dict[str, Any]:
        """
        Format OpenAI response to standard format.

        Args:
            response: OpenAI ChatCompletion response

        Returns:
            Standardized response dictionary
        """
        if not getattr(response, 'choices', None):
            logger.error(f"⚠️ No choices in response from {self.model}")
            return self._handle_error(Exception("No choices in LLM response"))

        choice = response.choices[0]
        message = getattr(getattr(choice, 'message', None), 'content', None)
        if message is None or message.strip() == "":
            logger.error(f"⚠️ Empty response from {self.model} (finish reason: {getattr(choice, 'finish_reason', None)})")
            return self._handle_error(Exception("Empty response from LLM"))

        usage = getattr(response, 'usage', None)
        usage_dict = {
            "prompt_tokens": getattr(usage, 'prompt_tokens', 0) or 0,
            "completion_tokens": getattr(usage, 'completion_tokens', 0) or 0,
            "total_tokens": getattr(usage, 'total_tokens', 0) or 0
        }

        log_success(logger, f"Response generated ({usage_dict['total_tokens']} tokens)")

        return {
            "status_code": 200,
            "status": "success",
            "response": message,
            "model": self.model,
            "provider": self.provider,
            "usage": usage_dict,
            "metadata": {
                "temperature": self.temperature,
                "finish_reason": getattr(choice, 'finish_reason', None)
            }
        }

    def _handle_error(self, error: Exception) -> Dict[str, Any]:
        """
        Handle errors and return standardized error response.

        Args:
            error: The exception that occurred

        Returns:
            Error response dictionary
        """
        error_type = type(error).__name__
        error_message = str(error)

        log_error(logger, f"Error: {error_type} - {error_message}")

        # Determine status code based on error type
        if "authentication" in error_message.lower() or "api key" in error_message.lower():
            status_code = 401
        elif "rate limit" in error_message.lower():
            status_code = 429
        elif "timeout" in error_message.lower() or "timed out" in error_message.lower():
            status_code = 504
        else:
            status_code = 500

        return {
            "status_code": status_code,
            "status": "error",
            "message": error_message,
            "error_type": error_type,
            "provider": self.provider
        }

    def get_model_info(self) -> Dict[str, Any]:
        """
        Get current model configuration.

        Returns:
            Dictionary with current settings
        """
        return {
            "provider": self.provider,
            "model": self.model,
            "temperature": self.temperature,
            "max_tokens": self.max_tokens,
            "api_key_set": bool(self.api_key)
        }
