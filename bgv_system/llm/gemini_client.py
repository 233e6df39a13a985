"""Gemini API client with exponential backoff, used for advisory narratives only."""

import functools
import random
import time
from typing import Any, Callable, Optional

import google.generativeai as genai
from google.generativeai.types.generation_types import BlockedPromptException
from loguru import logger

from bgv_system.config.settings import settings


def _exponential_backoff(max_retries: int = 3, base_delay: float = 1.0) -> Callable:
    """
    Decorator implementing exponential backoff with jitter for API calls.

    Delay doubles on every retry with 0-10% jitter added. The last failure
    is re-raised so callers can degrade gracefully.

    Args:
        max_retries: Total attempts before giving up
        base_delay: Delay in seconds before the first retry

    Returns:
        Decorator wrapping a function with retry logic
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            for retry in range(max_retries):
                try:
                    return func(*args, **kwargs)
                except BlockedPromptException:
                    raise
                except Exception as e:
                    if retry == max_retries - 1:
                        logger.error(f"Max retries exceeded for {func.__name__}: {e}")
                        raise

                    delay = base_delay * (2 ** retry)
                    total_delay = delay + random.uniform(0, delay * 0.1)

                    logger.warning(
                        f"Retry {retry + 1}/{max_retries} for {func.__name__} "
                        f"after {total_delay:.2f}s: {e}"
                    )
                    time.sleep(total_delay)

            raise RuntimeError(f"Unexpected retry loop exit in {func.__name__}")

        return wrapper

    return decorator


class GeminiClient:
    """
    Google Gemini API client.

    Constructed lazily by the advisory analyzer, never at import time, so
    the deterministic core runs without a key or network access.

    Attributes:
        model: Configured Gemini generative model instance
    """

    def __init__(self, api_key: Optional[str] = None, model_name: Optional[str] = None):
        """
        Initialize Gemini client.

        Args:
            api_key: API key; defaults to settings.gemini_api_key
            model_name: Model id; defaults to settings.gemini_model

        Raises:
            ValueError: If no API key is configured
        """
        api_key = api_key or settings.gemini_api_key
        if not api_key:
            raise ValueError("GEMINI_API_KEY not configured in environment")

        self.model_name = model_name or settings.gemini_model
        genai.configure(api_key=api_key)
        self.model = genai.GenerativeModel(self.model_name)

        logger.info(f"Gemini client initialized with model {self.model_name}")

    @_exponential_backoff(max_retries=3)
    def generate_content(self, prompt: str, temperature: float = 0.2) -> str:
        """
        Generate text with exponential backoff.

        Args:
            prompt: Input prompt
            temperature: Sampling temperature (0.0-1.0)

        Returns:
            Generated text content

        Raises:
            BlockedPromptException: If prompt violates safety policies
            Exception: For other API errors after retries exhausted
        """
        try:
            response = self.model.generate_content(
                prompt,
                generation_config=genai.types.GenerationConfig(
                    temperature=temperature,
                ),
            )
            return response.text
        except BlockedPromptException as e:
            logger.error(f"Prompt blocked by safety filters: {e}")
            raise
