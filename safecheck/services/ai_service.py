"""
Claude AI integration for product label safety analysis.

Sends one request per analysis: the label image plus the prompt built from
the active profile context. Returns the provider's raw text; turning that text
into a report is report_normalizer's job.
"""

import asyncio
import logging
import random
from functools import wraps

import anthropic
import httpx
from anthropic import Anthropic

from safecheck.config import settings
from safecheck.services.image_service import is_remote_url, parse_data_uri
from safecheck.services.prompts import PRODUCT_ANALYSIS_SYSTEM_PROMPT


logger = logging.getLogger(__name__)


def retry_on_connection_error(max_attempts=3, base_delay=1.0):
    """
    Retry decorator for API calls that may fail due to transient network issues.

    Args:
        max_attempts: Maximum retry attempts (default 3)
        base_delay: Base delay in seconds for exponential backoff (default 1.0)
    """

    def decorator(func):
        @wraps(func)
        async def wrapper(*args, **kwargs):
            last_exception = None

            for attempt in range(max_attempts):
                try:
                    return await func(*args, **kwargs)
                except anthropic.APIConnectionError as e:
                    last_exception = e

                    if attempt < max_attempts - 1:
                        delay = base_delay * (2**attempt)
                        jitter = delay * 0.1 * (2 * random.random() - 1)
                        sleep_time = delay + jitter

                        logger.warning(
                            "Connection error on attempt %d/%d, retrying in %.1fs...",
                            attempt + 1,
                            max_attempts,
                            sleep_time,
                        )
                        await asyncio.sleep(sleep_time)
                    else:
                        logger.error("All %d attempts failed", max_attempts)

            raise ServiceUnavailableError(
                "AI service temporarily unavailable after retries"
            ) from last_exception

        return wrapper

    return decorator


def build_image_block(image_reference: str) -> dict:
    """
    Anthropic image content block for a remote URL or a base64 data URI.

    Raises:
        ValueError: If the reference is neither
    """
    if is_remote_url(image_reference):
        return {"type": "image", "source": {"type": "url", "url": image_reference}}

    media_type, data = parse_data_uri(image_reference)
    return {
        "type": "image",
        "source": {"type": "base64", "media_type": media_type, "data": data},
    }


class ClaudeService:
    """Claude API client for label analysis."""

    def __init__(self, api_key: str | None = None):
        timeout = httpx.Timeout(
            timeout=settings.anthropic_timeout,
            connect=settings.anthropic_connect_timeout,
        )
        self.api_key = api_key if api_key is not None else settings.anthropic_api_key
        self.client = Anthropic(api_key=self.api_key, timeout=timeout)
        self.model = settings.analysis_model
        self.max_tokens = settings.analysis_max_tokens

    @property
    def is_configured(self) -> bool:
        return bool(self.api_key)

    @retry_on_connection_error()
    async def _create_message(self, **request):
        return self.client.messages.create(**request)

    async def analyze_product_image(self, image_reference: str, prompt: str) -> dict:
        """
        Ask Claude for a safety assessment of a product label image.

        Args:
            image_reference: Remote image URL or base64 data URI
            prompt: Full analysis prompt (profile context + JSON instructions)

        Returns:
            {
                "text": "<raw response text>",
                "usage": {"input_tokens": 1234, "output_tokens": 456},
                "model": "claude-sonnet-4-5-20250929"
            }

        Raises:
            ServiceUnavailableError: AI service unreachable or failing (5xx)
            RateLimitError: Too many requests
            ProviderError: Any other non-success response
        """
        messages = [
            {
                "role": "user",
                "content": [
                    build_image_block(image_reference),
                    {"type": "text", "text": prompt},
                ],
            }
        ]

        try:
            response = await self._create_message(
                model=self.model,
                max_tokens=self.max_tokens,
                system=PRODUCT_ANALYSIS_SYSTEM_PROMPT,
                messages=messages,
            )
        except anthropic.RateLimitError as e:
            raise RateLimitError(
                "Too many requests, please try again in 1 minute"
            ) from e
        except anthropic.APIStatusError as e:
            if e.status_code >= 500:
                raise ServiceUnavailableError("AI service error") from e
            raise ProviderError(e.message or "Analysis request failed") from e

        text = "".join(
            block.text for block in response.content if hasattr(block, "text")
        )
        usage = None
        if getattr(response, "usage", None) is not None:
            usage = {
                "input_tokens": response.usage.input_tokens,
                "output_tokens": response.usage.output_tokens,
            }

        return {"text": text, "usage": usage, "model": self.model}


# =============================================================================
# CUSTOM EXCEPTIONS
# =============================================================================


class ProviderError(Exception):
    """The AI provider rejected or failed the request."""

    pass


class ServiceUnavailableError(ProviderError):
    """AI service is temporarily unreachable or erroring."""

    pass


class RateLimitError(ProviderError):
    """Too many requests to the AI service."""

    pass
