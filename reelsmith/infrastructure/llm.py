"""LLM client abstraction using LiteLLM.

All text generation (scripts, validation, image prompts) goes through
OpenRouter models addressed in LiteLLM's ``provider/model`` format.
"""

from dataclasses import dataclass
from typing import Any

import litellm
from litellm import acompletion

from reelsmith.core.config import settings
from reelsmith.core.exceptions import ConfigError, MissingCredentialsError, ServiceError
from reelsmith.core.logging import get_logger

logger = get_logger(__name__)

litellm.drop_params = True


class LLMError(ServiceError):
    """LLM request failed or returned nothing usable."""

    def __init__(self, message: str, model: str | None = None) -> None:
        super().__init__(message, service_name="llm", context={"model": model} if model else None)
        self.model = model


@dataclass
class LLMConfig:
    """Per-call model settings.

    Attributes:
        model: Model identifier (e.g. "openrouter/google/gemini-2.5-flash")
        max_tokens: Maximum tokens in response
        temperature: Sampling temperature
        timeout: Request timeout in seconds
    """

    model: str
    max_tokens: int = 1000
    temperature: float = 0.7
    timeout: int = 120


@dataclass
class LLMResponse:
    """Normalized completion result."""

    content: str
    model: str
    usage: dict[str, int]
    raw_response: Any = None


class LLMClient:
    """Thin async wrapper over ``litellm.acompletion``.

    Example:
        >>> client = LLMClient(api_key="sk-or-...")
        >>> response = await client.complete(
        ...     config=LLMConfig(model="openrouter/google/gemini-2.5-flash"),
        ...     messages=[{"role": "user", "content": "Hello!"}],
        ... )
    """

    def __init__(self, api_key: str | None = None) -> None:
        """Initialize the client.

        Args:
            api_key: OpenRouter key; defaults to the configured one
        """
        self._api_key = api_key if api_key is not None else settings.openrouter_api_key

    def require_credentials(self) -> None:
        """Fail fast when no OpenRouter key is configured.

        Raises:
            MissingCredentialsError: If the key is empty
        """
        if not self._api_key:
            raise MissingCredentialsError(
                "openrouter",
                "OpenRouter API key is not configured",
                config_key="OPENROUTER_API_KEY",
            )

    async def complete(
        self,
        config: LLMConfig,
        messages: list[dict[str, str]],
        **kwargs: Any,
    ) -> LLMResponse:
        """Generate a completion.

        Args:
            config: Model settings
            messages: Chat messages with 'role' and 'content'
            **kwargs: Extra parameters forwarded to LiteLLM

        Returns:
            LLMResponse with the generated text

        Raises:
            MissingCredentialsError: If no API key is configured
            ConfigError: If the provider rejects the API key
            LLMError: If the request fails or the response is empty
        """
        self.require_credentials()
        logger.debug(
            "LLM request",
            model=config.model,
            max_tokens=config.max_tokens,
            message_count=len(messages),
        )
        try:
            response = await acompletion(
                model=config.model,
                messages=messages,
                max_tokens=config.max_tokens,
                temperature=config.temperature,
                timeout=config.timeout,
                api_key=self._api_key,
                **kwargs,
            )
        except litellm.AuthenticationError as e:
            logger.error("LLM credentials rejected", model=config.model, error=str(e))
            raise ConfigError(
                f"LLM provider rejected the API key: {e}", config_key="OPENROUTER_API_KEY"
            ) from e
        except Exception as e:
            logger.error("LLM request failed", model=config.model, error=str(e), exc_info=True)
            raise LLMError(f"LLM request failed: {e}", model=config.model) from e

        content = (response.choices[0].message.content or "").strip()
        if not content:
            raise LLMError("Empty response from LLM", model=config.model)

        usage: dict[str, int] = {}
        if getattr(response, "usage", None):
            usage = {
                "prompt_tokens": response.usage.prompt_tokens or 0,
                "completion_tokens": response.usage.completion_tokens or 0,
                "total_tokens": response.usage.total_tokens or 0,
            }

        logger.debug("LLM response", model=config.model, content_length=len(content), usage=usage)
        return LLMResponse(
            content=content,
            model=getattr(response, "model", None) or config.model,
            usage=usage,
            raw_response=response,
        )

    async def chat(
        self,
        config: LLMConfig,
        system: str,
        user: str,
    ) -> str:
        """Single system + user turn, returning only the text."""
        response = await self.complete(
            config=config,
            messages=[
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
        )
        return response.content


__all__ = [
    "LLMClient",
    "LLMConfig",
    "LLMError",
    "LLMResponse",
]
