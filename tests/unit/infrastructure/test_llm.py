"""Unit tests for the LiteLLM client wrapper."""

from types import SimpleNamespace
from unittest.mock import AsyncMock, patch

import litellm
import pytest

from reelsmith.core.exceptions import ConfigError, MissingCredentialsError
from reelsmith.infrastructure.llm import LLMClient, LLMConfig, LLMError
from reelsmith.services.pipeline.orchestrator import is_retryable

CONFIG = LLMConfig(model="openrouter/google/gemini-2.5-flash", max_tokens=300, temperature=0.2)


def completion(content: str | None, usage: bool = True) -> SimpleNamespace:
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))],
        model="google/gemini-2.5-flash",
        usage=(
            SimpleNamespace(prompt_tokens=10, completion_tokens=5, total_tokens=15)
            if usage
            else None
        ),
    )


class TestLLMClient:
    """Tests for LLMClient."""

    @pytest.mark.asyncio
    async def test_complete(self):
        """Responses are stripped and usage normalized."""
        with patch(
            "reelsmith.infrastructure.llm.acompletion",
            new=AsyncMock(return_value=completion("  A script.  ")),
        ) as mock_completion:
            client = LLMClient(api_key="sk-or-test")
            response = await client.complete(CONFIG, [{"role": "user", "content": "Hi"}])

        assert response.content == "A script."
        assert response.model == "google/gemini-2.5-flash"
        assert response.usage == {"prompt_tokens": 10, "completion_tokens": 5, "total_tokens": 15}
        kwargs = mock_completion.call_args.kwargs
        assert kwargs["model"] == CONFIG.model
        assert kwargs["max_tokens"] == 300
        assert kwargs["temperature"] == 0.2
        assert kwargs["api_key"] == "sk-or-test"

    @pytest.mark.asyncio
    async def test_chat_builds_messages(self):
        """chat sends a system and a user turn."""
        with patch(
            "reelsmith.infrastructure.llm.acompletion",
            new=AsyncMock(return_value=completion("ok", usage=False)),
        ) as mock_completion:
            result = await LLMClient(api_key="k").chat(CONFIG, "be brief", "write")

        assert result == "ok"
        assert mock_completion.call_args.kwargs["messages"] == [
            {"role": "system", "content": "be brief"},
            {"role": "user", "content": "write"},
        ]

    @pytest.mark.asyncio
    async def test_empty_response(self):
        """Blank completions are errors."""
        with patch(
            "reelsmith.infrastructure.llm.acompletion",
            new=AsyncMock(return_value=completion("   ")),
        ):
            with pytest.raises(LLMError, match="Empty response"):
                await LLMClient(api_key="k").complete(CONFIG, [])

    @pytest.mark.asyncio
    async def test_request_failure_wrapped(self):
        """Provider errors become LLMError with the model attached."""
        with patch(
            "reelsmith.infrastructure.llm.acompletion",
            new=AsyncMock(side_effect=RuntimeError("rate limited")),
        ):
            with pytest.raises(LLMError, match="rate limited") as exc_info:
                await LLMClient(api_key="k").complete(CONFIG, [])

        assert exc_info.value.model == CONFIG.model

    @pytest.mark.asyncio
    async def test_missing_key_fails_fast(self):
        """Without a key nothing is sent and the error is not retryable."""
        with patch("reelsmith.infrastructure.llm.acompletion", new=AsyncMock()) as mock_completion:
            with pytest.raises(MissingCredentialsError) as exc_info:
                await LLMClient(api_key="").complete(CONFIG, [])

        mock_completion.assert_not_called()
        assert exc_info.value.config_key == "OPENROUTER_API_KEY"
        assert not is_retryable(exc_info.value)

    @pytest.mark.asyncio
    async def test_rejected_key_is_config_error(self):
        """Authentication failures are configuration errors, not transient ones."""
        auth_error = litellm.AuthenticationError(
            message="invalid api key", llm_provider="openrouter", model=CONFIG.model
        )
        with patch(
            "reelsmith.infrastructure.llm.acompletion",
            new=AsyncMock(side_effect=auth_error),
        ):
            with pytest.raises(ConfigError) as exc_info:
                await LLMClient(api_key="bad").complete(CONFIG, [])

        assert not isinstance(exc_info.value, LLMError)
        assert not is_retryable(exc_info.value)
