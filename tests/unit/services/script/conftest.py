"""Pytest fixtures for script service tests."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from reelsmith.prompts.manager import LLMSettings, RenderedPrompt
from reelsmith.services.rotation.selectors import OPENING_HOOKS
from reelsmith.services.script.generator import ScriptCandidate

LONG_SCRIPT = (
    "Imagine a river that never hurries [pause] yet always arrives. "
    "Patience is not waiting... it is trusting the current while you keep swimming."
)


@pytest.fixture
def mock_llm_client() -> AsyncMock:
    """Create a mock LLM client."""
    client = AsyncMock()
    client.chat = AsyncMock()
    return client


@pytest.fixture
def mock_prompt_manager() -> MagicMock:
    """Create a prompt manager returning a fixed rendered prompt."""
    manager = MagicMock()
    manager.render.return_value = RenderedPrompt(
        system="system",
        user="user",
        llm_settings=LLMSettings(max_tokens=1500, temperature=0.8),
    )
    return manager


@pytest.fixture
def long_script() -> str:
    """Narration longer than the minimum script length."""
    return LONG_SCRIPT


@pytest.fixture
def hook():
    """First opening hook."""
    return OPENING_HOOKS[0]


@pytest.fixture
def candidate() -> ScriptCandidate:
    """A valid script candidate."""
    return ScriptCandidate(
        title="The River",
        description="On patience",
        script=LONG_SCRIPT,
        word_count=24,
    )
