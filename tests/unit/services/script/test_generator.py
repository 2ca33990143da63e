"""Unit tests for ScriptGenerator."""

import json

import pytest

from reelsmith.core.exceptions import ContentGenerationError
from reelsmith.infrastructure.llm import LLMError
from reelsmith.prompts.manager import PromptType
from reelsmith.services.script.generator import ScriptGenerator, count_words


class TestCountWords:
    """Tests for spoken word counting."""

    def test_ignores_tags_and_ellipses(self):
        """Test bracketed tags and ellipses are not words."""
        assert count_words("[whispers] Hello... world [pause] again") == 3

    def test_ellipsis_joins_words(self):
        """Test an ellipsis between words separates them."""
        assert count_words("wait...then") == 2

    def test_empty(self):
        """Test an empty script has no words."""
        assert count_words("") == 0


class TestParseResponse:
    """Tests for ScriptGenerator.parse_response."""

    def test_json_response(self):
        """Test fields are read from the JSON object."""
        content = json.dumps({"title": " T ", "description": "D", "script": "one two [pause]"})
        candidate = ScriptGenerator.parse_response(content, "Theme")

        assert candidate.title == "T"
        assert candidate.description == "D"
        assert candidate.word_count == 2

    def test_raw_text_fallback(self):
        """Test a non-JSON response is used as the script, titled after the theme."""
        candidate = ScriptGenerator.parse_response("Just a narration.", "Patience")

        assert candidate.script == "Just a narration."
        assert candidate.title == "Patience"
        assert candidate.description == ""


class TestScriptGenerator:
    """Tests for ScriptGenerator.generate."""

    @pytest.fixture
    def generator(self, mock_llm_client, mock_prompt_manager):
        """Create a generator with mocked collaborators."""
        return ScriptGenerator(mock_llm_client, mock_prompt_manager, model="test/model")

    @pytest.mark.asyncio
    async def test_generate_success(
        self, generator, mock_llm_client, mock_prompt_manager, hook, long_script
    ):
        """Test a valid response becomes a candidate."""
        mock_llm_client.chat.return_value = json.dumps(
            {"title": "River", "description": "Patience", "script": long_script}
        )

        candidate = await generator.generate("Patience", "Waiting as trust", hook)

        assert candidate.title == "River"
        assert candidate.script == long_script
        render_kwargs = mock_prompt_manager.render.call_args.kwargs
        assert mock_prompt_manager.render.call_args.args[0] == PromptType.SCRIPT_GENERATION
        assert render_kwargs["opening_hook_name"] == hook.name
        llm_config = mock_llm_client.chat.call_args.args[0]
        assert llm_config.model == "test/model"
        assert llm_config.temperature == 0.8

    @pytest.mark.asyncio
    async def test_short_script_rejected(self, generator, mock_llm_client, hook):
        """Test scripts under the minimum length raise."""
        mock_llm_client.chat.return_value = json.dumps({"title": "T", "script": "Too short."})

        with pytest.raises(ContentGenerationError, match="too short"):
            await generator.generate("Patience", "", hook)

    @pytest.mark.asyncio
    async def test_llm_error_wrapped(self, generator, mock_llm_client, hook):
        """Test LLM failures surface as ContentGenerationError."""
        mock_llm_client.chat.side_effect = LLMError("timeout", model="test/model")

        with pytest.raises(ContentGenerationError) as exc_info:
            await generator.generate("Patience", "", hook)

        assert exc_info.value.context["stage"] == "script"
