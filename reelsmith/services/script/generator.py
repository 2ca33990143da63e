"""Narration script generation.

One LLM call per candidate: the theme and opening style go in, a JSON
object with title, description and script comes out.
"""

import re
from dataclasses import dataclass

from reelsmith.config.pipeline import ScriptQualityConfig
from reelsmith.core.config import settings
from reelsmith.core.exceptions import ContentGenerationError
from reelsmith.core.logging import get_logger
from reelsmith.infrastructure.llm import LLMClient, LLMConfig, LLMError
from reelsmith.prompts.manager import PromptManager, PromptType
from reelsmith.services.rotation.selectors import OpeningHook
from reelsmith.services.script.utils import extract_json_object

logger = get_logger(__name__)

_TAG_RE = re.compile(r"\[.*?\]")
_ELLIPSIS_RE = re.compile(r"\.\.\.")


def count_words(script: str) -> int:
    """Count spoken words, ignoring ``[tags]`` and ellipses."""
    cleaned = _ELLIPSIS_RE.sub(" ", _TAG_RE.sub("", script))
    return len(cleaned.split())


@dataclass
class ScriptCandidate:
    """One generated narration.

    Attributes:
        title: Video title
        description: Video description
        script: Narration with audio tags
        word_count: Spoken word count
    """

    title: str
    description: str
    script: str
    word_count: int


class ScriptGenerator:
    """Generate narration candidates with the LLM.

    Example:
        >>> generator = ScriptGenerator(llm_client, prompt_manager)
        >>> candidate = await generator.generate("Patience", "Waiting as trust", hook)
    """

    def __init__(
        self,
        llm_client: LLMClient,
        prompt_manager: PromptManager,
        config: ScriptQualityConfig | None = None,
        model: str | None = None,
    ) -> None:
        self.llm_client = llm_client
        self.prompt_manager = prompt_manager
        self.config = config or ScriptQualityConfig()
        self.model = model or settings.llm_model_script

    def require_credentials(self) -> None:
        """Raise MissingCredentialsError before any side effect of a run."""
        self.llm_client.require_credentials()

    async def generate(
        self,
        theme_name: str,
        theme_description: str,
        opening_hook: OpeningHook,
    ) -> ScriptCandidate:
        """Generate one candidate.

        Args:
            theme_name: Topic name
            theme_description: Topic guidance
            opening_hook: Opening style to use

        Returns:
            Parsed candidate

        Raises:
            ContentGenerationError: If the LLM fails or the script is too short
        """
        prompt = self.prompt_manager.render(
            PromptType.SCRIPT_GENERATION,
            theme_name=theme_name,
            theme_description=theme_description,
            opening_hook_name=opening_hook.name,
            opening_hook_instruction=opening_hook.instruction,
        )
        llm_config = LLMConfig(
            model=prompt.llm_settings.model or self.model,
            max_tokens=prompt.llm_settings.max_tokens,
            temperature=prompt.llm_settings.temperature,
        )

        logger.info(
            "Generating script",
            theme=theme_name,
            opening_hook=opening_hook.key,
            model=llm_config.model,
        )
        try:
            content = await self.llm_client.chat(llm_config, prompt.system, prompt.user)
        except LLMError as e:
            raise ContentGenerationError(
                f"Script generation failed: {e}",
                stage="script",
                model=llm_config.model,
            ) from e

        candidate = self.parse_response(content, theme_name)
        if len(candidate.script) < self.config.min_script_length:
            raise ContentGenerationError(
                "Generated script is too short",
                stage="script",
                model=llm_config.model,
            )

        logger.info("Script generated", theme=theme_name, word_count=candidate.word_count)
        return candidate

    @staticmethod
    def parse_response(content: str, fallback_title: str) -> ScriptCandidate:
        """Turn an LLM response into a candidate.

        A response without a usable JSON object is taken as the bare script,
        titled after the theme.
        """
        try:
            data = extract_json_object(content)
        except ValueError:
            logger.warning("Script response is not JSON, using raw text")
            data = {}

        script = str(data.get("script") or "").strip() if data else content.strip()
        title = str(data.get("title") or fallback_title).strip()
        description = str(data.get("description") or "").strip()
        return ScriptCandidate(
            title=title,
            description=description,
            script=script,
            word_count=count_words(script),
        )


__all__ = [
    "ScriptCandidate",
    "ScriptGenerator",
    "count_words",
]
