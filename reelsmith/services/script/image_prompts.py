"""Image prompt writing for AI image videos."""

from typing import Any

from pydantic import BaseModel, ValidationError

from reelsmith.config.generation import ImagePromptConfig
from reelsmith.core.config import settings
from reelsmith.core.exceptions import ContentGenerationError
from reelsmith.core.logging import get_logger
from reelsmith.infrastructure.llm import LLMClient, LLMConfig, LLMError
from reelsmith.prompts.manager import PromptManager, PromptType
from reelsmith.services.rotation.selectors import ColorScheme
from reelsmith.services.script.utils import extract_json_array

logger = get_logger(__name__)


class ImagePrompt(BaseModel):
    """One image to generate.

    Attributes:
        prompt: Text for the image model
        timing: Where in the video the image belongs
        description: How the image relates to the narration
    """

    prompt: str
    timing: str = "full"
    description: str = ""


def parse_image_prompts(content: str, expected: int) -> list[ImagePrompt]:
    """Parse the writer's JSON array.

    Raises:
        ValueError: If the array is missing, malformed or of the wrong length
    """
    items = extract_json_array(content)
    if len(items) != expected:
        raise ValueError(f"Expected exactly {expected} image prompt(s), got {len(items)}")
    try:
        prompts = [ImagePrompt.model_validate(item) for item in items]
    except ValidationError as e:
        raise ValueError(f"Malformed image prompt: {e}") from e
    if any(not p.prompt.strip() for p in prompts):
        raise ValueError("Empty image prompt")
    return prompts


class ImagePromptWriter:
    """Asks the LLM for image prompts in a given colour scheme.

    Example:
        >>> writer = ImagePromptWriter(llm_client, prompt_manager)
        >>> prompts = await writer.write(script, "Patience", scheme)
    """

    def __init__(
        self,
        llm_client: LLMClient,
        prompt_manager: PromptManager,
        config: ImagePromptConfig | None = None,
        model: str | None = None,
    ) -> None:
        self.llm_client = llm_client
        self.prompt_manager = prompt_manager
        self.config = config or ImagePromptConfig()
        self.model = model or settings.llm_model_image_prompts

    async def write(
        self,
        script: str,
        theme_name: str,
        scheme: ColorScheme,
    ) -> list[ImagePrompt]:
        """Write ``config.image_count`` prompts for a narration.

        Args:
            script: Accepted narration
            theme_name: Topic name
            scheme: Colour scheme the images must follow

        Returns:
            Parsed prompts

        Raises:
            ContentGenerationError: If the call fails or the answer is unusable
        """
        prompt = self.prompt_manager.render(
            PromptType.IMAGE_PROMPTS,
            script=script,
            theme_name=theme_name,
            scheme_name=scheme.name,
            scheme_colors=scheme.colors,
            scheme_lighting=scheme.lighting,
            scheme_mood=scheme.mood,
            image_count=self.config.image_count,
        )
        llm_config = LLMConfig(
            model=prompt.llm_settings.model or self.model,
            max_tokens=prompt.llm_settings.max_tokens,
            temperature=prompt.llm_settings.temperature,
        )

        logger.info("Writing image prompts", theme=theme_name, color_scheme=scheme.name)
        try:
            content = await self.llm_client.chat(llm_config, prompt.system, prompt.user)
            prompts = parse_image_prompts(content, self.config.image_count)
        except LLMError as e:
            raise ContentGenerationError(
                f"Image prompt request failed: {e}", stage="image_prompts", model=llm_config.model
            ) from e
        except ValueError as e:
            raise ContentGenerationError(
                f"Failed to parse image prompts: {e}", stage="image_prompts", model=llm_config.model
            ) from e

        logger.info("Image prompts written", count=len(prompts))
        return prompts

    @staticmethod
    def to_json(prompts: list[ImagePrompt]) -> list[dict[str, Any]]:
        return [p.model_dump() for p in prompts]


__all__ = [
    "ImagePrompt",
    "ImagePromptWriter",
    "parse_image_prompts",
]
