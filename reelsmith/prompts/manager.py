"""Prompt template manager.

Templates are YAML files holding a system prompt, a Mako user template and
the sampling settings for that task. The model itself comes from the
application config unless a template pins one.
"""

from enum import Enum
from pathlib import Path
from typing import Any

import yaml
from mako.template import Template
from pydantic import BaseModel, ConfigDict

from reelsmith.core.logging import get_logger

logger = get_logger(__name__)


class PromptType(str, Enum):
    """Available prompt templates (file stem under ``templates/``)."""

    SCRIPT_GENERATION = "script_generation"
    SCRIPT_VALIDATION = "script_validation"
    IMAGE_PROMPTS = "image_prompts"


class LLMSettings(BaseModel):
    """Sampling settings declared by a template."""

    model_config = ConfigDict(frozen=True)

    model: str | None = None
    max_tokens: int = 1000
    temperature: float = 0.7


class PromptTemplate(BaseModel):
    """Parsed template file."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str
    description: str
    system: str
    template: str
    llm_settings: LLMSettings = LLMSettings()


class RenderedPrompt(BaseModel):
    """System and user messages ready to send."""

    system: str
    user: str
    llm_settings: LLMSettings


class PromptManager:
    """Loads, caches and renders prompt templates.

    Usage:
        >>> manager = PromptManager()
        >>> prompt = manager.render(
        ...     PromptType.SCRIPT_VALIDATION,
        ...     title="Title",
        ...     description="Description",
        ...     script="Script text",
        ... )
        >>> prompt.user
    """

    def __init__(self, prompts_dir: Path | None = None):
        """Initialize prompt manager.

        Args:
            prompts_dir: Directory of template files (defaults to the bundled ones)
        """
        self.prompts_dir = prompts_dir or Path(__file__).parent / "templates"
        self._cache: dict[PromptType, PromptTemplate] = {}

    def load(self, prompt_type: PromptType) -> PromptTemplate:
        """Load a template, using the cache when possible.

        Raises:
            FileNotFoundError: If the template file doesn't exist
            ValueError: If the YAML is invalid or a field is missing
        """
        if prompt_type in self._cache:
            return self._cache[prompt_type]

        yaml_file = self.prompts_dir / f"{prompt_type.value}.yaml"
        if not yaml_file.exists():
            raise FileNotFoundError(f"Prompt file not found: {yaml_file}")

        try:
            with open(yaml_file, encoding="utf-8") as f:
                data = yaml.safe_load(f)

            template = PromptTemplate(
                name=data["name"],
                version=str(data["version"]),
                description=data["description"],
                system=data["system"],
                template=data["template"],
                llm_settings=LLMSettings(
                    model=data.get("model"),
                    max_tokens=data.get("max_tokens", 1000),
                    temperature=data.get("temperature", 0.7),
                ),
            )
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid YAML in {yaml_file}: {e}") from e
        except KeyError as e:
            raise ValueError(f"Missing required field in {yaml_file}: {e}") from e

        self._cache[prompt_type] = template
        logger.debug("Loaded prompt template", type=prompt_type.value, version=template.version)
        return template

    def render(self, prompt_type: PromptType, **variables: Any) -> RenderedPrompt:
        """Render a template's user message.

        Args:
            prompt_type: Template to render
            **variables: Values for the Mako template

        Returns:
            System prompt, rendered user prompt and sampling settings

        Raises:
            ValueError: If rendering fails (e.g. a variable is missing)
        """
        template_obj = self.load(prompt_type)
        try:
            user = Template(template_obj.template, strict_undefined=True).render(**variables)
        except Exception as e:
            raise ValueError(f"Failed to render {prompt_type.value} template: {e}") from e

        return RenderedPrompt(
            system=template_obj.system.strip(),
            user=str(user).strip(),
            llm_settings=template_obj.llm_settings,
        )

    def get_llm_settings(self, prompt_type: PromptType) -> LLMSettings:
        return self.load(prompt_type).llm_settings

    def clear_cache(self) -> None:
        """Forget loaded templates so edits on disk are picked up."""
        self._cache.clear()


__all__ = [
    "LLMSettings",
    "PromptManager",
    "PromptTemplate",
    "PromptType",
    "RenderedPrompt",
]
