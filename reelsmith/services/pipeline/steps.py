"""Pipeline step handlers.

Each handler receives a detached :class:`ContentItem` snapshot, performs
the external calls for its step and returns the column updates to persist.
Handlers never hold a database session across an external call; the
orchestrator writes the returned updates in its own transaction.
"""

from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import Any

from reelsmith.core.exceptions import PipelineStepError
from reelsmith.core.logging import get_logger
from reelsmith.models.content_item import ContentItem, PipelineStep, RenderMode
from reelsmith.services.generator.images import ImageGenerator
from reelsmith.services.generator.karaoke import CharacterAlignment, KaraokeSubtitleBuilder
from reelsmith.services.generator.render import VideoRenderer
from reelsmith.services.generator.tts import SpeechSynthesizer
from reelsmith.services.rotation.assets import AssetSelector
from reelsmith.services.rotation.selectors import OPENING_HOOKS, opening_hook_by_key
from reelsmith.services.rotation.topics import TopicRotator
from reelsmith.services.script.generator import ScriptCandidate, ScriptGenerator, count_words
from reelsmith.services.script.image_prompts import ImagePromptWriter
from reelsmith.services.script.quality_loop import ScriptQualityLoop

logger = get_logger(__name__)

StepUpdates = dict[str, Any]
StepHandler = Callable[[ContentItem], Awaitable[StepUpdates]]


def _require(item: ContentItem, step: PipelineStep, name: str, value: Any) -> Any:
    if not value:
        raise PipelineStepError(step.value, name, content_item_id=str(item.id))
    return value


def _require_file(item: ContentItem, step: PipelineStep, name: str, value: str | None) -> Path:
    path = Path(_require(item, step, name, value))
    if not path.exists():
        raise PipelineStepError(step.value, f"{name} file {path}", content_item_id=str(item.id))
    return path


def temp_artifacts(item: ContentItem) -> list[Path]:
    """Intermediate files of an item that are not needed after render."""
    paths = [item.audio_path, item.alignment_path, item.subtitle_path, *(item.image_paths or [])]
    return [Path(p) for p in paths if p]


class PipelineSteps:
    """Step handlers keyed by :class:`PipelineStep`.

    Example:
        >>> steps = PipelineSteps(topics, assets, generator, loop, ...)
        >>> updates = await steps.run(PipelineStep.GENERATE_AUDIO, item)
    """

    def __init__(
        self,
        topic_rotator: TopicRotator,
        asset_selector: AssetSelector,
        script_generator: ScriptGenerator,
        quality_loop: ScriptQualityLoop,
        image_prompt_writer: ImagePromptWriter,
        image_generator: ImageGenerator,
        speech_synthesizer: SpeechSynthesizer,
        subtitle_builder: KaraokeSubtitleBuilder,
        renderer: VideoRenderer,
        temp_dir: Path,
        output_dir: Path,
    ) -> None:
        self.topic_rotator = topic_rotator
        self.asset_selector = asset_selector
        self.script_generator = script_generator
        self.quality_loop = quality_loop
        self.image_prompt_writer = image_prompt_writer
        self.image_generator = image_generator
        self.speech_synthesizer = speech_synthesizer
        self.subtitle_builder = subtitle_builder
        self.renderer = renderer
        self.temp_dir = temp_dir
        self.output_dir = output_dir

        self._handlers: dict[PipelineStep, StepHandler] = {
            PipelineStep.GENERATE_SCRIPT: self.generate_script,
            PipelineStep.VALIDATE_SCRIPT: self.validate_script,
            PipelineStep.GENERATE_IMAGE_PROMPTS: self.generate_image_prompts,
            PipelineStep.GENERATE_IMAGES: self.generate_images,
            PipelineStep.GENERATE_AUDIO: self.generate_audio,
            PipelineStep.GENERATE_SUBTITLES: self.generate_subtitles,
            PipelineStep.RENDER: self.render,
        }

    async def run(self, step: PipelineStep, item: ContentItem) -> StepUpdates:
        """Execute one step for an item.

        Returns:
            Column name -> value to persist

        Raises:
            PipelineStepError: If a prerequisite artifact is missing
        """
        return await self._handlers[step](item)

    # ------------------------------------------------------------------
    # Script
    # ------------------------------------------------------------------

    async def generate_script(self, item: ContentItem) -> StepUpdates:
        # Rotation state must not advance for a run that cannot reach the LLM
        self.script_generator.require_credentials()
        topic = await self.topic_rotator.next_topic()
        hook = await self.asset_selector.next_opening_hook()
        candidate = await self.script_generator.generate(topic.name, topic.description, hook)
        logger.info(
            "Script generated",
            content_item_id=str(item.id),
            topic=topic.name,
            opening_hook=hook.key,
            word_count=candidate.word_count,
        )
        return {
            "topic_id": topic.id,
            "opening_hook": hook.key,
            "title": candidate.title,
            "description": candidate.description,
            "script": candidate.script,
            "script_word_count": candidate.word_count,
        }

    async def validate_script(self, item: ContentItem) -> StepUpdates:
        step = PipelineStep.VALIDATE_SCRIPT
        script = _require(item, step, "script", item.script)

        topic = item.topic
        theme_name = topic.name if topic else (item.title or "")
        theme_description = topic.description if topic else (item.description or "")
        hook = opening_hook_by_key(item.opening_hook or "") or OPENING_HOOKS[0]

        initial = ScriptCandidate(
            title=item.title or theme_name,
            description=item.description or "",
            script=script,
            word_count=item.script_word_count or count_words(script),
        )
        result = await self.quality_loop.run(theme_name, theme_description, hook, initial=initial)

        return {
            "title": result.candidate.title,
            "description": result.candidate.description,
            "script": result.candidate.script,
            "script_word_count": result.candidate.word_count,
            "validation_attempts": result.attempts,
            "validation_passed": result.passed,
            "validation_result": result.validation.to_dict(),
        }

    # ------------------------------------------------------------------
    # AI images
    # ------------------------------------------------------------------

    async def generate_image_prompts(self, item: ContentItem) -> StepUpdates:
        step = PipelineStep.GENERATE_IMAGE_PROMPTS
        script = _require(item, step, "script", item.script)
        theme_name = item.topic.name if item.topic else (item.title or "")

        scheme = await self.asset_selector.next_color_scheme()
        prompts = await self.image_prompt_writer.write(script, theme_name, scheme)
        return {
            "color_scheme": scheme.name,
            "image_prompts": ImagePromptWriter.to_json(prompts),
        }

    async def generate_images(self, item: ContentItem) -> StepUpdates:
        step = PipelineStep.GENERATE_IMAGES
        prompts = _require(item, step, "image_prompts", item.image_prompts)
        paths = await self.image_generator.generate_all(
            [p["prompt"] for p in prompts], str(item.id), self.temp_dir
        )
        return {"image_paths": [str(p) for p in paths]}

    # ------------------------------------------------------------------
    # Audio and subtitles
    # ------------------------------------------------------------------

    async def generate_audio(self, item: ContentItem) -> StepUpdates:
        step = PipelineStep.GENERATE_AUDIO
        script = _require(item, step, "script", item.script)
        result = await self.speech_synthesizer.synthesize(script, str(item.id), self.temp_dir)
        return {
            "audio_path": str(result.audio_path),
            "alignment_path": str(result.alignment_path),
            "audio_duration_ms": result.duration_ms,
        }

    async def generate_subtitles(self, item: ContentItem) -> StepUpdates:
        step = PipelineStep.GENERATE_SUBTITLES
        alignment_path = _require_file(item, step, "alignment", item.alignment_path)
        alignment = CharacterAlignment.load(alignment_path)
        path = self.subtitle_builder.write(alignment, self.temp_dir / f"{item.id}.ass")
        return {"subtitle_path": str(path)}

    # ------------------------------------------------------------------
    # Render
    # ------------------------------------------------------------------

    async def render(self, item: ContentItem) -> StepUpdates:
        step = PipelineStep.RENDER
        voice = _require_file(item, step, "audio", item.audio_path)
        subtitles = Path(item.subtitle_path) if item.subtitle_path else None
        output = self.output_dir / f"{item.id}.mp4"
        music = await self.asset_selector.next_music()

        if RenderMode(item.render_mode) == RenderMode.AI_IMAGES:
            images = [Path(p) for p in _require(item, step, "image_paths", item.image_paths)]
            overlay = await self.asset_selector.next_overlay()
            result = await self.renderer.render_ai_images(
                images=images,
                voice=voice,
                output=output,
                overlay=overlay,
                music=music,
                subtitles=subtitles,
            )
        else:
            background = _require_file(item, step, "background", item.background_path)
            result = await self.renderer.render_static(
                background=background,
                voice=voice,
                output=output,
                music=music,
                subtitles=subtitles,
            )

        return {
            "output_path": str(result.output_path),
            "thumbnail_path": str(result.thumbnail_path) if result.thumbnail_path else None,
        }


__all__ = [
    "PipelineSteps",
    "StepUpdates",
    "temp_artifacts",
]
