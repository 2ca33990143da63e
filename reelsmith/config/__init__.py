"""Typed component configuration models."""

from reelsmith.config.generation import ImageGenerationConfig, ImagePromptConfig, TTSConfig
from reelsmith.config.pipeline import QueueConfig, ScriptQualityConfig
from reelsmith.config.render import EncoderConfig, LightRaysConfig, RenderConfig
from reelsmith.config.schedule import ScheduleConfig
from reelsmith.config.subtitle import ASSStyleConfig, KaraokeConfig
from reelsmith.config.upload import PublishConfig

__all__ = [
    # Pipeline
    "QueueConfig",
    "ScriptQualityConfig",
    # Generation
    "TTSConfig",
    "ImageGenerationConfig",
    "ImagePromptConfig",
    # Render
    "RenderConfig",
    "EncoderConfig",
    "LightRaysConfig",
    "KaraokeConfig",
    "ASSStyleConfig",
    # Publishing
    "ScheduleConfig",
    "PublishConfig",
]
