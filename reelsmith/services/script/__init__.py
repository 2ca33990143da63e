"""Script generation, review and image prompt writing."""

from reelsmith.services.script.generator import ScriptCandidate, ScriptGenerator, count_words
from reelsmith.services.script.image_prompts import ImagePrompt, ImagePromptWriter
from reelsmith.services.script.quality_loop import (
    QualityLoopResult,
    ScriptQualityLoop,
    should_regenerate,
)
from reelsmith.services.script.validator import ScriptValidator, ValidationResult

__all__ = [
    "ImagePrompt",
    "ImagePromptWriter",
    "QualityLoopResult",
    "ScriptCandidate",
    "ScriptGenerator",
    "ScriptQualityLoop",
    "ScriptValidator",
    "ValidationResult",
    "count_words",
    "should_regenerate",
]
