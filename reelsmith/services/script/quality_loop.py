"""Bounded generate/validate loop.

A candidate is regenerated only while attempts remain; after the last
attempt the most recent candidate is accepted whatever the review says.
"""

from dataclasses import dataclass

from reelsmith.config.pipeline import ScriptQualityConfig
from reelsmith.core.logging import get_logger
from reelsmith.services.rotation.selectors import OpeningHook
from reelsmith.services.script.generator import ScriptCandidate, ScriptGenerator
from reelsmith.services.script.validator import (
    IssueSeverity,
    Recommendation,
    ScriptValidator,
    ValidationResult,
)

logger = get_logger(__name__)


def regeneration_reason(result: ValidationResult, major_threshold: int = 2) -> str | None:
    """Why a review calls for a new candidate, if it does.

    Checked in order: an explicit ``regenerate`` recommendation, any
    critical issue, then ``major_threshold`` or more major issues (even when
    the reviewer recommends accepting).

    Returns:
        Short reason, or None when the candidate is acceptable
    """
    if result.recommendation == Recommendation.REGENERATE:
        return "recommendation"
    if result.count(IssueSeverity.CRITICAL) > 0:
        return "critical_issue"
    if result.count(IssueSeverity.MAJOR) >= major_threshold:
        return "major_issues"
    return None


def should_regenerate(
    result: ValidationResult,
    attempt: int,
    max_attempts: int,
    major_threshold: int = 2,
) -> bool:
    """Decide whether to generate another candidate.

    Args:
        result: Review of the current candidate
        attempt: 1-based number of the current candidate
        max_attempts: Candidates allowed in total
        major_threshold: Major issues that force a regeneration

    Returns:
        True only if attempts remain and the review calls for it
    """
    if attempt >= max_attempts:
        return False
    return regeneration_reason(result, major_threshold) is not None


@dataclass
class QualityLoopResult:
    """Accepted candidate with its review.

    Attributes:
        candidate: Accepted script
        validation: Review of the accepted script
        attempts: Candidates generated, the initial one included
    """

    candidate: ScriptCandidate
    validation: ValidationResult
    attempts: int

    @property
    def passed(self) -> bool:
        return self.validation.is_valid


class ScriptQualityLoop:
    """Runs generation and review until a candidate is accepted.

    Example:
        >>> loop = ScriptQualityLoop(generator, validator)
        >>> result = await loop.run("Patience", "Waiting as trust", hook)
        >>> result.attempts
        1
    """

    def __init__(
        self,
        generator: ScriptGenerator,
        validator: ScriptValidator,
        config: ScriptQualityConfig | None = None,
    ) -> None:
        self.generator = generator
        self.validator = validator
        self.config = config or ScriptQualityConfig()

    async def run(
        self,
        theme_name: str,
        theme_description: str,
        opening_hook: OpeningHook,
        initial: ScriptCandidate | None = None,
    ) -> QualityLoopResult:
        """Validate, regenerating while the policy asks for it.

        Args:
            theme_name: Topic name for regenerations
            theme_description: Topic guidance for regenerations
            opening_hook: Opening style for regenerations
            initial: Already generated first candidate, if any

        Returns:
            The accepted candidate, its review and the attempt count

        Raises:
            ContentGenerationError: If a generation call fails
        """
        candidate = initial or await self.generator.generate(
            theme_name, theme_description, opening_hook
        )
        attempt = 1

        while True:
            validation = await self.validator.validate(
                candidate.title, candidate.description, candidate.script
            )
            if not should_regenerate(
                validation,
                attempt,
                self.config.max_attempts,
                self.config.major_issue_threshold,
            ):
                break

            logger.info(
                "Regenerating script",
                attempt=attempt + 1,
                max_attempts=self.config.max_attempts,
                reason=regeneration_reason(validation, self.config.major_issue_threshold),
            )
            candidate = await self.generator.generate(theme_name, theme_description, opening_hook)
            attempt += 1

        logger.info(
            "Script accepted",
            attempts=attempt,
            is_valid=validation.is_valid,
            recommendation=validation.recommendation.value,
        )
        return QualityLoopResult(candidate=candidate, validation=validation, attempts=attempt)


__all__ = [
    "QualityLoopResult",
    "ScriptQualityLoop",
    "regeneration_reason",
    "should_regenerate",
]
