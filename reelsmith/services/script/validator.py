"""Independent LLM review of generated scripts.

The reviewer's answer is untrusted input. It is parsed into pydantic models
whose validators replace unknown enum values, wrong types and malformed
issues with documented defaults, so downstream policy code only ever sees a
well-formed :class:`ValidationResult`.
"""

from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator

from reelsmith.core.config import settings
from reelsmith.core.logging import get_logger
from reelsmith.infrastructure.llm import LLMClient, LLMConfig, LLMError
from reelsmith.prompts.manager import PromptManager, PromptType
from reelsmith.services.script.utils import extract_json_object

logger = get_logger(__name__)


class IssueType(str, Enum):
    TYPO = "typo"
    MADE_UP_WORD = "made-up-word"
    COHERENCE = "coherence"
    CLARITY = "clarity"


class IssueSeverity(str, Enum):
    CRITICAL = "critical"
    MAJOR = "major"
    MINOR = "minor"


class OverallQuality(str, Enum):
    EXCELLENT = "excellent"
    GOOD = "good"
    FAIR = "fair"
    POOR = "poor"


class Recommendation(str, Enum):
    ACCEPT = "accept"
    REVISE = "revise"
    REGENERATE = "regenerate"


def _coerce_enum(value: Any, enum_cls: type[Enum], default: Enum) -> Enum:
    if isinstance(value, enum_cls):
        return value
    if isinstance(value, str):
        try:
            return enum_cls(value.strip().lower())
        except ValueError:
            return default
    return default


def _coerce_text(value: Any) -> str:
    if value is None:
        return ""
    return value if isinstance(value, str) else str(value)


class ValidationIssue(BaseModel):
    """One problem found by the reviewer.

    Unknown types default to ``clarity`` and unknown severities to ``minor``.
    """

    type: IssueType = IssueType.CLARITY
    severity: IssueSeverity = IssueSeverity.MINOR
    location: str = ""
    issue: str = ""
    suggestion: str = ""

    @field_validator("type", mode="before")
    @classmethod
    def _sanitize_type(cls, v: Any) -> IssueType:
        return _coerce_enum(v, IssueType, IssueType.CLARITY)  # type: ignore[return-value]

    @field_validator("severity", mode="before")
    @classmethod
    def _sanitize_severity(cls, v: Any) -> IssueSeverity:
        return _coerce_enum(v, IssueSeverity, IssueSeverity.MINOR)  # type: ignore[return-value]

    @field_validator("location", "issue", "suggestion", mode="before")
    @classmethod
    def _sanitize_text(cls, v: Any) -> str:
        return _coerce_text(v)


class ValidationResult(BaseModel):
    """Sanitized reviewer verdict.

    Attributes:
        is_valid: Reviewer's pass/fail flag
        overall_quality: Coarse quality grade
        issues: Problems found, malformed entries dropped
        summary: One-line summary
        recommendation: accept, revise or regenerate
    """

    model_config = ConfigDict(populate_by_name=True)

    is_valid: bool = Field(
        default=False, validation_alias=AliasChoices("is_valid", "isValid")
    )
    overall_quality: OverallQuality = Field(
        default=OverallQuality.FAIR,
        validation_alias=AliasChoices("overall_quality", "overallQuality"),
    )
    issues: list[ValidationIssue] = Field(default_factory=list)
    summary: str = ""
    recommendation: Recommendation = Recommendation.ACCEPT

    @field_validator("is_valid", mode="before")
    @classmethod
    def _sanitize_is_valid(cls, v: Any) -> bool:
        if isinstance(v, bool):
            return v
        if isinstance(v, str):
            return v.strip().lower() == "true"
        return False

    @field_validator("overall_quality", mode="before")
    @classmethod
    def _sanitize_quality(cls, v: Any) -> OverallQuality:
        return _coerce_enum(v, OverallQuality, OverallQuality.FAIR)  # type: ignore[return-value]

    @field_validator("recommendation", mode="before")
    @classmethod
    def _sanitize_recommendation(cls, v: Any) -> Recommendation:
        return _coerce_enum(v, Recommendation, Recommendation.ACCEPT)  # type: ignore[return-value]

    @field_validator("issues", mode="before")
    @classmethod
    def _sanitize_issues(cls, v: Any) -> list[dict[str, Any]]:
        if not isinstance(v, list):
            return []
        return [item for item in v if isinstance(item, dict | ValidationIssue)]

    @field_validator("summary", mode="before")
    @classmethod
    def _sanitize_summary(cls, v: Any) -> str:
        return _coerce_text(v)

    @classmethod
    def failed(cls, reason: str) -> "ValidationResult":
        """Safe default used when the review itself could not be obtained."""
        return cls(
            is_valid=False,
            overall_quality=OverallQuality.FAIR,
            issues=[],
            summary=f"Validation failed: {reason}",
            recommendation=Recommendation.ACCEPT,
        )

    def count(self, severity: IssueSeverity) -> int:
        return sum(1 for issue in self.issues if issue.severity == severity)

    def to_dict(self) -> dict[str, Any]:
        """JSON-ready form for persisting on the content item."""
        return self.model_dump(mode="json")


def parse_validation(content: str) -> ValidationResult:
    """Parse a reviewer response, falling back to the safe default.

    Args:
        content: Raw LLM response

    Returns:
        Sanitized result; never raises
    """
    try:
        data = extract_json_object(content)
        return ValidationResult.model_validate(data)
    except (ValueError, ValidationError) as e:
        logger.warning("Unparseable validation response", error=str(e))
        return ValidationResult.failed(str(e))


class ScriptValidator:
    """Reviews scripts with a second, low-temperature LLM call.

    Example:
        >>> validator = ScriptValidator(llm_client, prompt_manager)
        >>> result = await validator.validate(title, description, script)
        >>> result.recommendation
        <Recommendation.ACCEPT: 'accept'>
    """

    def __init__(
        self,
        llm_client: LLMClient,
        prompt_manager: PromptManager,
        model: str | None = None,
    ) -> None:
        self.llm_client = llm_client
        self.prompt_manager = prompt_manager
        self.model = model or settings.llm_model_validation

    async def validate(self, title: str, description: str, script: str) -> ValidationResult:
        """Review a script.

        A failed LLM call is not an error here: it yields
        :meth:`ValidationResult.failed`, which recommends accepting.

        Args:
            title: Candidate title
            description: Candidate description
            script: Candidate narration

        Returns:
            Sanitized review
        """
        prompt = self.prompt_manager.render(
            PromptType.SCRIPT_VALIDATION,
            title=title,
            description=description,
            script=script,
        )
        llm_config = LLMConfig(
            model=prompt.llm_settings.model or self.model,
            max_tokens=prompt.llm_settings.max_tokens,
            temperature=prompt.llm_settings.temperature,
        )

        try:
            content = await self.llm_client.chat(llm_config, prompt.system, prompt.user)
        except LLMError as e:
            logger.warning("Validation request failed", error=str(e))
            return ValidationResult.failed(str(e))

        result = parse_validation(content)
        logger.info(
            "Script validated",
            is_valid=result.is_valid,
            quality=result.overall_quality.value,
            issue_count=len(result.issues),
            recommendation=result.recommendation.value,
        )
        serious = [
            i for i in result.issues if i.severity in (IssueSeverity.CRITICAL, IssueSeverity.MAJOR)
        ]
        if serious:
            logger.warning(
                "Serious script issues found",
                issues=[i.model_dump(mode="json") for i in serious],
            )
        return result


__all__ = [
    "IssueSeverity",
    "IssueType",
    "OverallQuality",
    "Recommendation",
    "ScriptValidator",
    "ValidationIssue",
    "ValidationResult",
    "parse_validation",
]
