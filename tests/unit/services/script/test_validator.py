"""Unit tests for script validation parsing and the validator."""

import json

import pytest

from reelsmith.infrastructure.llm import LLMError
from reelsmith.services.script.validator import (
    IssueSeverity,
    IssueType,
    OverallQuality,
    Recommendation,
    ScriptValidator,
    ValidationResult,
    parse_validation,
)


class TestParseValidation:
    """Tests for the parse-then-sanitize boundary."""

    def test_well_formed_response(self):
        """Test a complete response parses unchanged."""
        content = json.dumps(
            {
                "is_valid": True,
                "overall_quality": "good",
                "issues": [
                    {
                        "type": "typo",
                        "severity": "minor",
                        "location": "line 1",
                        "issue": "teh",
                        "suggestion": "the",
                    }
                ],
                "summary": "Fine",
                "recommendation": "accept",
            }
        )
        result = parse_validation(content)

        assert result.is_valid is True
        assert result.overall_quality == OverallQuality.GOOD
        assert result.issues[0].type == IssueType.TYPO
        assert result.recommendation == Recommendation.ACCEPT

    def test_unknown_enums_replaced_by_defaults(self):
        """Test unknown values fall back to documented defaults."""
        content = json.dumps(
            {
                "is_valid": "TRUE",
                "overall_quality": "stellar",
                "issues": [{"type": "grammar", "severity": "blocker"}],
                "recommendation": "maybe",
            }
        )
        result = parse_validation(content)

        assert result.is_valid is True
        assert result.overall_quality == OverallQuality.FAIR
        assert result.issues[0].type == IssueType.CLARITY
        assert result.issues[0].severity == IssueSeverity.MINOR
        assert result.recommendation == Recommendation.ACCEPT

    def test_wrong_types_sanitized(self):
        """Test non-list issues and non-dict entries are dropped."""
        result = parse_validation(json.dumps({"is_valid": 1, "issues": "none", "summary": 5}))
        assert result.is_valid is False
        assert result.issues == []
        assert result.summary == "5"

        result = parse_validation(json.dumps({"issues": ["text", {"severity": "Major"}]}))
        assert len(result.issues) == 1
        assert result.issues[0].severity == IssueSeverity.MAJOR

    def test_camel_case_keys(self):
        """Test camelCase keys are accepted."""
        result = parse_validation('{"isValid": true, "overallQuality": "poor"}')
        assert result.is_valid is True
        assert result.overall_quality == OverallQuality.POOR

    def test_unparseable_yields_safe_default(self):
        """Test garbage yields is_valid false, fair, no issues, accept."""
        result = parse_validation("I could not review this.")

        assert result.is_valid is False
        assert result.overall_quality == OverallQuality.FAIR
        assert result.issues == []
        assert result.recommendation == Recommendation.ACCEPT

    def test_to_dict_is_json_ready(self):
        """Test persisted form uses plain strings."""
        data = ValidationResult.failed("x").to_dict()
        assert data["overall_quality"] == "fair"
        assert data["recommendation"] == "accept"


class TestScriptValidator:
    """Tests for ScriptValidator.validate."""

    @pytest.fixture
    def validator(self, mock_llm_client, mock_prompt_manager):
        """Create a validator with mocked collaborators."""
        return ScriptValidator(mock_llm_client, mock_prompt_manager, model="test/model")

    @pytest.mark.asyncio
    async def test_validate_parses_response(self, validator, mock_llm_client):
        """Test the response is parsed into a result."""
        mock_llm_client.chat.return_value = (
            '```json\n{"is_valid": false, "issues": [{"severity": "critical"}],'
            ' "recommendation": "regenerate"}\n```'
        )

        result = await validator.validate("T", "D", "Script")

        assert result.recommendation == Recommendation.REGENERATE
        assert result.count(IssueSeverity.CRITICAL) == 1

    @pytest.mark.asyncio
    async def test_llm_failure_yields_safe_default(self, validator, mock_llm_client):
        """Test a failed call does not raise."""
        mock_llm_client.chat.side_effect = LLMError("down")

        result = await validator.validate("T", "D", "Script")

        assert result.is_valid is False
        assert result.recommendation == Recommendation.ACCEPT
        assert "down" in result.summary
