"""Unit tests for JSON extraction helpers."""

import pytest

from reelsmith.services.script.utils import extract_json_array, extract_json_object


class TestExtractJsonObject:
    """Tests for extract_json_object."""

    def test_fenced_block(self):
        """Test JSON inside a ```json fence."""
        text = 'Here you go:\n```json\n{"title": "A"}\n```\nEnjoy'
        assert extract_json_object(text) == {"title": "A"}

    def test_embedded_in_prose(self):
        """Test the outermost braces are found in free text."""
        assert extract_json_object('Sure! {"a": {"b": 1}} Done.') == {"a": {"b": 1}}

    def test_no_object_raises(self):
        """Test text without braces raises ValueError."""
        with pytest.raises(ValueError, match="No JSON object"):
            extract_json_object("no json here")

    def test_invalid_json_raises(self):
        """Test malformed JSON raises ValueError."""
        with pytest.raises(ValueError, match="Invalid JSON"):
            extract_json_object("{'single': quotes}")


class TestExtractJsonArray:
    """Tests for extract_json_array."""

    def test_fenced_array(self):
        """Test an array inside a fence."""
        assert extract_json_array('```\n[{"prompt": "x"}]\n```') == [{"prompt": "x"}]

    def test_missing_array_raises(self):
        """Test a response without an array raises ValueError."""
        with pytest.raises(ValueError):
            extract_json_array('{"prompt": "x"}')
