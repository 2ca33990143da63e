"""Unit tests for the exception hierarchy."""

from reelsmith.core.exceptions import (
    ConfigError,
    ExternalAPIError,
    MissingCredentialsError,
    PipelineStepError,
    RecordNotFoundError,
    ReelsmithError,
    SlotConflictError,
    SlotUnavailableError,
    UploadError,
    UploadTimeoutError,
    VideoRenderError,
)


class TestReelsmithError:
    """Tests for the base exception."""

    def test_message_and_context(self):
        """Test message is the str() and context defaults to empty."""
        error = ReelsmithError("boom")
        assert str(error) == "boom"
        assert error.context == {}

    def test_with_context_chains(self):
        """Test with_context merges keys and returns self."""
        error = ReelsmithError("boom", context={"a": 1})
        assert error.with_context(b=2) is error
        assert error.context == {"a": 1, "b": 2}

    def test_to_dict(self):
        """Test structured serialization."""
        data = ReelsmithError("boom", context={"k": "v"}).to_dict()
        assert data == {"error_type": "ReelsmithError", "message": "boom", "context": {"k": "v"}}


class TestSpecificErrors:
    """Tests for subclasses carrying extra fields."""

    def test_record_not_found(self):
        """Test model and id are in the message and context."""
        error = RecordNotFoundError("ContentItem", "abc")
        assert "ContentItem with id=abc not found" in str(error)
        assert error.context["record_id"] == "abc"

    def test_missing_credentials_is_config_error(self):
        """Test credential errors belong to the configuration family."""
        error = MissingCredentialsError("publer", config_key="PUBLER_API_KEY")
        assert isinstance(error, ConfigError)
        assert str(error) == "publer is not configured"
        assert error.context == {"service": "publer", "config_key": "PUBLER_API_KEY"}

    def test_external_api_error_truncates_body(self):
        """Test response bodies are truncated to 500 characters."""
        error = ExternalAPIError("fal", "bad", status_code=500, response_body="x" * 900)
        assert str(error) == "fal API error: bad"
        assert error.status_code == 500
        assert len(error.context["response_body"]) == 500

    def test_pipeline_step_error_message(self):
        """Test missing prerequisite message."""
        error = PipelineStepError("render", "audio_path", content_item_id="id-1")
        assert str(error) == "Cannot run render: audio_path is missing"
        assert error.context["content_item_id"] == "id-1"

    def test_render_error_keeps_stderr_tail(self):
        """Test only the last 500 characters of stderr go into context."""
        stderr = "a" * 100 + "b" * 500
        error = VideoRenderError("failed", stage="encode", ffmpeg_error=stderr)
        assert error.context["ffmpeg_error"] == "b" * 500

    def test_scheduling_errors(self):
        """Test scheduling errors carry their counts."""
        assert SlotUnavailableError(30).horizon_days == 30
        assert "after 5 attempts" in str(SlotConflictError(5))

    def test_upload_timeout_is_upload_error(self):
        """Test timeouts are upload errors with the poll count."""
        error = UploadTimeoutError(60, schedule_id="s-1")
        assert isinstance(error, UploadError)
        assert error.context == {"polls": 60, "schedule_id": "s-1"}
