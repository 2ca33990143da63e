"""Custom exceptions for Reelsmith.

Every exception raised by the application derives from ReelsmithError and
carries a ``context`` dictionary that ends up in structured log events.

The hierarchy doubles as the failure taxonomy of the pipeline:
configuration errors fail fast and are never retried, external service
errors are transient and retried by the job queue, and scheduling
conflicts are retried inside the scheduler before they escalate.
"""

from typing import Any


class ReelsmithError(Exception):
    """Base exception for all Reelsmith errors.

    Attributes:
        context: Dictionary with additional error context

    Example:
        >>> try:
        ...     raise ReelsmithError("Render failed", context={"content_item_id": "abc"})
        ... except ReelsmithError as e:
        ...     print(e.to_dict())
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None) -> None:
        """Initialize ReelsmithError.

        Args:
            message: Error message
            context: Optional dictionary with additional context
        """
        self.context = context or {}
        super().__init__(message)

    def with_context(self, **kwargs: Any) -> "ReelsmithError":
        """Attach more context to the exception.

        Args:
            **kwargs: Key-value pairs merged into context

        Returns:
            Self for chaining
        """
        self.context.update(kwargs)
        return self

    def to_dict(self) -> dict[str, Any]:
        """Serialize the exception for structured logging.

        Returns:
            Dictionary with error type, message, and context
        """
        return {
            "error_type": self.__class__.__name__,
            "message": str(self),
            "context": self.context,
        }


# ============================================
# Database Errors
# ============================================


class DatabaseError(ReelsmithError):
    """Base exception for database-related errors."""

    def __init__(
        self,
        message: str,
        context: dict[str, Any] | None = None,
        operation: str | None = None,
    ) -> None:
        """Initialize DatabaseError.

        Args:
            message: Error message
            context: Additional context
            operation: Database operation that failed (e.g. "upsert")
        """
        ctx = context or {}
        if operation:
            ctx["operation"] = operation
        super().__init__(message, context=ctx)


class RecordNotFoundError(DatabaseError):
    """Raised when a row looked up by id does not exist."""

    def __init__(
        self,
        model: str,
        record_id: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize RecordNotFoundError.

        Args:
            model: Name of the model class
            record_id: ID that was not found
            context: Additional context
        """
        ctx = context or {}
        ctx.update({"model": model, "record_id": record_id})
        super().__init__(f"{model} with id={record_id} not found", context=ctx)
        self.model = model
        self.record_id = record_id


# ============================================
# Configuration Errors
# ============================================


class ConfigError(ReelsmithError):
    """Base exception for configuration problems.

    Configuration errors are permanent: retrying the same job cannot fix a
    missing API key, so the pipeline records them immediately.
    """

    def __init__(
        self,
        message: str,
        config_key: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize ConfigError.

        Args:
            message: Error message
            config_key: Setting that is missing or invalid
            context: Additional context
        """
        ctx = context or {}
        if config_key:
            ctx["config_key"] = config_key
        self.config_key = config_key
        super().__init__(message, context=ctx)


class MissingCredentialsError(ConfigError):
    """Raised when an external service has no usable credentials or account."""

    def __init__(
        self,
        service: str,
        message: str | None = None,
        config_key: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize MissingCredentialsError.

        Args:
            service: Service whose credentials are missing (e.g. "publer")
            message: Optional override for the default message
            config_key: Setting that should provide the credential
            context: Additional context
        """
        ctx = context or {}
        ctx["service"] = service
        self.service = service
        super().__init__(
            message or f"{service} is not configured",
            config_key=config_key,
            context=ctx,
        )


# ============================================
# Service Errors
# ============================================


class ServiceError(ReelsmithError):
    """Base exception for failures of external collaborators."""

    def __init__(
        self,
        message: str,
        service_name: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize ServiceError.

        Args:
            message: Error message
            service_name: Name of the service
            context: Additional context
        """
        ctx = context or {}
        if service_name:
            ctx["service_name"] = service_name
        super().__init__(message, context=ctx)


class ExternalAPIError(ServiceError):
    """Raised when an HTTP API responds with an error or cannot be reached.

    Attributes:
        service: Name of the external service
        status_code: HTTP status code, if a response was received
        endpoint: Endpoint that was called
    """

    def __init__(
        self,
        service: str,
        message: str,
        status_code: int | None = None,
        endpoint: str | None = None,
        response_body: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize ExternalAPIError.

        Args:
            service: Name of the external service
            message: Error message
            status_code: HTTP status code
            endpoint: API endpoint
            response_body: Response body, truncated to 500 characters
            context: Additional context
        """
        ctx = context or {}
        ctx["service"] = service
        if status_code is not None:
            ctx["status_code"] = status_code
        if endpoint:
            ctx["endpoint"] = endpoint
        if response_body:
            ctx["response_body"] = response_body[:500]

        self.service = service
        self.status_code = status_code
        self.endpoint = endpoint

        super().__init__(f"{service} API error: {message}", service_name=service, context=ctx)


# ============================================
# Content Errors
# ============================================


class ContentError(ReelsmithError):
    """Base exception for content item processing errors."""

    def __init__(
        self,
        message: str,
        content_item_id: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize ContentError.

        Args:
            message: Error message
            content_item_id: Content item being processed
            context: Additional context
        """
        ctx = context or {}
        if content_item_id:
            ctx["content_item_id"] = content_item_id
        super().__init__(message, context=ctx)


class ContentGenerationError(ContentError):
    """Raised when script, prompt or metadata generation fails.

    Attributes:
        stage: Generation stage that failed
        model: Model used for generation
    """

    def __init__(
        self,
        message: str,
        stage: str | None = None,
        model: str | None = None,
        content_item_id: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize ContentGenerationError.

        Args:
            message: Error message
            stage: Generation stage (e.g. "script", "image_prompts", "parsing")
            model: Model used
            content_item_id: Content item being processed
            context: Additional context
        """
        ctx = context or {}
        if stage:
            ctx["stage"] = stage
        if model:
            ctx["model"] = model
        self.stage = stage
        self.model = model
        super().__init__(message, content_item_id=content_item_id, context=ctx)


class PipelineStepError(ContentError):
    """Raised when a step cannot run because a prerequisite artifact is missing.

    These failures are permanent for the current state of the item and are
    recorded on the first attempt.
    """

    def __init__(
        self,
        step: str,
        missing: str,
        content_item_id: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize PipelineStepError.

        Args:
            step: Step that was attempted
            missing: Name of the missing prerequisite
            content_item_id: Content item being processed
            context: Additional context
        """
        ctx = context or {}
        ctx.update({"step": step, "missing": missing})
        self.step = step
        self.missing = missing
        super().__init__(
            f"Cannot run {step}: {missing} is missing",
            content_item_id=content_item_id,
            context=ctx,
        )


class InvalidStateError(ContentError):
    """Raised when an operation is requested in a status that forbids it."""

    def __init__(
        self,
        message: str,
        status: str | None = None,
        content_item_id: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize InvalidStateError.

        Args:
            message: Error message
            status: Current status of the record
            content_item_id: Content item involved
            context: Additional context
        """
        ctx = context or {}
        if status:
            ctx["status"] = status
        self.status = status
        super().__init__(message, content_item_id=content_item_id, context=ctx)


# ============================================
# Video Generation Errors
# ============================================


class VideoError(ReelsmithError):
    """Base exception for media generation errors."""

    def __init__(
        self,
        message: str,
        content_item_id: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize VideoError.

        Args:
            message: Error message
            content_item_id: Content item being processed
            context: Additional context
        """
        ctx = context or {}
        if content_item_id:
            ctx["content_item_id"] = content_item_id
        super().__init__(message, context=ctx)


class TTSError(VideoError):
    """Raised when speech synthesis fails."""

    def __init__(
        self,
        message: str,
        engine: str | None = None,
        voice_id: str | None = None,
        content_item_id: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize TTSError.

        Args:
            message: Error message
            engine: TTS engine name
            voice_id: Voice ID
            content_item_id: Content item being processed
            context: Additional context
        """
        ctx = context or {}
        if engine:
            ctx["engine"] = engine
        if voice_id:
            ctx["voice_id"] = voice_id
        self.engine = engine
        self.voice_id = voice_id
        super().__init__(message, content_item_id=content_item_id, context=ctx)


class ImageGenerationError(VideoError):
    """Raised when an AI image cannot be generated or downloaded."""

    def __init__(
        self,
        message: str,
        model: str | None = None,
        prompt: str | None = None,
        content_item_id: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize ImageGenerationError.

        Args:
            message: Error message
            model: Image model
            prompt: Prompt that failed, truncated to 200 characters
            content_item_id: Content item being processed
            context: Additional context
        """
        ctx = context or {}
        if model:
            ctx["model"] = model
        if prompt:
            ctx["prompt"] = prompt[:200]
        super().__init__(message, content_item_id=content_item_id, context=ctx)


class VideoRenderError(VideoError):
    """Raised when FFmpeg exits unsuccessfully.

    Attributes:
        stage: Render stage that failed
        ffmpeg_error: Tail of FFmpeg's stderr
    """

    def __init__(
        self,
        message: str,
        stage: str | None = None,
        ffmpeg_error: str | None = None,
        content_item_id: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize VideoRenderError.

        Args:
            message: Error message
            stage: Render stage (e.g. "encode", "probe", "thumbnail")
            ffmpeg_error: FFmpeg stderr output
            content_item_id: Content item being processed
            context: Additional context
        """
        ctx = context or {}
        if stage:
            ctx["stage"] = stage
        if ffmpeg_error:
            ctx["ffmpeg_error"] = ffmpeg_error[-500:]
        self.stage = stage
        self.ffmpeg_error = ffmpeg_error
        super().__init__(message, content_item_id=content_item_id, context=ctx)


# ============================================
# Scheduling Errors
# ============================================


class SchedulingError(ReelsmithError):
    """Base exception for upload slot allocation errors."""


class SlotUnavailableError(SchedulingError):
    """Raised when no free slot exists within the scheduling horizon."""

    def __init__(self, horizon_days: int, context: dict[str, Any] | None = None) -> None:
        """Initialize SlotUnavailableError.

        Args:
            horizon_days: Number of days that were searched
            context: Additional context
        """
        ctx = context or {}
        ctx["horizon_days"] = horizon_days
        self.horizon_days = horizon_days
        super().__init__(f"No available slots in the next {horizon_days} days", context=ctx)


class SlotConflictError(SchedulingError):
    """Raised when a slot reservation keeps colliding with concurrent writers."""

    def __init__(self, attempts: int, context: dict[str, Any] | None = None) -> None:
        """Initialize SlotConflictError.

        Args:
            attempts: Reservation attempts made
            context: Additional context
        """
        ctx = context or {}
        ctx["attempts"] = attempts
        self.attempts = attempts
        super().__init__(
            f"Failed to reserve an upload slot after {attempts} attempts", context=ctx
        )


# ============================================
# Upload Errors
# ============================================


class UploadError(ReelsmithError):
    """Base exception for upload-related errors."""

    def __init__(
        self,
        message: str,
        schedule_id: str | None = None,
        platform: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize UploadError.

        Args:
            message: Error message
            schedule_id: Upload schedule being processed
            platform: Platform that failed, if specific to one
            context: Additional context
        """
        ctx = context or {}
        if schedule_id:
            ctx["schedule_id"] = schedule_id
        if platform:
            ctx["platform"] = platform
        super().__init__(message, context=ctx)


class UploadTimeoutError(UploadError):
    """Raised when the publishing job does not finish within the polling budget."""

    def __init__(
        self,
        polls: int,
        schedule_id: str | None = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        """Initialize UploadTimeoutError.

        Args:
            polls: Number of status polls performed
            schedule_id: Upload schedule being processed
            context: Additional context
        """
        ctx = context or {}
        ctx["polls"] = polls
        super().__init__("Upload timed out", schedule_id=schedule_id, context=ctx)
