"""Media generation configuration models.

- Speech synthesis (ElevenLabs)
- AI image generation (fal.ai)
- Image prompt writing
"""

from pydantic import BaseModel, Field


class TTSConfig(BaseModel):
    """ElevenLabs synthesis settings.

    Attributes:
        model_id: ElevenLabs model
        stability: Voice stability (0-1)
        similarity_boost: Similarity to the reference voice (0-1)
        style: Style exaggeration (0-1)
        output_format: Audio encoding requested from the API
    """

    model_id: str = Field(default="eleven_v3", description="ElevenLabs model")
    stability: float = Field(default=0.5, ge=0.0, le=1.0)
    similarity_boost: float = Field(default=0.75, ge=0.0, le=1.0)
    style: float = Field(default=0.5, ge=0.0, le=1.0)
    output_format: str = Field(default="mp3_44100_128")


class ImageGenerationConfig(BaseModel):
    """fal.ai text-to-image settings.

    Attributes:
        endpoint: fal synchronous run URL root
        model: fal model path
        width: Image width
        height: Image height
        num_inference_steps: Sampler steps (schnell is tuned for 4)
        enable_safety_checker: Ask fal to filter outputs
        timeout: HTTP timeout in seconds
    """

    endpoint: str = Field(default="https://fal.run")
    model: str = Field(default="fal-ai/flux/schnell")
    width: int = Field(default=1080, ge=64)
    height: int = Field(default=1920, ge=64)
    num_inference_steps: int = Field(default=4, ge=1, le=50)
    enable_safety_checker: bool = Field(default=False)
    timeout: float = Field(default=120.0, gt=0)


class ImagePromptConfig(BaseModel):
    """How many stills an AI image render uses.

    Attributes:
        image_count: Prompts requested per video
    """

    image_count: int = Field(default=1, ge=1, le=12)


__all__ = [
    "ImageGenerationConfig",
    "ImagePromptConfig",
    "TTSConfig",
]
