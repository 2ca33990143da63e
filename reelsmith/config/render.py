"""Video render configuration models.

Output geometry, encoder settings, mixing levels and the optional visual
effects of AI image renders.
"""

from pydantic import BaseModel, Field


class LightRaysConfig(BaseModel):
    """Animated diagonal light bands drawn with ``geq``.

    Attributes:
        enabled: Apply the effect
        intensity: Peak luminance boost (0.12 = +12%)
        stripe_width: Band width in pixels
        speed: Band movement per frame, scaled by fps
    """

    enabled: bool = Field(default=False, description="Apply light rays")
    intensity: float = Field(default=0.12, ge=0.0, le=1.0)
    stripe_width: int = Field(default=150, ge=1)
    speed: float = Field(default=0.015, ge=0.0)


class EncoderConfig(BaseModel):
    """libx264/AAC output settings."""

    video_codec: str = Field(default="libx264")
    preset: str = Field(default="fast")
    crf: int = Field(default=23, ge=0, le=51)
    audio_codec: str = Field(default="aac")
    audio_bitrate: str = Field(default="192k")


class RenderConfig(BaseModel):
    """Complete render configuration.

    Attributes:
        width: Output width in pixels
        height: Output height in pixels
        fps: Output frame rate
        music_volume: Music gain relative to the voice
        duration_pad: Seconds added after the narration
        image_tail: Extra seconds of images after narration in AI renders
        overlay_opacity: Opacity of the lighten-blended overlay clip
        ken_burns: Animate AI images with zoompan presets
        light_rays: Light ray effect settings
        thumbnail_at: Second the thumbnail frame is taken from
        stderr_tail: Characters of FFmpeg stderr kept on failure
        encoder: Codec settings
    """

    width: int = Field(default=1080, ge=16)
    height: int = Field(default=1920, ge=16)
    fps: int = Field(default=30, ge=1, le=120)
    music_volume: float = Field(default=0.15, ge=0.0, le=1.0)
    duration_pad: float = Field(default=0.5, ge=0.0)
    image_tail: float = Field(default=3.0, ge=0.0)
    overlay_opacity: float = Field(default=0.5, ge=0.0, le=1.0)
    ken_burns: bool = Field(default=False, description="Animate AI images")
    light_rays: LightRaysConfig = Field(default_factory=LightRaysConfig)
    thumbnail_at: float = Field(default=1.0, ge=0.0)
    stderr_tail: int = Field(default=500, ge=50)
    encoder: EncoderConfig = Field(default_factory=EncoderConfig)

    @property
    def size(self) -> str:
        """Geometry as ``WxH``."""
        return f"{self.width}x{self.height}"


__all__ = [
    "EncoderConfig",
    "LightRaysConfig",
    "RenderConfig",
]
