"""Karaoke subtitle configuration models.

Colours use the ASS ``&HAABBGGRR`` notation (alpha 00 = opaque).
"""

from pydantic import BaseModel, Field


class ASSStyleConfig(BaseModel):
    """The single ``[V4+ Styles]`` entry used by karaoke dialogue lines.

    ``primary_colour`` is the unsung text colour; ``\\kf`` sweeps it towards
    ``secondary_colour`` as each word is spoken.
    """

    name: str = Field(default="Karaoke")
    font_name: str = Field(default="Impact")
    font_size: int = Field(default=100, ge=1)
    bold: int = Field(default=0)
    italic: int = Field(default=0)
    primary_colour: str = Field(default="&H0032D7FF")
    secondary_colour: str = Field(default="&H00FFFFFF")
    outline_colour: str = Field(default="&H000A141E")
    back_colour: str = Field(default="&H50050A0F")
    scale_x: int = Field(default=100)
    scale_y: int = Field(default=100)
    spacing: float = Field(default=1)
    angle: float = Field(default=0)
    border_style: int = Field(default=1)
    outline: float = Field(default=3)
    shadow: float = Field(default=1.5)
    alignment: int = Field(default=5, ge=1, le=9, description="Numpad alignment, 5 = centre")
    margin_l: int = Field(default=40)
    margin_r: int = Field(default=40)
    margin_v: int = Field(default=20)
    encoding: int = Field(default=1)


class KaraokeConfig(BaseModel):
    """Word grouping and timing of karaoke lines.

    Attributes:
        words_per_line: Maximum words on one line
        fade_in_ms: Line fade-in, also how early a line appears
        fade_out_ms: Line fade-out, also how long a line lingers
        line_gap_ms: Minimum gap kept before the next line fades in
        blur: ``\\blur`` strength of the text edge
        gap_threshold: Pauses longer than this get their own ``\\kf`` span
        min_tail: A line never ends sooner than this after its last word
        position: ``\\pos`` anchor in play-resolution pixels
        play_res_x: Script play resolution width
        play_res_y: Script play resolution height
        style: Style definition
    """

    words_per_line: int = Field(default=4, ge=1, le=20)
    fade_in_ms: int = Field(default=300, ge=0)
    fade_out_ms: int = Field(default=400, ge=0)
    line_gap_ms: int = Field(default=100, ge=0)
    blur: float = Field(default=1.5, ge=0.0)
    gap_threshold: float = Field(default=0.05, ge=0.0)
    min_tail: float = Field(default=0.05, ge=0.0)
    position: tuple[int, int] = Field(default=(540, 960))
    play_res_x: int = Field(default=1080)
    play_res_y: int = Field(default=1920)
    style: ASSStyleConfig = Field(default_factory=ASSStyleConfig)


__all__ = [
    "ASSStyleConfig",
    "KaraokeConfig",
]
