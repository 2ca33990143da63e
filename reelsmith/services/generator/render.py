"""Video render commands.

Two layouts:

- **static background**: a looping background clip under the narration,
  optional music bed, karaoke subtitles burned in;
- **AI images**: generated stills held (or animated with Ken Burns presets)
  across the narration plus a music-only tail, with optional light rays,
  a lighten-blended overlay clip and subtitles on top.

The ``build_*`` functions are pure: they turn paths and durations into the
exact FFmpeg argument list. :class:`VideoRenderer` probes inputs, runs the
command and extracts the thumbnail.
"""

import math
import random
from dataclasses import dataclass
from pathlib import Path

from reelsmith.config.render import LightRaysConfig, RenderConfig
from reelsmith.core.exceptions import VideoRenderError
from reelsmith.core.logging import get_logger
from reelsmith.services.generator.ffmpeg import FFmpegRunner
from reelsmith.services.generator.filtergraph import FilterGraph
from reelsmith.services.generator.ken_burns import (
    KenBurnsEffect,
    ken_burns_filter,
    varied_effects,
)
from reelsmith.services.generator.utils import format_number

logger = get_logger(__name__)

SRT_FORCE_STYLE = (
    "FontName=Arial,FontSize=24,PrimaryColour=&H00FFFFFF,OutlineColour=&H00000000,"
    "BorderStyle=1,Outline=2,Shadow=1,MarginV=60"
)

_FILTER_ESCAPES = {":": "\\:", "'": "\\'", "[": "\\[", "]": "\\]"}


def escape_filter_path(path: str) -> str:
    """Backslash-escape characters that are special inside filter arguments."""
    return "".join(_FILTER_ESCAPES.get(char, char) for char in path)


def subtitle_filter(path: Path) -> str:
    """``ass`` filter for karaoke files, styled ``subtitles`` filter otherwise."""
    escaped = escape_filter_path(str(path.resolve()))
    if path.suffix == ".ass":
        return f"ass='{escaped}'"
    return f"subtitles='{escaped}':force_style='{SRT_FORCE_STYLE}'"


def light_rays_filter(config: LightRaysConfig, fps: int = 30) -> str:
    intensity = format_number(config.intensity)
    speed = format_number(config.speed)
    return (
        f"geq=lum='lum(X,Y)*(1+{intensity}*pow(sin((X+Y-N*{speed}*{fps})"
        f"/{config.stripe_width}*3.14159),2))':cb='cb(X,Y)':cr='cr(X,Y)'"
    )


def _amix_chain(graph: FilterGraph) -> None:
    graph.add(
        ["voice", "music"],
        ["amix=inputs=2:duration=first:dropout_transition=2:normalize=0"],
        ["aout"],
    )


def _codec_args(config: RenderConfig, output: Path) -> list[str]:
    enc = config.encoder
    return [
        "-c:v",
        enc.video_codec,
        "-preset",
        enc.preset,
        "-crf",
        str(enc.crf),
        "-c:a",
        enc.audio_codec,
        "-b:a",
        enc.audio_bitrate,
        "-movflags",
        "+faststart",
        "-y",
        str(output),
    ]


# ============================================
# Static background
# ============================================


def static_filter_graph(
    subtitles: Path | None,
    has_music: bool,
    music_volume: float,
) -> FilterGraph:
    """Filter graph for a static background render with music.

    Only used when music is present; without music the subtitles go
    through ``-vf`` instead.
    """
    graph = FilterGraph()
    if subtitles is not None:
        graph.add(["0:v"], [subtitle_filter(subtitles)], ["vout"])
    if has_music:
        graph.add(["1:a"], ["volume=1"], ["voice"])
        graph.add(["2:a"], [f"volume={format_number(music_volume)}"], ["music"])
        _amix_chain(graph)
    return graph


def build_static_args(
    background: Path,
    voice: Path,
    voice_duration: float,
    output: Path,
    music: Path | None = None,
    subtitles: Path | None = None,
    config: RenderConfig | None = None,
) -> list[str]:
    """FFmpeg arguments for a static background render.

    Args:
        background: Looping background clip (input 0)
        voice: Narration (input 1)
        voice_duration: Narration length in seconds
        output: Destination MP4
        music: Optional looping music bed (input 2)
        subtitles: Optional subtitle file to burn in
        config: Render settings

    Returns:
        Arguments after the binary name
    """
    config = config or RenderConfig()
    args = ["-stream_loop", "-1", "-i", str(background), "-i", str(voice)]
    if music is not None:
        args += ["-stream_loop", "-1", "-i", str(music)]
    args += ["-t", format_number(voice_duration + config.duration_pad)]

    if music is not None:
        graph = static_filter_graph(subtitles, True, config.music_volume)
        video_map = "[vout]" if subtitles is not None else "0:v"
        args += ["-filter_complex", graph.render(), "-map", video_map, "-map", "[aout]"]
    else:
        if subtitles is not None:
            args += ["-vf", subtitle_filter(subtitles)]
        args += ["-map", "0:v", "-map", "1:a"]

    return args + _codec_args(config, output)


# ============================================
# AI images
# ============================================


@dataclass
class AIRenderLayout:
    """Input indexes and timing of an AI image render."""

    image_count: int
    voice_index: int
    overlay_index: int | None
    music_index: int | None
    total_duration: float
    per_image: float
    frames_per_image: int


def ai_layout(
    image_count: int,
    voice_duration: float,
    has_overlay: bool,
    has_music: bool,
    config: RenderConfig,
) -> AIRenderLayout:
    """Input order is images, voice, overlay, music."""
    total = voice_duration + config.image_tail + config.duration_pad
    per_image = total / image_count
    overlay_index = image_count + 1 if has_overlay else None
    music_index = None
    if has_music:
        music_index = overlay_index + 1 if overlay_index is not None else image_count + 1
    return AIRenderLayout(
        image_count=image_count,
        voice_index=image_count,
        overlay_index=overlay_index,
        music_index=music_index,
        total_duration=total,
        per_image=per_image,
        frames_per_image=math.floor(per_image * config.fps),
    )


def ai_filter_graph(
    layout: AIRenderLayout,
    subtitles: Path | None,
    config: RenderConfig,
    effects: list[KenBurnsEffect] | None = None,
) -> tuple[FilterGraph, str]:
    """Filter graph for an AI image render.

    Returns:
        The graph and the label of the final video pad
    """
    w, h, fps = config.width, config.height, config.fps
    graph = FilterGraph()

    for i in range(layout.image_count):
        if config.ken_burns and effects is not None:
            zoompan = ken_burns_filter(effects[i], layout.per_image, fps, w, h)
            graph.add([f"{i}:v"], [zoompan, "setpts=PTS-STARTPTS"], [f"img{i}"])
        else:
            graph.add(
                [f"{i}:v"],
                [
                    f"scale={w}:{h}:force_original_aspect_ratio=increase",
                    f"crop={w}:{h}",
                    f"loop=loop={layout.frames_per_image}:size=1:start=0",
                    "setpts=PTS-STARTPTS",
                ],
                [f"img{i}"],
            )

    graph.add(
        [f"img{i}" for i in range(layout.image_count)],
        [f"concat=n={layout.image_count}:v=1:a=0"],
        ["video"],
    )
    current = "video"

    if config.light_rays.enabled:
        graph.add([current], [light_rays_filter(config.light_rays, fps)], ["withrays"])
        current = "withrays"

    if layout.overlay_index is not None:
        graph.add(
            [f"{layout.overlay_index}:v"],
            [
                f"scale={w}:{h}:force_original_aspect_ratio=increase",
                f"crop={w}:{h}",
                "setpts=PTS-STARTPTS",
            ],
            ["overlay"],
        )
        opacity = format_number(config.overlay_opacity)
        graph.add(
            [current, "overlay"],
            [f"blend=all_mode=lighten:all_opacity={opacity}"],
            ["blended"],
        )
        current = "blended"

    if subtitles is not None:
        graph.add([current], [subtitle_filter(subtitles)], ["final"])
        current = "final"

    if layout.music_index is not None:
        pad = format_number(config.image_tail + config.duration_pad)
        graph.add(
            [f"{layout.voice_index}:a"], ["volume=1", f"apad=pad_dur={pad}"], ["voice"]
        )
        graph.add(
            [f"{layout.music_index}:a"],
            [f"volume={format_number(config.music_volume)}"],
            ["music"],
        )
        _amix_chain(graph)

    return graph, current


def build_ai_args(
    images: list[Path],
    voice: Path,
    voice_duration: float,
    output: Path,
    overlay: Path | None = None,
    music: Path | None = None,
    subtitles: Path | None = None,
    config: RenderConfig | None = None,
    effects: list[KenBurnsEffect] | None = None,
) -> list[str]:
    """FFmpeg arguments for an AI image render.

    Args:
        images: Stills in display order (inputs 0..N-1)
        voice: Narration (input N)
        voice_duration: Narration length in seconds
        output: Destination MP4
        overlay: Optional looping overlay clip
        music: Optional looping music bed
        subtitles: Optional subtitle file to burn in
        config: Render settings
        effects: Ken Burns preset per image, used when enabled

    Returns:
        Arguments after the binary name

    Raises:
        ValueError: If no images are given
    """
    if not images:
        raise ValueError("At least one image is required")
    config = config or RenderConfig()
    layout = ai_layout(len(images), voice_duration, overlay is not None, music is not None, config)
    if config.ken_burns and effects is None:
        effects = varied_effects(len(images))

    args: list[str] = []
    for image in images:
        args += ["-loop", "1", "-i", str(image)]
    args += ["-i", str(voice)]
    if overlay is not None:
        args += ["-stream_loop", "-1", "-i", str(overlay)]
    if music is not None:
        args += ["-stream_loop", "-1", "-i", str(music)]
    args += ["-t", format_number(layout.total_duration)]

    graph, video_label = ai_filter_graph(layout, subtitles, config, effects)
    args += ["-filter_complex", graph.render(), "-map", f"[{video_label}]"]
    if layout.music_index is not None:
        args += ["-map", "[aout]"]
    else:
        args += ["-map", f"{layout.voice_index}:a"]

    return args + _codec_args(config, output)


# ============================================
# Renderer
# ============================================


@dataclass
class RenderResult:
    output_path: Path
    thumbnail_path: Path | None
    voice_duration: float


def _existing(path: Path | None, kind: str) -> Path | None:
    if path is None:
        return None
    if not path.exists():
        logger.warning("Render input missing, skipping", kind=kind, path=str(path))
        return None
    return path


class VideoRenderer:
    """Renders videos and their thumbnails.

    Example:
        >>> renderer = VideoRenderer(FFmpegRunner(), RenderConfig())
        >>> result = await renderer.render_static(
        ...     background=Path("assets/backgrounds/a.mp4"),
        ...     voice=Path("temp/abc.mp3"),
        ...     output=Path("output/abc.mp4"),
        ... )
    """

    def __init__(
        self,
        runner: FFmpegRunner,
        config: RenderConfig | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.runner = runner
        self.config = config or RenderConfig()
        self.rng = rng or random.Random()

    async def render_static(
        self,
        background: Path,
        voice: Path,
        output: Path,
        music: Path | None = None,
        subtitles: Path | None = None,
    ) -> RenderResult:
        """Render a static background video.

        Raises:
            VideoRenderError: If the background is missing or FFmpeg fails
        """
        if not background.exists():
            raise VideoRenderError(f"Background not found: {background}", stage="render")

        duration = await self.runner.probe_duration(voice)
        output.parent.mkdir(parents=True, exist_ok=True)
        args = build_static_args(
            background=background,
            voice=voice,
            voice_duration=duration,
            output=output,
            music=_existing(music, "music"),
            subtitles=_existing(subtitles, "subtitles"),
            config=self.config,
        )
        await self.runner.run(args, stage="render_static")
        return await self._finish(output, duration)

    async def render_ai_images(
        self,
        images: list[Path],
        voice: Path,
        output: Path,
        overlay: Path | None = None,
        music: Path | None = None,
        subtitles: Path | None = None,
    ) -> RenderResult:
        """Render an AI image video.

        Raises:
            VideoRenderError: If an image is missing or FFmpeg fails
        """
        missing = [str(p) for p in images if not p.exists()]
        if not images or missing:
            raise VideoRenderError(f"Images not found: {missing or 'none given'}", stage="render")

        duration = await self.runner.probe_duration(voice)
        effects = varied_effects(len(images), self.rng) if self.config.ken_burns else None
        output.parent.mkdir(parents=True, exist_ok=True)
        args = build_ai_args(
            images=images,
            voice=voice,
            voice_duration=duration,
            output=output,
            overlay=_existing(overlay, "overlay"),
            music=_existing(music, "music"),
            subtitles=_existing(subtitles, "subtitles"),
            config=self.config,
            effects=effects,
        )
        await self.runner.run(args, stage="render_ai_images")
        return await self._finish(output, duration)

    async def _finish(self, output: Path, duration: float) -> RenderResult:
        thumbnail = await self.runner.extract_thumbnail(
            output, output.with_suffix(".jpg"), self.config.thumbnail_at
        )
        logger.info(
            "Render complete",
            output=str(output),
            thumbnail=str(thumbnail) if thumbnail else None,
            voice_duration=duration,
        )
        return RenderResult(output_path=output, thumbnail_path=thumbnail, voice_duration=duration)


__all__ = [
    "AIRenderLayout",
    "RenderResult",
    "VideoRenderer",
    "ai_filter_graph",
    "ai_layout",
    "build_ai_args",
    "build_static_args",
    "escape_filter_path",
    "light_rays_filter",
    "static_filter_graph",
    "subtitle_filter",
]
