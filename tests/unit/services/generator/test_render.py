"""Tests for render argument builders and VideoRenderer."""

import random
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest

from reelsmith.config.render import LightRaysConfig, RenderConfig
from reelsmith.core.exceptions import VideoRenderError
from reelsmith.services.generator.ken_burns import KenBurnsEffect
from reelsmith.services.generator.render import (
    VideoRenderer,
    ai_filter_graph,
    ai_layout,
    build_ai_args,
    build_static_args,
    escape_filter_path,
    light_rays_filter,
    subtitle_filter,
)

CODEC_TAIL = [
    "-c:v",
    "libx264",
    "-preset",
    "fast",
    "-crf",
    "23",
    "-c:a",
    "aac",
    "-b:a",
    "192k",
    "-movflags",
    "+faststart",
    "-y",
]

AMIX = "[voice][music]amix=inputs=2:duration=first:dropout_transition=2:normalize=0[aout]"


@pytest.fixture
def mock_runner() -> MagicMock:
    runner = MagicMock()
    runner.probe_duration = AsyncMock(return_value=10.0)
    runner.run = AsyncMock()
    runner.extract_thumbnail = AsyncMock(side_effect=lambda video, thumb, at: thumb)
    return runner


class TestFilterHelpers:
    """Tests for subtitle and effect filters."""

    @pytest.mark.unit
    def test_escape_filter_path(self) -> None:
        """Colons, quotes and brackets are escaped."""
        assert escape_filter_path("/tmp/a:b'c[1].ass") == "/tmp/a\\:b\\'c\\[1\\].ass"

    @pytest.mark.unit
    def test_ass_uses_ass_filter(self, tmp_path: Path) -> None:
        """Karaoke files keep their own styling."""
        path = tmp_path / "x.ass"
        assert subtitle_filter(path) == f"ass='{path.resolve()}'"

    @pytest.mark.unit
    def test_srt_gets_force_style(self, tmp_path: Path) -> None:
        """SRT files are burned with the default style."""
        result = subtitle_filter(tmp_path / "x.srt")
        assert result.startswith("subtitles='")
        assert ":force_style='FontName=Arial,FontSize=24," in result

    @pytest.mark.unit
    def test_light_rays(self) -> None:
        """Light rays modulate luma with moving diagonal bands."""
        assert light_rays_filter(LightRaysConfig(enabled=True), fps=30) == (
            "geq=lum='lum(X,Y)*(1+0.12*pow(sin((X+Y-N*0.015*30)/150*3.14159),2))'"
            ":cb='cb(X,Y)':cr='cr(X,Y)'"
        )


class TestBuildStaticArgs:
    """Tests for build_static_args."""

    @pytest.mark.unit
    def test_voice_only(self) -> None:
        """Without music or subtitles the streams are mapped directly."""
        args = build_static_args(Path("bg.mp4"), Path("v.mp3"), 10.0, Path("out.mp4"))

        assert args == [
            "-stream_loop",
            "-1",
            "-i",
            "bg.mp4",
            "-i",
            "v.mp3",
            "-t",
            "10.5",
            "-map",
            "0:v",
            "-map",
            "1:a",
            *CODEC_TAIL,
            "out.mp4",
        ]

    @pytest.mark.unit
    def test_subtitles_without_music_use_vf(self, tmp_path: Path) -> None:
        """Subtitles go through -vf when there is no audio mixing."""
        subs = tmp_path / "s.ass"
        args = build_static_args(
            Path("bg.mp4"), Path("v.mp3"), 10.0, Path("out.mp4"), subtitles=subs
        )

        assert args[args.index("-vf") + 1] == subtitle_filter(subs)
        assert "-filter_complex" not in args

    @pytest.mark.unit
    def test_music_and_subtitles(self, tmp_path: Path) -> None:
        """Music is looped, mixed under the voice and mapped from the graph."""
        subs = tmp_path / "s.ass"
        args = build_static_args(
            Path("bg.mp4"),
            Path("v.mp3"),
            10.0,
            Path("out.mp4"),
            music=Path("m.mp3"),
            subtitles=subs,
        )

        assert args[:9] == [
            "-stream_loop",
            "-1",
            "-i",
            "bg.mp4",
            "-i",
            "v.mp3",
            "-stream_loop",
            "-1",
            "-i",
        ]
        graph = args[args.index("-filter_complex") + 1]
        assert graph == (
            f"[0:v]{subtitle_filter(subs)}[vout];"
            "[1:a]volume=1[voice];[2:a]volume=0.15[music];" + AMIX
        )
        index = args.index("-filter_complex")
        assert args[index + 2 : index + 6] == ["-map", "[vout]", "-map", "[aout]"]

    @pytest.mark.unit
    def test_music_without_subtitles_maps_source_video(self) -> None:
        """Without subtitles the background is mapped as is."""
        args = build_static_args(
            Path("bg.mp4"), Path("v.mp3"), 10.0, Path("out.mp4"), music=Path("m.mp3")
        )
        assert "[vout]" not in args
        assert args[args.index("-map") + 1] == "0:v"


class TestAiLayout:
    """Tests for ai_layout."""

    @pytest.mark.unit
    def test_all_inputs(self) -> None:
        """Images first, then voice, overlay and music."""
        layout = ai_layout(3, 10.0, True, True, RenderConfig())

        assert layout.voice_index == 3
        assert layout.overlay_index == 4
        assert layout.music_index == 5
        assert layout.total_duration == pytest.approx(13.5)
        assert layout.per_image == pytest.approx(4.5)
        assert layout.frames_per_image == 135

    @pytest.mark.unit
    def test_music_without_overlay(self) -> None:
        """Music follows the voice when there is no overlay."""
        layout = ai_layout(2, 10.0, False, True, RenderConfig())
        assert layout.overlay_index is None
        assert layout.music_index == 3


class TestBuildAiArgs:
    """Tests for build_ai_args and ai_filter_graph."""

    @pytest.mark.unit
    def test_requires_images(self) -> None:
        """No images is a caller error."""
        with pytest.raises(ValueError):
            build_ai_args([], Path("v.mp3"), 10.0, Path("out.mp4"))

    @pytest.mark.unit
    def test_held_images_voice_only(self) -> None:
        """Stills are scaled, cropped, held and concatenated."""
        args = build_ai_args(
            [Path("a.png"), Path("b.png")], Path("v.mp3"), 10.0, Path("out.mp4")
        )

        assert args[:4] == ["-loop", "1", "-i", "a.png"]
        assert args[4:10] == ["-loop", "1", "-i", "b.png", "-i", "v.mp3"]
        assert args[args.index("-t") + 1] == "13.5"
        hold = (
            "scale=1080:1920:force_original_aspect_ratio=increase,crop=1080:1920,"
            "loop=loop=202:size=1:start=0,setpts=PTS-STARTPTS"
        )
        assert args[args.index("-filter_complex") + 1] == (
            f"[0:v]{hold}[img0];[1:v]{hold}[img1];[img0][img1]concat=n=2:v=1:a=0[video]"
        )
        index = args.index("-filter_complex")
        assert args[index + 2 : index + 6] == ["-map", "[video]", "-map", "2:a"]

    @pytest.mark.unit
    def test_ken_burns_presets(self) -> None:
        """Enabled Ken Burns replaces the hold with zoompan."""
        config = RenderConfig(ken_burns=True)
        args = build_ai_args(
            [Path("a.png")],
            Path("v.mp3"),
            10.0,
            Path("out.mp4"),
            config=config,
            effects=[KenBurnsEffect.ZOOM_OUT],
        )

        graph = args[args.index("-filter_complex") + 1]
        assert graph.startswith("[0:v]zoompan=z='1.15-0.15*on/405'")
        assert "loop=loop=" not in graph

    @pytest.mark.unit
    def test_full_chain_labels(self, tmp_path: Path) -> None:
        """Rays, overlay blend and subtitles are chained in order."""
        config = RenderConfig(light_rays=LightRaysConfig(enabled=True))
        layout = ai_layout(2, 10.0, True, True, config)

        graph, label = ai_filter_graph(layout, tmp_path / "s.ass", config)

        assert label == "final"
        assert graph.outputs() == [
            "img0",
            "img1",
            "video",
            "withrays",
            "overlay",
            "blended",
            "final",
            "voice",
            "music",
            "aout",
        ]
        rendered = graph.render()
        assert "[withrays][overlay]blend=all_mode=lighten:all_opacity=0.5[blended]" in rendered
        assert "[2:a]volume=1,apad=pad_dur=3.5[voice]" in rendered
        assert "[4:a]volume=0.15[music]" in rendered

    @pytest.mark.unit
    def test_music_maps_mixed_audio(self) -> None:
        """With music the mixed pad is mapped."""
        args = build_ai_args(
            [Path("a.png")], Path("v.mp3"), 10.0, Path("out.mp4"), music=Path("m.mp3")
        )
        index = args.index("[aout]")
        assert args[index - 1] == "-map"
        assert "1:a" not in args


class TestVideoRenderer:
    """Tests for VideoRenderer."""

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_static_missing_background(self, mock_runner, tmp_path: Path) -> None:
        """A missing background fails before FFmpeg runs."""
        renderer = VideoRenderer(mock_runner)

        with pytest.raises(VideoRenderError):
            await renderer.render_static(
                tmp_path / "none.mp4", tmp_path / "v.mp3", tmp_path / "out.mp4"
            )
        mock_runner.run.assert_not_called()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_static_skips_missing_music(self, mock_runner, tmp_path: Path) -> None:
        """Optional inputs that don't exist are left out."""
        background = tmp_path / "bg.mp4"
        background.write_bytes(b"")
        output = tmp_path / "out" / "video.mp4"
        renderer = VideoRenderer(mock_runner)

        result = await renderer.render_static(
            background, tmp_path / "v.mp3", output, music=tmp_path / "gone.mp3"
        )

        args = mock_runner.run.call_args.args[0]
        assert str(tmp_path / "gone.mp3") not in args
        assert result.output_path == output
        assert result.thumbnail_path == output.with_suffix(".jpg")
        assert result.voice_duration == 10.0
        assert output.parent.exists()

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_ai_missing_image(self, mock_runner, tmp_path: Path) -> None:
        """Every image must exist."""
        renderer = VideoRenderer(mock_runner)

        with pytest.raises(VideoRenderError):
            await renderer.render_ai_images(
                [tmp_path / "a.png"], tmp_path / "v.mp3", tmp_path / "out.mp4"
            )

    @pytest.mark.unit
    @pytest.mark.asyncio
    async def test_ai_render(self, mock_runner, tmp_path: Path) -> None:
        """AI renders run FFmpeg once and extract a thumbnail."""
        image = tmp_path / "a.png"
        image.write_bytes(b"")
        renderer = VideoRenderer(
            mock_runner, RenderConfig(ken_burns=True), rng=random.Random(1)
        )

        result = await renderer.render_ai_images([image], tmp_path / "v.mp3", tmp_path / "o.mp4")

        mock_runner.run.assert_awaited_once()
        assert mock_runner.run.call_args.kwargs["stage"] == "render_ai_images"
        assert "zoompan" in " ".join(mock_runner.run.call_args.args[0])
        assert result.thumbnail_path == tmp_path / "o.jpg"
