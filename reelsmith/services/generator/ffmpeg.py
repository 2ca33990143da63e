"""FFmpeg process runner.

Renders are executed as an asyncio subprocess with an explicit argv (no
shell); the render builders produce the argument list. Media probing
goes through ffmpeg-python's ``ffmpeg.probe``.
"""

import asyncio
from pathlib import Path

import ffmpeg

from reelsmith.core.exceptions import VideoRenderError
from reelsmith.core.logging import get_logger
from reelsmith.services.generator.utils import format_number

logger = get_logger(__name__)


class FFmpegRunner:
    """Runs FFmpeg and FFprobe.

    Example:
        >>> runner = FFmpegRunner()
        >>> duration = await runner.probe_duration(Path("temp/abc.mp3"))
        >>> await runner.run(["-i", "in.mp4", "-y", "out.mp4"], stage="render")
    """

    def __init__(
        self,
        ffmpeg_binary: str = "ffmpeg",
        ffprobe_binary: str = "ffprobe",
        stderr_tail: int = 500,
    ) -> None:
        self.ffmpeg_binary = ffmpeg_binary
        self.ffprobe_binary = ffprobe_binary
        self.stderr_tail = stderr_tail

    async def run(self, args: list[str], stage: str = "render") -> None:
        """Execute FFmpeg with the given arguments.

        Args:
            args: Arguments after the binary name
            stage: Label used in logs and errors

        Raises:
            VideoRenderError: If FFmpeg can't start or exits non-zero
        """
        logger.info("FFmpeg starting", stage=stage, args=" ".join(args))
        try:
            process = await asyncio.create_subprocess_exec(
                self.ffmpeg_binary,
                *args,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise VideoRenderError(f"FFmpeg spawn error: {e}", stage=stage) from e

        _, stderr = await process.communicate()
        if process.returncode != 0:
            tail = stderr.decode(errors="replace")[-self.stderr_tail :]
            logger.error("FFmpeg failed", stage=stage, code=process.returncode, stderr=tail)
            raise VideoRenderError(
                f"FFmpeg exited with code {process.returncode}: {tail}",
                stage=stage,
                ffmpeg_error=tail,
            )
        logger.info("FFmpeg finished", stage=stage)

    async def probe_duration(self, path: Path) -> float:
        """Media duration in seconds.

        Raises:
            VideoRenderError: If probing fails or reports no duration
        """
        try:
            data = await asyncio.to_thread(ffmpeg.probe, str(path), cmd=self.ffprobe_binary)
        except ffmpeg.Error as e:
            stderr = e.stderr.decode(errors="replace") if e.stderr else None
            raise VideoRenderError(
                f"Failed to probe {path}", stage="probe", ffmpeg_error=stderr
            ) from e

        try:
            return float(data["format"]["duration"])
        except (KeyError, TypeError, ValueError) as e:
            raise VideoRenderError(f"No duration reported for {path}", stage="probe") from e

    async def extract_thumbnail(
        self,
        video_path: Path,
        thumbnail_path: Path,
        at_seconds: float = 1.0,
    ) -> Path | None:
        """Grab a single frame as JPEG.

        A failure is logged and yields None; the render itself stands.
        """
        args = [
            "-ss",
            format_number(at_seconds),
            "-i",
            str(video_path),
            "-vframes",
            "1",
            "-y",
            str(thumbnail_path),
        ]
        try:
            await self.run(args, stage="thumbnail")
        except VideoRenderError as e:
            logger.warning("Thumbnail extraction failed", video=str(video_path), error=str(e))
            return None
        return thumbnail_path


__all__ = ["FFmpegRunner"]
