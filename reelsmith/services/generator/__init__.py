"""Media generation: speech, images, karaoke subtitles and video rendering."""

from reelsmith.services.generator.ffmpeg import FFmpegRunner
from reelsmith.services.generator.images import ImageGenerator
from reelsmith.services.generator.karaoke import CharacterAlignment, KaraokeSubtitleBuilder
from reelsmith.services.generator.render import RenderResult, VideoRenderer
from reelsmith.services.generator.tts import SpeechResult, SpeechSynthesizer

__all__ = [
    "CharacterAlignment",
    "FFmpegRunner",
    "ImageGenerator",
    "KaraokeSubtitleBuilder",
    "RenderResult",
    "SpeechResult",
    "SpeechSynthesizer",
    "VideoRenderer",
]
