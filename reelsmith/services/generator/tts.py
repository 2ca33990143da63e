"""Speech synthesis with ElevenLabs.

Uses the ``convert_with_timestamps`` endpoint so every character comes
back with its start and end time, which the karaoke builder needs.
"""

import base64
import re
from dataclasses import dataclass
from pathlib import Path

from elevenlabs import AsyncElevenLabs, VoiceSettings

from reelsmith.config.generation import TTSConfig
from reelsmith.core.exceptions import MissingCredentialsError, TTSError
from reelsmith.core.logging import get_logger
from reelsmith.services.generator.karaoke import CharacterAlignment

logger = get_logger(__name__)

_PAUSE_TAG_RE = re.compile(r"\[(?:pause|short\s*pause|long\s*pause)\]", re.IGNORECASE)
_DIRECTION_TAG_RE = re.compile(r"\[[^\]]+\]")
_SPACE_RE = re.compile(r"\s+")


def prepare_text(text: str) -> str:
    """Turn pause tags into ``...`` and drop every other bracketed tag."""
    cleaned = _PAUSE_TAG_RE.sub("...", text)
    cleaned = _DIRECTION_TAG_RE.sub("", cleaned)
    return _SPACE_RE.sub(" ", cleaned).strip()


@dataclass
class SpeechResult:
    """Synthesized narration.

    Attributes:
        audio_path: MP3 file
        alignment_path: JSON file with character timings
        alignment: Character timings
        duration_ms: Speech length
    """

    audio_path: Path
    alignment_path: Path
    alignment: CharacterAlignment
    duration_ms: int


class SpeechSynthesizer:
    """ElevenLabs narration with character alignment.

    Example:
        >>> tts = SpeechSynthesizer(api_key="...", voice_id="EXAVITQu4vr4xnSDxMaL")
        >>> result = await tts.synthesize(script, "abc123", Path("temp"))
    """

    def __init__(
        self,
        api_key: str,
        voice_id: str,
        config: TTSConfig | None = None,
        client: AsyncElevenLabs | None = None,
    ) -> None:
        self.api_key = api_key
        self.voice_id = voice_id
        self.config = config or TTSConfig()
        self._client = client

    @property
    def client(self) -> AsyncElevenLabs:
        if self._client is None:
            if not self.api_key:
                raise MissingCredentialsError("elevenlabs", config_key="ELEVENLABS_API_KEY")
            self._client = AsyncElevenLabs(api_key=self.api_key)
        return self._client

    async def synthesize(self, text: str, file_stem: str, output_dir: Path) -> SpeechResult:
        """Synthesize a narration and store audio plus alignment.

        Args:
            text: Script with audio tags
            file_stem: Base name for the output files
            output_dir: Directory for the output files

        Returns:
            Paths, alignment and duration

        Raises:
            MissingCredentialsError: If no API key is configured
            TTSError: If synthesis fails or returns no timings
        """
        cleaned = prepare_text(text)
        logger.info(
            "Synthesizing speech",
            voice_id=self.voice_id,
            original_length=len(text),
            cleaned_length=len(cleaned),
        )

        client = self.client
        try:
            response = await client.text_to_speech.convert_with_timestamps(
                voice_id=self.voice_id,
                text=cleaned,
                model_id=self.config.model_id,
                output_format=self.config.output_format,
                voice_settings=VoiceSettings(
                    stability=self.config.stability,
                    similarity_boost=self.config.similarity_boost,
                    style=self.config.style,
                ),
            )
        except Exception as e:
            raise TTSError(
                f"ElevenLabs synthesis failed: {e}", engine="elevenlabs", voice_id=self.voice_id
            ) from e

        if response.alignment is None or not response.audio_base_64:
            raise TTSError(
                "ElevenLabs returned no audio or alignment",
                engine="elevenlabs",
                voice_id=self.voice_id,
            )

        alignment = CharacterAlignment(
            characters=list(response.alignment.characters),
            character_start_times_seconds=list(response.alignment.character_start_times_seconds),
            character_end_times_seconds=list(response.alignment.character_end_times_seconds),
        )

        output_dir.mkdir(parents=True, exist_ok=True)
        audio_path = output_dir / f"{file_stem}.mp3"
        audio_path.write_bytes(base64.b64decode(response.audio_base_64))
        alignment_path = output_dir / f"{file_stem}.alignment.json"
        alignment.save(alignment_path)

        logger.info(
            "Speech synthesized",
            audio_path=str(audio_path),
            duration_ms=alignment.duration_ms,
            characters=len(alignment.characters),
        )
        return SpeechResult(
            audio_path=audio_path,
            alignment_path=alignment_path,
            alignment=alignment,
            duration_ms=alignment.duration_ms,
        )


__all__ = [
    "SpeechResult",
    "SpeechSynthesizer",
    "prepare_text",
]
