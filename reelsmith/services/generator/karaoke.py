"""Karaoke subtitles from character-level speech alignment.

The TTS service reports a start and end time for every character it
spoke. Characters are folded back into words, words are grouped into short
lines, and each line becomes one ASS ``Dialogue`` event whose ``\\kf`` tags
sweep the highlight across the words exactly as they are spoken.

An SRT writer with plain word chunks is provided for default-styled burns.
"""

import json
import math
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from reelsmith.config.subtitle import KaraokeConfig
from reelsmith.core.logging import get_logger
from reelsmith.services.generator.utils import format_number, half_up

logger = get_logger(__name__)

_TAG_RE = re.compile(r"\[[^\]]+\]", re.IGNORECASE)
_FULL_TAG_RE = re.compile(r"^\[[^\]]+\]$", re.IGNORECASE)
_DOTS_RE = re.compile(r"^\.+$")
_ELLIPSIS_RE = re.compile(r"\.{2,}")
_SPACE_RE = re.compile(r"\s+")
_WORD_BREAKS = frozenset({" ", "\n", "\r"})
_SENTENCE_END = (".", "!", "?")


@dataclass
class CharacterAlignment:
    """Per-character timings as returned by the TTS service."""

    characters: list[str]
    character_start_times_seconds: list[float]
    character_end_times_seconds: list[float]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CharacterAlignment":
        return cls(
            characters=list(data.get("characters") or []),
            character_start_times_seconds=[
                float(t) for t in data.get("character_start_times_seconds") or []
            ],
            character_end_times_seconds=[
                float(t) for t in data.get("character_end_times_seconds") or []
            ],
        )

    @classmethod
    def load(cls, path: Path) -> "CharacterAlignment":
        with open(path, encoding="utf-8") as f:
            return cls.from_dict(json.load(f))

    def to_dict(self) -> dict[str, Any]:
        return {
            "characters": self.characters,
            "character_start_times_seconds": self.character_start_times_seconds,
            "character_end_times_seconds": self.character_end_times_seconds,
        }

    def save(self, path: Path) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(self.to_dict(), f)

    @property
    def duration_ms(self) -> int:
        """Speech length, rounded up to the millisecond."""
        if not self.character_end_times_seconds:
            return 0
        return math.ceil(self.character_end_times_seconds[-1] * 1000)


@dataclass
class KaraokeWord:
    word: str
    start: float
    end: float


@dataclass
class SubtitleLine:
    """A group of words shown together, with its display window."""

    words: list[KaraokeWord]
    line_start: float
    line_end: float

    @property
    def first(self) -> KaraokeWord:
        return self.words[0]

    @property
    def last(self) -> KaraokeWord:
        return self.words[-1]


@dataclass
class _WordBuffer:
    chars: list[str] = field(default_factory=list)
    start: float | None = None
    end: float | None = None

    def flush(self, out: list[KaraokeWord]) -> None:
        text = "".join(self.chars)
        if text and self.start is not None and self.end is not None:
            clean = clean_word(text)
            if clean:
                out.append(KaraokeWord(clean, self.start, self.end))
        self.chars = []
        self.start = None
        self.end = None


def clean_word(text: str) -> str:
    """Strip tags and ellipses from a token; pure dots or tags become empty."""
    if _DOTS_RE.match(text) or _FULL_TAG_RE.match(text):
        return ""
    stripped = _ELLIPSIS_RE.sub("", _TAG_RE.sub("", text))
    return _SPACE_RE.sub(" ", stripped).strip()


def words_from_alignment(alignment: CharacterAlignment) -> list[KaraokeWord]:
    """Rebuild timed words from character timings.

    Characters inside ``[...]`` are skipped entirely; whitespace ends a word.
    """
    words: list[KaraokeWord] = []
    buffer = _WordBuffer()
    inside_bracket = False

    for i, char in enumerate(alignment.characters):
        if char == "[":
            inside_bracket = True
            continue
        if char == "]":
            inside_bracket = False
            continue
        if inside_bracket:
            continue

        if char in _WORD_BREAKS:
            buffer.flush(words)
            continue

        if buffer.start is None:
            buffer.start = alignment.character_start_times_seconds[i]
        buffer.end = alignment.character_end_times_seconds[i]
        buffer.chars.append(char)

    buffer.flush(words)
    return words


def group_into_lines(
    words: list[KaraokeWord],
    words_per_line: int = 4,
    fade_in_ms: int = 300,
    fade_out_ms: int = 400,
    line_gap_ms: int = 100,
    min_tail: float = 0.05,
) -> list[SubtitleLine]:
    """Group words into lines and compute non-overlapping windows.

    A line closes after ``words_per_line`` words or after a word ending a
    sentence. Each window opens ``fade_in`` before its first word and closes
    ``fade_out`` after its last, pulled in to leave ``line_gap`` before the
    next line fades in, but never less than ``min_tail`` after the last
    word. If that floor still reaches the next line, the next line's window
    starts where this one ends.
    """
    fade_in = fade_in_ms / 1000
    fade_out = fade_out_ms / 1000
    gap = line_gap_ms / 1000

    chunks: list[list[KaraokeWord]] = []
    current: list[KaraokeWord] = []
    for word in words:
        current.append(word)
        if len(current) >= words_per_line or word.word.endswith(_SENTENCE_END):
            chunks.append(current)
            current = []
    if current:
        chunks.append(current)

    lines = [
        SubtitleLine(
            words=chunk,
            line_start=max(0.0, chunk[0].start - fade_in),
            line_end=chunk[-1].end + fade_out,
        )
        for chunk in chunks
    ]

    for cur, nxt in zip(lines, lines[1:], strict=False):
        min_next_start = nxt.first.start - fade_in
        if cur.line_end > min_next_start - gap:
            cur.line_end = min_next_start - gap
        floor = cur.last.end + min_tail
        if cur.line_end < floor:
            cur.line_end = floor
        if cur.line_end > nxt.line_start:
            nxt.line_start = cur.line_end

    return lines


def format_ass_time(seconds: float) -> str:
    """``h:mm:ss.cc`` from seconds, rounded to the centisecond."""
    total_cs = half_up(seconds * 100)
    h = total_cs // 360000
    m = (total_cs % 360000) // 6000
    s = (total_cs % 6000) // 100
    cs = total_cs % 100
    return f"{h}:{m:02d}:{s:02d}.{cs:02d}"


def to_centiseconds(seconds: float) -> int:
    """``\\kf`` duration; never zero so every word gets a visible sweep."""
    return max(1, half_up(seconds * 100))


def build_header(config: KaraokeConfig) -> str:
    """``[Script Info]``, the karaoke style and the ``[Events]`` format line."""
    s = config.style
    style_values = [
        s.name,
        s.font_name,
        str(s.font_size),
        s.primary_colour,
        s.secondary_colour,
        s.outline_colour,
        s.back_colour,
        str(s.bold),
        str(s.italic),
        "0",
        "0",
        str(s.scale_x),
        str(s.scale_y),
        format_number(s.spacing),
        format_number(s.angle),
        str(s.border_style),
        format_number(s.outline),
        format_number(s.shadow),
        str(s.alignment),
        str(s.margin_l),
        str(s.margin_r),
        str(s.margin_v),
        str(s.encoding),
    ]
    return (
        "[Script Info]\n"
        "; Karaoke subtitles, auto-generated\n"
        f"Title: {s.name}\n"
        "ScriptType: v4.00+\n"
        "WrapStyle: 0\n"
        "ScaledBorderAndShadow: yes\n"
        "YCbCr Matrix: TV.709\n"
        f"PlayResX: {config.play_res_x}\n"
        f"PlayResY: {config.play_res_y}\n"
        "\n"
        "[V4+ Styles]\n"
        "Format: Name, Fontname, Fontsize, PrimaryColour, SecondaryColour, OutlineColour, "
        "BackColour, Bold, Italic, Underline, StrikeOut, ScaleX, ScaleY, Spacing, Angle, "
        "BorderStyle, Outline, Shadow, Alignment, MarginL, MarginR, MarginV, Encoding\n"
        f"Style: {','.join(style_values)}\n"
        "\n"
        "[Events]\n"
        "Format: Layer, Start, End, Style, Name, MarginL, MarginR, MarginV, Effect, Text\n"
    )


def build_dialogue(line: SubtitleLine, config: KaraokeConfig) -> str:
    """One ``Dialogue`` event with per-word ``\\kf`` timing."""
    x, y = config.position
    text = (
        f"{{\\pos({x},{y})\\fad({config.fade_in_ms},{config.fade_out_ms})"
        f"\\blur{format_number(config.blur)}}}"
    )

    prev_end = line.first.start
    for i, word in enumerate(line.words):
        duration = to_centiseconds(word.end - word.start)
        if i == 0:
            lead_in = word.start - line.line_start
            if lead_in > config.gap_threshold:
                text += f"{{\\kf{to_centiseconds(lead_in)}}}"
            # A window pushed past the word start sweeps only the rest of the word
            duration = to_centiseconds(word.end - max(word.start, line.line_start))
            text += f"{{\\kf{duration}}}{word.word}"
        else:
            pause = word.start - prev_end
            if pause > config.gap_threshold:
                text += f"{{\\kf{to_centiseconds(pause)}}} {{\\kf{duration}}}{word.word}"
            else:
                text += f" {{\\kf{duration}}}{word.word}"
        prev_end = word.end

    start = format_ass_time(line.line_start)
    end = format_ass_time(line.line_end)
    return f"Dialogue: 0,{start},{end},{config.style.name},,0,0,0,,{text}"


class KaraokeSubtitleBuilder:
    """Builds karaoke ASS documents.

    Example:
        >>> builder = KaraokeSubtitleBuilder()
        >>> ass = builder.build(CharacterAlignment.load(Path("temp/x.alignment.json")))
    """

    def __init__(self, config: KaraokeConfig | None = None) -> None:
        self.config = config or KaraokeConfig()

    def lines(self, alignment: CharacterAlignment) -> list[SubtitleLine]:
        return group_into_lines(
            words_from_alignment(alignment),
            words_per_line=self.config.words_per_line,
            fade_in_ms=self.config.fade_in_ms,
            fade_out_ms=self.config.fade_out_ms,
            line_gap_ms=self.config.line_gap_ms,
            min_tail=self.config.min_tail,
        )

    def build(self, alignment: CharacterAlignment) -> str:
        """Full ASS document; header only when nothing was spoken."""
        header = build_header(self.config)
        lines = self.lines(alignment)
        if not lines:
            return header
        return header + "".join(build_dialogue(line, self.config) + "\n" for line in lines)

    def write(self, alignment: CharacterAlignment, path: Path) -> Path:
        """Build and save an ASS file.

        Args:
            alignment: Character timings
            path: Destination ``.ass`` file

        Returns:
            The written path
        """
        content = self.build(alignment)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content, encoding="utf-8")
        logger.info(
            "Karaoke subtitles written",
            path=str(path),
            events=content.count("\nDialogue: "),
        )
        return path


# ============================================
# SRT
# ============================================


def format_srt_time(seconds: float) -> str:
    """``hh:mm:ss,mmm`` from seconds, truncated to the millisecond."""
    hours = int(seconds // 3600)
    minutes = int((seconds % 3600) // 60)
    secs = int(seconds % 60)
    millis = int((seconds % 1) * 1000)
    return f"{hours:02d}:{minutes:02d}:{secs:02d},{millis:03d}"


def build_srt(alignment: CharacterAlignment, words_per_chunk: int = 5) -> str:
    """Plain SRT with short chunks broken at punctuation.

    Args:
        alignment: Character timings
        words_per_chunk: Maximum words per cue

    Returns:
        SRT document
    """
    cues: list[list[KaraokeWord]] = []
    chunk: list[KaraokeWord] = []
    for word in words_from_alignment(alignment):
        chunk.append(word)
        if len(chunk) >= words_per_chunk or word.word.endswith((".", "!", "?", ",")):
            cues.append(chunk)
            chunk = []
    if chunk:
        cues.append(chunk)

    return "\n".join(
        f"{index}\n{format_srt_time(cue[0].start)} --> {format_srt_time(cue[-1].end)}\n"
        f"{' '.join(w.word for w in cue)}\n"
        for index, cue in enumerate(cues, start=1)
    )


__all__ = [
    "CharacterAlignment",
    "KaraokeSubtitleBuilder",
    "KaraokeWord",
    "SubtitleLine",
    "build_dialogue",
    "build_header",
    "build_srt",
    "format_ass_time",
    "format_srt_time",
    "group_into_lines",
    "to_centiseconds",
    "words_from_alignment",
]
