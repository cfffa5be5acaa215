"""
Frank Karaoke - UltraStar Chart Parser

Parses UltraStar ``.txt`` charts into :class:`~frank.models.Song` records for
the song library.

The parser is deliberately lenient about things it can default around
(unknown tags, unknown lines, an unparseable line-break end beat, a bad
VIDEOGAP or YEAR) and strict about everything a song cannot be played
without.  The first such problem raises :class:`ChartParseError`; no partial
song is ever returned.  Exhaustive diagnostics are the job of
:mod:`frank.services.chart_validator`.

Duets
-----
``P1`` / ``P2`` lines switch the player that following notes and line breaks
belong to.  ``#P1``/``#P2``/``#DUETSINGERP1``/``#DUETSINGERP2`` headers mark
the chart as a duet too, but the second stream is only attached when it is
non-empty.
"""

from __future__ import annotations

import hashlib
from pathlib import Path

from loguru import logger

from frank.models import LineBreak, Note, Song, SongFiles, SongMetadata
from frank.services.chart_lines import (
    LineKind,
    classify_line,
    note_type_for,
    parse_decimal,
    parse_int,
    player_number,
    split_header,
    split_line_break_fields,
    split_lines,
    split_note_fields,
)

# Header tags that mark a chart as a duet
DUET_TAGS = {"P1", "P2", "DUETSINGERP1", "DUETSINGERP2"}

# Plain string tags → MetadataBuilder attribute
_STRING_TAGS: dict[str, str] = {
    "TITLE": "title",
    "ARTIST": "artist",
    "MP3": "audio_file",
    "AUDIO": "audio_file",
    "VIDEO": "video_file",
    "COVER": "cover_file",
    "BACKGROUND": "background_file",
    "GENRE": "genre",
    "LANGUAGE": "language",
    "EDITION": "edition",
    "CREATOR": "creator",
    "DUETSINGERP1": "duet_singer_p1",
    "P1": "duet_singer_p1",
    "DUETSINGERP2": "duet_singer_p2",
    "P2": "duet_singer_p2",
}

_MAX_YEAR = 65535


class ChartParseError(ValueError):
    """Raised when a chart is malformed or lacks a required header."""


# ---------------------------------------------------------------------------
# Metadata builder
# ---------------------------------------------------------------------------


class MetadataBuilder:
    """
    Accumulates header tags, then validates required fields in :meth:`build`.

    Tags may arrive in any order and repeat (last one wins).  BPM and GAP
    are parsed strictly as soon as they are seen; VIDEOGAP and YEAR fall
    back to ``None`` when they do not parse.
    """

    def __init__(self) -> None:
        self.title: str | None = None
        self.artist: str | None = None
        self.bpm: float | None = None
        self.gap: float | None = None
        self.video_gap: float | None = None
        self.genre: str | None = None
        self.year: int | None = None
        self.language: str | None = None
        self.edition: str | None = None
        self.creator: str | None = None
        self.duet_singer_p1: str | None = None
        self.duet_singer_p2: str | None = None
        self.audio_file: str | None = None
        self.video_file: str | None = None
        self.cover_file: str | None = None
        self.background_file: str | None = None

    def apply(self, tag: str, value: str) -> None:
        """Record one header.  Unknown tags are ignored."""
        tag = tag.upper()

        if tag in _STRING_TAGS:
            setattr(self, _STRING_TAGS[tag], value)
        elif tag == "BPM":
            self.bpm = self._strict_decimal("BPM", value)
        elif tag == "GAP":
            self.gap = self._strict_decimal("GAP", value)
        elif tag == "VIDEOGAP":
            self.video_gap = parse_decimal(value)
        elif tag == "YEAR":
            year = parse_int(value)
            self.year = year if year is not None and 0 <= year <= _MAX_YEAR else None

    @staticmethod
    def _strict_decimal(tag: str, value: str) -> float:
        number = parse_decimal(value)
        if number is None:
            raise ChartParseError(f"Invalid {tag} value: {value}")
        return number

    def build(self) -> SongMetadata:
        """Return the finished metadata or raise if a required tag is missing."""
        if not self.title:
            raise ChartParseError("Missing required TITLE tag")
        if not self.artist:
            raise ChartParseError("Missing required ARTIST tag")
        if self.bpm is None:
            raise ChartParseError("Missing required BPM tag")

        return SongMetadata(
            title=self.title,
            artist=self.artist,
            bpm=self.bpm,
            gap=self.gap if self.gap is not None else 0.0,
            video_gap=self.video_gap,
            genre=self.genre,
            year=self.year,
            language=self.language,
            edition=self.edition,
            creator=self.creator,
            duet_singer_p1=self.duet_singer_p1,
            duet_singer_p2=self.duet_singer_p2,
            audio_file=self.audio_file,
            video_file=self.video_file,
            cover_file=self.cover_file,
            background_file=self.background_file,
        )


# ---------------------------------------------------------------------------
# Low-level line parsers
# ---------------------------------------------------------------------------


def parse_note_line(line: str) -> Note:
    """Parse a trimmed note line such as ``: 12 4 -3 Hel``."""
    note_type = note_type_for(line)
    fields = split_note_fields(line[1:])
    if len(fields) < 4:
        raise ChartParseError(f"Invalid note line (expected 4+ parts): {line}")

    values: list[int] = []
    for name, token in zip(("start beat", "length", "pitch"), fields[:3]):
        number = parse_int(token)
        if number is None:
            raise ChartParseError(f"Invalid {name}: {token}")
        values.append(number)

    start_beat, length, pitch = values
    return Note(
        note_type=note_type,
        start_beat=start_beat,
        length=length,
        pitch=pitch,
        text=fields[3],
    )


def parse_line_break(line: str) -> LineBreak:
    """Parse a trimmed line break such as ``- 40`` or ``- 40 44``.

    An end beat that does not parse is treated as absent.
    """
    fields = split_line_break_fields(line[1:])
    if not fields:
        raise ChartParseError(f"Invalid line break: {line}")

    start_beat = parse_int(fields[0])
    if start_beat is None:
        raise ChartParseError(f"Invalid line break beat: {fields[0]}")

    end_beat = parse_int(fields[1]) if len(fields) > 1 else None
    return LineBreak(start_beat=start_beat, end_beat=end_beat)


def generate_song_id(txt_path: str | Path) -> str:
    """Stable id for a chart, derived from its path only."""
    return hashlib.sha1(str(txt_path).encode("utf-8")).hexdigest()[:16]


# ---------------------------------------------------------------------------
# Main entry points
# ---------------------------------------------------------------------------


def parse_chart(content: str, txt_path: str | Path) -> Song:
    """
    Parse the full text of an UltraStar chart.

    Parameters
    ----------
    content : str
        Decoded chart text.  A leading BOM is ignored.
    txt_path : str or Path
        Location of the chart.  Used for the song id and as the base for
        later asset resolution; the file is not read.

    Returns
    -------
    Song
        With ``files`` holding only ``txt_path``; see
        :func:`frank.services.song_indexer.resolve_files`.

    Raises
    ------
    ChartParseError
        On the first malformed header value, note, or line break, or when a
        required header is missing.
    """
    txt_path = Path(txt_path)
    metadata = MetadataBuilder()
    notes: dict[int, list[Note]] = {1: [], 2: []}
    line_breaks: dict[int, list[LineBreak]] = {1: [], 2: []}
    current_player = 1
    is_duet = False

    for raw_line in split_lines(content.lstrip("\ufeff")):
        line = raw_line.strip()
        kind, payload = classify_line(line)

        if kind == LineKind.HEADER:
            tag, value = split_header(payload)
            metadata.apply(tag, value)
            if tag in DUET_TAGS:
                is_duet = True
        elif kind == LineKind.PLAYER_SWITCH:
            player = player_number(payload)
            if player is not None:
                is_duet = True
                current_player = player
        elif kind == LineKind.NOTE:
            notes[current_player].append(parse_note_line(line))
        elif kind == LineKind.LINE_BREAK:
            line_breaks[current_player].append(parse_line_break(line))
        elif kind == LineKind.END:
            break
        # BLANK and UNKNOWN lines are skipped

    song_metadata = metadata.build()
    has_second_player = is_duet and bool(notes[2])

    song = Song(
        id=generate_song_id(txt_path),
        metadata=song_metadata,
        notes=tuple(notes[1]),
        line_breaks=tuple(line_breaks[1]),
        notes_p2=tuple(notes[2]) if has_second_player else None,
        line_breaks_p2=tuple(line_breaks[2]) if has_second_player else None,
        files=SongFiles(txt_path=txt_path),
    )
    logger.debug(
        "🎤 Parsed {} - {} ({} notes{})",
        song_metadata.artist,
        song_metadata.title,
        len(song.notes),
        ", duet" if has_second_player else "",
    )
    return song
