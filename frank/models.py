"""
Frank Karaoke - Song Models

Typed records produced by the chart parser and stored in the song library.

All records are frozen dataclasses: a ``Song`` is built once by the parser
(plus the indexer's file resolution) and is never mutated afterwards.
``to_dict()`` produces the JSON shape served by the HTTP API.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any


class NoteType(str, Enum):
    """Kinds of sung notes, keyed by their chart marker character."""

    NORMAL = "normal"  # ':'
    GOLDEN = "golden"  # '*'
    FREESTYLE = "freestyle"  # 'F'
    RAP = "rap"  # 'R'
    GOLDEN_RAP = "goldenrap"  # 'G'


@dataclass(frozen=True)
class Note:
    """One sung syllable."""

    note_type: NoteType
    start_beat: int
    length: int
    pitch: int  # semitones, may be negative
    text: str

    def to_dict(self) -> dict[str, Any]:
        return {
            "note_type": self.note_type.value,
            "start_beat": self.start_beat,
            "length": self.length,
            "pitch": self.pitch,
            "text": self.text,
        }


@dataclass(frozen=True)
class LineBreak:
    """End of a displayed lyric line."""

    start_beat: int
    end_beat: int | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {"start_beat": self.start_beat}
        if self.end_beat is not None:
            d["end_beat"] = self.end_beat
        return d


@dataclass(frozen=True)
class SongMetadata:
    """Header tags of a chart.

    Asset fields hold the raw filenames from the chart; resolving them to
    paths is the indexer's job (see :class:`SongFiles`).
    """

    title: str
    artist: str
    bpm: float
    gap: float = 0.0  # milliseconds before beat zero
    video_gap: float | None = None
    genre: str | None = None
    year: int | None = None
    language: str | None = None
    edition: str | None = None
    creator: str | None = None
    duet_singer_p1: str | None = None
    duet_singer_p2: str | None = None
    audio_file: str | None = None
    video_file: str | None = None
    cover_file: str | None = None
    background_file: str | None = None

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "title": self.title,
            "artist": self.artist,
            "bpm": self.bpm,
            "gap": self.gap,
        }
        optional = {
            "video_gap": self.video_gap,
            "genre": self.genre,
            "year": self.year,
            "language": self.language,
            "edition": self.edition,
            "creator": self.creator,
            "duet_singer_p1": self.duet_singer_p1,
            "duet_singer_p2": self.duet_singer_p2,
            "audio_file": self.audio_file,
            "video_file": self.video_file,
            "cover_file": self.cover_file,
            "background_file": self.background_file,
        }
        d.update({k: v for k, v in optional.items() if v is not None})
        return d


@dataclass(frozen=True)
class SongFiles:
    """Resolved absolute paths of a chart and its assets.

    An asset path is ``None`` both when the chart does not reference it and
    when the referenced file is missing on disk.
    """

    txt_path: Path
    audio_path: Path | None = None
    video_path: Path | None = None
    cover_path: Path | None = None
    background_path: Path | None = None

    def get(self, file_type: str) -> Path | None:
        """Look up an asset path by its API name (audio/video/cover/background)."""
        return {
            "audio": self.audio_path,
            "video": self.video_path,
            "cover": self.cover_path,
            "background": self.background_path,
        }.get(file_type)


@dataclass(frozen=True)
class Song:
    """A fully parsed chart.

    ``notes_p2`` and ``line_breaks_p2`` are only set for duets whose second
    player actually sings something.
    """

    id: str
    metadata: SongMetadata
    notes: tuple[Note, ...]
    line_breaks: tuple[LineBreak, ...]
    files: SongFiles
    notes_p2: tuple[Note, ...] | None = None
    line_breaks_p2: tuple[LineBreak, ...] | None = None

    @property
    def is_duet(self) -> bool:
        return self.notes_p2 is not None

    def to_dict(self) -> dict[str, Any]:
        """Serialise for the API.  ``files`` holds local paths and is never exposed."""
        d: dict[str, Any] = {
            "id": self.id,
            "metadata": self.metadata.to_dict(),
            "notes": [n.to_dict() for n in self.notes],
            "line_breaks": [lb.to_dict() for lb in self.line_breaks],
        }
        if self.notes_p2 is not None:
            d["notes_p2"] = [n.to_dict() for n in self.notes_p2]
        if self.line_breaks_p2 is not None:
            d["line_breaks_p2"] = [lb.to_dict() for lb in self.line_breaks_p2]
        return d


@dataclass(frozen=True)
class SongSummary:
    """Listing entry for a song, without note data."""

    id: str
    title: str
    artist: str
    genre: str | None = None
    year: int | None = None
    language: str | None = None
    has_video: bool = False
    is_duet: bool = False
    cover_url: str | None = None

    @classmethod
    def from_song(cls, song: Song) -> SongSummary:
        return cls(
            id=song.id,
            title=song.metadata.title,
            artist=song.metadata.artist,
            genre=song.metadata.genre,
            year=song.metadata.year,
            language=song.metadata.language,
            has_video=song.files.video_path is not None,
            is_duet=song.is_duet,
            cover_url=(
                f"/files/{song.id}/cover" if song.files.cover_path is not None else None
            ),
        )

    def to_dict(self) -> dict[str, Any]:
        d: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "artist": self.artist,
            "has_video": self.has_video,
            "is_duet": self.is_duet,
        }
        for key in ("genre", "year", "language", "cover_url"):
            value = getattr(self, key)
            if value is not None:
                d[key] = value
        return d


@dataclass
class QueueEntry:
    """A party guest's song request."""

    id: int
    song_id: str
    song_title: str
    song_artist: str
    submitter: str = field(default="")

    def to_dict(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "song_id": self.song_id,
            "song_title": self.song_title,
            "song_artist": self.song_artist,
            "submitter": self.submitter,
        }
