"""
Frank Karaoke - Song Indexer

Walks a songs directory, parses every UltraStar chart it finds and resolves
the assets each chart references.

Resolution here is advisory: a referenced file that does not exist simply
resolves to ``None``.  Reporting missing or badly formatted assets is the
validator's job (see :mod:`frank.services.chart_validator`).

One broken chart never stops a scan; it is logged and skipped.
"""

from __future__ import annotations

import os
from dataclasses import replace
from pathlib import Path

from loguru import logger

from frank.config import (
    CHART_EXTENSION,
    COVER_FALLBACK_EXTENSIONS,
    COVER_FALLBACK_NAMES,
)
from frank.models import Song, SongFiles, SongMetadata
from frank.services.chart_parser import ChartParseError, parse_chart


def is_ultrastar_file(path: Path) -> bool:
    """UltraStar charts are ``.txt`` files (any case)."""
    return path.suffix.lower() == CHART_EXTENSION


def read_chart_text(txt_path: Path) -> str:
    """
    Read a chart as text.

    UTF-8 (with or without BOM) is expected; older charts written in a
    Windows codepage are decoded as Latin-1 instead of being rejected.
    """
    raw = txt_path.read_bytes()
    try:
        return raw.decode("utf-8-sig")
    except UnicodeDecodeError:
        logger.debug("🔤 {} is not UTF-8, reading as Latin-1", txt_path)
        return raw.decode("latin-1")


def _existing(song_dir: Path, filename: str | None) -> Path | None:
    if not filename:
        return None
    path = Path(os.path.normpath(song_dir / filename))
    if not path.is_relative_to(song_dir):
        logger.warning("⚠️ Ignoring {} outside song folder {}", filename, song_dir)
        return None
    return path if path.is_file() else None


def find_cover_image(song_dir: Path) -> Path | None:
    """
    Look for a cover image when ``#COVER`` is absent or names a missing file.

    The well-known names are tried first, in order.  Failing that, the first
    directory entry whose name contains ``cover`` and ends in an image
    extension wins; entries come in filesystem order, so which of several
    candidates is picked is not specified.
    """
    for name in COVER_FALLBACK_NAMES:
        path = song_dir / name
        if path.is_file():
            return path.resolve()

    try:
        entries = list(os.scandir(song_dir))
    except OSError as e:
        logger.warning("⚠️ Cannot scan {} for cover images: {}", song_dir, e)
        return None

    for entry in entries:
        name_lower = entry.name.lower()
        if (
            "cover" in name_lower
            and name_lower.endswith(COVER_FALLBACK_EXTENSIONS)
            and entry.is_file()
        ):
            return Path(entry.path).resolve()

    return None


def resolve_files(txt_path: Path, metadata: SongMetadata) -> SongFiles:
    """Resolve a chart's asset filenames to absolute paths of existing files."""
    song_dir = txt_path.resolve().parent
    cover_path = _existing(song_dir, metadata.cover_file) or find_cover_image(song_dir)

    return SongFiles(
        txt_path=txt_path.resolve(),
        audio_path=_existing(song_dir, metadata.audio_file),
        video_path=_existing(song_dir, metadata.video_file),
        cover_path=cover_path,
        background_path=_existing(song_dir, metadata.background_file),
    )


def index_song(txt_path: Path) -> Song:
    """
    Parse one chart and resolve its files.

    Raises
    ------
    ChartParseError
        If the chart cannot be parsed.
    OSError
        If the chart cannot be read.
    """
    content = read_chart_text(txt_path)
    song = parse_chart(content, txt_path)
    return replace(song, files=resolve_files(txt_path, song.metadata))


def _scan_recursive(
    path: Path, songs: dict[str, Song], visited: set[tuple[int, int]]
) -> None:
    try:
        stat = path.stat()
        key = (stat.st_dev, stat.st_ino)
        if key in visited:
            logger.debug("🔁 Skipping already scanned directory {}", path)
            return
        visited.add(key)
        entries = sorted(path.iterdir())
    except OSError as e:
        logger.warning("⚠️ Cannot read directory {}: {}", path, e)
        return

    for entry in entries:
        if entry.is_dir():
            _scan_recursive(entry, songs, visited)
        elif is_ultrastar_file(entry):
            try:
                song = index_song(entry)
            except (ChartParseError, OSError) as e:
                logger.warning("⚠️ Failed to parse {}: {}", entry, e)
                continue
            logger.info("🎵 Indexed: {} - {}", song.metadata.artist, song.metadata.title)
            songs[song.id] = song


def scan_directory(path: str | Path) -> dict[str, Song]:
    """
    Index every chart below *path*.

    Returns a mapping of song id → Song.  A missing directory yields an
    empty index.  Directories reached twice (through symlinks) are scanned
    once, and unreadable directories are logged and skipped.
    """
    path = Path(path)
    songs: dict[str, Song] = {}

    if not path.is_dir():
        logger.warning("⚠️ Songs directory does not exist: {}", path)
        return songs

    _scan_recursive(path, songs, set())
    logger.info("📚 Indexed {} songs from {}", len(songs), path)
    return songs
