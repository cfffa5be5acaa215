"""
Frank Karaoke - Song Library

In-memory song index plus the party request queue.

Both collections are owned by :class:`SongLibrary` and every read or write
goes through its lock, so request handlers running in FastAPI's thread pool
can share one instance.  Songs are immutable, so handing them out after the
lock is released is safe.
"""

from __future__ import annotations

import itertools
import threading
from collections import deque
from pathlib import Path

from loguru import logger

from frank.models import QueueEntry, Song, SongSummary
from frank.services.song_indexer import scan_directory


class SongLibrary:
    """Song index keyed by song id, and a FIFO queue of song requests."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._songs: dict[str, Song] = {}
        self._queue: deque[QueueEntry] = deque()
        self._next_queue_id = itertools.count(1)

    # -- index --------------------------------------------------------------

    def load(self, songs: dict[str, Song]) -> None:
        """Replace the whole index."""
        with self._lock:
            self._songs = dict(songs)

    def reindex(self, songs_directory: Path) -> int:
        """Rescan *songs_directory* and swap in the result.  Returns the song count."""
        songs = scan_directory(songs_directory)
        self.load(songs)
        return len(songs)

    def __len__(self) -> int:
        with self._lock:
            return len(self._songs)

    def list_songs(self) -> list[SongSummary]:
        with self._lock:
            songs = list(self._songs.values())
        return [SongSummary.from_song(s) for s in songs]

    def get_song(self, song_id: str) -> Song | None:
        with self._lock:
            return self._songs.get(song_id)

    def search(self, query: str) -> list[SongSummary]:
        """Songs whose title or artist contains *query* (case-insensitive)."""
        needle = query.lower()
        with self._lock:
            matches = [
                s
                for s in self._songs.values()
                if needle in s.metadata.title.lower()
                or needle in s.metadata.artist.lower()
            ]
        return [SongSummary.from_song(s) for s in matches]

    # -- queue --------------------------------------------------------------

    def get_queue(self) -> list[QueueEntry]:
        with self._lock:
            return list(self._queue)

    def add_to_queue(self, song_id: str, submitter: str) -> QueueEntry | None:
        """Queue a song.  Returns ``None`` if the song is not in the index."""
        with self._lock:
            song = self._songs.get(song_id)
            if song is None:
                return None
            entry = QueueEntry(
                id=next(self._next_queue_id),
                song_id=song_id,
                song_title=song.metadata.title,
                song_artist=song.metadata.artist,
                submitter=submitter,
            )
            self._queue.append(entry)

        logger.info(
            "🎟️ {} queued {} - {}", submitter, entry.song_artist, entry.song_title
        )
        return entry

    def remove_from_queue(self, entry_id: int) -> bool:
        with self._lock:
            for entry in self._queue:
                if entry.id == entry_id:
                    self._queue.remove(entry)
                    return True
        return False

    def remove_from_queue_by_song(self, song_id: str) -> bool:
        """Drop the first queued request for *song_id* (used once it is played)."""
        with self._lock:
            for entry in self._queue:
                if entry.song_id == song_id:
                    self._queue.remove(entry)
                    return True
        return False
