"""
Frank Karaoke - JSON API Routes

Provides the REST endpoints used by the browser game:
- Song listing, search and full song data (notes, line breaks)
- Party queue (list, add, remove, remove-when-played)
- Asset file serving with HTTP Range support for seeking
- Health check
"""

import time
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import aiofiles
from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request
from fastapi.responses import StreamingResponse
from pydantic import BaseModel

from frank.config import APP_VERSION, MEDIA_TYPES
from frank.library import SongLibrary

router = APIRouter(tags=["API"])

# Track startup time for health check
_START_TIME = time.time()

_CHUNK_SIZE = 64 * 1024
_FILE_TYPES = ("audio", "video", "cover", "background")


def get_library(request: Request) -> SongLibrary:
    return request.app.state.library


# ---------------------------------------------------------------------------
# Pydantic models
# ---------------------------------------------------------------------------
class AddToQueueRequest(BaseModel):
    song_id: str
    submitter: str


# ---------------------------------------------------------------------------
# Health
# ---------------------------------------------------------------------------
@router.get("/api/health")
def health_check(library: SongLibrary = Depends(get_library)):
    """Health check endpoint for the service."""
    return {
        "status": "ok",
        "songs": len(library),
        "uptime_seconds": round(time.time() - _START_TIME, 2),
        "version": APP_VERSION,
    }


# ---------------------------------------------------------------------------
# Songs
# ---------------------------------------------------------------------------
@router.get("/api/songs")
def list_songs(library: SongLibrary = Depends(get_library)) -> List[Dict[str, Any]]:
    """List all songs (summaries only)."""
    return [s.to_dict() for s in library.list_songs()]


@router.get("/api/search")
def search_songs(
    q: str = Query(..., description="Matches title or artist"),
    library: SongLibrary = Depends(get_library),
) -> List[Dict[str, Any]]:
    """Search songs by title or artist."""
    return [s.to_dict() for s in library.search(q)]


@router.get("/api/songs/{song_id}")
def get_song(song_id: str, library: SongLibrary = Depends(get_library)):
    """Get a song with full note data."""
    song = library.get_song(song_id)
    if song is None:
        raise HTTPException(status_code=404, detail=f"Song not found: {song_id}")
    return song.to_dict()


# ---------------------------------------------------------------------------
# Queue
# ---------------------------------------------------------------------------
@router.get("/api/queue")
def list_queue(library: SongLibrary = Depends(get_library)) -> List[Dict[str, Any]]:
    return [e.to_dict() for e in library.get_queue()]


@router.post("/api/queue", status_code=201)
def add_to_queue(
    body: AddToQueueRequest, library: SongLibrary = Depends(get_library)
):
    entry = library.add_to_queue(body.song_id, body.submitter)
    if entry is None:
        raise HTTPException(
            status_code=404, detail=f"Song not found: {body.song_id}"
        )
    return entry.to_dict()


@router.delete("/api/queue/{entry_id}")
def remove_from_queue(entry_id: int, library: SongLibrary = Depends(get_library)):
    if not library.remove_from_queue(entry_id):
        raise HTTPException(status_code=404, detail=f"Queue entry not found: {entry_id}")
    return {"removed": entry_id}


@router.delete("/api/queue/song/{song_id}")
def remove_by_song(song_id: str, library: SongLibrary = Depends(get_library)):
    """Remove the queue entry for a song once it has been played."""
    if not library.remove_from_queue_by_song(song_id):
        raise HTTPException(status_code=404, detail=f"Song not queued: {song_id}")
    return {"removed": song_id}


# ---------------------------------------------------------------------------
# Files
# ---------------------------------------------------------------------------
def parse_range_header(header: str, file_size: int) -> Optional[Tuple[int, int]]:
    """
    Parse ``bytes=start-end`` / ``bytes=start-`` into an inclusive range.

    Returns ``None`` for anything unsatisfiable or malformed, in which case
    the whole file is served.
    """
    if not header.startswith("bytes="):
        return None
    parts = header[len("bytes=") :].split("-")
    if len(parts) != 2 or not parts[0].isdigit():
        return None

    start = int(parts[0])
    if parts[1] == "":
        end = file_size - 1
    elif parts[1].isdigit():
        end = int(parts[1])
    else:
        return None

    if start > end or start >= file_size:
        return None

    return start, min(end, file_size - 1)


async def _iter_file(path: Path, start: int, length: int):
    async with aiofiles.open(path, "rb") as f:
        await f.seek(start)
        remaining = length
        while remaining > 0:
            chunk = await f.read(min(_CHUNK_SIZE, remaining))
            if not chunk:
                break
            remaining -= len(chunk)
            yield chunk


@router.get("/files/{song_id}/{file_type}", tags=["Files"])
def serve_file(
    song_id: str,
    file_type: str,
    range_header: Optional[str] = Header(None, alias="Range"),
    library: SongLibrary = Depends(get_library),
):
    """Serve a song's audio, video, cover or background file."""
    song = library.get_song(song_id)
    if song is None:
        raise HTTPException(status_code=404, detail=f"Song not found: {song_id}")

    file_path = song.files.get(file_type) if file_type in _FILE_TYPES else None
    if file_path is None or not file_path.is_file():
        raise HTTPException(
            status_code=404,
            detail=f"{file_type} file not found for song {song_id}",
        )

    file_size = file_path.stat().st_size
    media_type = MEDIA_TYPES.get(file_path.suffix.lower(), "application/octet-stream")
    byte_range = parse_range_header(range_header, file_size) if range_header else None

    if byte_range is None:
        return StreamingResponse(
            _iter_file(file_path, 0, file_size),
            media_type=media_type,
            headers={
                "Content-Length": str(file_size),
                "Accept-Ranges": "bytes",
                "Cache-Control": "public, max-age=86400",
            },
        )

    start, end = byte_range
    length = end - start + 1
    return StreamingResponse(
        _iter_file(file_path, start, length),
        status_code=206,
        media_type=media_type,
        headers={
            "Content-Length": str(length),
            "Content-Range": f"bytes {start}-{end}/{file_size}",
            "Accept-Ranges": "bytes",
        },
    )
