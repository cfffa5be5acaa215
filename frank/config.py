"""
Frank Karaoke - Configuration
All settings loaded from environment variables with sensible defaults.

The server is stateless: the song index is rebuilt from ``SONGS_DIRECTORY``
on every start, and the party queue lives only in memory.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load environment variables from .env file
_ = load_dotenv()

# ---------------------------------------------------------------------------
# Application
# ---------------------------------------------------------------------------
APP_HOST = os.getenv("APP_HOST", "127.0.0.1")
APP_PORT = int(os.getenv("APP_PORT", "3001"))
APP_ENV = os.getenv("APP_ENV", "development")
APP_VERSION = os.getenv("APP_VERSION", "0.1.0")
DEBUG = os.getenv("DEBUG", "false").lower() == "true"

# Comma-separated list of allowed origins for the browser frontend
CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "*").split(",")
    if origin.strip()
]

# ---------------------------------------------------------------------------
# Paths
# ---------------------------------------------------------------------------
SONGS_DIRECTORY = Path(os.getenv("SONGS_DIRECTORY", "./songs"))

# ---------------------------------------------------------------------------
# Logging: stdout only
# ---------------------------------------------------------------------------
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

# ---------------------------------------------------------------------------
# Batch validation
# ---------------------------------------------------------------------------
VALIDATE_WORKERS = int(os.getenv("VALIDATE_WORKERS", str(os.cpu_count() or 1)))

# ---------------------------------------------------------------------------
# UltraStar chart files and their assets
# ---------------------------------------------------------------------------
CHART_EXTENSION = ".txt"

# Video containers are accepted as audio: UltraStar packs often point #MP3
# at the music video itself.
ALLOWED_AUDIO_EXTENSIONS = {
    ".mp3",
    ".ogg",
    ".wav",
    ".m4a",
    ".flac",
    ".opus",
    ".mp4",
    ".avi",
    ".mkv",
    ".webm",
    ".mov",
}
ALLOWED_VIDEO_EXTENSIONS = {".mp4", ".avi", ".mkv", ".webm", ".mov"}
ALLOWED_IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif", ".webp"}

# Tried in order when #COVER is absent or names a missing file
COVER_FALLBACK_NAMES = ["cover.jpg", "cover.png", "[CO].jpg", "[CO].png"]
COVER_FALLBACK_EXTENSIONS = (".jpg", ".jpeg", ".png")

# Content types for the /files endpoint
MEDIA_TYPES = {
    ".mp3": "audio/mpeg",
    ".ogg": "audio/ogg",
    ".wav": "audio/wav",
    ".m4a": "audio/mp4",
    ".flac": "audio/flac",
    ".opus": "audio/opus",
    ".mp4": "video/mp4",
    ".avi": "video/x-msvideo",
    ".mkv": "video/x-matroska",
    ".webm": "video/webm",
    ".mov": "video/quicktime",
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".webp": "image/webp",
}
