"""
Frank Karaoke - Pytest Configuration & Shared Fixtures

Provides reusable fixtures for:
- Sample UltraStar chart content (valid, duet, broken)
- Song folders on disk with chart and asset files
- A songs directory and a populated SongLibrary
"""

import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from frank.library import SongLibrary  # noqa: E402

# ---------------------------------------------------------------------------
# Sample chart content constants
# ---------------------------------------------------------------------------

SAMPLE_CHART_VALID = """\
#TITLE:Test Song
#ARTIST:Test Artist
#MP3:song.mp3
#BPM:300
#GAP:1000
#GENRE:Pop
#YEAR:2024
#LANGUAGE:English
: 0 4 5 Hel
: 4 4 7 lo
- 10
* 12 4 9  world
F 16 2 0 ~
- 20 22
R 24 2 -3 yeah
G 28 2 0 yo
E
"""

SAMPLE_CHART_DUET = """\
#TITLE:Duet Song
#ARTIST:Duo
#MP3:duet.mp3
#BPM:200
#P1:Alice
#P2:Bob
P1
: 0 4 5 Hi
- 6
P2
: 8 4 7 Ho
- 14
P1
: 16 2 3 Hey
E
"""

# Declares singers but never switches to player 2
SAMPLE_CHART_HEADER_ONLY_DUET = """\
#TITLE:Lonely Duet
#ARTIST:Solo
#MP3:song.mp3
#BPM:120
#DUETSINGERP1:Alice
#DUETSINGERP2:Bob
: 0 4 5 Hi
: 4 4 5 there
E
"""

SAMPLE_CHART_COMMA_DECIMALS = """\
#TITLE:Comma Song
#ARTIST:Comma Artist
#MP3:song.mp3
#BPM:312,5
#GAP:1234,56
: 0 1 0 la
E
"""

SAMPLE_CHART_NO_TITLE = """\
#ARTIST:Test Artist
#MP3:song.mp3
#BPM:300
: 0 4 5 Hel
E
"""

SAMPLE_CHART_NO_NOTES = """\
#TITLE:Silent Song
#ARTIST:Mime
#MP3:song.mp3
#BPM:120
E
"""


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def write_song_folder(
    folder: Path,
    chart_content: str = SAMPLE_CHART_VALID,
    chart_name: str = "song.txt",
    assets: tuple = ("song.mp3",),
    chart_encoding: str = "utf-8",
) -> Path:
    """Create a song folder with a chart and placeholder asset files.

    Returns the chart path.
    """
    folder.mkdir(parents=True, exist_ok=True)
    chart_path = folder / chart_name
    chart_path.write_text(chart_content, encoding=chart_encoding)
    for name in assets:
        (folder / name).write_bytes(b"\x00" * 64)
    return chart_path


# ---------------------------------------------------------------------------
# Song folder fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def songs_dir(tmp_path: Path) -> Path:
    """An empty songs directory."""
    d = tmp_path / "songs"
    d.mkdir()
    return d


@pytest.fixture
def song_folder(songs_dir: Path) -> Path:
    """
    Create a minimal valid UltraStar song folder with:
    - song.txt  (valid chart)
    - song.mp3  (placeholder audio)
    """
    folder = songs_dir / "Test Artist - Test Song"
    write_song_folder(folder)
    return folder


@pytest.fixture
def duet_folder(songs_dir: Path) -> Path:
    """A duet song folder with audio, video and a fallback cover image."""
    folder = songs_dir / "Duo - Duet Song"
    write_song_folder(
        folder,
        SAMPLE_CHART_DUET.replace("#BPM:200", "#BPM:200\n#VIDEO:duet.mp4"),
        chart_name="duet.txt",
        assets=("duet.mp3", "duet.mp4", "cover.jpg"),
    )
    return folder


@pytest.fixture
def library(songs_dir: Path, song_folder: Path, duet_folder: Path) -> SongLibrary:
    """A SongLibrary indexed from a songs directory holding two songs."""
    lib = SongLibrary()
    lib.reindex(songs_dir)
    return lib
