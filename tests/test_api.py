"""
Frank Karaoke - HTTP API Tests

Exercises frank/routes/api.py through FastAPI's TestClient:
- Health, song listing, search and song detail endpoints
- Queue add / list / remove
- Asset streaming, including HTTP Range requests
"""

import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from frank.library import SongLibrary
from frank.main import create_app
from frank.routes.api import parse_range_header

AUDIO_BYTES = bytes(range(100))


@pytest.fixture
def client(songs_dir: Path, song_folder: Path, duet_folder: Path):
    (song_folder / "song.mp3").write_bytes(AUDIO_BYTES)
    app = create_app(library=SongLibrary(), songs_directory=songs_dir)
    with TestClient(app) as c:
        yield c


def _id_for(client: TestClient, title: str) -> str:
    for song in client.get("/api/songs").json():
        if song["title"] == title:
            return song["id"]
    raise AssertionError(f"{title} not listed")


# ---------------------------------------------------------------------------
# Test: health and songs
# ---------------------------------------------------------------------------


class TestSongsApi:
    def test_health(self, client: TestClient):
        resp = client.get("/api/health")
        assert resp.status_code == 200
        data = resp.json()
        assert data["status"] == "ok"
        assert data["songs"] == 2
        assert "version" in data

    def test_startup_indexes_songs(self, client: TestClient):
        titles = {s["title"] for s in client.get("/api/songs").json()}
        assert titles == {"Test Song", "Duet Song"}

    def test_summary_shape(self, client: TestClient):
        songs = {s["title"]: s for s in client.get("/api/songs").json()}
        duet = songs["Duet Song"]
        assert duet["is_duet"] is True
        assert duet["has_video"] is True
        assert duet["cover_url"] == f"/files/{duet['id']}/cover"
        assert "cover_url" not in songs["Test Song"]

    def test_search(self, client: TestClient):
        resp = client.get("/api/search", params={"q": "duo"})
        assert [s["title"] for s in resp.json()] == ["Duet Song"]

    def test_search_requires_query(self, client: TestClient):
        assert client.get("/api/search").status_code == 422

    def test_song_detail(self, client: TestClient):
        song_id = _id_for(client, "Test Song")
        data = client.get(f"/api/songs/{song_id}").json()
        assert data["id"] == song_id
        assert data["metadata"]["bpm"] == 300.0
        assert data["notes"][0] == {
            "note_type": "normal",
            "start_beat": 0,
            "length": 4,
            "pitch": 5,
            "text": "Hel",
        }
        assert data["line_breaks"] == [{"start_beat": 10}, {"start_beat": 20, "end_beat": 22}]
        assert "notes_p2" not in data
        assert "files" not in data

    def test_duet_detail(self, client: TestClient):
        data = client.get(f"/api/songs/{_id_for(client, 'Duet Song')}").json()
        assert [n["text"] for n in data["notes_p2"]] == ["Ho"]
        assert data["metadata"]["duet_singer_p1"] == "Alice"

    def test_song_not_found(self, client: TestClient):
        assert client.get("/api/songs/unknown").status_code == 404


# ---------------------------------------------------------------------------
# Test: queue
# ---------------------------------------------------------------------------


class TestQueueApi:
    def test_add_and_list(self, client: TestClient):
        song_id = _id_for(client, "Test Song")
        resp = client.post("/api/queue", json={"song_id": song_id, "submitter": "Alice"})
        assert resp.status_code == 201
        entry = resp.json()
        assert entry["song_title"] == "Test Song"
        assert entry["submitter"] == "Alice"
        assert client.get("/api/queue").json() == [entry]

    def test_add_unknown_song(self, client: TestClient):
        resp = client.post("/api/queue", json={"song_id": "nope", "submitter": "A"})
        assert resp.status_code == 404

    def test_add_invalid_body(self, client: TestClient):
        assert client.post("/api/queue", json={"submitter": "A"}).status_code == 422

    def test_remove_entry(self, client: TestClient):
        song_id = _id_for(client, "Test Song")
        entry = client.post("/api/queue", json={"song_id": song_id, "submitter": "A"}).json()
        resp = client.delete(f"/api/queue/{entry['id']}")
        assert resp.status_code == 200
        assert resp.json() == {"removed": entry["id"]}
        assert client.delete(f"/api/queue/{entry['id']}").status_code == 404

    def test_remove_by_song(self, client: TestClient):
        song_id = _id_for(client, "Test Song")
        client.post("/api/queue", json={"song_id": song_id, "submitter": "A"})
        assert client.delete(f"/api/queue/song/{song_id}").status_code == 200
        assert client.get("/api/queue").json() == []
        assert client.delete(f"/api/queue/song/{song_id}").status_code == 404


# ---------------------------------------------------------------------------
# Test: files
# ---------------------------------------------------------------------------


class TestFilesApi:
    def test_full_file(self, client: TestClient):
        song_id = _id_for(client, "Test Song")
        resp = client.get(f"/files/{song_id}/audio")
        assert resp.status_code == 200
        assert resp.content == AUDIO_BYTES
        assert resp.headers["content-type"] == "audio/mpeg"
        assert resp.headers["accept-ranges"] == "bytes"

    def test_range_request(self, client: TestClient):
        song_id = _id_for(client, "Test Song")
        resp = client.get(f"/files/{song_id}/audio", headers={"Range": "bytes=10-19"})
        assert resp.status_code == 206
        assert resp.content == AUDIO_BYTES[10:20]
        assert resp.headers["content-range"] == "bytes 10-19/100"
        assert resp.headers["content-length"] == "10"

    def test_open_ended_range(self, client: TestClient):
        song_id = _id_for(client, "Test Song")
        resp = client.get(f"/files/{song_id}/audio", headers={"Range": "bytes=90-"})
        assert resp.status_code == 206
        assert resp.content == AUDIO_BYTES[90:]

    def test_unsatisfiable_range_serves_whole_file(self, client: TestClient):
        song_id = _id_for(client, "Test Song")
        resp = client.get(f"/files/{song_id}/audio", headers={"Range": "bytes=500-600"})
        assert resp.status_code == 200
        assert resp.content == AUDIO_BYTES

    def test_fallback_cover(self, client: TestClient):
        song_id = _id_for(client, "Duet Song")
        resp = client.get(f"/files/{song_id}/cover")
        assert resp.status_code == 200
        assert resp.headers["content-type"] == "image/jpeg"

    def test_missing_asset(self, client: TestClient):
        song_id = _id_for(client, "Test Song")
        assert client.get(f"/files/{song_id}/video").status_code == 404

    def test_unknown_file_type(self, client: TestClient):
        song_id = _id_for(client, "Test Song")
        assert client.get(f"/files/{song_id}/lyrics").status_code == 404

    def test_unknown_song(self, client: TestClient):
        assert client.get("/files/nope/audio").status_code == 404


class TestParseRangeHeader:
    @pytest.mark.parametrize(
        "header, expected",
        [
            ("bytes=0-9", (0, 9)),
            ("bytes=5-", (5, 99)),
            ("bytes=90-200", (90, 99)),
            ("bytes=100-", None),
            ("bytes=9-5", None),
            ("bytes=-10", None),
            ("items=0-9", None),
            ("bytes=0-9,20-29", None),
        ],
    )
    def test_parse(self, header, expected):
        assert parse_range_header(header, 100) == expected
