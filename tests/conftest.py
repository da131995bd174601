"""Test configuration and fixtures"""

import pytest
import tempfile
from pathlib import Path

from m3u_sync.core.config import parse_config
from m3u_sync.matching.models import LocalFile, RemoteTrack


@pytest.fixture
def temp_dir():
    """Create temporary directory for tests"""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield Path(temp_dir).resolve()


@pytest.fixture(autouse=True)
def no_access_token(monkeypatch):
    """Keep a developer's SPOTIFY_ACCESS_TOKEN out of the tests"""
    monkeypatch.delenv("SPOTIFY_ACCESS_TOKEN", raising=False)


@pytest.fixture
def sample_tracks():
    """One track with a local file in the sample library, one without"""
    return [
        RemoteTrack(
            track_id="track1",
            title="Song1",
            artists=("Artist1",),
            duration_ms=215400,
        ),
        RemoteTrack(
            track_id="track2",
            title="Unrelated",
            artists=("Nobody",),
            duration_ms=180000,
        ),
    ]


@pytest.fixture
def sample_local_files():
    return [
        LocalFile(path="/music/Pop/Artist1 - Song1.mp3", name="Artist1 - Song1.mp3"),
        LocalFile(path="/music/Pop/Artist2 - Song2.mp3", name="Artist2 - Song2.mp3"),
    ]


def _make_files(base: Path, *relative_paths: str, content: bytes = b"audio") -> list[Path]:
    created = []
    for relative in relative_paths:
        path = base / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
        created.append(path)
    return created


@pytest.fixture
def make_files():
    """Create files (and their folders) under a base directory"""
    return _make_files


@pytest.fixture
def music_library(temp_dir):
    """
    Base music folder:

        music/
        ├── Pop/
        │   ├── Artist1 - Song1.mp3
        │   └── Artist2 - Song2.mp3
        └── Rock/
            └── notes.txt
    """
    base = temp_dir / "music"
    _make_files(
        base,
        "Pop/Artist1 - Song1.mp3",
        "Pop/Artist2 - Song2.mp3",
        "Rock/notes.txt",
    )
    return base


@pytest.fixture
def config(music_library, temp_dir):
    """Config pointing at the sample library, logs kept in temp_dir"""
    return parse_config({
        "library": {
            "base_music_folder": str(music_library),
            "log_directory": str(temp_dir),
        },
    })
