# tests/test_cli.py
"""Test the command-line interface"""

import json

import pytest
from click.testing import CliRunner

from m3u_sync import __version__
from m3u_sync.cli import cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.fixture
def config_file(temp_dir, music_library):
    path = temp_dir / "config.yaml"
    path.write_text(
        "library:\n"
        f'  base_music_folder: "{music_library}"\n'
        f'  log_directory: "{temp_dir}"\n',
        encoding="utf-8",
    )
    return path


@pytest.fixture
def fake_spotify(monkeypatch, sample_tracks):
    """Replace the Spotify source with one serving the sample tracks"""

    class FakeSource:

        def __init__(self, access_token):
            self.access_token = access_token

        def fetch_tracks(self, playlist):
            return list(sample_tracks)

        def playlist_name(self, playlist):
            return "Fetched Name"

    monkeypatch.setenv("SPOTIFY_ACCESS_TOKEN", "token")
    monkeypatch.setattr("m3u_sync.cli.SpotifyTrackSource", FakeSource)


def invoke(runner, config_file, *args):
    return runner.invoke(cli, ["--config", str(config_file), *args])


class TestBasics:

    def test_version(self, runner):
        result = runner.invoke(cli, ["--version"])

        assert result.exit_code == 0
        assert __version__ in result.output

    def test_missing_config(self, runner, temp_dir):
        result = runner.invoke(cli, ["--config", str(temp_dir / "missing.yaml"), "mapping", "list"])

        assert result.exit_code == 1
        assert "Configuration error" in result.output

    def test_sync_needs_playlist_or_all(self, runner, config_file):
        result = invoke(runner, config_file, "sync")

        assert result.exit_code == 2


class TestMerge:

    def test_merge_files(self, runner, temp_dir):
        source = temp_dir / "old.m3u"
        target = temp_dir / "Pop.m3u"
        source.write_text("#EXTM3U\n#EXTINF:1,b\nPop/b.mp3\nPop/a.mp3\n", encoding="utf-8")
        target.write_text("#EXTM3U\nPop/a.mp3\n", encoding="utf-8")

        result = runner.invoke(cli, ["merge", str(source), str(target)])

        assert result.exit_code == 0
        assert "2 entries" in result.output
        assert target.read_text(encoding="utf-8") == "#EXTM3U\nPop/a.mp3\n#EXTINF:1,b\nPop/b.mp3\n"


class TestGenerate:

    def test_generate_with_base(self, runner, temp_dir, music_library, monkeypatch):
        monkeypatch.chdir(temp_dir)

        result = runner.invoke(cli, ["generate", "--base", str(music_library)])

        assert result.exit_code == 0
        assert (music_library / "Pop.m3u").exists()
        assert not (music_library / "Rock.m3u").exists()
        assert (temp_dir / "logs").is_dir()

    def test_generate_from_config(self, runner, config_file, music_library):
        result = invoke(runner, config_file, "generate")

        assert result.exit_code == 0
        assert (music_library / "Pop.m3u").exists()

    def test_missing_base(self, runner, temp_dir, monkeypatch):
        monkeypatch.chdir(temp_dir)

        result = runner.invoke(cli, ["generate", "--base", str(temp_dir / "missing")])

        assert result.exit_code == 4


class TestMappings:

    def test_add_list_remove(self, runner, config_file):
        added = invoke(runner, config_file, "mapping", "add", "abc123", "--folder", "Pop", "--name", "Top Hits")
        assert added.exit_code == 0
        assert "Mapped 'Top Hits' -> Pop/ (Top Hits.m3u)" in added.output

        listed = invoke(runner, config_file, "mapping", "list")
        assert listed.exit_code == 0
        assert "abc123" in listed.output

        removed = invoke(runner, config_file, "mapping", "remove", "abc123")
        assert removed.exit_code == 0

        again = invoke(runner, config_file, "mapping", "remove", "abc123")
        assert again.exit_code == 4

    def test_add_fetches_name(self, runner, config_file, fake_spotify):
        result = invoke(runner, config_file, "mapping", "add", "spotify:playlist:abc123", "--folder", "Pop")

        assert result.exit_code == 0
        assert "(Fetched Name.m3u)" in result.output

    def test_add_invalid_file_name(self, runner, config_file):
        result = invoke(
            runner, config_file,
            "mapping", "add", "abc123", "--folder", "Pop", "--name", "X", "--file", "x.txt",
        )

        assert result.exit_code == 4

    def test_add_rejects_paths_outside_base(self, runner, config_file, music_library):
        escaping_file = invoke(
            runner, config_file,
            "mapping", "add", "abc123", "--folder", "Pop", "--name", "X", "--file", "../x.m3u",
        )
        escaping_folder = invoke(runner, config_file, "mapping", "add", "abc123", "--folder", "../Pop", "--name", "X")

        assert escaping_file.exit_code == 4
        assert escaping_folder.exit_code == 4
        assert "No mappings defined." in invoke(runner, config_file, "mapping", "list").output


class TestSync:

    def test_sync_without_token(self, runner, config_file):
        invoke(runner, config_file, "mapping", "add", "abc123", "--folder", "Pop", "--name", "Mix")

        result = invoke(runner, config_file, "sync", "abc123")

        assert result.exit_code == 1

    def test_sync_unknown_playlist(self, runner, config_file, fake_spotify):
        result = invoke(runner, config_file, "sync", "abc123")

        assert result.exit_code == 4

    def test_sync_one_playlist(self, runner, config_file, music_library, fake_spotify, temp_dir):
        invoke(runner, config_file, "mapping", "add", "abc123", "--folder", "Pop", "--name", "Mix")
        report = temp_dir / "sync.json"

        result = invoke(runner, config_file, "sync", "abc123", "--report", str(report))

        assert result.exit_code == 0
        assert "Pop/Artist1 - Song1.mp3" in (music_library / "Mix.m3u").read_text(encoding="utf-8")
        assert json.loads(report.read_text(encoding="utf-8"))["totals"]["matched"] == 1

    def test_sync_all_with_failure(self, runner, config_file, music_library, fake_spotify):
        invoke(runner, config_file, "mapping", "add", "abc123", "--folder", "Pop", "--name", "Mix")
        invoke(runner, config_file, "mapping", "add", "def456", "--folder", "Jazz", "--name", "Jazz")

        result = invoke(runner, config_file, "sync", "--all")

        assert result.exit_code == 4
        assert (music_library / "Mix.m3u").exists()
        assert not (music_library / "Jazz.m3u").exists()

    def test_history_after_sync(self, runner, config_file, fake_spotify):
        invoke(runner, config_file, "mapping", "add", "abc123", "--folder", "Pop", "--name", "Mix")

        empty = invoke(runner, config_file, "mapping", "history", "abc123")
        assert empty.exit_code == 0
        assert "No syncs recorded for abc123." in empty.output

        invoke(runner, config_file, "sync", "abc123")
        invoke(runner, config_file, "sync", "abc123")
        result = invoke(runner, config_file, "mapping", "history", "abc123", "--limit", "1")

        assert result.exit_code == 0
        assert "Sync history: abc123" in result.output
        assert result.output.count("Mix.m3u") == 1

    def test_match_dry_run(self, runner, config_file, music_library, fake_spotify):
        result = invoke(runner, config_file, "match", "abc123", "--folder", "Pop")

        assert result.exit_code == 0
        assert not any(music_library.glob("*.m3u"))
