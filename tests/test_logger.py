# tests/test_logger.py
"""Test logging setup and the unmatched-tracks report"""

import pytest

from m3u_sync.core.logger import get_logger, log_unmatched_track, setup_logging, shutdown_logging
from m3u_sync.core.progress import FolderProgressBar, MatchingProgressBar


@pytest.fixture
def logs_dir(temp_dir):
    logs_dir = setup_logging(temp_dir)
    yield logs_dir
    shutdown_logging()


def read_single(logs_dir, prefix):
    files = list(logs_dir.glob(f"{prefix}_*.log"))
    assert len(files) == 1
    return files[0].read_text(encoding="utf-8")


class TestSetupLogging:

    def test_creates_log_files(self, temp_dir, logs_dir):
        assert logs_dir == temp_dir / "logs"
        assert len(list(logs_dir.glob("log_full_*.log"))) == 1
        assert len(list(logs_dir.glob("log_errors_*.log"))) == 1
        assert len(list(logs_dir.glob("unmatched_tracks_*.log"))) == 1

    def test_error_log_only_has_errors(self, logs_dir):
        logger = get_logger("m3u_sync.test")
        logger.info("Scanning folder")
        logger.error("Could not write Pop.m3u")
        shutdown_logging()

        full = read_single(logs_dir, "log_full")
        errors = read_single(logs_dir, "log_errors")
        assert "Scanning folder" in full
        assert "Could not write Pop.m3u" in errors
        assert "Scanning folder" not in errors

    def test_unmatched_report(self, logs_dir):
        logger = get_logger("m3u_sync.test")
        log_unmatched_track(
            logger,
            title="One Kiss",
            artists="Calvin Harris, Dua Lipa",
            expected_filename="Calvin Harris, Dua Lipa - One Kiss.mp3",
            spotify_url="https://open.spotify.com/track/xyz",
            playlist_name="Summer",
        )
        logger.warning("Not an unmatched track")
        shutdown_logging()

        assert read_single(logs_dir, "unmatched_tracks") == (
            "[Summer] Calvin Harris, Dua Lipa - One Kiss\n"
            "Expected: Calvin Harris, Dua Lipa - One Kiss.mp3\n"
            "https://open.spotify.com/track/xyz\n\n"
        )


class TestProgressBars:
    """Counters update without starting the live display"""

    def test_matching_counters(self):
        bar = MatchingProgressBar(total=3)
        bar.update(matched=True)
        bar.update(matched=False)

        assert (bar.completed, bar.matched, bar.unmatched) == (2, 1, 1)

    def test_folder_counters(self):
        bar = FolderProgressBar(total=3)
        bar.update("written")
        bar.update("skipped")

        assert (bar.written, bar.skipped, bar.failed) == (1, 1, 0)
        with pytest.raises(ValueError):
            bar.update("deleted")
