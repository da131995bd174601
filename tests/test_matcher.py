# tests/test_matcher.py
"""Test track matching strategies"""

import pytest

from m3u_sync.matching import (
    MIN_MATCH_SCORE,
    SUBSTRING_SCORE,
    LocalFile,
    MatchingOptions,
    MatchRecord,
    RemoteTrack,
    Strategy,
    TrackMatcher,
    match_tracks,
)
from m3u_sync.matching.scorer import SUBSTRING_BONUS

EXACT = MatchingOptions(strategy=Strategy.EXACT_OR_SUBSTRING)


def local(name, folder="/music/Pop"):
    return LocalFile(path=f"{folder}/{name}", name=name)


def track(artist, title, track_id="id"):
    return RemoteTrack(track_id=track_id, title=title, artists=(artist,))


class FakeProgress:

    def __init__(self):
        self.updates = []

    def update(self, matched):
        self.updates.append(matched)


class TestBestScore:
    """Test the default best-score strategy"""

    def test_exact_filename_matches(self):
        records = match_tracks([track("Artist1", "Song1")], [local("Artist1 - Song1.mp3")])

        assert len(records) == 1
        assert records[0].is_matched
        assert records[0].score == pytest.approx(1.0)
        assert records[0].local_file_path == "/music/Pop/Artist1 - Song1.mp3"

    def test_unrelated_file_does_not_match(self):
        records = match_tracks([track("ArtistX", "Unrelated")], [local("completely_different.mp3")])

        assert not records[0].is_matched
        assert records[0].local_file_path is None

    def test_below_threshold_keeps_best_score(self):
        record = TrackMatcher().match_track(
            track("Queen", "Bohemian Rhapsody Live Aid Version"),
            [local("Bohemian.mp3")],
        )

        assert not record.is_matched
        assert record.score == pytest.approx(1 / 6 + SUBSTRING_BONUS)
        assert record.score < MIN_MATCH_SCORE

    def test_first_file_wins_ties(self):
        files = [
            local("Artist1 - Song1.mp3", folder="/music/Pop/a"),
            local("Artist1 - Song1.mp3", folder="/music/Pop/b"),
        ]
        record = TrackMatcher().match_track(track("Artist1", "Song1"), files)

        assert record.local_file_path == "/music/Pop/a/Artist1 - Song1.mp3"

    def test_best_file_is_chosen(self):
        files = [local("Other Band - Tune.mp3"), local("Artist2 - Song2.mp3")]
        record = TrackMatcher().match_track(track("Artist2", "Song2"), files)

        assert record.local_file_path == "/music/Pop/Artist2 - Song2.mp3"

    def test_no_local_files(self):
        record = TrackMatcher().match_track(track("Artist1", "Song1"), [])

        assert record == MatchRecord.unmatched(track("Artist1", "Song1"))

    def test_order_preserved_and_progress_updated(self, sample_tracks, sample_local_files):
        progress = FakeProgress()
        records = TrackMatcher().match_tracks(sample_tracks, sample_local_files, progress=progress)

        assert [r.track for r in records] == sample_tracks
        assert [r.is_matched for r in records] == [True, False]
        assert progress.updates == [True, False]


class TestExactOrSubstring:
    """Test the exact-or-substring strategy"""

    def test_exact_name_scores_one(self):
        files = [local("Artist1 - Song1 extended.mp3"), local("Artist1 - Song1.mp3")]
        record = TrackMatcher(EXACT).match_track(track("Artist1", "Song1"), files)

        assert record.is_matched
        assert record.score == 1.0
        assert record.local_file_path.endswith("/Artist1 - Song1.mp3")

    def test_first_substring_scores_point_eight(self):
        files = [local("Other.mp3"), local("Artist1 - Song1 (Live).mp3"), local("Artist1 - Song1 (Demo).mp3")]
        record = TrackMatcher(EXACT).match_track(track("Artist1", "Song1"), files)

        assert record.score == SUBSTRING_SCORE
        assert record.local_file_path.endswith("(Live).mp3")

    def test_filename_contained_in_track(self):
        record = TrackMatcher(EXACT).match_track(track("Queen", "Bohemian Rhapsody"), [local("Bohemian Rhapsody.mp3")])

        assert record.is_matched
        assert record.score == SUBSTRING_SCORE

    def test_empty_filename_never_matches(self):
        record = TrackMatcher(EXACT).match_track(track("Artist1", "Song1"), [local(".mp3"), local("!!!.mp3")])

        assert not record.is_matched
        assert record.score == 0.0

    def test_no_fuzzy_matching(self):
        record = TrackMatcher(EXACT).match_track(track("Artist1", "Song1"), [local("Artist1 - Sng1.mp3")])

        assert not record.is_matched

    def test_case_sensitive_option(self):
        options = MatchingOptions(case_sensitive=True, strategy=Strategy.EXACT_OR_SUBSTRING)
        files = [local("Artist1 - Song1.mp3")]

        assert not TrackMatcher(options).match_track(track("artist1", "song1"), files).is_matched
        assert TrackMatcher(EXACT).match_track(track("artist1", "song1"), files).is_matched


class TestModels:
    """Test RemoteTrack and LocalFile helpers"""

    def test_from_spotify_api(self):
        data = {
            "id": "4cOdK2wGLETKBW3PvgPWqT",
            "name": "One Kiss",
            "artists": [{"name": "Calvin Harris"}, {"name": "Dua Lipa"}, {"name": ""}],
            "duration_ms": 214846,
            "explicit": False,
            "popularity": 80,
        }
        remote = RemoteTrack.from_spotify_api(data)

        assert remote.artists == ("Calvin Harris", "Dua Lipa")
        assert remote.display_artists == "Calvin Harris, Dua Lipa"
        assert remote.duration_seconds == 215
        assert remote.spotify_url == "https://open.spotify.com/track/4cOdK2wGLETKBW3PvgPWqT"

    def test_expected_filename_drops_invalid_characters(self):
        remote = RemoteTrack(track_id="x", title='Back in "Black"?', artists=("AC/DC",))

        assert remote.expected_filename == "ACDC - Back in Black.mp3"

    def test_local_file_normalized_name(self):
        assert local("Artist1 - Song1.MP3").normalized_name == "artist1 song1"
