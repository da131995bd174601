# tests/test_normalizer.py
"""Test text and filename normalization"""

import pytest

from m3u_sync.matching.normalizer import (
    normalize,
    normalize_filename,
    normalize_track_info,
    strip_audio_extension,
)
from m3u_sync.matching.options import MatchingOptions, Strategy


class TestNormalize:
    """Test normalize() with the default options"""

    def test_lowercases_and_strips_punctuation(self):
        assert normalize("Artist1 - Song1") == "artist1 song1"
        assert normalize("  AC/DC   Thunder ") == "acdc thunder"

    def test_underscore_is_removed(self):
        assert normalize("completely_different") == "completelydifferent"

    def test_keeps_unicode_letters(self):
        assert normalize("Beyoncé - Halo") == "beyoncé halo"

    def test_empty_string(self):
        assert normalize("") == ""
        assert normalize(" - !? ") == ""

    @pytest.mark.parametrize("text", [
        "Artist1 - Song1",
        "  Mixed   CASE__text!! ",
        "Sigur Rós – Hoppípolla",
        "",
        "\tTabs\nand newlines\r\n",
    ])
    def test_idempotent(self, text):
        once = normalize(text)
        assert normalize(once) == once


class TestNormalizeOptions:
    """Test the normalization toggles"""

    def test_case_sensitive(self):
        assert normalize("Hello!", MatchingOptions(case_sensitive=True)) == "Hello"

    def test_keep_special_chars(self):
        options = MatchingOptions(remove_special_chars=False)
        assert normalize("AC/DC - Thunder", options) == "ac/dc - thunder"

    def test_keep_whitespace(self):
        options = MatchingOptions(normalize_whitespace=False)
        assert normalize(" a  b ", options) == " a  b "

    def test_strategy_does_not_affect_normalization(self):
        options = MatchingOptions(strategy=Strategy.EXACT_OR_SUBSTRING)
        assert normalize("Artist1 - Song1", options) == normalize("Artist1 - Song1")


class TestFilenames:
    """Test filename normalization"""

    def test_strips_audio_extension(self):
        assert normalize_filename("Artist1 - Song1.mp3") == "artist1 song1"
        assert normalize_filename("Artist1 - Song1.MP3") == "artist1 song1"
        assert normalize_filename("Track.flac") == "track"

    def test_strips_only_one_trailing_extension(self):
        assert strip_audio_extension("song.mp3.mp3") == "song.mp3"
        assert strip_audio_extension("song.mp3.txt") == "song.mp3.txt"

    def test_unknown_extension_kept_as_text(self):
        assert normalize_filename("notes.txt") == "notestxt"

    def test_track_info_joins_artists_then_title(self):
        assert normalize_track_info(("Calvin Harris", "Dua Lipa"), "One Kiss") == "calvin harris dua lipa one kiss"
        assert normalize_track_info([], "Title") == "title"


class TestStrategy:
    """Test strategy names from config"""

    def test_from_name(self):
        assert Strategy.from_name("best_score") is Strategy.BEST_SCORE
        assert Strategy.from_name("Exact-Or-Substring") is Strategy.EXACT_OR_SUBSTRING

    def test_unknown_name(self):
        with pytest.raises(ValueError):
            Strategy.from_name("fuzzy")
