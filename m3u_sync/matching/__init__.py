"""
Track matching: normalization, similarity scoring and the matcher.

Usage:
    from m3u_sync.matching import match_tracks, MatchingOptions, Strategy

    records = match_tracks(tracks, local_files, MatchingOptions(strategy=Strategy.BEST_SCORE))
"""

from m3u_sync.matching.matcher import (
    EXACT_SCORE,
    MIN_MATCH_SCORE,
    SUBSTRING_SCORE,
    TrackMatcher,
    match_tracks,
)
from m3u_sync.matching.models import LocalFile, MatchRecord, RemoteTrack
from m3u_sync.matching.normalizer import normalize, normalize_filename, normalize_track_info
from m3u_sync.matching.options import DEFAULT_OPTIONS, MatchingOptions, Strategy
from m3u_sync.matching.scorer import is_word_match, levenshtein_distance, score

__all__ = [
    "EXACT_SCORE",
    "MIN_MATCH_SCORE",
    "SUBSTRING_SCORE",
    "TrackMatcher",
    "match_tracks",
    "LocalFile",
    "MatchRecord",
    "RemoteTrack",
    "normalize",
    "normalize_filename",
    "normalize_track_info",
    "DEFAULT_OPTIONS",
    "MatchingOptions",
    "Strategy",
    "is_word_match",
    "levenshtein_distance",
    "score",
]
