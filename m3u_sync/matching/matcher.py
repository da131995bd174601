"""
Track matching: pair each remote track with at most one local file.

Matching Strategies:
    BEST_SCORE (default):
        Score every local file with scorer.score() and keep the highest.
        The best file is accepted only if its score >= MIN_MATCH_SCORE.
        On ties the file listed first wins.

    EXACT_OR_SUBSTRING:
        Accept the first file whose normalized name equals the track
        string (score 1.0). Failing that, the first file whose normalized
        name is contained in, or contains, the track string (score 0.8).
        No score threshold applies.

Both strategies are pure computations over the supplied lists. A track
that matches nothing yields an unmatched MatchRecord.

Usage:
    from m3u_sync.matching import TrackMatcher, MatchingOptions

    matcher = TrackMatcher(MatchingOptions())
    records = matcher.match_tracks(tracks, local_files)

    unmatched = [r for r in records if not r.is_matched]
"""

from typing import Iterable, Sequence

from m3u_sync.core.logger import format_matched_message, format_no_match_message, get_logger
from m3u_sync.matching.models import LocalFile, MatchRecord, RemoteTrack
from m3u_sync.matching.normalizer import normalize_filename, normalize_track_info
from m3u_sync.matching.options import DEFAULT_OPTIONS, MatchingOptions, Strategy
from m3u_sync.matching.scorer import score


logger = get_logger(__name__)


# Minimum score for the best-score strategy to accept a file
MIN_MATCH_SCORE = 0.6

# Scores reported by the exact/substring strategy
EXACT_SCORE = 1.0
SUBSTRING_SCORE = 0.8


class TrackMatcher:
    """
    Matches remote tracks to local files using one configured strategy.

    Attributes:
        options: Normalization toggles and the strategy for this matcher.

    Example:
        matcher = TrackMatcher(MatchingOptions(strategy=Strategy.EXACT_OR_SUBSTRING))
        record = matcher.match_track(track, local_files)
        if record.is_matched:
            print(f"{track.title} -> {record.local_file_path}")
    """

    def __init__(self, options: MatchingOptions = DEFAULT_OPTIONS) -> None:
        self.options = options

    def match_tracks(
        self,
        tracks: Iterable[RemoteTrack],
        local_files: Sequence[LocalFile],
        progress=None
    ) -> list[MatchRecord]:
        """
        Match every track, preserving input order.

        Args:
            tracks: Remote tracks in playlist order.
            local_files: Candidate files, in scan order (ties go to the
                         earliest file).
            progress: Optional MatchingProgressBar updated per track.

        Returns:
            One MatchRecord per track, in the same order.
        """
        candidates = self._prepare(local_files)
        records = []

        for track in tracks:
            record = self._match(track, candidates)
            records.append(record)
            if progress is not None:
                progress.update(matched=record.is_matched)

        matched = sum(1 for r in records if r.is_matched)
        logger.debug(
            f"Matched {matched}/{len(records)} tracks "
            f"against {len(candidates)} files ({self.options.strategy.value})"
        )
        return records

    def match_track(self, track: RemoteTrack, local_files: Sequence[LocalFile]) -> MatchRecord:
        """Match a single track against the local files."""
        return self._match(track, self._prepare(local_files))

    def _prepare(self, local_files: Sequence[LocalFile]) -> list[tuple[LocalFile, str]]:
        """Pair each file with its name normalized under this matcher's options."""
        if _same_normalization(self.options, DEFAULT_OPTIONS):
            return [(f, f.normalized_name) for f in local_files]
        return [(f, normalize_filename(f.name, self.options)) for f in local_files]

    def _match(self, track: RemoteTrack, candidates: list[tuple[LocalFile, str]]) -> MatchRecord:
        track_string = normalize_track_info(track.artists, track.title, self.options)

        if self.options.strategy is Strategy.EXACT_OR_SUBSTRING:
            record = self._match_exact_or_substring(track, track_string, candidates)
        else:
            record = self._match_best_score(track, track_string, candidates)

        if record.is_matched:
            logger.debug(format_matched_message(
                track.display_artists, track.title, record.local_file_path, record.score
            ))
        else:
            logger.debug(format_no_match_message(track.display_artists, track.title))
        return record

    @staticmethod
    def _match_best_score(
        track: RemoteTrack,
        track_string: str,
        candidates: list[tuple[LocalFile, str]]
    ) -> MatchRecord:
        best_file: LocalFile | None = None
        best_score = 0.0

        for local_file, name in candidates:
            file_score = score(track_string, name)
            # Strict comparison keeps the first file on ties
            if file_score > best_score:
                best_score = file_score
                best_file = local_file

        if best_file is not None and best_score >= MIN_MATCH_SCORE:
            return MatchRecord.matched(track, best_file.path, best_score)
        return MatchRecord.unmatched(track, best_score)

    @staticmethod
    def _match_exact_or_substring(
        track: RemoteTrack,
        track_string: str,
        candidates: list[tuple[LocalFile, str]]
    ) -> MatchRecord:
        if not track_string:
            return MatchRecord.unmatched(track)

        for local_file, name in candidates:
            if name == track_string:
                return MatchRecord.matched(track, local_file.path, EXACT_SCORE)

        for local_file, name in candidates:
            if name and (name in track_string or track_string in name):
                return MatchRecord.matched(track, local_file.path, SUBSTRING_SCORE)

        return MatchRecord.unmatched(track)


def _same_normalization(a: MatchingOptions, b: MatchingOptions) -> bool:
    return (
        a.case_sensitive == b.case_sensitive
        and a.remove_special_chars == b.remove_special_chars
        and a.normalize_whitespace == b.normalize_whitespace
    )


def match_tracks(
    tracks: Iterable[RemoteTrack],
    local_files: Sequence[LocalFile],
    options: MatchingOptions = DEFAULT_OPTIONS
) -> list[MatchRecord]:
    """
    Convenience entry point: match tracks with the given options.

    Example:
        records = match_tracks(tracks, scan.files, config.matching)
    """
    return TrackMatcher(options).match_tracks(tracks, local_files)
