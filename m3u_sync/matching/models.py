"""
Data models for track matching.

This module defines the immutable records that flow through a sync:

    RemoteTrack  - one track of a Spotify playlist
    LocalFile    - one audio file found on disk
    MatchRecord  - the outcome of matching one RemoteTrack

Design Decisions:
    - All dataclasses are frozen (immutable)
    - Artists are stored as a tuple for immutability
    - A MatchRecord always exists for every remote track; "no match"
      is a normal outcome (is_matched=False), not an error
"""

import re
from dataclasses import dataclass, field
from typing import Any

from m3u_sync.matching.normalizer import normalize_filename
from m3u_sync.matching.options import DEFAULT_OPTIONS


SPOTIFY_TRACK_URL = "https://open.spotify.com/track/{track_id}"

# Characters removed when building the filename we expected to find
_INVALID_FILENAME_CHARS = re.compile(r'[<>:"/\\|?*]')


@dataclass(frozen=True)
class RemoteTrack:
    """
    Immutable representation of a track in a remote playlist.

    Attributes:
        track_id: Spotify track ID.
                  Example: "4cOdK2wGLETKBW3PvgPWqT"
        title: Track title as it appears on Spotify.
               Example: "Bohemian Rhapsody"
        artists: All artist names, in Spotify order.
                 Example: ("Calvin Harris", "Dua Lipa")
        duration_ms: Track duration in milliseconds.
        explicit: Whether the track is marked explicit.
        popularity: Spotify popularity score (0-100).
    """
    track_id: str
    title: str
    artists: tuple[str, ...]
    duration_ms: int = 0
    explicit: bool = False
    popularity: int = 0

    @classmethod
    def from_spotify_api(cls, data: dict[str, Any]) -> "RemoteTrack":
        """
        Create a RemoteTrack from a Spotify API track object.

        Args:
            data: The 'track' object of a playlist item.

        Returns:
            RemoteTrack with missing optional fields defaulted.
        """
        artists = tuple(
            a.get("name", "")
            for a in data.get("artists") or []
            if isinstance(a, dict) and a.get("name")
        )
        return cls(
            track_id=data.get("id") or "",
            title=data.get("name") or "",
            artists=artists,
            duration_ms=int(data.get("duration_ms") or 0),
            explicit=bool(data.get("explicit", False)),
            popularity=int(data.get("popularity") or 0),
        )

    @property
    def display_artists(self) -> str:
        """Artists joined for display. Example: "Calvin Harris, Dua Lipa"."""
        return ", ".join(self.artists)

    @property
    def spotify_url(self) -> str:
        """Public Spotify URL for the track."""
        return SPOTIFY_TRACK_URL.format(track_id=self.track_id)

    @property
    def duration_seconds(self) -> int:
        """Duration rounded to whole seconds (as written in #EXTINF)."""
        return int(round(self.duration_ms / 1000))

    @property
    def expected_filename(self) -> str:
        """
        The filename a user would most likely give this track.

        Shown in reports for unmatched tracks so the file can be
        added or renamed by hand.

        Example:
            "Calvin Harris, Dua Lipa - One Kiss.mp3"
        """
        name = _INVALID_FILENAME_CHARS.sub("", f"{self.display_artists} - {self.title}")
        name = " ".join(name.split())
        return f"{name}.mp3"


@dataclass(frozen=True)
class LocalFile:
    """
    Immutable representation of an audio file on disk.

    Attributes:
        path: Absolute path to the file.
        name: File name including extension (display name).
        size: File size in bytes.
        normalized_name: Normalized name used for matching. Computed from
                         `name` with default options when not given.
    """
    path: str
    name: str
    size: int = 0
    normalized_name: str = field(default="", compare=False)

    def __post_init__(self) -> None:
        if not self.normalized_name:
            object.__setattr__(
                self, "normalized_name", normalize_filename(self.name, DEFAULT_OPTIONS)
            )


@dataclass(frozen=True)
class MatchRecord:
    """
    Outcome of matching one remote track against the local files.

    Attributes:
        track: The remote track.
        local_file_path: Path of the matched file, or None.
        score: Similarity in [0, 1]. For an unmatched track this is the
               best score seen (best-score strategy) or 0.0.
        is_matched: True if a local file was accepted.

    Invariant:
        local_file_path is None exactly when is_matched is False.
    """
    track: RemoteTrack
    local_file_path: str | None
    score: float
    is_matched: bool

    @classmethod
    def matched(cls, track: RemoteTrack, path: str, score: float) -> "MatchRecord":
        """Create a successful match record."""
        return cls(track=track, local_file_path=path, score=score, is_matched=True)

    @classmethod
    def unmatched(cls, track: RemoteTrack, best_score: float = 0.0) -> "MatchRecord":
        """Create a no-match record."""
        return cls(track=track, local_file_path=None, score=best_score, is_matched=False)
