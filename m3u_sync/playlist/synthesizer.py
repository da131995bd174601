"""
Folder playlist synthesis: one popularity-ordered playlist per folder.

Ordering:
    1. Appearance count, highest first
    2. Display name, ascending (plain string order, so case-sensitive)

Each entry gets a marker #EXTINF line with an unknown duration that
carries the appearance count:

    #EXTINF:-1,Artist1 - Song1.mp3 (appeared 3 times)
    Pop/Artist1 - Song1.mp3
"""

from dataclasses import dataclass
from typing import Mapping, Sequence

from m3u_sync.playlist.codec import UNKNOWN_DURATION, PlaylistEntry, build_extinf, normalize_path_key


PLAYLIST_SUFFIX = ".m3u"


@dataclass(frozen=True)
class FolderPlaylistResult:
    """
    Report line for one generated folder playlist.

    Attributes:
        folder: Folder name.
        songs_count: Number of entries written.
        m3u_file: Playlist file name ("<folder>.m3u").
        total_appearances: Sum of the popularity counts of its songs.
    """
    folder: str
    songs_count: int
    m3u_file: str
    total_appearances: int


@dataclass(frozen=True)
class SynthesisResult:
    entries: list[PlaylistEntry]
    result: FolderPlaylistResult


def playlist_file_name(folder_name: str) -> str:
    return f"{folder_name}{PLAYLIST_SUFFIX}"


def synthesize(
    folder_name: str,
    files: Sequence[tuple[str, str]],
    table: Mapping[str, int]
) -> SynthesisResult | None:
    """
    Build the playlist for one folder.

    Args:
        folder_name: Name of the folder (and of the playlist).
        files: (relative_path, display_name) for every audio file in the
               folder, paths relative to the base folder.
        table: Popularity table from scan_popularity().

    Returns:
        The ordered entries and their report line, or None when the
        folder has no files (the caller must not write a playlist).

    Example:
        synthesize("Pop", [("Pop/a.mp3", "a.mp3"), ("Pop/b.mp3", "b.mp3")],
                   {"Pop/b.mp3": 2})
        # entries: Pop/b.mp3 (appeared 2 times), Pop/a.mp3 (appeared 0 times)
    """
    if not files:
        return None

    ranked = []
    for relative_path, display_name in files:
        path = normalize_path_key(relative_path)
        ranked.append((table.get(path, 0), display_name, path))

    ranked.sort(key=lambda item: (-item[0], item[1]))

    entries = [
        PlaylistEntry(
            file_path=path,
            extinf=build_extinf(UNKNOWN_DURATION, f"{display_name} (appeared {count} times)"),
        )
        for count, display_name, path in ranked
    ]

    return SynthesisResult(
        entries=entries,
        result=FolderPlaylistResult(
            folder=folder_name,
            songs_count=len(entries),
            m3u_file=playlist_file_name(folder_name),
            total_appearances=sum(count for count, _, _ in ranked),
        ),
    )
