"""
Popularity of local files across the existing playlists.

A file's popularity is the number of times its path appears in the
.m3u files stored directly in the base music folder. Every occurrence
counts: a path listed three times in one playlist scores the same as a
path listed once in three playlists.

Only the base folder itself is read (not subfolders): that is where
generated and synced playlists live.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable

from m3u_sync.core.exceptions import PlaylistFileError
from m3u_sync.core.file_manager import SkippedItem, list_playlist_files
from m3u_sync.core.logger import get_logger
from m3u_sync.playlist.codec import parse, read_playlist_text


logger = get_logger(__name__)


# Relative path (forward slashes) -> appearance count
PopularityTable = dict[str, int]


@dataclass
class PopularityScan:
    """
    Result of scan_popularity().

    Attributes:
        table: Appearance counts by forward-slash relative path.
        playlists_read: Number of playlist files that contributed.
        skipped: Playlist files that could not be read.
    """
    table: PopularityTable = field(default_factory=dict)
    playlists_read: int = 0
    skipped: list[SkippedItem] = field(default_factory=list)


def count_appearances(contents: Iterable[str]) -> PopularityTable:
    """
    Count path occurrences across playlist texts.

    Args:
        contents: The text of each playlist.

    Returns:
        Counts keyed by path with backslashes turned into '/'.

    Example:
        count_appearances(["#EXTM3U\\na.mp3\\na.mp3", "Pop\\\\b.mp3"])
        # {'a.mp3': 2, 'Pop/b.mp3': 1}
    """
    table: PopularityTable = {}
    for text in contents:
        for entry in parse(text):
            table[entry.key] = table.get(entry.key, 0) + 1
    return table


def scan_popularity(base_dir: Path) -> PopularityScan:
    """
    Build the popularity table from every playlist in base_dir.

    Unreadable or undecodable playlists are skipped (and logged); they
    never abort the scan.
    """
    scan = PopularityScan()
    texts = []

    for playlist_path in list_playlist_files(base_dir):
        try:
            texts.append(read_playlist_text(playlist_path))
        except PlaylistFileError as e:
            logger.warning(f"Skipping playlist {playlist_path.name}: {e.message}")
            scan.skipped.append(SkippedItem(str(playlist_path), e.details.get("original_error", e.message)))
            continue
        scan.playlists_read += 1

    scan.table = count_appearances(texts)
    logger.debug(
        f"Popularity: {len(scan.table)} paths from {scan.playlists_read} playlists "
        f"({len(scan.skipped)} skipped)"
    )
    return scan
