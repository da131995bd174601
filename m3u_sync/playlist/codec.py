"""
Extended M3U parsing, serialization and merging.

File Format:
    #EXTM3U
    #EXTINF:354,Queen - Bohemian Rhapsody
    Rock/Queen - Bohemian Rhapsody.mp3
    # a comment line, ignored
    Rock/AC_DC - Back In Black.mp3

    - The header line is optional on input and always written on output
    - An #EXTINF line belongs to the next path line; comments in between
      do not detach it
    - Path lines are relative to the folder holding the playlist

Merge Semantics:
    merge(existing, new) keeps every entry of `existing` in place and
    then applies `new` on top, keyed by path (backslashes read as '/'):
        - a path already present keeps its position but takes the new
          entry (path text and #EXTINF line)
        - a new path is appended, in the order it appears in `new`
    Hand-curated entries are therefore never dropped by a sync, and
    merging the same content twice changes nothing the second time.

Usage:
    from m3u_sync.playlist import codec

    entries = codec.parse(text)
    text = codec.serialize(entries)
    merged = codec.merge(old_text, new_text)
"""

import re
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable

from m3u_sync.core.exceptions import PlaylistFileError
from m3u_sync.core.logger import get_logger


logger = get_logger(__name__)


HEADER = "#EXTM3U"
EXTINF_PREFIX = "#EXTINF:"
COMMENT_PREFIX = "#"

# Only newline characters end a line; other Unicode breaks are legal in paths
LINE_BREAK = re.compile(r"\r\n|\r|\n")

# Duration written when it is unknown
UNKNOWN_DURATION = -1


@dataclass(frozen=True)
class PlaylistEntry:
    """
    One path line of a playlist and its optional #EXTINF line.

    Attributes:
        file_path: Path exactly as written in the playlist.
        extinf: The full "#EXTINF:..." line, or None.
    """
    file_path: str
    extinf: str | None = None

    @property
    def key(self) -> str:
        """Dedupe key: the path with backslashes turned into '/'."""
        return normalize_path_key(self.file_path)


def normalize_path_key(path: str) -> str:
    """Path-separator normalization used for every path comparison."""
    return path.replace("\\", "/")


def build_extinf(duration_seconds: int, label: str) -> str:
    """
    Build an #EXTINF line.

    Example:
        build_extinf(354, "Queen - Bohemian Rhapsody")
        # '#EXTINF:354,Queen - Bohemian Rhapsody'
    """
    return f"{EXTINF_PREFIX}{duration_seconds},{label}"


def parse(text: str) -> list[PlaylistEntry]:
    """
    Parse playlist text into entries, in file order.

    Lines are trimmed and blank lines dropped. \\n, \\r\\n and \\r are all
    accepted as line breaks. Duplicate paths are returned as they appear;
    deduplication is merge()'s job.
    """
    entries = []
    pending_extinf = None

    for raw_line in LINE_BREAK.split(text):
        line = raw_line.strip()
        if not line:
            continue

        if line.startswith(HEADER):
            continue

        if line.startswith(EXTINF_PREFIX):
            pending_extinf = line
            continue

        if line.startswith(COMMENT_PREFIX):
            continue

        entries.append(PlaylistEntry(file_path=line, extinf=pending_extinf))
        pending_extinf = None

    return entries


def serialize(entries: Iterable[PlaylistEntry]) -> str:
    """
    Render entries as playlist text.

    The header comes first, then each entry's #EXTINF line (if any)
    followed by its path. Lines are joined with '\\n' and there is no
    trailing newline.
    """
    lines = [HEADER]
    for entry in entries:
        if entry.extinf:
            lines.append(entry.extinf)
        lines.append(entry.file_path)
    return "\n".join(lines)


def merge_entries(
    existing: Iterable[PlaylistEntry],
    new: Iterable[PlaylistEntry]
) -> list[PlaylistEntry]:
    """Entry-level merge; see the module docstring for the rules."""
    table: dict[str, PlaylistEntry] = {}

    for entry in existing:
        table[entry.key] = entry

    # Re-assigning a key keeps its original insertion position
    for entry in new:
        table[entry.key] = entry

    return list(table.values())


def merge(existing_text: str, new_text: str) -> str:
    """
    Merge new playlist content into existing content.

    Returns:
        Serialized text of the merged entries.

    Example:
        merge("#EXTM3U\\na.mp3", "#EXTM3U\\nb.mp3")
        # '#EXTM3U\\na.mp3\\nb.mp3'
    """
    return serialize(merge_entries(parse(existing_text), parse(new_text)))


# =============================================================================
# File helpers
# =============================================================================

def read_playlist_text(path: Path) -> str:
    """
    Read a playlist file as UTF-8 (a leading BOM is dropped).

    Raises:
        PlaylistFileError: If the file cannot be read or decoded.
    """
    try:
        with open(path, "r", encoding="utf-8-sig") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise PlaylistFileError(
            f"Cannot read playlist {path}: {e}",
            details={"path": str(path), "original_error": str(e)}
        ) from e


def read_playlist(path: Path) -> list[PlaylistEntry]:
    """Parse a playlist file. Raises PlaylistFileError on read failure."""
    return parse(read_playlist_text(path))


def write_playlist_text(path: Path, text: str) -> None:
    """
    Write playlist text (UTF-8, trailing newline), creating parent folders.

    Overwrites any existing file.

    Raises:
        PlaylistFileError: If the file cannot be written.
    """
    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8", newline="\n") as f:
            f.write(text)
            f.write("\n")
    except OSError as e:
        raise PlaylistFileError(
            f"Cannot write playlist {path}: {e}",
            details={"path": str(path), "original_error": str(e)}
        ) from e


def write_playlist(path: Path, entries: Iterable[PlaylistEntry]) -> None:
    """Serialize entries to a file (overwrite mode)."""
    write_playlist_text(path, serialize(entries))


def merge_into_file(path: Path, new_text: str) -> list[PlaylistEntry]:
    """
    Merge new content into a playlist file on disk (merge mode).

    A missing file is treated as empty, so the first sync simply writes
    the new content.

    Returns:
        The merged entries as written.

    Raises:
        PlaylistFileError: If an existing file cannot be read, or the
                           result cannot be written.
    """
    path = Path(path)
    existing = read_playlist(path) if path.exists() else []
    merged = merge_entries(existing, parse(new_text))

    write_playlist(path, merged)
    logger.debug(f"Merged playlist {path}: {len(existing)} -> {len(merged)} entries")
    return merged
