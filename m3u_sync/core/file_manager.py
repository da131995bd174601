"""
Filesystem access for m3u-sync.

Every directory walk in the application goes through this module, so
the rest of the code only sees plain lists of LocalFile / FolderInfo.

Library Layout:
    base_music_folder/
    ├── Pop.m3u                       # generated or synced playlists
    ├── Rock.m3u
    ├── Pop/                          # one subfolder per local playlist
    │   ├── Artist1 - Song1.mp3
    │   └── Live/
    │       └── Artist2 - Song2.mp3   # scanned recursively
    └── Rock/
        └── ...

Determinism:
    Directory entries are sorted by name at every level, so the same
    tree always yields the same file order. The best-score matcher breaks
    ties by file order, which makes this visible to users.

Partial Failures:
    An unreadable subdirectory or file is recorded as a SkippedItem and
    the walk continues. Only list_subfolders() raises (ScanError), when
    the directory it was asked to list cannot be read at all.
"""

import os
import re
from dataclasses import dataclass, field
from functools import cached_property
from pathlib import Path

from m3u_sync.core.exceptions import ScanError
from m3u_sync.core.logger import get_logger
from m3u_sync.matching.models import LocalFile


logger = get_logger(__name__)


DEFAULT_AUDIO_EXTENSIONS = (".mp3",)

PLAYLIST_EXTENSION = ".m3u"

# Characters that are invalid in filenames on various operating systems
_INVALID_CHARS_PATTERN = re.compile(r'[<>:"/\\|?*\x00-\x1f]')

# Maximum filename length (conservative for cross-platform compatibility)
_MAX_FILENAME_LENGTH = 200


@dataclass(frozen=True)
class SkippedItem:
    """
    A file or directory that could not be processed.

    Attributes:
        path: The path that was skipped.
        reason: Short human-readable reason (usually the OSError text).
    """
    path: str
    reason: str


@dataclass
class ScanResult:
    """Audio files found by scan_audio_files() plus anything skipped."""
    files: list[LocalFile] = field(default_factory=list)
    skipped: list[SkippedItem] = field(default_factory=list)


@dataclass(frozen=True)
class FolderInfo:
    """
    One immediate subfolder of the base music folder.

    The folder is scanned on first access to scan or mp3_count and the
    result is cached, so counting and generating walk it once.

    Attributes:
        name: Folder name (also the generated playlist name).
        path: Absolute path.
    """
    name: str
    path: Path

    @cached_property
    def scan(self) -> ScanResult:
        return scan_audio_files(self.path)

    @property
    def mp3_count(self) -> int:
        """Number of audio files found recursively inside."""
        return len(self.scan.files)


def sanitize_filename(name: str) -> str:
    """
    Make a string safe to use as a file name.

    Args:
        name: The string to sanitize.

    Returns:
        The string with invalid characters removed, whitespace collapsed,
        leading/trailing dots and spaces stripped, and truncated. Returns
        "Unknown" if nothing is left.

    Example:
        sanitize_filename('AC/DC: "Live"')  # 'ACDC Live'
    """
    if not name:
        return "Unknown"

    result = _INVALID_CHARS_PATTERN.sub("", name)
    result = " ".join(result.split())
    result = result.strip(" .")

    if len(result) > _MAX_FILENAME_LENGTH:
        result = result[:_MAX_FILENAME_LENGTH].rstrip(" .")

    return result if result else "Unknown"


def _has_extension(name: str, extensions: tuple[str, ...]) -> bool:
    lowered = name.lower()
    return any(lowered.endswith(ext) for ext in extensions)


def _sorted_entries(directory: Path) -> list[os.DirEntry]:
    with os.scandir(directory) as it:
        return sorted(it, key=lambda entry: entry.name)


def scan_audio_files(
    directory: Path,
    extensions: tuple[str, ...] = DEFAULT_AUDIO_EXTENSIONS
) -> ScanResult:
    """
    Recursively collect audio files under a directory.

    Args:
        directory: Root of the walk.
        extensions: Lower-case extensions to keep (compared case-insensitively).

    Returns:
        ScanResult with files in sorted walk order (a directory's entries
        are visited by name; subdirectories are descended into in place).
        A missing or unreadable root produces an empty file list and one
        SkippedItem for the root.

    Example:
        result = scan_audio_files(base / "Pop")
        for f in result.files:
            print(f.name, f.size)
    """
    result = ScanResult()
    _scan_into(Path(directory), extensions, result)
    return result


def _scan_into(directory: Path, extensions: tuple[str, ...], result: ScanResult) -> None:
    try:
        entries = _sorted_entries(directory)
    except OSError as e:
        logger.warning(f"Skipping unreadable directory {directory}: {e.strerror or e}")
        result.skipped.append(SkippedItem(str(directory), str(e.strerror or e)))
        return

    for entry in entries:
        try:
            if entry.is_dir(follow_symlinks=False):
                _scan_into(Path(entry.path), extensions, result)
            elif entry.is_file() and _has_extension(entry.name, extensions):
                size = entry.stat().st_size
                result.files.append(LocalFile(
                    path=str(Path(entry.path).absolute()),
                    name=entry.name,
                    size=size,
                ))
        except OSError as e:
            logger.warning(f"Skipping unreadable entry {entry.path}: {e.strerror or e}")
            result.skipped.append(SkippedItem(entry.path, str(e.strerror or e)))


def list_subfolders(directory: Path) -> list[FolderInfo]:
    """
    List the immediate subfolders of a directory.

    Each FolderInfo scans its folder lazily (see FolderInfo.scan).

    Hidden folders (name starting with '.') are ignored.

    Returns:
        FolderInfo list sorted by folder name.

    Raises:
        ScanError: If the directory does not exist or cannot be read.
    """
    directory = Path(directory)
    try:
        entries = _sorted_entries(directory)
    except OSError as e:
        raise ScanError(
            f"Cannot read directory {directory}: {e.strerror or e}",
            details={"path": str(directory), "original_error": str(e)}
        ) from e

    folders = []
    for entry in entries:
        if entry.name.startswith("."):
            continue
        try:
            if not entry.is_dir():
                continue
        except OSError:
            continue
        folders.append(FolderInfo(name=entry.name, path=Path(entry.path)))
    return folders


def list_playlist_files(directory: Path) -> list[Path]:
    """
    The *.m3u files directly inside a directory (not recursive).

    The extension check is case-insensitive. Returns an empty list if
    the directory cannot be read.
    """
    try:
        entries = _sorted_entries(Path(directory))
    except OSError as e:
        logger.warning(f"Cannot list playlists in {directory}: {e.strerror or e}")
        return []

    playlists = []
    for entry in entries:
        try:
            if entry.is_file() and entry.name.lower().endswith(PLAYLIST_EXTENSION):
                playlists.append(Path(entry.path))
        except OSError:
            continue
    return playlists


def relative_playlist_path(base: Path, path: Path | str) -> str:
    """
    Path of a file as written inside a playlist stored in `base`.

    Returns:
        The path relative to base with forward slashes, or the absolute
        path (also with forward slashes) if it lies outside base.

    Example:
        relative_playlist_path(Path("/music"), "/music/Pop/a.mp3")  # 'Pop/a.mp3'
        relative_playlist_path(Path("/music"), "/other/b.mp3")      # '/other/b.mp3'
    """
    absolute = Path(path).absolute()
    try:
        relative = absolute.relative_to(Path(base).absolute())
    except ValueError:
        return absolute.as_posix()
    return relative.as_posix()
