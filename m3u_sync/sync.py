"""
Orchestration: playlist sync and folder playlist generation.

Sync (one mapping):
    1. Scan <base>/<local_folder_name> recursively for audio files
    2. Match the remote tracks with the configured strategy
    3. Build #EXTINF/path entries for the matched tracks, in remote order
    4. Merge them into <base>/<playlist_file_name> (curated entries kept)
    5. Record the statistics in the mapping store
    6. Send every unmatched track to the unmatched-tracks report

Folder generation (whole library):
    1. Count how often each file appears in the existing playlists
    2. For every subfolder with audio files, write <base>/<folder>.m3u
       ordered by that count (overwrite mode)

Failure Model:
    A missing base folder aborts with ScanError before anything is
    written. Per-playlist / per-folder problems are collected in the
    batch report and the batch continues.
"""

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Iterable, Sequence

from m3u_sync.core.config import Config
from m3u_sync.core.database import MappingStore, PlaylistMapping
from m3u_sync.core.exceptions import M3USyncError, PlaylistFileError, ScanError, ValidationError
from m3u_sync.core.file_manager import (
    FolderInfo,
    ScanResult,
    SkippedItem,
    list_subfolders,
    relative_playlist_path,
    scan_audio_files,
)
from m3u_sync.core.logger import get_logger, log_unmatched_track
from m3u_sync.matching.matcher import TrackMatcher
from m3u_sync.matching.models import MatchRecord, RemoteTrack
from m3u_sync.playlist.codec import PlaylistEntry, build_extinf, merge_into_file, serialize, write_playlist
from m3u_sync.playlist.popularity import scan_popularity
from m3u_sync.playlist.synthesizer import FolderPlaylistResult, synthesize


logger = get_logger(__name__)


# =============================================================================
# Result types
# =============================================================================

@dataclass
class SyncResult:
    """
    Outcome of syncing one playlist.

    Attributes:
        playlist_id: Remote playlist id.
        playlist_name: Remote playlist name.
        total_tracks: Number of remote tracks considered.
        matched_tracks: Number of tracks written to the playlist.
        unmatched: MatchRecords of the tracks with no local file.
        m3u_file_path: The playlist file that was merged into.
        synced_at: ISO-8601 UTC timestamp.
    """
    playlist_id: str
    playlist_name: str
    total_tracks: int
    matched_tracks: int
    unmatched: list[MatchRecord] = field(default_factory=list)
    m3u_file_path: str | None = None
    synced_at: str = ""

    @property
    def match_percentage(self) -> float:
        """matched / total * 100, rounded to one decimal (0.0 for an empty playlist)."""
        if self.total_tracks == 0:
            return 0.0
        return round(self.matched_tracks / self.total_tracks * 100, 1)


@dataclass(frozen=True)
class FailedSync:
    playlist_id: str
    playlist_name: str
    reason: str


@dataclass
class SyncBatchReport:
    results: list[SyncResult] = field(default_factory=list)
    failed: list[FailedSync] = field(default_factory=list)


@dataclass
class FolderBatchReport:
    """
    Outcome of generate_folder_playlists().

    Attributes:
        results: One entry per playlist written.
        skipped: Names of folders with no audio files (nothing written).
        failed: Playlist files that could not be written.
        total_folders: Number of subfolders examined.
    """
    results: list[FolderPlaylistResult] = field(default_factory=list)
    skipped: list[str] = field(default_factory=list)
    failed: list[SkippedItem] = field(default_factory=list)
    total_folders: int = 0


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


# =============================================================================
# Playlist sync
# =============================================================================

def build_sync_playlist(records: Iterable[MatchRecord], base_dir: Path) -> list[PlaylistEntry]:
    """
    Playlist entries for the matched records, in record order.

    Example entry:
        #EXTINF:215,Calvin Harris, Dua Lipa - One Kiss
        Dance/Calvin Harris - One Kiss.mp3
    """
    entries = []
    for record in records:
        if not record.is_matched:
            continue
        track = record.track
        entries.append(PlaylistEntry(
            file_path=relative_playlist_path(base_dir, record.local_file_path),
            extinf=build_extinf(track.duration_seconds, f"{track.display_artists} - {track.title}"),
        ))
    return entries


class PlaylistSynchronizer:
    """
    Syncs mapped remote playlists into local .m3u files.

    Attributes:
        config: Application configuration (base folder, matching options).
        store: Mapping store receiving sync statistics, or None to skip
               recording (dry runs, tests).

    Example:
        synchronizer = PlaylistSynchronizer(config, store)
        result = synchronizer.sync_playlist(mapping, source.fetch_tracks(mapping.remote_playlist_id))
        print(f"{result.matched_tracks}/{result.total_tracks} matched")
    """

    def __init__(self, config: Config, store: MappingStore | None = None) -> None:
        self.config = config
        self.store = store
        self.matcher = TrackMatcher(config.matching)

    @property
    def base_dir(self) -> Path:
        return self.config.library.base_music_folder

    def scan_folder(self, mapping: PlaylistMapping) -> ScanResult:
        """
        Scan the mapping's local folder.

        Raises:
            ScanError: If the base folder or the mapped folder is missing.
        """
        if not self.base_dir.is_dir():
            raise ScanError(
                f"Base music folder not found: {self.base_dir}",
                details={"path": str(self.base_dir)}
            )

        folder = self.base_dir / mapping.local_folder_name
        if not folder.is_dir():
            raise ScanError(
                f"Folder '{mapping.local_folder_name}' not found in {self.base_dir}",
                details={"path": str(folder)}
            )

        scan = scan_audio_files(folder)
        for item in scan.skipped:
            logger.warning(f"Skipped while scanning {mapping.local_folder_name}: {item.path} ({item.reason})")
        return scan

    def match_playlist(
        self,
        mapping: PlaylistMapping,
        tracks: Sequence[RemoteTrack],
        progress=None
    ) -> list[MatchRecord]:
        """Match remote tracks against the mapping's folder without writing anything."""
        scan = self.scan_folder(mapping)
        logger.info(
            f"Matching {len(tracks)} tracks of '{mapping.remote_playlist_name}' "
            f"against {len(scan.files)} files in {mapping.local_folder_name}"
        )
        return self.matcher.match_tracks(tracks, scan.files, progress=progress)

    def sync_playlist(
        self,
        mapping: PlaylistMapping,
        tracks: Sequence[RemoteTrack],
        progress=None
    ) -> SyncResult:
        """
        Sync one playlist: match, merge into its .m3u, record statistics.

        Raises:
            ScanError: If the base or mapped folder is missing.
            PlaylistFileError: If the playlist file cannot be read or written.
            DatabaseError: If the statistics cannot be recorded. The playlist
                           file has already been written by then.
        """
        records = self.match_playlist(mapping, tracks, progress=progress)

        playlist_path = self.base_dir / mapping.playlist_file_name
        new_text = serialize(build_sync_playlist(records, self.base_dir))
        merge_into_file(playlist_path, new_text)

        unmatched = [r for r in records if not r.is_matched]
        result = SyncResult(
            playlist_id=mapping.remote_playlist_id,
            playlist_name=mapping.remote_playlist_name,
            total_tracks=len(records),
            matched_tracks=len(records) - len(unmatched),
            unmatched=unmatched,
            m3u_file_path=str(playlist_path),
            synced_at=_now_iso(),
        )

        for record in unmatched:
            track = record.track
            log_unmatched_track(
                logger,
                title=track.title,
                artists=track.display_artists,
                expected_filename=track.expected_filename,
                spotify_url=track.spotify_url,
                playlist_name=mapping.remote_playlist_name,
            )

        if self.store is not None:
            self.store.record_sync(result)

        logger.info(
            f"Synced '{mapping.remote_playlist_name}': {result.matched_tracks}/{result.total_tracks} "
            f"matched ({result.match_percentage}%) -> {mapping.playlist_file_name}"
        )
        return result

    def sync_all(
        self,
        mappings: Iterable[PlaylistMapping],
        fetch_tracks: Callable[[str], list[RemoteTrack]],
        progress=None
    ) -> SyncBatchReport:
        """
        Sync several mappings one after another.

        Args:
            mappings: Mappings to sync.
            fetch_tracks: Returns the remote tracks for a playlist id.
            progress: Optional SyncProgressBar.

        Returns:
            Report with one SyncResult per success and one FailedSync per
            mapping whose fetch, scan, write or store update failed.
        """
        report = SyncBatchReport()

        for mapping in mappings:
            try:
                tracks = fetch_tracks(mapping.remote_playlist_id)
                report.results.append(self.sync_playlist(mapping, tracks))
                success = True
            except (M3USyncError, OSError) as e:
                logger.error(f"Sync failed for '{mapping.remote_playlist_name}': {e}")
                report.failed.append(FailedSync(
                    playlist_id=mapping.remote_playlist_id,
                    playlist_name=mapping.remote_playlist_name,
                    reason=str(e),
                ))
                success = False

            if progress is not None:
                progress.update(success=success)

        return report


def write_sync_report(results: Sequence[SyncResult], path: Path) -> Path:
    """
    Write a JSON report of a sync run.

    Layout:
        {
          "generated_at": "...",
          "totals": {"playlists": 2, "tracks": 50, "matched": 45, "match_percentage": 90.0},
          "playlists": [
            {"playlist_id": ..., "playlist_name": ..., "total_tracks": ...,
             "matched_tracks": ..., "match_percentage": ..., "m3u_file": ...,
             "unmatched": [{"artists": [...], "title": ..., "expected_filename": ...,
                            "spotify_url": ...}]}
          ]
        }

    Raises:
        PlaylistFileError: If the report cannot be written.
    """
    total_tracks = sum(r.total_tracks for r in results)
    total_matched = sum(r.matched_tracks for r in results)

    report = {
        "generated_at": _now_iso(),
        "totals": {
            "playlists": len(results),
            "tracks": total_tracks,
            "matched": total_matched,
            "match_percentage": round(total_matched / total_tracks * 100, 1) if total_tracks else 0.0,
        },
        "playlists": [
            {
                "playlist_id": r.playlist_id,
                "playlist_name": r.playlist_name,
                "total_tracks": r.total_tracks,
                "matched_tracks": r.matched_tracks,
                "match_percentage": r.match_percentage,
                "m3u_file": r.m3u_file_path,
                "synced_at": r.synced_at,
                "unmatched": [
                    {
                        "artists": list(record.track.artists),
                        "title": record.track.title,
                        "expected_filename": record.track.expected_filename,
                        "spotify_url": record.track.spotify_url,
                    }
                    for record in r.unmatched
                ],
            }
            for r in results
        ],
    }

    path = Path(path)
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w", encoding="utf-8") as f:
            json.dump(report, f, indent=2, ensure_ascii=False)
    except OSError as e:
        raise PlaylistFileError(
            f"Cannot write sync report {path}: {e}",
            details={"path": str(path), "original_error": str(e)}
        ) from e
    return path


# =============================================================================
# Folder playlist generation
# =============================================================================

def generate_folder_playlists(base_dir: Path | str | None, progress_factory=None) -> FolderBatchReport:
    """
    Write one popularity-ordered playlist per subfolder of base_dir.

    Args:
        base_dir: The base music folder.
        progress_factory: Optional callable taking the folder count and
                          returning a FolderProgressBar-like object. It is
                          started here and stopped before returning.

    Returns:
        FolderBatchReport with written, skipped and failed folders.

    Raises:
        ValidationError: If base_dir is empty (fields=["base_music_folder"]).
        ScanError: If base_dir is not a readable directory or has no
                   subfolders. Nothing is written in either case.

    Behavior:
        Popularity is computed from the playlists as they are BEFORE this
        run, so regenerating does not count its own output twice.
    """
    if base_dir is None or not str(base_dir).strip():
        raise ValidationError(
            "Missing required field(s): base_music_folder",
            fields=["base_music_folder"]
        )

    base = Path(base_dir).expanduser()
    if not base.is_dir():
        raise ScanError(
            f"Base music folder not found: {base}",
            details={"path": str(base)}
        )

    folders = list_subfolders(base)
    if not folders:
        raise ScanError(
            f"No subfolders found in {base}",
            details={"path": str(base)}
        )

    popularity = scan_popularity(base)
    report = FolderBatchReport(total_folders=len(folders))
    progress = progress_factory(len(folders)) if progress_factory is not None else None
    if progress is not None:
        progress.start()

    try:
        for folder in folders:
            status = _generate_one(base, folder, popularity.table, report)
            if progress is not None:
                progress.update(status=status)
    finally:
        if progress is not None:
            progress.stop()

    logger.info(
        f"Generated {len(report.results)} playlists "
        f"({len(report.skipped)} empty folders skipped, {len(report.failed)} failed)"
    )
    return report


def _generate_one(
    base: Path,
    folder: FolderInfo,
    table: dict[str, int],
    report: FolderBatchReport
) -> str:
    folder_name = folder.name
    files = [(relative_playlist_path(base, f.path), f.name) for f in folder.scan.files]

    synthesis = synthesize(folder_name, files, table)
    if synthesis is None:
        logger.info(f"Skipping '{folder_name}': no audio files")
        report.skipped.append(folder_name)
        return "skipped"

    playlist_path = base / synthesis.result.m3u_file
    try:
        write_playlist(playlist_path, synthesis.entries)
    except PlaylistFileError as e:
        logger.error(f"Could not write {playlist_path.name}: {e.message}")
        report.failed.append(SkippedItem(str(playlist_path), e.details.get("original_error", e.message)))
        return "failed"

    logger.info(
        f"Wrote {synthesis.result.m3u_file}: {synthesis.result.songs_count} songs, "
        f"{synthesis.result.total_appearances} appearances"
    )
    report.results.append(synthesis.result)
    return "written"
