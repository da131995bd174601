"""
Thread-safe SQLite store for playlist mappings.

A mapping links one remote (Spotify) playlist to one local subfolder of
the base music folder and to the .m3u file that sync maintains for it.
Every sync also appends a row to the history table.

Schema:
    schema_version:     Single row with DATABASE_VERSION
    mappings:           One row per remote playlist id
    sync_history:       One row per completed sync (append only)

Usage:
    store = MappingStore(config.library.database)

    store.save_mapping(PlaylistMapping(
        remote_playlist_id="37i9dQZF1DXcBWIGoYBM5M",
        remote_playlist_name="Today's Top Hits",
        local_folder_name="Pop",
        playlist_file_name="Top Hits.m3u",
    ))

    for mapping in store.get_all_mappings():
        result = synchronizer.sync_playlist(mapping, tracks)
        store.record_sync(result)
"""

import re
import sqlite3
import threading
from contextlib import contextmanager
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from pathlib import Path, PureWindowsPath
from typing import Any, Generator

from m3u_sync.core.exceptions import DatabaseError, ValidationError
from m3u_sync.core.logger import get_logger


logger = get_logger(__name__)


DATABASE_VERSION = 1

PLAYLIST_FILE_EXTENSION = ".m3u"

# Required mapping fields, in the order they are reported
REQUIRED_MAPPING_FIELDS = (
    "remote_playlist_id",
    "remote_playlist_name",
    "local_folder_name",
    "playlist_file_name",
)


_SCHEMA_SQL = """
CREATE TABLE IF NOT EXISTS schema_version (
    version INTEGER PRIMARY KEY
);

CREATE TABLE IF NOT EXISTS mappings (
    remote_playlist_id TEXT PRIMARY KEY,
    remote_playlist_name TEXT NOT NULL,
    local_folder_name TEXT NOT NULL,
    playlist_file_name TEXT NOT NULL,
    last_sync TEXT,
    matched_count INTEGER,
    unmatched_count INTEGER,
    matched_percentage REAL,
    created_at TEXT,
    updated_at TEXT
);

CREATE TABLE IF NOT EXISTS sync_history (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    remote_playlist_id TEXT NOT NULL,
    synced_at TEXT NOT NULL,
    total_tracks INTEGER NOT NULL,
    matched_count INTEGER NOT NULL,
    unmatched_count INTEGER NOT NULL,
    m3u_file_path TEXT
);

CREATE INDEX IF NOT EXISTS idx_sync_history_playlist ON sync_history(remote_playlist_id);
"""


@dataclass(frozen=True)
class PlaylistMapping:
    """
    Link between a remote playlist and a local folder/playlist file.

    Attributes:
        remote_playlist_id: Spotify playlist ID.
        remote_playlist_name: Name shown to the user.
        local_folder_name: Subfolder of the base music folder whose audio
                           files are matched against the remote tracks.
        playlist_file_name: Name of the .m3u file written in the base folder.
        last_sync: ISO timestamp of the last completed sync, or None.
        matched_count: Matched tracks at the last sync.
        unmatched_count: Unmatched tracks at the last sync.
        matched_percentage: matched / total * 100 at the last sync.
    """
    remote_playlist_id: str
    remote_playlist_name: str
    local_folder_name: str
    playlist_file_name: str
    last_sync: str | None = None
    matched_count: int | None = None
    unmatched_count: int | None = None
    matched_percentage: float | None = None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "PlaylistMapping":
        return cls(
            remote_playlist_id=row["remote_playlist_id"],
            remote_playlist_name=row["remote_playlist_name"],
            local_folder_name=row["local_folder_name"],
            playlist_file_name=row["playlist_file_name"],
            last_sync=row["last_sync"],
            matched_count=row["matched_count"],
            unmatched_count=row["unmatched_count"],
            matched_percentage=row["matched_percentage"],
        )


def _is_plain_playlist_name(value: str) -> bool:
    name = value.strip()
    return (
        name.lower().endswith(PLAYLIST_FILE_EXTENSION)
        and "/" not in name
        and "\\" not in name
    )


def _is_inside_base(value: str) -> bool:
    folder = value.strip()
    if folder.startswith(("/", "\\")) or PureWindowsPath(folder).drive:
        return False
    return ".." not in re.split(r"[\\/]", folder)


def validate_mapping(mapping: PlaylistMapping | dict[str, Any]) -> list[str]:
    """
    Return the names of missing or invalid mapping fields.

    A field is missing when it is absent, not a string, or blank.
    playlist_file_name is also invalid when it does not end in ".m3u" or
    contains a path separator. local_folder_name may name a nested folder
    ("Rock/Live") but must stay inside the base folder: absolute paths
    and ".." components are rejected.

    Args:
        mapping: A PlaylistMapping or a plain dict (e.g. CLI input).

    Returns:
        Offending field names in REQUIRED_MAPPING_FIELDS order; empty
        when the mapping is valid.

    Example:
        validate_mapping({"remote_playlist_id": "abc"})
        # ['remote_playlist_name', 'local_folder_name', 'playlist_file_name']
    """
    if isinstance(mapping, PlaylistMapping):
        values = {name: getattr(mapping, name) for name in REQUIRED_MAPPING_FIELDS}
    else:
        values = {name: mapping.get(name) for name in REQUIRED_MAPPING_FIELDS}

    invalid = []
    for name in REQUIRED_MAPPING_FIELDS:
        value = values[name]
        if not isinstance(value, str) or not value.strip():
            invalid.append(name)
        elif name == "playlist_file_name" and not _is_plain_playlist_name(value):
            invalid.append(name)
        elif name == "local_folder_name" and not _is_inside_base(value):
            invalid.append(name)
    return invalid


class MappingStore:
    """
    Thread-safe SQLite store for PlaylistMapping records.

    Uses a single persistent connection guarded by a lock; every public
    method acquires self._lock before touching the connection.

    Raises:
        DatabaseError: On construction if the parent directory is missing,
                       the file cannot be opened, or the schema version
                       does not match.
    """

    def __init__(self, db_path: Path) -> None:
        self.db_path = Path(db_path)
        self._lock = threading.Lock()
        self._conn: sqlite3.Connection | None = None

        if not self.db_path.parent.exists():
            raise DatabaseError(
                f"Parent directory does not exist: {self.db_path.parent}",
                details={"path": str(self.db_path.parent)}
            )

        try:
            self._init_database()
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to initialize database: {e}",
                details={"path": str(self.db_path)}
            ) from e

    @contextmanager
    def _get_connection(self) -> Generator[sqlite3.Connection, None, None]:
        """Yield the persistent connection, opening it on first use."""
        if self._conn is None:
            self._conn = sqlite3.connect(
                str(self.db_path),
                timeout=30.0,
                check_same_thread=False  # guarded by _lock
            )
            self._conn.row_factory = sqlite3.Row
        yield self._conn

    def close(self) -> None:
        """Close the database connection."""
        with self._lock:
            if self._conn is not None:
                self._conn.close()
                self._conn = None

    def __enter__(self) -> "MappingStore":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def _init_database(self) -> None:
        with self._get_connection() as conn:
            conn.executescript(_SCHEMA_SQL)

            row = conn.execute("SELECT version FROM schema_version LIMIT 1").fetchone()

            if row is None:
                conn.execute("INSERT INTO schema_version (version) VALUES (?)", (DATABASE_VERSION,))
            elif row[0] != DATABASE_VERSION:
                raise DatabaseError(
                    f"Database version mismatch: expected {DATABASE_VERSION}, got {row[0]}",
                    details={"expected": DATABASE_VERSION, "actual": row[0]}
                )
            conn.commit()

    def _now_iso(self) -> str:
        return datetime.now(timezone.utc).isoformat()

    # =========================================================================
    # Mapping Operations
    # =========================================================================

    def save_mapping(self, mapping: PlaylistMapping) -> PlaylistMapping:
        """
        Insert a mapping, or replace the one with the same remote id.

        Sync statistics of an existing mapping are kept unless the new
        mapping carries its own.

        Returns:
            The mapping as stored.

        Raises:
            ValidationError: If required fields are missing or the playlist
                             file name does not end in .m3u.
            DatabaseError: If the write fails.
        """
        invalid = validate_mapping(mapping)
        if invalid:
            raise ValidationError(
                f"Missing or invalid mapping field(s): {', '.join(invalid)}",
                fields=invalid
            )

        mapping = replace(
            mapping,
            remote_playlist_id=mapping.remote_playlist_id.strip(),
            remote_playlist_name=mapping.remote_playlist_name.strip(),
            local_folder_name=mapping.local_folder_name.strip(),
            playlist_file_name=mapping.playlist_file_name.strip(),
        )
        now = self._now_iso()

        try:
            with self._lock:
                with self._get_connection() as conn:
                    conn.execute("""
                        INSERT INTO mappings (
                            remote_playlist_id, remote_playlist_name, local_folder_name,
                            playlist_file_name, last_sync, matched_count, unmatched_count,
                            matched_percentage, created_at, updated_at
                        )
                        VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                        ON CONFLICT(remote_playlist_id) DO UPDATE SET
                            remote_playlist_name = excluded.remote_playlist_name,
                            local_folder_name = excluded.local_folder_name,
                            playlist_file_name = excluded.playlist_file_name,
                            last_sync = COALESCE(excluded.last_sync, mappings.last_sync),
                            matched_count = COALESCE(excluded.matched_count, mappings.matched_count),
                            unmatched_count = COALESCE(excluded.unmatched_count, mappings.unmatched_count),
                            matched_percentage = COALESCE(excluded.matched_percentage, mappings.matched_percentage),
                            updated_at = excluded.updated_at
                    """, (
                        mapping.remote_playlist_id,
                        mapping.remote_playlist_name,
                        mapping.local_folder_name,
                        mapping.playlist_file_name,
                        mapping.last_sync,
                        mapping.matched_count,
                        mapping.unmatched_count,
                        mapping.matched_percentage,
                        now,
                        now,
                    ))
                    conn.commit()
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to save mapping: {e}",
                details={"remote_playlist_id": mapping.remote_playlist_id}
            ) from e

        logger.debug(f"Saved mapping {mapping.remote_playlist_id} -> {mapping.local_folder_name}")
        return mapping

    def get_mapping(self, remote_playlist_id: str) -> PlaylistMapping | None:
        try:
            with self._lock:
                with self._get_connection() as conn:
                    row = conn.execute(
                        "SELECT * FROM mappings WHERE remote_playlist_id = ?",
                        (remote_playlist_id,)
                    ).fetchone()
                    return PlaylistMapping.from_row(row) if row else None
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to read mapping: {e}",
                details={"remote_playlist_id": remote_playlist_id}
            ) from e

    def get_all_mappings(self) -> list[PlaylistMapping]:
        """All mappings, ordered by remote playlist name."""
        try:
            with self._lock:
                with self._get_connection() as conn:
                    cursor = conn.execute(
                        "SELECT * FROM mappings ORDER BY remote_playlist_name, remote_playlist_id"
                    )
                    return [PlaylistMapping.from_row(row) for row in cursor.fetchall()]
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to list mappings: {e}",
                details={"path": str(self.db_path)}
            ) from e

    def delete_mapping(self, remote_playlist_id: str) -> bool:
        """
        Delete a mapping and its sync history.

        Returns:
            True if a mapping was deleted, False if none existed.
        """
        try:
            with self._lock:
                with self._get_connection() as conn:
                    cursor = conn.execute(
                        "DELETE FROM mappings WHERE remote_playlist_id = ?",
                        (remote_playlist_id,)
                    )
                    conn.execute(
                        "DELETE FROM sync_history WHERE remote_playlist_id = ?",
                        (remote_playlist_id,)
                    )
                    conn.commit()
                    return cursor.rowcount > 0
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to delete mapping: {e}",
                details={"remote_playlist_id": remote_playlist_id}
            ) from e

    # =========================================================================
    # Sync Statistics
    # =========================================================================

    def record_sync(self, result) -> PlaylistMapping | None:
        """
        Store the statistics of a completed sync.

        Args:
            result: A SyncResult (playlist_id, total_tracks, matched_tracks,
                    unmatched, match_percentage, synced_at, m3u_file_path).

        Returns:
            The updated mapping, or None if no mapping exists for the
            playlist (history is still recorded).

        Raises:
            DatabaseError: If the write fails. Nothing is committed.
        """
        unmatched_count = len(result.unmatched)
        synced_at = result.synced_at or self._now_iso()

        try:
            with self._lock:
                with self._get_connection() as conn:
                    try:
                        conn.execute("""
                            UPDATE mappings SET
                                last_sync = ?,
                                matched_count = ?,
                                unmatched_count = ?,
                                matched_percentage = ?,
                                updated_at = ?
                            WHERE remote_playlist_id = ?
                        """, (
                            synced_at,
                            result.matched_tracks,
                            unmatched_count,
                            result.match_percentage,
                            self._now_iso(),
                            result.playlist_id,
                        ))
                        conn.execute("""
                            INSERT INTO sync_history (
                                remote_playlist_id, synced_at, total_tracks,
                                matched_count, unmatched_count, m3u_file_path
                            )
                            VALUES (?, ?, ?, ?, ?, ?)
                        """, (
                            result.playlist_id,
                            synced_at,
                            result.total_tracks,
                            result.matched_tracks,
                            unmatched_count,
                            str(result.m3u_file_path) if result.m3u_file_path else None,
                        ))
                        conn.commit()
                    except sqlite3.Error:
                        conn.rollback()
                        raise

                    row = conn.execute(
                        "SELECT * FROM mappings WHERE remote_playlist_id = ?",
                        (result.playlist_id,)
                    ).fetchone()
                    return PlaylistMapping.from_row(row) if row else None
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to record sync: {e}",
                details={"remote_playlist_id": result.playlist_id}
            ) from e

    def get_sync_history(self, remote_playlist_id: str, limit: int = 10) -> list[dict[str, Any]]:
        """Most recent syncs for a playlist, newest first."""
        try:
            with self._lock:
                with self._get_connection() as conn:
                    cursor = conn.execute("""
                        SELECT synced_at, total_tracks, matched_count, unmatched_count, m3u_file_path
                        FROM sync_history
                        WHERE remote_playlist_id = ?
                        ORDER BY id DESC
                        LIMIT ?
                    """, (remote_playlist_id, limit))
                    return [dict(row) for row in cursor.fetchall()]
        except sqlite3.Error as e:
            raise DatabaseError(
                f"Failed to read sync history: {e}",
                details={"remote_playlist_id": remote_playlist_id}
            ) from e
