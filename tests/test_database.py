# tests/test_database.py
"""Test the SQLite mapping store"""

import sqlite3

import pytest

from m3u_sync.core.database import MappingStore, PlaylistMapping, validate_mapping
from m3u_sync.core.exceptions import DatabaseError, ValidationError
from m3u_sync.sync import SyncResult


@pytest.fixture
def store(temp_dir):
    with MappingStore(temp_dir / "mappings.db") as store:
        yield store


def mapping(playlist_id="pl1", name="Top Hits", folder="Pop", file_name="Top Hits.m3u"):
    return PlaylistMapping(
        remote_playlist_id=playlist_id,
        remote_playlist_name=name,
        local_folder_name=folder,
        playlist_file_name=file_name,
    )


class TestValidateMapping:

    def test_valid(self):
        assert validate_mapping(mapping()) == []
        assert validate_mapping(mapping(file_name="UPPER.M3U")) == []

    def test_missing_fields_from_dict(self):
        assert validate_mapping({"remote_playlist_id": "abc"}) == [
            "remote_playlist_name",
            "local_folder_name",
            "playlist_file_name",
        ]

    def test_playlist_file_must_be_a_plain_name(self):
        assert validate_mapping(mapping(file_name="../x.m3u")) == ["playlist_file_name"]
        assert validate_mapping(mapping(file_name="sub/x.m3u")) == ["playlist_file_name"]
        assert validate_mapping(mapping(file_name="sub\\x.m3u")) == ["playlist_file_name"]

    def test_folder_must_stay_inside_base(self):
        assert validate_mapping(mapping(folder="Rock/Live")) == []
        assert validate_mapping(mapping(folder="Best..Of")) == []
        for folder in ("..", "../Elsewhere", "Pop\\..\\..", "/music/Pop", "C:\\Music"):
            assert validate_mapping(mapping(folder=folder)) == ["local_folder_name"], folder

    def test_blank_and_wrong_extension(self):
        assert validate_mapping(mapping(folder="  ", file_name="Top Hits.txt")) == [
            "local_folder_name",
            "playlist_file_name",
        ]


class TestMappingStore:
    """Test MappingStore operations"""

    def test_save_and_get(self, store):
        saved = store.save_mapping(mapping(name="  Top Hits "))

        assert saved.remote_playlist_name == "Top Hits"
        assert store.get_mapping("pl1") == saved
        assert store.get_mapping("unknown") is None

    def test_invalid_mapping_rejected(self, store):
        with pytest.raises(ValidationError) as exc_info:
            store.save_mapping(mapping(file_name="Top Hits"))

        assert exc_info.value.fields == ["playlist_file_name"]
        assert store.get_all_mappings() == []

    def test_update_replaces_fields(self, store):
        store.save_mapping(mapping())
        store.save_mapping(mapping(folder="Dance"))

        assert [m.local_folder_name for m in store.get_all_mappings()] == ["Dance"]

    def test_all_mappings_ordered_by_name(self, store):
        store.save_mapping(mapping("pl1", "Rock Classics"))
        store.save_mapping(mapping("pl2", "Chill"))
        store.save_mapping(mapping("pl3", "Pop Hits"))

        assert [m.remote_playlist_id for m in store.get_all_mappings()] == ["pl2", "pl3", "pl1"]

    def test_delete(self, store):
        store.save_mapping(mapping())

        assert store.delete_mapping("pl1") is True
        assert store.delete_mapping("pl1") is False
        assert store.get_mapping("pl1") is None

    def test_reopen_keeps_data(self, temp_dir):
        with MappingStore(temp_dir / "mappings.db") as store:
            store.save_mapping(mapping())

        with MappingStore(temp_dir / "mappings.db") as store:
            assert store.get_mapping("pl1").remote_playlist_name == "Top Hits"

    def test_missing_parent_directory(self, temp_dir):
        with pytest.raises(DatabaseError):
            MappingStore(temp_dir / "missing" / "mappings.db")


class TestSyncStatistics:
    """Test record_sync() and the sync history"""

    def test_record_sync(self, store):
        store.save_mapping(mapping())
        result = SyncResult("pl1", "Top Hits", total_tracks=4, matched_tracks=3, synced_at="2024-01-01T00:00:00+00:00")

        updated = store.record_sync(result)

        assert updated.last_sync == "2024-01-01T00:00:00+00:00"
        assert updated.matched_count == 3
        assert updated.unmatched_count == 0
        assert updated.matched_percentage == 75.0

    def test_stats_survive_mapping_update(self, store):
        store.save_mapping(mapping())
        store.record_sync(SyncResult("pl1", "Top Hits", total_tracks=2, matched_tracks=1))

        store.save_mapping(mapping(folder="Dance"))

        assert store.get_mapping("pl1").matched_count == 1

    def test_history_newest_first(self, store):
        store.save_mapping(mapping())
        for matched in (1, 2, 3):
            store.record_sync(SyncResult("pl1", "Top Hits", total_tracks=3, matched_tracks=matched))

        history = store.get_sync_history("pl1", limit=2)

        assert [h["matched_count"] for h in history] == [3, 2]

    def test_unknown_playlist(self, store):
        assert store.record_sync(SyncResult("nope", "Nope", total_tracks=1, matched_tracks=0)) is None
        assert len(store.get_sync_history("nope")) == 1


def drop_table(db_path, table):
    """Break the schema from a second connection, as a damaged file would"""
    conn = sqlite3.connect(str(db_path))
    try:
        conn.execute(f"DROP TABLE {table}")
        conn.commit()
    finally:
        conn.close()


class TestStoreErrors:
    """SQLite failures surface as DatabaseError"""

    def test_record_sync(self, temp_dir, store):
        store.save_mapping(mapping())
        drop_table(temp_dir / "mappings.db", "sync_history")

        with pytest.raises(DatabaseError) as exc_info:
            store.record_sync(SyncResult("pl1", "Top Hits", total_tracks=2, matched_tracks=1))

        assert exc_info.value.details == {"remote_playlist_id": "pl1"}
        assert isinstance(exc_info.value.__cause__, sqlite3.Error)
        assert store.get_mapping("pl1").last_sync is None

    def test_reads_and_deletes(self, temp_dir, store):
        drop_table(temp_dir / "mappings.db", "mappings")

        with pytest.raises(DatabaseError):
            store.get_mapping("pl1")
        with pytest.raises(DatabaseError):
            store.get_all_mappings()
        with pytest.raises(DatabaseError):
            store.delete_mapping("pl1")

    def test_history(self, temp_dir, store):
        drop_table(temp_dir / "mappings.db", "sync_history")

        with pytest.raises(DatabaseError):
            store.get_sync_history("pl1")
