# tests/test_popularity.py
"""Test popularity counting and folder playlist synthesis"""

from m3u_sync.playlist.codec import PlaylistEntry
from m3u_sync.playlist.popularity import count_appearances, scan_popularity
from m3u_sync.playlist.synthesizer import synthesize


class TestCountAppearances:
    """Test count_appearances()"""

    def test_counts_across_playlists(self):
        table = count_appearances([
            "#EXTM3U\np1\np1\np2",
            "#EXTM3U\np2",
        ])

        assert table == {"p1": 2, "p2": 2}

    def test_separators_normalized(self):
        table = count_appearances(["Pop\\a.mp3\n#EXTINF:-1,a\nPop/a.mp3"])

        assert table == {"Pop/a.mp3": 2}

    def test_no_playlists(self):
        assert count_appearances([]) == {}


class TestScanPopularity:
    """Test scan_popularity() on a folder"""

    def test_reads_top_level_playlists_only(self, temp_dir):
        (temp_dir / "one.m3u").write_text("#EXTM3U\nPop/a.mp3\nPop/b.mp3\n", encoding="utf-8")
        (temp_dir / "TWO.M3U").write_text("#EXTM3U\nPop/a.mp3\n", encoding="utf-8")
        (temp_dir / "Pop").mkdir()
        (temp_dir / "Pop" / "nested.m3u").write_text("Pop/b.mp3\n", encoding="utf-8")
        (temp_dir / "notes.txt").write_text("Pop/b.mp3\n", encoding="utf-8")

        scan = scan_popularity(temp_dir)

        assert scan.table == {"Pop/a.mp3": 2, "Pop/b.mp3": 1}
        assert scan.playlists_read == 2
        assert scan.skipped == []

    def test_undecodable_playlist_is_skipped(self, temp_dir):
        (temp_dir / "good.m3u").write_text("Pop/a.mp3\n", encoding="utf-8")
        bad = temp_dir / "bad.m3u"
        bad.write_bytes(b"\xff\xfe\xfa\n")

        scan = scan_popularity(temp_dir)

        assert scan.table == {"Pop/a.mp3": 1}
        assert scan.playlists_read == 1
        assert [item.path for item in scan.skipped] == [str(bad)]

    def test_missing_directory(self, temp_dir):
        scan = scan_popularity(temp_dir / "missing")

        assert scan.table == {}
        assert scan.playlists_read == 0


class TestSynthesize:
    """Test synthesize() for one folder"""

    def test_orders_by_popularity(self):
        files = [("Pop/a.mp3", "a.mp3"), ("Pop/b.mp3", "b.mp3"), ("Pop/c.mp3", "c.mp3")]
        synthesis = synthesize("Pop", files, {"Pop/a.mp3": 0, "Pop/b.mp3": 2, "Pop/c.mp3": 1})

        assert [e.file_path for e in synthesis.entries] == ["Pop/b.mp3", "Pop/c.mp3", "Pop/a.mp3"]
        assert synthesis.entries[0] == PlaylistEntry("Pop/b.mp3", "#EXTINF:-1,b.mp3 (appeared 2 times)")

    def test_ties_sorted_by_display_name(self):
        files = [("Pop/z.mp3", "z.mp3"), ("Pop/B.mp3", "B.mp3"), ("Pop/a.mp3", "a.mp3")]
        synthesis = synthesize("Pop", files, {})

        assert [e.file_path for e in synthesis.entries] == ["Pop/B.mp3", "Pop/a.mp3", "Pop/z.mp3"]
        assert synthesis.entries[2].extinf == "#EXTINF:-1,z.mp3 (appeared 0 times)"

    def test_result_line(self):
        files = [("Pop\\a.mp3", "a.mp3"), ("Pop/Live/b.mp3", "b.mp3")]
        synthesis = synthesize("Pop", files, {"Pop/a.mp3": 3, "Pop/Live/b.mp3": 1, "Rock/c.mp3": 9})

        assert synthesis.entries[0].file_path == "Pop/a.mp3"
        assert synthesis.result.folder == "Pop"
        assert synthesis.result.songs_count == 2
        assert synthesis.result.m3u_file == "Pop.m3u"
        assert synthesis.result.total_appearances == 4

    def test_empty_folder(self):
        assert synthesize("Empty", [], {"Empty/a.mp3": 1}) is None
