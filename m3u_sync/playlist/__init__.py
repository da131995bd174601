"""
Playlist files: the extended M3U codec, popularity counting and
folder playlist synthesis.

Usage:
    from m3u_sync.playlist import parse, serialize, merge, synthesize
"""

from m3u_sync.playlist.codec import (
    EXTINF_PREFIX,
    HEADER,
    PlaylistEntry,
    build_extinf,
    merge,
    merge_entries,
    merge_into_file,
    parse,
    read_playlist,
    serialize,
    write_playlist,
)
from m3u_sync.playlist.popularity import PopularityScan, count_appearances, scan_popularity
from m3u_sync.playlist.synthesizer import FolderPlaylistResult, SynthesisResult, synthesize

__all__ = [
    # Codec
    "HEADER",
    "EXTINF_PREFIX",
    "PlaylistEntry",
    "build_extinf",
    "parse",
    "serialize",
    "merge",
    "merge_entries",
    "merge_into_file",
    "read_playlist",
    "write_playlist",
    # Popularity
    "PopularityScan",
    "count_appearances",
    "scan_popularity",
    # Synthesis
    "FolderPlaylistResult",
    "SynthesisResult",
    "synthesize",
]
