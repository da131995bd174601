"""
m3u-sync: keep local M3U playlists in step with Spotify playlists.

This package matches the tracks of Spotify playlists against the audio
files of a local music library and maintains extended M3U playlists for
them. It can also generate one playlist per library folder, ordered by
how often each song already appears in the other playlists.

Architecture:
    matching/   - Normalization, similarity scoring, track matcher
    playlist/   - M3U codec, popularity counting, folder playlist synthesis
    core/       - Configuration, mapping store, logging, exceptions,
                  filesystem scanning, progress bars
    spotify/    - Spotify playlist track source (explicit access token)
    sync.py     - Playlist sync and folder generation orchestration
    cli.py      - Command-line interface

Library Layout:
    base_music_folder/
    ├── Pop.m3u             # one playlist per folder (generate)
    ├── Top Hits.m3u        # one playlist per mapping (sync)
    ├── Pop/
    │   └── Artist1 - Song1.mp3
    └── Rock/
        └── ...

Usage:
    Command Line:
        m3u-sync mapping add 37i9dQZF1DXcBWIGoYBM5M --folder Pop
        m3u-sync sync --all
        m3u-sync generate

    Python API:
        from m3u_sync import load_config, MappingStore, PlaylistSynchronizer
        from m3u_sync.spotify import SpotifyTrackSource

        config = load_config()
        store = MappingStore(config.library.database)
        source = SpotifyTrackSource(config.require_access_token())

        synchronizer = PlaylistSynchronizer(config, store)
        report = synchronizer.sync_all(store.get_all_mappings(), source.fetch_tracks)

Configuration:
    Requires a config.yaml file in the current directory:

        library:
          base_music_folder: "~/Music/Playlists"

        matching:
          strategy: best_score

Dependencies:
    - spotipy: Spotify API client
    - rapidfuzz: Exact Levenshtein distance
    - click / rich-click: CLI
    - rich: Progress bars and tables
    - tqdm: Progress-bar-safe console logging
    - pyyaml: Configuration file parsing
    - python-dotenv: Access token from .env
"""

__version__ = "0.1.0"
__author__ = "m3u-sync"
__license__ = "MIT"

from m3u_sync.core import (
    Config,
    ConfigError,
    DatabaseError,
    M3USyncError,
    MappingStore,
    PlaylistFileError,
    PlaylistMapping,
    ScanError,
    SpotifyError,
    ValidationError,
    get_logger,
    load_config,
    setup_logging,
)
from m3u_sync.matching import MatchingOptions, Strategy, match_tracks
from m3u_sync.sync import PlaylistSynchronizer, generate_folder_playlists

__all__ = [
    # Version
    "__version__",
    # Core
    "Config",
    "load_config",
    "MappingStore",
    "PlaylistMapping",
    "setup_logging",
    "get_logger",
    # Exceptions
    "M3USyncError",
    "ConfigError",
    "ValidationError",
    "ScanError",
    "PlaylistFileError",
    "DatabaseError",
    "SpotifyError",
    # Matching
    "MatchingOptions",
    "Strategy",
    "match_tracks",
    # Orchestration
    "PlaylistSynchronizer",
    "generate_folder_playlists",
]
