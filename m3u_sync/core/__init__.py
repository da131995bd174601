"""
Core module for m3u-sync.

Foundational components used throughout the application:
    - exceptions: Error taxonomy
    - config: config.yaml loading and validation
    - database: SQLite store for playlist mappings and sync history
    - logger: Console, log files and the unmatched-tracks report

Usage:
    from m3u_sync.core import (
        Config, load_config,
        MappingStore, PlaylistMapping,
        setup_logging, get_logger,
        M3USyncError, ConfigError,
    )
"""

from m3u_sync.core.config import Config, LibraryConfig, SpotifyConfig, load_config
from m3u_sync.core.database import MappingStore, PlaylistMapping, validate_mapping
from m3u_sync.core.exceptions import (
    ConfigError,
    DatabaseError,
    M3USyncError,
    PlaylistFileError,
    ScanError,
    SpotifyError,
    ValidationError,
)
from m3u_sync.core.logger import (
    get_logger,
    log_unmatched_track,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    # Config
    "Config",
    "LibraryConfig",
    "SpotifyConfig",
    "load_config",
    # Database
    "MappingStore",
    "PlaylistMapping",
    "validate_mapping",
    # Exceptions
    "M3USyncError",
    "ConfigError",
    "ValidationError",
    "ScanError",
    "PlaylistFileError",
    "DatabaseError",
    "SpotifyError",
    # Logger
    "setup_logging",
    "get_logger",
    "log_unmatched_track",
    "shutdown_logging",
]
