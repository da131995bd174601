"""
Configuration management for m3u-sync.

This module loads config.yaml, validates it and returns a frozen Config.

The configuration file contains:
    - The base music folder holding one subfolder per local playlist
    - Where the mapping database lives (defaults inside the base folder)
    - Matching options: normalization toggles and the matching strategy
    - An optional Spotify access token

The access token may also come from the SPOTIFY_ACCESS_TOKEN environment
variable, which is read after loading a .env file from the working
directory. A token in config.yaml wins over the environment.

Configuration File Location:
    config.yaml in the current working directory, unless an explicit
    path is given (CLI: --config).

Example config.yaml:
    library:
      base_music_folder: "~/Music/Playlists"
      database: null            # default: <base_music_folder>/.m3u_sync.db
      log_directory: null       # default: current directory (logs/ is created inside)

    matching:
      case_sensitive: false
      remove_special_chars: true
      normalize_whitespace: true
      strategy: best_score      # or exact_or_substring

    spotify:
      access_token: null        # or SPOTIFY_ACCESS_TOKEN in env / .env
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

from m3u_sync.core.exceptions import ConfigError
from m3u_sync.matching.options import MatchingOptions, Strategy


CONFIG_FILENAME = "config.yaml"

DEFAULT_DATABASE_FILENAME = ".m3u_sync.db"

ACCESS_TOKEN_ENV_VAR = "SPOTIFY_ACCESS_TOKEN"


@dataclass(frozen=True)
class LibraryConfig:
    """
    Local library location.

    Attributes:
        base_music_folder: Absolute path of the folder that holds one
                           subfolder per playlist and the .m3u files.
        database: Absolute path of the SQLite mapping store.
        log_directory: Directory under which logs/ is created.
    """
    base_music_folder: Path
    database: Path
    log_directory: Path


@dataclass(frozen=True)
class SpotifyConfig:
    """
    Remote source settings.

    Attributes:
        access_token: Bearer token used for the Web API, or None when the
                      user has not provided one (sync commands then fail
                      with a ConfigError when they need it).
    """
    access_token: str | None


@dataclass(frozen=True)
class Config:
    """
    Complete application configuration.

    Example:
        config = load_config()
        print(f"Library: {config.library.base_music_folder}")
        print(f"Strategy: {config.matching.strategy.value}")
    """
    library: LibraryConfig
    matching: MatchingOptions
    spotify: SpotifyConfig

    def require_access_token(self) -> str:
        """
        Return the access token or raise ConfigError when missing.

        Raises:
            ConfigError: With details["field"] == "spotify.access_token".
        """
        if not self.spotify.access_token:
            raise ConfigError(
                f"No Spotify access token: set 'spotify.access_token' or {ACCESS_TOKEN_ENV_VAR}",
                details={"field": "spotify.access_token"}
            )
        return self.spotify.access_token


def load_config(config_path: Path | None = None) -> Config:
    """
    Load and validate configuration from config.yaml.

    Args:
        config_path: Explicit path to the config file. If None, looks for
                     config.yaml in the current working directory.

    Returns:
        Config: Frozen configuration with paths expanded and defaults applied.

    Raises:
        ConfigError: If the file is missing, is not valid YAML, is not a
                     mapping, or has a missing/invalid field. details["field"]
                     names the offending field where there is one.

    Behavior:
        1. Locate and read the file
        2. Parse YAML (yaml.safe_load)
        3. Parse each section with its defaults
        4. Fill the access token from the environment if not in the file
    """
    if config_path is None:
        config_path = Path.cwd() / CONFIG_FILENAME
    config_path = Path(config_path)

    if not config_path.exists():
        raise ConfigError(
            f"Configuration file not found: {config_path}",
            details={"file_path": str(config_path)}
        )

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            content = f.read()
    except OSError as e:
        raise ConfigError(
            f"Failed to read configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    try:
        raw_config = yaml.safe_load(content)
    except yaml.YAMLError as e:
        raise ConfigError(
            f"Invalid YAML syntax in configuration file: {e}",
            details={"file_path": str(config_path), "original_error": str(e)}
        ) from e

    if not isinstance(raw_config, dict):
        raise ConfigError(
            "Configuration file must contain a YAML dictionary",
            details={"file_path": str(config_path)}
        )

    return parse_config(raw_config)


def parse_config(raw_config: dict[str, Any]) -> Config:
    """
    Build a Config from an already-parsed dictionary.

    Split out of load_config() so the CLI and tests can build a
    configuration without a file on disk.
    """
    library_section = _get_section(raw_config, "library", required=True)
    matching_section = _get_section(raw_config, "matching", required=False)
    spotify_section = _get_section(raw_config, "spotify", required=False)

    return Config(
        library=_parse_library_config(library_section),
        matching=_parse_matching_config(matching_section),
        spotify=_parse_spotify_config(spotify_section),
    )


def _get_section(raw_config: dict[str, Any], name: str, required: bool) -> dict[str, Any]:
    section = raw_config.get(name)

    if section is None:
        if required:
            raise ConfigError(
                f"Missing required section: '{name}'",
                details={"missing_section": name}
            )
        return {}

    if not isinstance(section, dict):
        raise ConfigError(
            f"Section '{name}' must be a dictionary",
            details={"section": name}
        )
    return section


def _parse_library_config(library_section: dict[str, Any]) -> LibraryConfig:
    """
    Parse the 'library' section.

    Expands ~ and resolves to absolute paths. Does NOT check that the
    folder exists: commands that need it report a ScanError themselves.

    Raises:
        ConfigError: If base_music_folder is missing or empty, or database
                     is given but not a non-empty string.
    """
    base = library_section.get("base_music_folder", "")

    if not isinstance(base, str) or not base.strip():
        raise ConfigError(
            "'library.base_music_folder' must be a non-empty string",
            details={"field": "library.base_music_folder"}
        )

    base_path = Path(base.strip()).expanduser().resolve()

    raw_database = library_section.get("database")
    if raw_database is not None:
        if not isinstance(raw_database, str) or not raw_database.strip():
            raise ConfigError(
                "'library.database' must be a non-empty string or null",
                details={"field": "library.database"}
            )
        database_path = Path(raw_database.strip()).expanduser().resolve()
    else:
        database_path = base_path / DEFAULT_DATABASE_FILENAME

    raw_log_dir = library_section.get("log_directory")
    if raw_log_dir is not None:
        if not isinstance(raw_log_dir, str) or not raw_log_dir.strip():
            raise ConfigError(
                "'library.log_directory' must be a non-empty string or null",
                details={"field": "library.log_directory"}
            )
        log_directory = Path(raw_log_dir.strip()).expanduser().resolve()
    else:
        log_directory = Path.cwd()

    return LibraryConfig(
        base_music_folder=base_path,
        database=database_path,
        log_directory=log_directory,
    )


def _parse_matching_config(matching_section: dict[str, Any]) -> MatchingOptions:
    """
    Parse the 'matching' section, applying MatchingOptions defaults.

    Raises:
        ConfigError: If a toggle is not a boolean or the strategy is unknown.
    """
    defaults = MatchingOptions()
    toggles = {}

    for name in ("case_sensitive", "remove_special_chars", "normalize_whitespace"):
        value = matching_section.get(name)
        if value is None:
            toggles[name] = getattr(defaults, name)
            continue
        if not isinstance(value, bool):
            raise ConfigError(
                f"'matching.{name}' must be true or false",
                details={"field": f"matching.{name}", "value": value}
            )
        toggles[name] = value

    strategy = defaults.strategy
    raw_strategy = matching_section.get("strategy")
    if raw_strategy is not None:
        if not isinstance(raw_strategy, str):
            raise ConfigError(
                "'matching.strategy' must be a string",
                details={"field": "matching.strategy"}
            )
        try:
            strategy = Strategy.from_name(raw_strategy)
        except ValueError as e:
            raise ConfigError(
                f"Unknown matching strategy '{raw_strategy}' "
                f"(expected one of: {', '.join(s.value for s in Strategy)})",
                details={"field": "matching.strategy", "value": raw_strategy}
            ) from e

    return MatchingOptions(strategy=strategy, **toggles)


def _parse_spotify_config(spotify_section: dict[str, Any]) -> SpotifyConfig:
    """
    Parse the 'spotify' section.

    Falls back to SPOTIFY_ACCESS_TOKEN (after loading .env) when the
    file has no token.
    """
    token = spotify_section.get("access_token")

    if token is not None and not isinstance(token, str):
        raise ConfigError(
            "'spotify.access_token' must be a string or null",
            details={"field": "spotify.access_token"}
        )

    if token is None or not token.strip():
        load_dotenv()
        token = os.environ.get(ACCESS_TOKEN_ENV_VAR)

    token = token.strip() if token else None
    return SpotifyConfig(access_token=token or None)
