"""
Exception classes for m3u-sync.

This module defines all custom exceptions used throughout the application.
Each exception carries a human-readable message and an optional details
dictionary so the CLI can report the problem and the log can keep context.

Exception Hierarchy:
    M3USyncError (base)
        ConfigError - Configuration file issues
        ValidationError - Required fields missing or invalid
        ScanError - Base music folder unreadable (aborts the operation)
        PlaylistFileError - A single playlist file could not be read/written
        DatabaseError - Mapping store issues
        SpotifyError - Remote track source issues

Partial Failures:
    Per-item problems (one unreadable playlist, one inaccessible
    subdirectory, one unwritable output file) are NOT raised. They are
    collected as SkippedItem records or failed report entries and logged.
    Only failures that make the whole operation meaningless raise.
"""


class M3USyncError(Exception):
    """
    Base exception for all m3u-sync errors.

    Attributes:
        message: Human-readable error description.
        details: Optional dictionary with additional context (paths, fields).

    Example:
        try:
            report = generate_folder_playlists(base_dir)
        except M3USyncError as e:
            logger.error(f"Generation failed: {e.message}")
            if e.details:
                logger.debug(f"Details: {e.details}")
    """

    def __init__(self, message: str, details: dict | None = None) -> None:
        """
        Initialize the base exception.

        Args:
            message: Human-readable error description shown to the user.
            details: Optional dictionary containing additional context.
                     Common keys include:
                     - 'path': File or directory involved in the error
                     - 'field': Configuration field that failed validation
                     - 'original_error': The underlying exception message
        """
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        """Return the error message for display."""
        return self.message


class ConfigError(M3USyncError):
    """
    Raised when there's an issue with the configuration file.

    This is a CRITICAL error that should stop program execution.

    Common causes:
        - config.yaml not found
        - config.yaml has invalid YAML syntax
        - 'library.base_music_folder' missing
        - Unknown matching strategy name
    """
    pass


class ValidationError(M3USyncError):
    """
    Raised when input is rejected before any file I/O happens.

    Attributes:
        fields: Names of the missing or invalid fields.

    Example:
        raise ValidationError(
            "Missing required field(s): base_music_folder",
            fields=["base_music_folder"]
        )
    """

    def __init__(
        self,
        message: str,
        fields: list[str] | None = None,
        details: dict | None = None
    ) -> None:
        """
        Initialize validation error with the offending field names.

        Args:
            message: Human-readable error description.
            fields: Names of the fields that failed validation.
            details: Optional dictionary with additional context.
        """
        super().__init__(message, details)
        self.fields = list(fields or [])
        self.details.setdefault("fields", self.fields)


class ScanError(M3USyncError):
    """
    Raised when the base music folder itself cannot be read.

    This is the total-failure case: nothing is written when it occurs.
    Unreadable subdirectories are NOT reported with this exception.
    """
    pass


class PlaylistFileError(M3USyncError):
    """
    Raised when a single playlist file cannot be read or written.

    Batch operations catch this per item and keep going.
    """
    pass


class DatabaseError(M3USyncError):
    """
    Raised when there's an issue with the mapping store.

    Common causes:
        - Database file corrupted
        - Parent directory missing
        - Schema version mismatch
    """
    pass


class SpotifyError(M3USyncError):
    """
    Raised when fetching tracks from Spotify fails.

    Attributes:
        is_auth_error: True if the access token was rejected (401).
        is_rate_limit: True if Spotify answered 429. The core never retries;
                       retrying is left to the caller.
    """

    def __init__(
        self,
        message: str,
        details: dict | None = None,
        is_auth_error: bool = False,
        is_rate_limit: bool = False
    ) -> None:
        super().__init__(message, details)
        self.is_auth_error = is_auth_error
        self.is_rate_limit = is_rate_limit
