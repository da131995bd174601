"""
Logging configuration for m3u-sync.

Outputs installed by setup_logging():
    - Console: colored, INFO and above, written through tqdm so that
      messages never tear an active progress bar
    - log_full_<ts>.log: every record (DEBUG and above)
    - log_errors_<ts>.log: ERROR and CRITICAL only
    - unmatched_tracks_<ts>.log: one block per remote track that had no
      local file, in a format meant to be read by a human fixing the
      library by hand

All files live in <output_dir>/logs and get a fresh timestamp per run.

Usage:
    from m3u_sync.core.logger import setup_logging, get_logger

    setup_logging(base_music_folder)   # once, at startup
    logger = get_logger(__name__)      # once per module

    logger.info("Scanning library")
    log_unmatched_track(logger, "Song", "Artist", "Artist - Song.mp3", url)
"""

import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import TextIO

from tqdm import tqdm


FILE_LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
FILE_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

LOGS_DIRNAME = "logs"


class Colors:
    """ANSI color codes for terminal output."""
    RESET = "\033[0m"
    RED = "\033[31m"
    GREEN = "\033[32m"
    YELLOW = "\033[33m"
    BLUE = "\033[34m"
    CYAN = "\033[36m"
    WHITE = "\033[37m"
    BOLD = "\033[1m"


class ColoredConsoleFormatter(logging.Formatter):
    """
    Console formatter: "<LEVEL>: <message>" with the level name colored.

    Colors:
        - DEBUG: Blue
        - INFO: Green
        - WARNING: Yellow
        - ERROR: Red
        - CRITICAL: Bold Red
    """

    LEVEL_COLORS = {
        logging.DEBUG: Colors.BLUE,
        logging.INFO: Colors.GREEN,
        logging.WARNING: Colors.YELLOW,
        logging.ERROR: Colors.RED,
        logging.CRITICAL: Colors.BOLD + Colors.RED,
    }

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno, Colors.WHITE)
        return f"{color}{record.levelname}{Colors.RESET}: {record.getMessage()}"


class TqdmLoggingHandler(logging.Handler):
    """
    Console handler that writes through tqdm.write().

    Progress bars redraw in place with carriage returns; a plain stream
    handler would interleave with them. tqdm.write() prints the message
    above any active bar instead.

    Attributes:
        stream: Output stream (defaults to sys.stderr).
    """

    def __init__(self, stream: TextIO = sys.stderr) -> None:
        super().__init__()
        self.stream = stream

    def emit(self, record: logging.LogRecord) -> None:
        try:
            tqdm.write(self.format(record), file=self.stream)
        except Exception:
            self.handleError(record)


class UnmatchedTrackHandler(logging.Handler):
    """
    Writes remote tracks that found no local file to the unmatched report.

    Only records carrying the 'unmatched_track_title' extra are written;
    everything else is ignored. Each track becomes one block:

        [Today's Top Hits] Artist1, Artist2 - Song Title
        Expected: Artist1, Artist2 - Song Title.mp3
        https://open.spotify.com/track/xxxxx

    Extra fields read from the record:
        - 'unmatched_track_title'
        - 'unmatched_track_artists'
        - 'unmatched_track_expected_filename'
        - 'unmatched_track_url'
        - 'unmatched_track_playlist' (optional)

    Attributes:
        report_path: Path to the unmatched_tracks_<ts>.log file.
        report_file: Open file handle, set by open().
    """

    def __init__(self, report_path: Path) -> None:
        super().__init__()
        self.report_path = report_path
        self.report_file: TextIO | None = None

    def open(self) -> None:
        """Open (and truncate) the report file. Called by setup_logging()."""
        self.report_file = open(self.report_path, "w", encoding="utf-8")

    def emit(self, record: logging.LogRecord) -> None:
        if not hasattr(record, "unmatched_track_title"):
            return

        if self.report_file is None:
            return

        try:
            title = getattr(record, "unmatched_track_title", "Unknown")
            artists = getattr(record, "unmatched_track_artists", "Unknown")
            expected = getattr(record, "unmatched_track_expected_filename", "")
            url = getattr(record, "unmatched_track_url", "")
            playlist = getattr(record, "unmatched_track_playlist", None)

            prefix = f"[{playlist}] " if playlist else ""
            self.report_file.write(f"{prefix}{artists} - {title}\n")
            self.report_file.write(f"Expected: {expected}\n")
            self.report_file.write(f"{url}\n\n")
            self.report_file.flush()
        except Exception:
            self.handleError(record)

    def close(self) -> None:
        """Close the report file. Safe to call more than once."""
        if self.report_file is not None:
            try:
                self.report_file.close()
            except OSError:
                pass
            self.report_file = None
        super().close()


class ErrorOnlyFilter(logging.Filter):
    """Let through ERROR and CRITICAL records only."""

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= logging.ERROR


def setup_logging(output_dir: Path, verbose: bool = False) -> Path:
    """
    Configure the root logger for a run.

    Call once at startup, after the configuration is loaded.

    Args:
        output_dir: Directory under which the 'logs' folder is created.
        verbose: Show DEBUG records on the console too.

    Returns:
        The logs directory used for this run.

    Behavior:
        1. Create output_dir/logs if needed
        2. Clear any handlers already on the root logger
        3. Install console, full log, error log and unmatched report handlers
    """
    logs_dir = Path(output_dir) / LOGS_DIRNAME
    logs_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y-%m-%d_%H-%M-%S")

    root_logger = logging.getLogger()
    root_logger.setLevel(logging.DEBUG)
    root_logger.handlers.clear()

    console_handler = TqdmLoggingHandler(sys.stderr)
    console_handler.setLevel(logging.DEBUG if verbose else logging.INFO)
    console_handler.setFormatter(ColoredConsoleFormatter())
    root_logger.addHandler(console_handler)

    full_handler = logging.FileHandler(
        logs_dir / f"log_full_{timestamp}.log", mode="w", encoding="utf-8"
    )
    full_handler.setLevel(logging.DEBUG)
    full_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
    root_logger.addHandler(full_handler)

    error_handler = logging.FileHandler(
        logs_dir / f"log_errors_{timestamp}.log", mode="w", encoding="utf-8"
    )
    error_handler.setLevel(logging.DEBUG)  # ErrorOnlyFilter does the filtering
    error_handler.setFormatter(logging.Formatter(FILE_LOG_FORMAT, FILE_DATE_FORMAT))
    error_handler.addFilter(ErrorOnlyFilter())
    root_logger.addHandler(error_handler)

    unmatched_handler = UnmatchedTrackHandler(logs_dir / f"unmatched_tracks_{timestamp}.log")
    unmatched_handler.open()
    root_logger.addHandler(unmatched_handler)

    return logs_dir


def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a module (pass __name__).

    Loggers obtained before setup_logging() still work; their records
    simply have nowhere to go until the handlers are installed.
    """
    return logging.getLogger(name)


def format_matched_message(artists: str, title: str, path: str, score: float) -> str:
    """Colored 'Matched' line for the console."""
    return (
        f"{Colors.GREEN}Matched{Colors.RESET}: "
        f"{artists} - {title} -> "
        f"{Colors.CYAN}{path}{Colors.RESET} (score: {score:.2f})"
    )


def format_no_match_message(artists: str, title: str) -> str:
    """Colored 'No match' line for the console."""
    return f"{Colors.RED}No match{Colors.RESET}: {artists} - {title}"


def log_unmatched_track(
    logger: logging.Logger,
    title: str,
    artists: str,
    expected_filename: str,
    spotify_url: str,
    playlist_name: str | None = None
) -> None:
    """
    Log a remote track with no local file.

    Emits a WARNING carrying the extra fields UnmatchedTrackHandler
    writes to the unmatched report.

    Example:
        log_unmatched_track(
            logger,
            title="One Kiss",
            artists="Calvin Harris, Dua Lipa",
            expected_filename="Calvin Harris, Dua Lipa - One Kiss.mp3",
            spotify_url="https://open.spotify.com/track/xxx",
            playlist_name="Summer",
        )
    """
    logger.warning(
        format_no_match_message(artists, title),
        extra={
            "unmatched_track_title": title,
            "unmatched_track_artists": artists,
            "unmatched_track_expected_filename": expected_filename,
            "unmatched_track_url": spotify_url,
            "unmatched_track_playlist": playlist_name,
        }
    )


def shutdown_logging() -> None:
    """
    Flush, close and detach every root handler.

    Call at exit (typically from a finally block).
    """
    root_logger = logging.getLogger()

    for handler in root_logger.handlers[:]:
        try:
            handler.flush()
            handler.close()
        except OSError:
            pass
        root_logger.removeHandler(handler)
