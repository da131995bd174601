"""
Text normalization for track/filename comparison.

Both sides of a comparison go through the same pipeline so that
"Artist1 - Song1" (from Spotify) and "artist1 song1.mp3" (on disk)
end up as the same string:

    1. Lower-case (unless case_sensitive)
    2. Remove special characters (unless disabled)
    3. Collapse whitespace and trim (unless disabled)

Filenames additionally lose a trailing audio extension first.

All functions are pure: the same input and options always give the
same output, and normalize(normalize(s)) == normalize(s).
"""

import re

from m3u_sync.matching.options import DEFAULT_OPTIONS, MatchingOptions


# Audio extensions stripped from filenames before normalization
AUDIO_EXTENSIONS = (".mp3", ".flac", ".wav", ".m4a", ".aac")

# Anything that is not a letter, digit or whitespace (underscore included)
_SPECIAL_CHARS_PATTERN = re.compile(r"[^\w\s]|_")
_WHITESPACE_PATTERN = re.compile(r"\s+")
_EXTENSION_PATTERN = re.compile(
    r"(?:" + "|".join(re.escape(ext) for ext in AUDIO_EXTENSIONS) + r")$",
    re.IGNORECASE
)


def normalize(text: str, options: MatchingOptions = DEFAULT_OPTIONS) -> str:
    """
    Canonicalize a free-text string for comparison.

    Args:
        text: The string to normalize.
        options: Toggles for case folding, special character removal
                 and whitespace normalization.

    Returns:
        The normalized string (may be empty).

    Examples:
        normalize("Artist1 - Song1")      # "artist1 song1"
        normalize("  AC/DC   Thunder ")   # "acdc thunder"
        normalize("Hello!", MatchingOptions(case_sensitive=True))  # "Hello"
    """
    if not options.case_sensitive:
        text = text.lower()

    if options.remove_special_chars:
        text = _SPECIAL_CHARS_PATTERN.sub("", text)

    if options.normalize_whitespace:
        text = _WHITESPACE_PATTERN.sub(" ", text).strip()

    return text


def strip_audio_extension(filename: str) -> str:
    """Remove one trailing audio extension (case-insensitive), if present."""
    return _EXTENSION_PATTERN.sub("", filename, count=1)


def normalize_filename(filename: str, options: MatchingOptions = DEFAULT_OPTIONS) -> str:
    """
    Normalize a local filename for comparison.

    Same as normalize(), after stripping a trailing .mp3/.flac/.wav/.m4a/.aac.

    Example:
        normalize_filename("Artist1 - Song1.MP3")  # "artist1 song1"
    """
    return normalize(strip_audio_extension(filename), options)


def normalize_track_info(
    artists: tuple[str, ...] | list[str],
    title: str,
    options: MatchingOptions = DEFAULT_OPTIONS
) -> str:
    """
    Build the normalized search string for a remote track.

    Artists are joined with a single space and followed by the title,
    matching how files are usually named ("Artist - Title").
    """
    return normalize(" ".join(artists) + " " + title, options)
