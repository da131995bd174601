"""
Spotify playlist track source.

A thin wrapper around spotipy that turns a playlist into a list of
RemoteTrack. The access token is passed in explicitly: this module never
reads credentials from config files or the environment, and it has no
OAuth flow of its own (obtaining a token is the caller's business).

Usage:
    from m3u_sync.spotify import SpotifyTrackSource

    source = SpotifyTrackSource(access_token)
    name = source.playlist_name(playlist_id)
    tracks = source.fetch_tracks(playlist_id)

Errors:
    Every spotipy.SpotifyException is re-raised as SpotifyError, with
    is_auth_error set for 401 and is_rate_limit for 429. Nothing is
    retried here.
"""

import re
from typing import Any

import spotipy

from m3u_sync.core.exceptions import SpotifyError
from m3u_sync.core.logger import get_logger
from m3u_sync.matching.models import RemoteTrack


logger = get_logger(__name__)


# Spotify caps playlist_items at 100 per page
PAGE_SIZE = 100

_PLAYLIST_URI_PATTERN = re.compile(r"^spotify:playlist:([A-Za-z0-9]+)$")
_PLAYLIST_URL_PATTERN = re.compile(r"open\.spotify\.com/(?:[\w-]+/)*playlist/([A-Za-z0-9]+)")
_PLAYLIST_ID_PATTERN = re.compile(r"^[A-Za-z0-9]+$")


def extract_playlist_id(value: str) -> str:
    """
    Accept a playlist id, a spotify:playlist: URI or an open.spotify.com URL.

    Raises:
        SpotifyError: If nothing that looks like a playlist id is found.

    Examples:
        extract_playlist_id("37i9dQZF1DXcBWIGoYBM5M")
        extract_playlist_id("spotify:playlist:37i9dQZF1DXcBWIGoYBM5M")
        extract_playlist_id("https://open.spotify.com/playlist/37i9dQZF1DXcBWIGoYBM5M?si=x")
        # all return "37i9dQZF1DXcBWIGoYBM5M"
    """
    value = (value or "").strip()

    for pattern in (_PLAYLIST_URI_PATTERN, _PLAYLIST_URL_PATTERN):
        match = pattern.search(value)
        if match:
            return match.group(1)

    if _PLAYLIST_ID_PATTERN.match(value):
        return value

    raise SpotifyError(
        f"Not a Spotify playlist id or URL: {value!r}",
        details={"value": value}
    )


def _is_valid_track(item: dict[str, Any] | None) -> bool:
    """
    Check whether a playlist item is a playable track.

    Rejected: removed tracks (None), local files, podcast episodes and
    items without an id or name.
    """
    if item is None or not isinstance(item, dict):
        return False

    if item.get("is_local", False):
        return False

    track = item.get("track")
    if not isinstance(track, dict):
        return False

    if track.get("type", "track") != "track":
        return False

    return bool(track.get("id")) and bool(track.get("name"))


def _to_spotify_error(e: spotipy.SpotifyException, action: str, playlist_id: str) -> SpotifyError:
    details = {"playlist_id": playlist_id, "http_status": e.http_status}

    if e.http_status == 401:
        return SpotifyError(
            f"Spotify rejected the access token while {action}",
            details=details,
            is_auth_error=True
        )
    if e.http_status == 429:
        return SpotifyError(
            f"Rate limited by Spotify while {action}",
            details=details,
            is_rate_limit=True
        )
    if e.http_status == 404:
        return SpotifyError(f"Playlist not found: {playlist_id}", details=details)

    details["original_error"] = str(e)
    return SpotifyError(f"Spotify request failed while {action}: {e.msg}", details=details)


class SpotifyTrackSource:
    """
    Fetches playlist tracks with an explicit access token.

    Attributes:
        client: The spotipy.Spotify instance used for requests. Tests can
                inject a stand-in through the constructor.
    """

    def __init__(self, access_token: str, client: spotipy.Spotify | None = None) -> None:
        if client is None:
            if not access_token:
                raise SpotifyError("An access token is required", is_auth_error=True)
            client = spotipy.Spotify(auth=access_token)
        self.client = client

    def playlist_name(self, playlist: str) -> str:
        """Name of a playlist (id, URI or URL accepted)."""
        playlist_id = extract_playlist_id(playlist)
        try:
            result = self.client.playlist(playlist_id, fields="name")
        except spotipy.SpotifyException as e:
            raise _to_spotify_error(e, "fetching the playlist", playlist_id) from e
        return (result or {}).get("name") or playlist_id

    def fetch_tracks(self, playlist: str) -> list[RemoteTrack]:
        """
        Fetch every track of a playlist, in playlist order.

        Args:
            playlist: Playlist id, URI or URL.

        Returns:
            RemoteTrack list. Removed tracks, local files and episodes are
            skipped (and counted in a log message).

        Raises:
            SpotifyError: On any API failure.
        """
        playlist_id = extract_playlist_id(playlist)
        tracks: list[RemoteTrack] = []
        skipped = 0
        offset = 0

        while True:
            try:
                response = self.client.playlist_items(
                    playlist_id,
                    limit=PAGE_SIZE,
                    offset=offset,
                    additional_types=["track"]
                )
            except spotipy.SpotifyException as e:
                raise _to_spotify_error(e, "fetching playlist tracks", playlist_id) from e

            if response is None:
                raise SpotifyError(
                    f"Empty response for playlist {playlist_id}",
                    details={"playlist_id": playlist_id, "offset": offset}
                )

            for item in response.get("items") or []:
                if not _is_valid_track(item):
                    skipped += 1
                    continue
                tracks.append(RemoteTrack.from_spotify_api(item["track"]))

            if response.get("next") is None:
                break
            offset += PAGE_SIZE

        if skipped > 0:
            logger.warning(f"Skipped {skipped} items in {playlist_id} (local files, episodes, unavailable)")
        logger.debug(f"Fetched {len(tracks)} tracks from {playlist_id}")
        return tracks
