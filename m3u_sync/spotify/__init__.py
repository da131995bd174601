"""Spotify access: playlist track fetching with an explicit token."""

from m3u_sync.spotify.client import SpotifyTrackSource, extract_playlist_id

__all__ = ["SpotifyTrackSource", "extract_playlist_id"]
