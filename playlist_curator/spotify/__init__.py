"""
Spotify Web API access: models and the spotipy-backed client
"""

from .client import SpotifyClient
from .models import AnalyzedTrack, AudioFeatures, SpotifyArtist, SpotifyPlaylist, SpotifyTrack

__all__ = [
    'SpotifyClient',
    'SpotifyArtist',
    'SpotifyTrack',
    'AudioFeatures',
    'AnalyzedTrack',
    'SpotifyPlaylist',
]
